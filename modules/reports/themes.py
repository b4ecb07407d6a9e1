# -*- coding: utf-8 -*-
"""Color palettes for rendered reports, keyed by report type."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping


def _palette(**colors: str) -> Mapping[str, str]:
    return MappingProxyType(dict(colors))


THEMES: Mapping[str, Mapping[str, str]] = MappingProxyType({
    'default': _palette(
        primaryColor='#dc2626',
        primaryDark='#991b1b',
        secondaryColor='#64748b',
        accentColor='#059669',
        textColor='#2c3e50',
        backgroundColor='#ffffff',
        headerBackground='#fef2f2',
        borderColor='#e5e7eb',
        tableBorder='#d1d5db',
        tableHeaderBackground='#dc2626',
        tableHeaderBorder='#991b1b',
    ),
    'bookings': _palette(
        primaryColor='#2563eb',
        primaryDark='#1e40af',
        secondaryColor='#6b7280',
        accentColor='#059669',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#eff6ff',
        borderColor='#dbeafe',
        tableBorder='#93c5fd',
        tableHeaderBackground='#2563eb',
        tableHeaderBorder='#1d4ed8',
    ),
    'payments': _palette(
        primaryColor='#059669',
        primaryDark='#047857',
        secondaryColor='#6b7280',
        accentColor='#2563eb',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#f0fdf4',
        borderColor='#d1fae5',
        tableBorder='#a7f3d0',
        tableHeaderBackground='#059669',
        tableHeaderBorder='#047857',
    ),
    'jobs': _palette(
        primaryColor='#f59e0b',
        primaryDark='#d97706',
        secondaryColor='#6b7280',
        accentColor='#2563eb',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#fffbeb',
        borderColor='#fed7aa',
        tableBorder='#fdba74',
        tableHeaderBackground='#f59e0b',
        tableHeaderBorder='#d97706',
    ),
    'leaves': _palette(
        primaryColor='#7c3aed',
        primaryDark='#5b21b6',
        secondaryColor='#6b7280',
        accentColor='#f59e0b',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#faf5ff',
        borderColor='#e9d5ff',
        tableBorder='#c4b5fd',
        tableHeaderBackground='#7c3aed',
        tableHeaderBorder='#5b21b6',
    ),
    'inventory': _palette(
        primaryColor='#dc2626',
        primaryDark='#991b1b',
        secondaryColor='#6b7280',
        accentColor='#059669',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#fef2f2',
        borderColor='#fecaca',
        tableBorder='#fca5a5',
        tableHeaderBackground='#dc2626',
        tableHeaderBorder='#991b1b',
    ),
    'users': _palette(
        primaryColor='#475569',
        primaryDark='#1e293b',
        secondaryColor='#6b7280',
        accentColor='#0ea5e9',
        textColor='#1f2937',
        backgroundColor='#ffffff',
        headerBackground='#f8fafc',
        borderColor='#e2e8f0',
        tableBorder='#cbd5e1',
        tableHeaderBackground='#475569',
        tableHeaderBorder='#334155',
    ),
})


def get_theme(report_type: str | None) -> Mapping[str, str]:
    """Palette for ``report_type``; unknown or missing types get the default."""
    return THEMES.get(report_type or 'default', THEMES['default'])
