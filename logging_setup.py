"""
Error and report logging setup.

Adds a RotatingFileHandler capturing the Flask app, Werkzeug and the
``modules.reports`` loggers into logs/<log_file>, plus a console stream
handler. Safe to call more than once (debug reloader, tests).

Usage:
    from logging_setup import setup_logging
    setup_logging(app)
"""
from __future__ import annotations
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from flask import got_request_exception

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def _resolve_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            return resolved
    return default


def _has_file_handler(logger: logging.Logger, path: str) -> bool:
    return any(
        isinstance(h, RotatingFileHandler) and getattr(h, 'baseFilename', '') == path
        for h in logger.handlers
    )


def setup_logging(app: Optional[object] = None,
                  log_dir: Optional[str] = None,
                  log_file: str = 'pitstop-reports.log',
                  level: Union[int, str, None] = None) -> Optional[str]:
    """Configure rotating file logging for the app and report pipeline.

    ``log_dir`` and ``level`` default to the app's ``LOG_DIR`` and
    ``LOG_LEVEL`` settings. Returns the log file path, or ``None`` when
    logging was already configured for that path.
    """
    config = getattr(app, 'config', {}) if app is not None else {}
    log_dir = log_dir or config.get('LOG_DIR') or 'logs'
    level = _resolve_level(level if level is not None else config.get('LOG_LEVEL'))

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.abspath(os.path.join(log_dir, log_file))

    root = logging.getLogger()
    if _has_file_handler(root, log_path):
        return None

    fmt = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    root.addHandler(file_handler)
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        root.addHandler(console)
    root.setLevel(min(root.level or level, level))

    # Report modules log under their package name and propagate to root
    logging.getLogger('modules.reports').setLevel(level)

    wlog = logging.getLogger('werkzeug')
    if not _has_file_handler(wlog, log_path):
        wlog.addHandler(file_handler)
        # werkzeug propagates too; keep its own level quiet
        wlog.propagate = False
        wlog.setLevel(max(level, logging.WARNING))

    if app is not None:
        @got_request_exception.connect_via(app)
        def _log_exception(sender, exception, **extra):
            from flask import request
            logging.getLogger('flask.app').error(
                'Request error: %s %s (remote=%s): %s',
                request.method, request.path, request.remote_addr, exception,
            )

    logging.getLogger(__name__).info('Logging initialized -> %s', log_path)
    return log_path
