#!/usr/bin/env python3
"""
WSGI entry point: ``gunicorn wsgi:application``.
"""
from dotenv import load_dotenv

load_dotenv()

from app import create_app  # noqa: E402

application = create_app()
app = application
