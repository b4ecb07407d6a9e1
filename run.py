#!/usr/bin/env python3
"""
Development server runner for the reports service.
"""
import logging
import os

from dotenv import load_dotenv


def _flag(name, default='0'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def main():
    load_dotenv()
    debug_enabled = _flag('FLASK_DEBUG', os.getenv('DEBUG', '0'))
    use_reloader = debug_enabled if os.getenv('USE_RELOADER') is None else _flag('USE_RELOADER')
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', '5000'))

    from app import create_app
    app = create_app()

    logging.getLogger(__name__).info(
        'Server starting on http://%s:%s (debug=%s, reloader=%s)', host, port, debug_enabled, use_reloader
    )
    app.run(host=host, port=port, debug=debug_enabled, use_reloader=use_reloader)


if __name__ == '__main__':
    main()
