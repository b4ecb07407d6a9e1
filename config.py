import os
from sqlalchemy.pool import NullPool


# Resolve database configuration dynamically so hosted PostgreSQL works
_base_dir = os.path.abspath(os.path.dirname(__file__))
_instance_dir = os.path.join(_base_dir, 'instance')

_default_sqlite_path = os.getenv('LOCAL_SQLITE_PATH') or os.path.join(_instance_dir, 'pitstop.db')
_database_url = os.getenv('DATABASE_URL')
if _database_url:
    # Some hosts supply postgres://, but SQLAlchemy needs postgresql://
    if _database_url.startswith('postgres://'):
        _database_url = _database_url.replace('postgres://', 'postgresql://', 1)
else:
    os.makedirs(_instance_dir, exist_ok=True)
    _database_url = f"sqlite:///{_default_sqlite_path}"


def _engine_options_for(db_uri: str):
    """Return SQLAlchemy engine options suited for the current backend."""
    if db_uri.startswith('sqlite'):
        return {
            "poolclass": NullPool,  # Avoid connection pooling issues on SQLite
            "connect_args": {"check_same_thread": False},
            "echo": False,
        }
    return {
        "pool_pre_ping": True,
        "pool_recycle": int(os.getenv('DB_POOL_RECYCLE', '280')),
        "pool_size": int(os.getenv('DB_POOL_SIZE', '5')),
        "max_overflow": int(os.getenv('DB_MAX_OVERFLOW', '10')),
    }


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_key")

    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_SSL_STRICT = False

    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    SESSION_COOKIE_SECURE = _env_flag('SESSION_COOKIE_SECURE')
    REMEMBER_COOKIE_SAMESITE = SESSION_COOKIE_SAMESITE
    REMEMBER_COOKIE_SECURE = SESSION_COOKIE_SECURE

    SQLALCHEMY_DATABASE_URI = _database_url
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_for(SQLALCHEMY_DATABASE_URI)

    # Bearer tokens issued by /auth/login
    AUTH_TOKEN_MAX_AGE = int(os.getenv('AUTH_TOKEN_MAX_AGE', str(12 * 3600)))

    # Report rendering
    REPORTS_TEMPLATE_DIR = os.getenv('REPORTS_TEMPLATE_DIR') or os.path.join(_base_dir, 'templates', 'reports')
    REPORTS_LOGO_PATH = os.getenv('REPORTS_LOGO_PATH') or os.path.join(_base_dir, 'static', 'pitstop-logo.png')

    # Headless Chrome PDF emission
    PDF_RENDER_TIMEOUT = float(os.getenv('PDF_RENDER_TIMEOUT', '60'))
    PDF_PAPER_FORMAT = os.getenv('PDF_PAPER_FORMAT', 'A4')
    CHROME_BINARY = os.getenv('CHROME_BINARY') or None
    PDF_USE_DRIVER_MANAGER = _env_flag('PDF_USE_DRIVER_MANAGER')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_DIR = os.getenv('LOG_DIR', 'logs')


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test_secret_key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'echo': False,
        'connect_args': {'check_same_thread': False},
    }
    PDF_RENDER_TIMEOUT = 5.0
    LOG_DIR = os.getenv('LOG_DIR', os.path.join(_base_dir, 'logs'))
