"""
Flask Extensions
================
All Flask extensions are initialized here to avoid circular imports
and make them easily accessible throughout the application.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

db = SQLAlchemy(session_options={
    "autoflush": False,
    "expire_on_commit": False,
})
bcrypt = Bcrypt()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
