"""
Configuration module for the OfficeDesk backend
Contains all configuration settings for different environments
"""

import os
from datetime import timedelta

from dotenv import load_dotenv

# Pick up a local .env file when present (development machines)
load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    """Base configuration class with common settings"""

    # Basic Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'officedesk-secret-key-change-in-production'

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(BASE_DIR, 'officedesk_dev.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    @staticmethod
    def get_engine_options():
        """Get database engine options based on database type"""
        db_uri = os.environ.get('DATABASE_URL') or 'sqlite://'

        if db_uri.startswith('sqlite'):
            # SQLite configuration
            return {
                'pool_pre_ping': True,
                'connect_args': {'timeout': 30},
            }

        return {
            'pool_pre_ping': True,
            'pool_recycle': 3600,  # Recycle connections every hour
            'pool_size': 5,
            'max_overflow': 10,
            'pool_timeout': 30,
            'echo': False,
        }

    SQLALCHEMY_ENGINE_OPTIONS = get_engine_options.__func__()

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Upload Configuration (bulk lead CSV)
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    # Application Settings
    TIMEZONE = os.environ.get('TIMEZONE') or 'Asia/Dhaka'

    # Lead intake
    LEAD_ID_PREFIX = 'LEAD'
    LEAD_ID_PAD = 4
    LEAD_DEDUPE_WINDOW_DAYS = int(os.environ.get('LEAD_DEDUPE_WINDOW_DAYS') or 180)

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = os.environ.get('LOG_FILE') or 'officedesk.log'

    # Default administrator created on an empty database
    DEFAULT_ADMIN_USERNAME = os.environ.get('DEFAULT_ADMIN_USERNAME') or 'superadmin'
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD') or 'admin123'
    CREATE_DEFAULT_ADMIN = True

    @staticmethod
    def init_app(app):
        """Initialize app-specific configuration"""
        pass


class DevelopmentConfig(Config):
    """Development environment configuration"""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_ECHO = False  # Set to True to see SQL queries in console


class ProductionConfig(Config):
    """Production environment configuration"""
    DEBUG = False
    TESTING = False

    SESSION_COOKIE_SECURE = True

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)
        cls._validate_production_security(app)

    @classmethod
    def _validate_production_security(cls, app):
        """Validate production security settings"""
        import logging
        logger = logging.getLogger(__name__)

        if app.config.get('SECRET_KEY') == 'officedesk-secret-key-change-in-production':
            logger.error("CRITICAL: Default SECRET_KEY detected! Change SECRET_KEY in production!")

        if app.config.get('DEFAULT_ADMIN_PASSWORD') == 'admin123':
            logger.warning("WARNING: default administrator password is still in use")

        if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
            logger.warning("WARNING: SQLite database configured in production")


class TestingConfig(Config):
    """Testing environment configuration"""
    TESTING = True
    DEBUG = True

    # Use in-memory database for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}

    LOG_FILE = None
    LOG_LEVEL = 'WARNING'
    CREATE_DEFAULT_ADMIN = False
    SECRET_KEY = 'testing-secret'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration class based on environment"""
    env = os.environ.get('FLASK_ENV', 'development').lower()
    return config.get(env, config['default'])
