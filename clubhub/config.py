import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _bool_env(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    ENV_NAME = 'default'
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///clubhub.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'your-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_COOKIE_SECURE = True
    JWT_COOKIE_CSRF_PROTECT = True
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_ACCESS_COOKIE_NAME = 'access_token_cookie'

    # CORS
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')

    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    # Scheduler
    SCHEDULER_ENABLED = _bool_env('SCHEDULER_ENABLED', 'true')
    SCHEDULER_API_ENABLED = False
    SCHEDULER_TIMEZONE = 'UTC'

    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')

    # Application
    APP_NAME = os.getenv('APP_NAME', 'ClubHub')
    APP_URL = os.getenv('APP_URL', 'http://localhost:3000')
    DEFAULT_TIMEZONE = os.getenv('DEFAULT_TIMEZONE', 'America/Argentina/Buenos_Aires')
    DEFAULT_CURRENCY = 'ARS'

    # Email (SMTP)
    SMTP_HOST = os.getenv('SMTP_HOST', '')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USERNAME = os.getenv('SMTP_USERNAME', '')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD', '')
    SMTP_USE_TLS = _bool_env('SMTP_USE_TLS', 'true')
    MAIL_FROM_EMAIL = os.getenv('MAIL_FROM_EMAIL', 'noreply@clubhub.app')
    MAIL_FROM_NAME = os.getenv('MAIL_FROM_NAME', 'ClubHub')

    # SMS / WhatsApp (Twilio)
    TWILIO_ACCOUNT_SID = os.getenv('TWILIO_ACCOUNT_SID', '')
    TWILIO_AUTH_TOKEN = os.getenv('TWILIO_AUTH_TOKEN', '')
    TWILIO_SMS_FROM = os.getenv('TWILIO_SMS_FROM', '')
    TWILIO_WHATSAPP_FROM = os.getenv('TWILIO_WHATSAPP_FROM', '')

    # Notification retries
    NOTIFICATION_MAX_ATTEMPTS = 3

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/clubhub.log')


class DevelopmentConfig(Config):
    ENV_NAME = 'development'
    DEBUG = True
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_CSRF_PROTECT = False


class ProductionConfig(Config):
    ENV_NAME = 'production'
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    ENV_NAME = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length'
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_CSRF_PROTECT = False
    RATELIMIT_ENABLED = False
    SCHEDULER_ENABLED = False
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_FILE = None
    SMTP_HOST = ''
    TWILIO_ACCOUNT_SID = ''
    TWILIO_AUTH_TOKEN = ''


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
