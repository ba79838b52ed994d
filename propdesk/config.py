import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _int(name, default):
    return int(os.getenv(name, default))


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=_int('JWT_ACCESS_TOKEN_HOURS', 24))
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///propdesk.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flask-RESTful would otherwise turn JWT errors into 500s
    PROPAGATE_EXCEPTIONS = True
    ERROR_404_HELP = False

    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', 'http://localhost:5173').split(',') if o.strip()]
    FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:5173')

    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.abspath('uploads'))
    MAX_CONTENT_LENGTH = _int('MAX_CONTENT_LENGTH', 10 * 1024 * 1024)

    INVITE_EXPIRY_DAYS = _int('INVITE_EXPIRY_DAYS', 7)
    PUBLIC_LINK_EXPIRY_DAYS = _int('PUBLIC_LINK_EXPIRY_DAYS', 7)
    PASSWORD_RESET_EXPIRY_HOURS = _int('PASSWORD_RESET_EXPIRY_HOURS', 1)
    EMAIL_VERIFICATION_EXPIRY_HOURS = _int('EMAIL_VERIFICATION_EXPIRY_HOURS', 24)

    MAIL_API_URL = os.getenv('MAIL_API_URL', '')
    MAIL_API_KEY = os.getenv('MAIL_API_KEY', '')
    MAIL_FROM = os.getenv('MAIL_FROM', 'no-reply@propdesk.local')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    MAIL_API_URL = ''
    LOG_LEVEL = 'WARNING'
