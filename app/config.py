import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///room_booking.db'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Auth
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_SECONDS = int(os.environ.get('JWT_EXPIRES_SECONDS', '3600'))

    # Transient storage failures (lost connection, locked database) are retried this many times
    STORAGE_RETRIES = int(os.environ.get('STORAGE_RETRIES', '1'))

    # Seeded on first start / `flask seed`
    DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@example.com')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', '123456')

class DevelopmentConfig(Config):
    DEBUG = True

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOG_LEVEL = 'DEBUG'

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
