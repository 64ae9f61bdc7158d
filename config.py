"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'dealquote')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'dealquote')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'dealquote')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Pricing policy
    # How far below MP (percent of MP) a final offer may fall and only warn
    ESCALATION_WARNING_BAND_PERCENTAGE = os.getenv('ESCALATION_WARNING_BAND_PERCENTAGE', '10')
    # lump_sum | reject
    INSTALLMENT_REMAINDER_POLICY = os.getenv('INSTALLMENT_REMAINDER_POLICY', 'lump_sum')

    # Business Information (for quote PDFs)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'My Company')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', '')
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '$')

    # Redis Cache Configuration
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'dealquote')

    # In-process custom field definition cache
    CUSTOM_FIELDS_CACHE_TTL = int(os.getenv('CUSTOM_FIELDS_CACHE_TTL', '300'))  # seconds


class TestConfig(Config):
    """In-memory SQLite, no Redis, fixed pricing policy."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    CACHE_ENABLED = False
    ESCALATION_WARNING_BAND_PERCENTAGE = '10'
    INSTALLMENT_REMAINDER_POLICY = 'lump_sum'
    BUSINESS_NAME = 'Test Company'
    CURRENCY_SYMBOL = '$'
