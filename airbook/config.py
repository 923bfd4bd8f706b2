"""Configuration settings for the AirBook API."""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///airbook.sqlite3")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # per-passenger surcharge on top of the base fare
    CLASS_UPGRADE_CENTS = {
        "Economy": 0,
        "Business": int(os.getenv("BUSINESS_UPGRADE_CENTS", 45000)),
        "First": int(os.getenv("FIRST_UPGRADE_CENTS", 90000)),
    }
    # used when a flight carries no explicit tax
    DEFAULT_TAX_RATE = float(os.getenv("DEFAULT_TAX_RATE", 0.10))

    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    MAIL_SENDER = os.getenv("MAIL_SENDER", "noreply@airbook.example")
    TWILIO_SID = os.getenv("TWILIO_SID")
    TWILIO_TOKEN = os.getenv("TWILIO_TOKEN")
    TWILIO_PHONE = os.getenv("TWILIO_PHONE")


class DevelopmentConfig(Config):
    """Development configuration."""

    ENV_NAME = "development"
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    """Production configuration."""

    ENV_NAME = "production"
    DEBUG = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing configuration: in-memory database, notifications off."""

    ENV_NAME = "test"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SENDGRID_API_KEY = None
    TWILIO_SID = None
    TWILIO_TOKEN = None


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
