"""Development configuration."""
import os

from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development configuration class."""

    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        'sqlite:///secure_attendance_dev.db'
    SQLALCHEMY_ECHO = os.environ.get('SQLALCHEMY_ECHO') == '1'
    AUTO_CREATE_TABLES = True

    LOG_LEVEL = 'DEBUG'
