# backend/config.py
import os
from dotenv import load_dotenv

# Tentukan path absolut dari direktori root proyek
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """Set Flask configuration from environment variables."""

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///' + os.path.join(basedir, 'dokumen_pajak.db'))
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Web client
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'

    # Dokumen
    DEFAULT_CITY_REGENCY = os.environ.get('DEFAULT_CITY_REGENCY', 'Jakarta')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'WARNING'
