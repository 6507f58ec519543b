"""
Configuration settings for the Nutrition Advisor application.
"""

import os
import secrets
from typing import Dict, Any, Optional
import logging

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env_api_key() -> str:
    """Read the Gemini credential, accepting the common variable names."""
    return os.environ.get('GOOGLE_API_KEY') or os.environ.get('GEMINI_API_KEY', '')


class SecurityConfig:
    """Security-focused configuration management."""

    @staticmethod
    def get_secret_key() -> str:
        """
        Get or generate a secure secret key.

        Returns:
            Secure secret key for Flask sessions
        """
        secret_key = os.environ.get('SECRET_KEY')

        if not secret_key:
            secret_key = secrets.token_urlsafe(32)
            logger.warning("No SECRET_KEY found in environment. Generated temporary key for this session.")

        return secret_key

    @staticmethod
    def validate_api_key(key_name: str, api_key: Optional[str]) -> bool:
        """
        Validate that an API key is present and has minimum security requirements.

        Args:
            key_name: Name of the API key for logging
            api_key: The API key to validate

        Returns:
            True if key is valid, False otherwise
        """
        if not api_key:
            logger.warning(f"{key_name} not configured")
            return False

        if len(api_key) < 10:
            logger.error(f"{key_name} appears to be too short or invalid")
            return False

        placeholder_values = ['your-api-key-here', 'change-me', 'placeholder']
        if any(placeholder in api_key.lower() for placeholder in placeholder_values):
            logger.error(f"{key_name} appears to be a placeholder value")
            return False

        return True

    @staticmethod
    def get_cors_origins() -> list:
        """
        Get allowed CORS origins from environment.

        Returns:
            List of allowed origins
        """
        cors_origins = os.environ.get('CORS_ORIGINS', '')

        if cors_origins:
            origins = [origin.strip() for origin in cors_origins.split(',')]
            return [origin for origin in origins if origin]

        flask_env = os.environ.get('FLASK_ENV', 'development')

        if flask_env == 'development':
            return ['http://localhost:3000', 'http://localhost:5000', 'http://127.0.0.1:5000']
        # Production and testing must be configured explicitly
        return []


def mask_key(key: str) -> str:
    """Mask a secret for logging, keeping only its first and last four characters."""
    if not key:
        return "Not configured"
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


class Config:
    """Base configuration class."""

    DEBUG = False
    TESTING = False

    # Flask settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size

    # Session cookie settings
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Upload settings
    ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg'}

    # Analysis settings
    GEMINI_MODEL = 'gemini-2.5-flash'
    REQUEST_TIMEOUT = 60  # seconds
    ANALYSIS_TEMPERATURE = 0.4
    ANALYSIS_MAX_OUTPUT_TOKENS = 2048

    # Session store settings
    SESSION_TTL = 3600  # seconds without activity before a session is dropped
    MAX_SESSIONS = 1000

    # Page links
    SITE_NAME = 'dhavalcode.com'
    SITE_URL = 'https://dhavalcode.com'
    EXAMPLE_URL = 'https://youtu.be/MMvjoiRC-jQ'

    def __init__(self):
        """Read environment-dependent settings and validate them."""
        self.SECRET_KEY = SecurityConfig.get_secret_key()
        self.SESSION_COOKIE_SECURE = os.environ.get('FLASK_ENV') == 'production'
        self.CORS_ORIGINS = SecurityConfig.get_cors_origins()
        self.GOOGLE_API_KEY = _env_api_key()
        self.GEMINI_MODEL = os.environ.get('GEMINI_MODEL', self.GEMINI_MODEL)
        self.REQUEST_TIMEOUT = int(os.environ.get('REQUEST_TIMEOUT', self.REQUEST_TIMEOUT))
        self.SESSION_TTL = int(os.environ.get('SESSION_TTL', self.SESSION_TTL))
        self.MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS', self.MAX_SESSIONS))
        self.SITE_URL = os.environ.get('SITE_URL', self.SITE_URL)
        self.EXAMPLE_URL = os.environ.get('EXAMPLE_URL', self.EXAMPLE_URL)
        self._validate_environment()

    def _validate_environment(self) -> None:
        """Validate environment configuration and log warnings."""
        SecurityConfig.validate_api_key('GOOGLE_API_KEY', self.GOOGLE_API_KEY)

    def get_api_config(self) -> Dict[str, Any]:
        """
        Get API configuration without exposing sensitive keys.

        Returns:
            Dictionary with API configuration status
        """
        return {
            'analysis_configured': bool(self.GOOGLE_API_KEY),
            'model': self.GEMINI_MODEL,
            'accepted_types': ['image/jpeg', 'image/png'],
            'max_upload_bytes': self.MAX_CONTENT_LENGTH,
            'cors_origins': self.CORS_ORIGINS
        }

    def mask_sensitive_config(self) -> Dict[str, Any]:
        """
        Get configuration with sensitive values masked for logging/debugging.

        Returns:
            Dictionary with masked sensitive values
        """
        return {
            'SECRET_KEY': mask_key(self.SECRET_KEY),
            'GOOGLE_API_KEY': mask_key(self.GOOGLE_API_KEY),
            'GEMINI_MODEL': self.GEMINI_MODEL,
            'CORS_ORIGINS': self.CORS_ORIGINS,
            'MAX_CONTENT_LENGTH': self.MAX_CONTENT_LENGTH,
            'REQUEST_TIMEOUT': self.REQUEST_TIMEOUT,
            'SESSION_TTL': self.SESSION_TTL,
            'MAX_SESSIONS': self.MAX_SESSIONS
        }


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True

    def __init__(self):
        super().__init__()
        self.CORS_ORIGINS = ['http://localhost:3000', 'http://localhost:5000', 'http://127.0.0.1:5000']
        self.SESSION_COOKIE_SECURE = False


class ProductionConfig(Config):
    """Production configuration with enhanced security."""

    def __init__(self):
        super().__init__()
        self._validate_production_requirements()
        self.SESSION_COOKIE_SECURE = True

    def _validate_production_requirements(self) -> None:
        """Validate that all required settings are configured for production."""
        missing_vars = []
        if not os.environ.get('SECRET_KEY'):
            missing_vars.append('SECRET_KEY')
        if not self.GOOGLE_API_KEY:
            missing_vars.append('GOOGLE_API_KEY')

        if missing_vars:
            error_msg = f"Missing required environment variables for production: {', '.join(missing_vars)}"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if not os.environ.get('CORS_ORIGINS'):
            logger.warning("CORS_ORIGINS not explicitly set for production. Using empty list (no CORS).")
            self.CORS_ORIGINS = []


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = True
    TESTING = True

    def __init__(self):
        super().__init__()
        self.SECRET_KEY = 'testing-secret-key'
        self.GOOGLE_API_KEY = os.environ.get('TEST_GOOGLE_API_KEY', 'test-google-key')
        self.CORS_ORIGINS = []


# Configuration mapping
config_map: Dict[str, Any] = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: str = None) -> Config:
    """
    Get configuration class based on environment.

    Args:
        config_name: Configuration name ('development', 'production', 'testing')

    Returns:
        Configuration class instance
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')

    config_class = config_map.get(config_name, DevelopmentConfig)
    return config_class()


def validate_api_credentials(config: Optional[Config] = None) -> Dict[str, bool]:
    """
    Validate all API credentials are properly configured.

    Returns:
        Dictionary with validation results for each service
    """
    config = config or get_config()

    return {
        'nutrition_analysis': SecurityConfig.validate_api_key('GOOGLE_API_KEY', config.GOOGLE_API_KEY)
    }
