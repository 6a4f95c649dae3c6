import os
from dotenv import load_dotenv
from typing import Optional, Type

# Find the absolute path of the root directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load the .env file from the root directory
load_dotenv(os.path.join(basedir, '.env'))


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid"""
    pass


def get_env_bool(key: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("true"/"1"/"yes" are true)"""
    value = os.environ.get(key)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def get_env_int(key: str, default: int) -> int:
    """Read an integer environment variable"""
    value = os.environ.get(key)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be an integer, got {value!r}")


class Config:
    """
    Base configuration class. Contains default configuration settings
    and settings applicable to all environments.
    """

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'repositories.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Repository settings
    REPOSITORY_AUTO_FLUSH = get_env_bool('REPOSITORY_AUTO_FLUSH', False)
    REPOSITORY_ITEMS_PER_PAGE = get_env_int('REPOSITORY_ITEMS_PER_PAGE', 10)

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    @classmethod
    def validate_required_config(cls) -> None:
        """Validate that all required configuration is present"""
        pass

    @staticmethod
    def get_required_env(key: str) -> str:
        """Get required environment variable or raise error"""
        value = os.environ.get(key)
        if not value:
            raise ConfigurationError(f"Required environment variable {key} is not set")
        return value


class DevelopmentConfig(Config):
    """Development environment configuration"""
    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        Config.SQLALCHEMY_DATABASE_URI
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    """Testing environment configuration"""
    TESTING = True
    DEBUG = True

    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    REPOSITORY_AUTO_FLUSH = False
    REPOSITORY_ITEMS_PER_PAGE = 10


class ProductionConfig(Config):
    """Production environment configuration"""
    DEBUG = False
    TESTING = False

    # Production database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')

    @classmethod
    def validate_required_config(cls) -> None:
        """Production needs a real database"""
        cls.get_required_env('DATABASE_URL')


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(name: Optional[str] = None) -> Type[Config]:
    """
    Get a configuration class by name.

    Args:
        name: Environment name, defaults to APP_ENV then "default"

    Returns:
        Validated configuration class

    Raises:
        ConfigurationError: If the name is unknown or required settings are missing
    """
    name = name or os.environ.get('APP_ENV') or 'default'
    if name not in config:
        raise ConfigurationError(
            f"Unknown configuration {name!r}. Use one of: {', '.join(sorted(config))}"
        )

    config_class = config[name]
    config_class.validate_required_config()
    return config_class
