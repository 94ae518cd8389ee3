"""
Wait Time Tracker - Configuration Management
Handles environment configuration with AWS SSM Parameter Store for production
and python-dotenv for local development.
"""

import logging
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


class Config:
    """
    Configuration manager with dual-mode operation:
    - Local: Reads from .env file via python-dotenv
    - Production: Reads from AWS SSM Parameter Store
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration value from SSM (production) or environment (local).

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if self.environment == 'production':
            return self._get_from_ssm(key, default)
        return os.getenv(key, default)

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration from AWS SSM Parameter Store.

        Environment variables win over SSM so a single value can be
        overridden on the host without touching the parameter store.

        Raises:
            ConfigurationError: If parameter not found and no default provided,
                               or if AWS credentials/permissions are invalid
        """
        if key in os.environ:
            return os.environ[key]

        ssm_prefix = os.getenv('AWS_SSM_PREFIX', '/waittimes')
        parameter_name = f"{ssm_prefix}/{key}"

        try:
            if self._ssm_client is None:
                import boto3
                self._ssm_client = boto3.client(
                    'ssm',
                    region_name=os.getenv('AWS_REGION', 'us-west-2')
                )

            response = self._ssm_client.get_parameter(
                Name=parameter_name,
                WithDecryption=True
            )
            return response['Parameter']['Value']

        except Exception as e:
            error_type = type(e).__name__
            if default is not None:
                logging.warning(
                    f"Failed to fetch SSM parameter '{key}': {error_type}: {e}. "
                    f"Using default value."
                )
                return default
            raise ConfigurationError(
                f"Failed to fetch parameter '{key}' from SSM at '{parameter_name}': "
                f"{error_type}: {e}"
            )

    def get_int(self, key: str, default: int) -> int:
        """
        Get configuration value as integer.

        Invalid values log a warning and fall back to the default.
        """
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            logging.warning(
                f"Invalid integer for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """Get configuration value as boolean."""
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_list(self, key: str, default: List[str]) -> List[str]:
        """
        Get a comma-separated configuration value as a list.

        Blank items are dropped, so "a,,b, " yields ["a", "b"].
        """
        value = self.get(key, ','.join(default))
        if not value:
            return list(default)
        return [item.strip() for item in value.split(',') if item.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        """Check if running in local development environment."""
        return self.environment == 'local'


# Global configuration instance
config = Config()


# ThemeParks.wiki API configuration
THEMEPARKS_WIKI_API_BASE_URL = config.get('THEMEPARKS_WIKI_API_BASE_URL', 'https://api.themeparks.wiki/v1')
UPSTREAM_TIMEOUT_SECONDS = config.get_int('UPSTREAM_TIMEOUT_SECONDS', 15)
MAX_RETRY_ATTEMPTS = config.get_int('MAX_RETRY_ATTEMPTS', 3)
RETRY_BACKOFF_MULTIPLIER = config.get_int('RETRY_BACKOFF_MULTIPLIER', 1)

# Parks tracked on every refresh cycle (Disneyland Resort)
DISNEYLAND_PARK_ID = '7340550b-c14d-4def-80bb-acdb51d49a66'
DISNEY_CALIFORNIA_ADVENTURE_ID = '832fcd51-ea19-4e77-85c7-75d5843b127c'
PARK_IDS = config.get_list('PARK_IDS', [DISNEYLAND_PARK_ID, DISNEY_CALIFORNIA_ADVENTURE_ID])
PARK_TIMEZONE = config.get('PARK_TIMEZONE', 'America/Los_Angeles')

# Refresh cadence
REFRESH_INTERVAL_SECONDS = config.get_int('REFRESH_INTERVAL_SECONDS', 60)

# Snapshot history persistence
HISTORY_STORE_BACKEND = config.get('HISTORY_STORE_BACKEND', 'file')
HISTORY_FILE_PATH = config.get(
    'HISTORY_FILE_PATH',
    '/tmp/wait_times.json' if config.is_production else 'wait_times.json'
)
HISTORY_S3_BUCKET = config.get('HISTORY_S3_BUCKET', '')
HISTORY_S3_KEY = config.get('HISTORY_S3_KEY', 'wait_times.json')
HISTORY_DEDUP_WINDOW_SECONDS = config.get_int('HISTORY_DEDUP_WINDOW_SECONDS', 60)
HISTORY_MAX_SNAPSHOTS = config.get_int('HISTORY_MAX_SNAPSHOTS', 2000)

# Park busyness tiers from average standby wait (minutes)
BUSYNESS_QUIET_MAX = config.get_int('BUSYNESS_QUIET_MAX', 15)
BUSYNESS_MODERATE_MAX = config.get_int('BUSYNESS_MODERATE_MAX', 30)
BUSYNESS_BUSY_MAX = config.get_int('BUSYNESS_BUSY_MAX', 50)

# Hourly forecast heat tiers (minutes)
FORECAST_HEAT_QUIET_MAX = config.get_int('FORECAST_HEAT_QUIET_MAX', 15)
FORECAST_HEAT_MODERATE_MAX = config.get_int('FORECAST_HEAT_MODERATE_MAX', 35)
FORECAST_HEAT_BUSY_MAX = config.get_int('FORECAST_HEAT_BUSY_MAX', 60)

# Flask configuration
FLASK_ENV = config.get('FLASK_ENV', 'development')
FLASK_DEBUG = config.get_bool('FLASK_DEBUG', True)
SECRET_KEY = config.get('SECRET_KEY', 'dev-secret-key-change-in-production')

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')
