"""Configuration management for the Entity Feedback backend."""

import os
import logging
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

from entity_feedback.lib.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Load .env from ENTITY_FEEDBACK_ENV_FILE when set, otherwise from the
# working directory. Values already present in the environment win.

_env_loaded_from: Optional[str] = None


def _load_env_file() -> Optional[str]:
    """Load .env from the configured location, if it exists."""
    env_path = Path(os.getenv('ENTITY_FEEDBACK_ENV_FILE', '.env'))

    if env_path.exists():
        load_dotenv(env_path)
        return str(env_path)

    return None


_env_loaded_from = _load_env_file()


def get_log_level() -> str:
    """Get log level from environment, default to INFO."""
    level = os.getenv('LOG_LEVEL', 'INFO').upper()
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    if level not in valid_levels:
        logger.warning(f"Invalid log level '{level}', defaulting to INFO")
        return 'INFO'

    return level


def get_log_format() -> str:
    """Get log output format ('json' or 'simple'), default json."""
    log_format = os.getenv('LOG_FORMAT', 'json').lower()
    if log_format not in ('json', 'simple'):
        return 'json'
    return log_format


def get_database_url() -> str:
    """Get primary PostgreSQL database connection URL."""
    db_user = os.getenv('POSTGRES_USER', 'postgres')
    db_pass = os.getenv('POSTGRES_PASSWORD', 'postgres')
    db_host = os.getenv('POSTGRES_HOST', 'postgres')
    db_port = os.getenv('POSTGRES_PORT', '5432')
    db_name = os.getenv('POSTGRES_DB', 'entity_feedback')

    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


def get_app_database_url() -> str:
    """Get the application database URL.

    Reads from DATABASE_URL environment variable, falling back to constructed
    URL from individual POSTGRES_* variables.
    """
    return os.getenv('DATABASE_URL', get_database_url())


def get_catalog_base_url() -> str:
    """Get the base URL of the catalog REST API (no trailing slash)."""
    return os.getenv('CATALOG_BASE_URL', 'http://localhost:7007/api/catalog').rstrip('/')


def get_catalog_timeout() -> float:
    """Get the timeout in seconds for catalog and notification HTTP calls.

    Raises:
        ConfigurationError: If CATALOG_TIMEOUT_SECONDS is not a positive number
    """
    raw = os.getenv('CATALOG_TIMEOUT_SECONDS', '10')
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"CATALOG_TIMEOUT_SECONDS must be a number, got: {raw}",
            details={"CATALOG_TIMEOUT_SECONDS": raw},
        )

    if timeout <= 0:
        raise ConfigurationError(
            f"CATALOG_TIMEOUT_SECONDS must be positive, got: {raw}",
            details={"CATALOG_TIMEOUT_SECONDS": raw},
        )

    return timeout


def get_notifications_base_url() -> Optional[str]:
    """Get the base URL of the notifications service, or None when disabled."""
    url = os.getenv('NOTIFICATIONS_BASE_URL', '').strip()
    return url.rstrip('/') or None


def use_sns_notifications() -> bool:
    """Check whether owner notifications should go through AWS SNS."""
    return os.getenv('FEEDBACK_USE_SNS', 'false').lower() == 'true'


def get_sns_topic_arn() -> Optional[str]:
    """Get the SNS topic ARN for feedback notifications."""
    return os.getenv('SNS_TOPIC_ARN') or None


def get_sns_region() -> str:
    """Get the AWS region of the SNS topic."""
    return os.getenv('SNS_REGION', 'us-east-1')


def get_auth_jwks_url() -> Optional[str]:
    """Get the JWKS URL used to verify caller tokens."""
    return os.getenv('AUTH_JWKS_URL') or None


def get_auth_audience() -> Optional[str]:
    """Get the expected token audience, if any."""
    return os.getenv('AUTH_AUDIENCE') or None


def get_auth_issuer() -> Optional[str]:
    """Get the expected token issuer, if any."""
    return os.getenv('AUTH_ISSUER') or None


def is_auth_configured() -> bool:
    """Check if token verification is configured."""
    return get_auth_jwks_url() is not None


def is_dev_mode() -> bool:
    """Check if application is running in development mode.

    When DEV_MODE=true, authentication is bypassed and a fixed dev user is
    used. This simplifies local development without an auth service.
    """
    value = os.getenv('DEV_MODE', 'false')
    return value.lower() == 'true'


def get_dev_user_ref() -> str:
    """Get the user entity ref used in DEV_MODE."""
    return os.getenv('DEV_USER_REF', 'user:default/guest')


def get_cors_allow_origins() -> List[str]:
    """Get allowed CORS origins (comma-separated CORS_ALLOW_ORIGINS)."""
    raw = os.getenv('CORS_ALLOW_ORIGINS', '*')
    return [origin.strip() for origin in raw.split(',') if origin.strip()]
