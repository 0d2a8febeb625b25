"""
Configuration Management for the Schema Graph Introspector
Loads all settings from environment variables with validation and defaults
"""
import os
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
    """
    Get environment variable with validation

    Args:
        key: Environment variable name
        default: Default value if not found
        required: If True, raise error if not found

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is missing
    """
    value = os.getenv(key, default)

    if required and not value:
        raise ValueError(f"Required environment variable '{key}' is not set")

    return value


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')


def get_env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    """Get environment variable as integer"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer for {key}: {value}, using default: {default}")
        return default


# ============================================================================
# CONNECTION CONFIGURATION
# ============================================================================

@dataclass
class ConnectionConfig:
    """ODBC connection configuration"""
    odbc_driver: str
    login_timeout: int
    app_name: str

    @classmethod
    def from_env(cls) -> 'ConnectionConfig':
        return cls(
            odbc_driver=get_env('MSSQL_ODBC_DRIVER', 'ODBC Driver 18 for SQL Server'),
            login_timeout=get_env_int('MSSQL_LOGIN_TIMEOUT', 15),
            app_name=get_env('MSSQL_APP_NAME', 'schema-graph'),
        )

    def validate(self):
        """Validate configuration"""
        if not self.odbc_driver:
            raise ValueError("ODBC driver name is required")
        if self.login_timeout < 0:
            raise ValueError(f"Invalid login_timeout: {self.login_timeout}")


# ============================================================================
# DISCOVERY CONFIGURATION
# ============================================================================

@dataclass
class DiscoveryConfig:
    """Catalog streaming configuration"""
    fetch_batch_size: int

    @classmethod
    def from_env(cls) -> 'DiscoveryConfig':
        return cls(
            fetch_batch_size=get_env_int('CATALOG_FETCH_BATCH_SIZE', 1000),
        )

    def validate(self):
        """Validate configuration"""
        if self.fetch_batch_size < 1:
            raise ValueError(f"Invalid fetch_batch_size: {self.fetch_batch_size}")


# ============================================================================
# API CONFIGURATION
# ============================================================================

@dataclass
class ApiConfig:
    """HTTP command facade configuration"""
    host: str
    port: int

    @classmethod
    def from_env(cls) -> 'ApiConfig':
        return cls(
            host=get_env('API_HOST', '127.0.0.1'),
            port=get_env_int('API_PORT', 8000),
        )

    def validate(self):
        """Validate configuration"""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Invalid API port: {self.port}")


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str
    log_dir: Path
    log_to_file: bool

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        return cls(
            level=get_env('LOG_LEVEL', 'INFO'),
            log_dir=Path(get_env('LOG_DIR', './logs')),
            log_to_file=get_env_bool('LOG_TO_FILE', False),
        )

    def validate(self):
        """Validate configuration"""
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ValueError(f"Invalid log level: {self.level}")


# ============================================================================
# MASTER SETTINGS CLASS
# ============================================================================

@dataclass
class Settings:
    """Master settings container"""
    connection: ConnectionConfig
    discovery: DiscoveryConfig
    api: ApiConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls) -> 'Settings':
        """Load all settings from environment variables"""
        return cls(
            connection=ConnectionConfig.from_env(),
            discovery=DiscoveryConfig.from_env(),
            api=ApiConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    def validate(self):
        """Validate all configurations"""
        self.connection.validate()
        self.discovery.validate()
        self.api.validate()
        self.logging.validate()

    def summary(self) -> str:
        """Return a formatted summary of key settings"""
        return f"""
Configuration Summary:
=====================
Connection:
  ODBC Driver:       {self.connection.odbc_driver}
  Login Timeout:     {self.connection.login_timeout}s
  App Name:          {self.connection.app_name}

Discovery:
  Fetch Batch Size:  {self.discovery.fetch_batch_size}

API:
  Listen:            {self.api.host}:{self.api.port}

Logging:
  Level:             {self.logging.level}
  File Logging:      {self.logging.log_to_file} ({self.logging.log_dir})
=====================
        """


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Get or create settings singleton

    Args:
        reload: If True, reload settings from environment

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        try:
            settings = Settings.from_env()
            settings.validate()
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

        _settings = settings
        logger.debug(_settings.summary())

    return _settings


def get_connection_config() -> ConnectionConfig:
    """Get connection configuration"""
    return get_settings().connection
