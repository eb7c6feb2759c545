"""
Configuration Management

Unified configuration management system that consolidates all application
settings with environment variable support, validation, and centralized
defaults for the database pool, logging, web server, rate limiting and
seeding.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


class Environment(Enum):
    """Supported environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class DatabaseConfig:
    """Database configuration with connection pool settings"""
    # Database type: 'sqlite' or 'postgresql'
    db_type: str = "sqlite"

    # SQLite settings
    path: Path = field(default_factory=lambda: Path("data/database/sales.db"))
    journal_mode: str = "WAL"

    # PostgreSQL settings
    postgresql_host: str = "localhost"
    postgresql_port: int = 5432
    postgresql_database: str = "actifai"
    postgresql_username: str = "user"
    postgresql_password: str = ""

    # Pool settings
    max_connections: int = 20
    idle_timeout_seconds: float = 30.0
    connection_timeout_seconds: float = 2.0


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_rotation_size: int = 10 * 1024 * 1024  # 10MB
    file_retention_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    logs_dir: Path = field(default_factory=lambda: Path("data/logs"))


@dataclass
class WebConfig:
    """Web server configuration"""
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    log_level: str = "info"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class RateLimitConfig:
    """Fixed-window request limiting per client address"""
    enabled: bool = True
    window_seconds: int = 15 * 60
    max_requests: int = 100


@dataclass
class SeedConfig:
    """Initial data seeding"""
    enabled: bool = True
    # Directory holding users.csv, groups.csv, user_groups.csv and sales.csv
    data_dir: Optional[Path] = None
    random_seed: int = 42
    sales_count: int = 5000
    start_date: str = "2021-01-01"
    end_date: str = "2021-12-31"


class UnifiedConfig:
    """
    Central configuration management system
    Implements singleton pattern and environment-aware configuration
    Loads from .config.json file with environment variable overrides
    """

    _instance: Optional['UnifiedConfig'] = None
    _initialized: bool = False
    _config_file = Path(".config.json")
    _json_config: Optional[Dict[str, Any]] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.load()
        self._initialized = True

    def load(self):
        """(Re)load every configuration section"""
        self._load_json_config()

        env_mode = self._get_config_value('environment', 'mode', default='development')
        if not env_mode or not isinstance(env_mode, str):
            env_mode = 'development'
        env_var = os.getenv('SALES_ENVIRONMENT')
        if env_var:
            env_mode = env_var
        self.environment = Environment(env_mode)

        self.database = self._load_database_config()
        self.logging = self._load_logging_config()
        self.web = self._load_web_config()
        self.rate_limit = self._load_rate_limit_config()
        self.seed = self._load_seed_config()

    def _load_json_config(self):
        """Load configuration from .config.json file"""
        config_file = Path(os.getenv('SALES_CONFIG_FILE', str(self._config_file)))
        if config_file.exists():
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    self._json_config = json.load(f)
                logging.getLogger(__name__).info(f"Loaded configuration from {config_file}")
            except (json.JSONDecodeError, IOError) as e:
                logging.getLogger(__name__).warning(f"Error loading {config_file}: {e}. Using defaults.")
                self._json_config = None
        else:
            logging.getLogger(__name__).debug(f"Config file {config_file} not found. Using defaults.")
            self._json_config = None

    def _get_config_value(self, *keys, default=None):
        """
        Get a value from JSON config using nested keys
        Example: _get_config_value('database', 'sqlite', 'path', default='data/database/sales.db')
        """
        if not self._json_config:
            return default

        value = self._json_config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        # Skip documentation keys (keys starting with _)
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if not k.startswith('_')} if value else default

        return value if value is not None else default

    def _load_database_config(self) -> DatabaseConfig:
        """Load database configuration from JSON and environment overrides"""
        config = DatabaseConfig()

        db_type = self._get_config_value('database', 'type', default='sqlite')
        config.db_type = os.getenv('SALES_DATABASE_TYPE', db_type)

        if config.db_type == 'sqlite':
            sqlite_path = self._get_config_value('database', 'sqlite', 'path', default='data/database/sales.db')
            config.path = Path(os.getenv('SALES_DATABASE_PATH', sqlite_path))
            config.journal_mode = self._get_config_value('database', 'sqlite', 'journal_mode', default='WAL')
        elif config.db_type == 'postgresql':
            pg_config = self._get_config_value('database', 'postgresql', default={})
            config.postgresql_host = os.getenv('SALES_POSTGRESQL_HOST', pg_config.get('host', 'localhost'))
            config.postgresql_port = int(os.getenv('SALES_POSTGRESQL_PORT', str(pg_config.get('port', 5432))))
            config.postgresql_database = os.getenv('SALES_POSTGRESQL_DATABASE', pg_config.get('database', 'actifai'))
            config.postgresql_username = os.getenv('SALES_POSTGRESQL_USERNAME', pg_config.get('username', 'user'))
            config.postgresql_password = os.getenv('SALES_POSTGRESQL_PASSWORD', pg_config.get('password', ''))
        else:
            raise ValueError(f"Unsupported database type: {config.db_type}")

        pool_config = self._get_config_value('database', 'pool', default={})
        config.max_connections = int(os.getenv('SALES_DATABASE_MAX_CONNECTIONS', str(pool_config.get('max_connections', 20))))
        config.idle_timeout_seconds = float(os.getenv('SALES_DATABASE_IDLE_TIMEOUT', str(pool_config.get('idle_timeout_seconds', 30))))
        config.connection_timeout_seconds = float(os.getenv('SALES_DATABASE_TIMEOUT', str(pool_config.get('connection_timeout_seconds', 2))))

        return config

    def _load_logging_config(self) -> LoggingConfig:
        """Load logging configuration from JSON and environment overrides"""
        log_config = self._get_config_value('logging', default={})
        config = LoggingConfig()

        log_level = os.getenv('SALES_LOG_LEVEL', log_config.get('level', 'INFO'))
        try:
            config.level = LogLevel(log_level.upper())
        except ValueError:
            config.level = LogLevel.INFO

        config.format = os.getenv('SALES_LOG_FORMAT', log_config.get('format', config.format))
        config.date_format = log_config.get('date_format', config.date_format)
        rotation_mb = log_config.get('file_rotation_size_mb', 10)
        config.file_rotation_size = rotation_mb * 1024 * 1024
        config.file_retention_count = log_config.get('file_retention_count', 5)
        config.enable_console = log_config.get('enable_console', True)
        config.enable_file = log_config.get('enable_file', False)
        config.logs_dir = Path(os.getenv('SALES_LOGS_DIR', log_config.get('logs_dir', 'data/logs')))

        # Adjust for environment
        if self.environment == Environment.DEVELOPMENT:
            config.level = LogLevel.DEBUG
        elif self.environment == Environment.PRODUCTION:
            config.level = LogLevel.INFO

        return config

    def _load_web_config(self) -> WebConfig:
        """Load web configuration from JSON and environment overrides"""
        web_config = self._get_config_value('web', default={})
        config = WebConfig()

        config.host = os.getenv('WEB_HOST', web_config.get('host', '0.0.0.0'))
        config.port = int(os.getenv('WEB_PORT', str(web_config.get('port', 3000))))
        config.reload = web_config.get('reload', False)
        config.log_level = os.getenv('WEB_LOG_LEVEL', web_config.get('log_level', 'info'))
        config.cors_origins = web_config.get('cors_origins', ['*'])

        if self.environment == Environment.DEVELOPMENT:
            config.reload = True
            config.log_level = "debug"

        return config

    def _load_rate_limit_config(self) -> RateLimitConfig:
        """Load rate limit configuration from JSON and environment overrides"""
        rl_config = self._get_config_value('rate_limit', default={})
        config = RateLimitConfig()

        config.enabled = rl_config.get('enabled', True)
        if os.getenv('SALES_RATE_LIMIT_ENABLED'):
            config.enabled = os.getenv('SALES_RATE_LIMIT_ENABLED', '').lower() == 'true'
        config.window_seconds = int(os.getenv('SALES_RATE_LIMIT_WINDOW', str(rl_config.get('window_seconds', 15 * 60))))
        config.max_requests = int(os.getenv('SALES_RATE_LIMIT_MAX', str(rl_config.get('max_requests', 100))))

        return config

    def _load_seed_config(self) -> SeedConfig:
        """Load seeding configuration from JSON and environment overrides"""
        seed_config = self._get_config_value('seed', default={})
        config = SeedConfig()

        config.enabled = seed_config.get('enabled', True)
        if os.getenv('SALES_SEED_ENABLED'):
            config.enabled = os.getenv('SALES_SEED_ENABLED', '').lower() == 'true'
        data_dir = os.getenv('SALES_SEED_DIR', seed_config.get('data_dir'))
        config.data_dir = Path(data_dir) if data_dir else None
        config.random_seed = int(seed_config.get('random_seed', 42))
        config.sales_count = int(seed_config.get('sales_count', 5000))
        config.start_date = seed_config.get('start_date', config.start_date)
        config.end_date = seed_config.get('end_date', config.end_date)

        return config

    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization"""
        return {
            'environment': self.environment.value,
            'database': {
                'type': self.database.db_type,
                'path': str(self.database.path),
                'max_connections': self.database.max_connections,
                'idle_timeout_seconds': self.database.idle_timeout_seconds,
                'connection_timeout_seconds': self.database.connection_timeout_seconds
            },
            'web': {
                'host': self.web.host,
                'port': self.web.port,
                'reload': self.web.reload
            },
            'rate_limit': {
                'enabled': self.rate_limit.enabled,
                'window_seconds': self.rate_limit.window_seconds,
                'max_requests': self.rate_limit.max_requests
            }
        }


# Global configuration instance (singleton)
config = UnifiedConfig()


def get_config() -> UnifiedConfig:
    """Get the global configuration instance"""
    return config


def setup_logging():
    """Setup logging configuration based on current config"""
    import logging.handlers
    from datetime import datetime

    log_config = config.logging
    root_logger = logging.getLogger()

    logging.basicConfig(
        level=getattr(logging, log_config.level.value),
        format=log_config.format,
        datefmt=log_config.date_format,
        force=True
    )

    if log_config.enable_file:
        log_config.logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_config.logs_dir / f"sales_api_{datetime.now().strftime('%Y%m%d')}.log"

        # Only add handler if it doesn't already exist
        existing = [
            h for h in root_logger.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler) and h.baseFilename == str(log_file.resolve())
        ]
        if not existing:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=log_config.file_rotation_size,
                backupCount=log_config.file_retention_count
            )
            file_handler.setFormatter(logging.Formatter(log_config.format, log_config.date_format))
            root_logger.addHandler(file_handler)

    # Disable console logging in production if configured
    if not log_config.enable_console and config.is_production():
        root_logger.handlers = [h for h in root_logger.handlers
                                if isinstance(h, logging.handlers.RotatingFileHandler)]
