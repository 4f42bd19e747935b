"""
Configuration Management Module
Loads and validates configuration from config.yaml, then applies
environment overrides (NODE_ENV, SESSION_SECRET, VITE_NEWS_API_KEY,
LOG_LEVEL).
"""

import os
import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, List

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
VALID_SAME_SITE = ('strict', 'lax', 'none')


@dataclass
class ServerConfig:
    """HTTP server settings"""
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
    ])


@dataclass
class SessionConfig:
    """Session cookie settings"""
    secret: Optional[str] = None
    cookie_name: str = "sessionId"
    max_age_seconds: int = 86400
    same_site: str = "strict"


@dataclass
class RateLimitConfig:
    """Per-IP fixed window limit applied to /api/ paths"""
    enabled: bool = True
    window_seconds: int = 900
    max_requests: int = 100
    path_prefix: str = "/api/"


@dataclass
class NewsConfig:
    """Compliance news upstream"""
    api_key: Optional[str] = None
    base_url: str = "https://newsapi.org/v2/everything"
    query: str = "(crypto OR cryptocurrency OR blockchain) AND (compliance OR regulation OR regulatory)"
    language: str = "en"
    sort_by: str = "publishedAt"
    page_size: int = 15
    timeout_seconds: float = 10.0


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    security_log_dir: str = "logs"
    security_log_enabled: bool = True


@dataclass
class MonitoringSettings:
    """Query timing thresholds"""
    slow_query_threshold_ms: float = 1000.0
    warning_threshold_ms: float = 500.0
    enable_prometheus: bool = True


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


class ConfigManager:
    """Manages system configuration"""

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to config.yaml file (CONFIG_PATH env var otherwise)
        """
        config_path = config_path or os.getenv("CONFIG_PATH")
        self.config_path = Path(config_path) if config_path else self._find_config()
        self._raw_config: Dict[str, Any] = {}
        self.server: ServerConfig = ServerConfig()
        self.session: SessionConfig = SessionConfig()
        self.rate_limit: RateLimitConfig = RateLimitConfig()
        self.news: NewsConfig = NewsConfig()
        self.logging: LoggingConfig = LoggingConfig()
        self.monitoring: MonitoringSettings = MonitoringSettings()

        if self.config_path and self.config_path.exists():
            self.load()
        else:
            logger.warning(f"Config file not found at {self.config_path}, using defaults")

        self._apply_env_overrides()
        self._validate()

    def _find_config(self) -> Path:
        """Find config.yaml in common locations"""
        search_paths = [
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
            Path.cwd() / "python" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return search_paths[0]

    def load(self) -> None:
        """Load configuration from YAML file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except FileNotFoundError:
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError("Config file must contain a mapping at the top level")

        self._parse_server()
        self._parse_session()
        self._parse_rate_limit()
        self._parse_news()
        self._parse_logging()
        self._parse_monitoring()

    def _parse_server(self) -> None:
        cfg = self._raw_config.get('server', {})
        self.server = ServerConfig(
            host=cfg.get('host', self.server.host),
            port=cfg.get('port', self.server.port),
            environment=cfg.get('environment', self.server.environment),
            cors_origins=cfg.get('cors_origins', self.server.cors_origins)
        )

    def _parse_session(self) -> None:
        cfg = self._raw_config.get('session', {})
        self.session = SessionConfig(
            secret=cfg.get('secret'),
            cookie_name=cfg.get('cookie_name', 'sessionId'),
            max_age_seconds=cfg.get('max_age_seconds', 86400),
            same_site=cfg.get('same_site', 'strict')
        )

    def _parse_rate_limit(self) -> None:
        cfg = self._raw_config.get('rate_limit', {})
        self.rate_limit = RateLimitConfig(
            enabled=cfg.get('enabled', True),
            window_seconds=cfg.get('window_seconds', 900),
            max_requests=cfg.get('max_requests', 100),
            path_prefix=cfg.get('path_prefix', '/api/')
        )

    def _parse_news(self) -> None:
        cfg = self._raw_config.get('news', {})
        self.news = NewsConfig(
            api_key=cfg.get('api_key'),
            base_url=cfg.get('base_url', self.news.base_url),
            query=cfg.get('query', self.news.query),
            language=cfg.get('language', 'en'),
            sort_by=cfg.get('sort_by', 'publishedAt'),
            page_size=cfg.get('page_size', 15),
            timeout_seconds=cfg.get('timeout_seconds', 10.0)
        )

    def _parse_logging(self) -> None:
        cfg = self._raw_config.get('logging', {})
        self.logging = LoggingConfig(
            level=cfg.get('level', 'INFO'),
            format=cfg.get('format', self.logging.format),
            security_log_dir=cfg.get('security_log_dir', 'logs'),
            security_log_enabled=cfg.get('security_log_enabled', True)
        )

    def _parse_monitoring(self) -> None:
        cfg = self._raw_config.get('monitoring', {})
        self.monitoring = MonitoringSettings(
            slow_query_threshold_ms=cfg.get('slow_query_threshold_ms', 1000.0),
            warning_threshold_ms=cfg.get('warning_threshold_ms', 500.0),
            enable_prometheus=cfg.get('enable_prometheus', True)
        )

    def _apply_env_overrides(self) -> None:
        """Environment variables win over the YAML file"""
        if os.getenv("NODE_ENV"):
            self.server.environment = os.environ["NODE_ENV"]
        if os.getenv("SESSION_SECRET"):
            self.session.secret = os.environ["SESSION_SECRET"]
        if os.getenv("VITE_NEWS_API_KEY"):
            self.news.api_key = os.environ["VITE_NEWS_API_KEY"]
        if os.getenv("LOG_LEVEL"):
            self.logging.level = os.environ["LOG_LEVEL"]

    def _validate(self) -> None:
        """Reject values the server cannot run with"""
        self.logging.level = str(self.logging.level).upper()
        if self.logging.level not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")

        if not isinstance(self.server.port, int) or not 0 < self.server.port < 65536:
            raise ConfigurationError(f"Invalid server port: {self.server.port}")

        if self.session.same_site not in VALID_SAME_SITE:
            raise ConfigurationError(f"Invalid session same_site: {self.session.same_site}")
        if self.session.max_age_seconds <= 0:
            raise ConfigurationError("session.max_age_seconds must be positive")

        if self.rate_limit.window_seconds <= 0 or self.rate_limit.max_requests <= 0:
            raise ConfigurationError("rate_limit window_seconds and max_requests must be positive")

        if not 1 <= self.news.page_size <= 100:
            raise ConfigurationError(f"Invalid news page_size: {self.news.page_size}")

    @property
    def is_production(self) -> bool:
        return self.server.environment == "production"

    def require_environment(self) -> None:
        """
        Check the environment the server cannot start without.

        Raises:
            ConfigurationError: If DATABASE_URL is unset, or SESSION_SECRET is
                unset while running in production
        """
        if not os.getenv("DATABASE_URL"):
            raise ConfigurationError("DATABASE_URL must be set")
        if self.is_production and not self.session.secret:
            raise ConfigurationError("SESSION_SECRET must be set in production")

    @classmethod
    def get_instance(cls, config_path: Optional[str] = None) -> 'ConfigManager':
        """Get singleton instance of ConfigManager"""
        if cls._instance is None:
            cls._instance = ConfigManager(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)"""
        cls._instance = None

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary (secrets masked)"""
        return {
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'environment': self.server.environment,
                'cors_origins': self.server.cors_origins
            },
            'session': {
                'secret': '***' if self.session.secret else None,
                'cookie_name': self.session.cookie_name,
                'max_age_seconds': self.session.max_age_seconds,
                'same_site': self.session.same_site
            },
            'rate_limit': {
                'enabled': self.rate_limit.enabled,
                'window_seconds': self.rate_limit.window_seconds,
                'max_requests': self.rate_limit.max_requests,
                'path_prefix': self.rate_limit.path_prefix
            },
            'news': {
                'api_key': '***' if self.news.api_key else None,
                'base_url': self.news.base_url,
                'page_size': self.news.page_size,
                'timeout_seconds': self.news.timeout_seconds
            },
            'logging': {
                'level': self.logging.level,
                'security_log_dir': self.logging.security_log_dir
            },
            'monitoring': {
                'slow_query_threshold_ms': self.monitoring.slow_query_threshold_ms,
                'warning_threshold_ms': self.monitoring.warning_threshold_ms,
                'enable_prometheus': self.monitoring.enable_prometheus
            }
        }


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """Convenience function to get configuration instance"""
    return ConfigManager.get_instance(config_path)
