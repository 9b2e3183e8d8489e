import os
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ElasticsearchError, ErrorCodes

VALID_LOG_LEVELS = ("debug", "info", "warn", "error", "fatal")
VALID_LOG_FORMATS = ("console", "json")


def get_version() -> str:
    try:
        return package_version("mcp-elasticsearch")
    except PackageNotFoundError:
        return "dev"


def _env(key: str, default: str = "") -> str:
    # Empty variables fall back to the default
    return os.getenv(key) or default


@dataclass(frozen=True)
class ElasticsearchConfig:
    url: str
    api_key: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    request_timeout: float = 30.0

    @property
    def auth_method(self) -> Optional[str]:
        """API key wins when both methods are configured."""
        if self.api_key:
            return "api_key"
        if self.username and self.password:
            return "basic"
        return None

    def validate(self) -> None:
        if not self.url:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                "ES_URL environment variable is required"
            )
        if self.auth_method is None:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                "either ES_API_KEY or ES_USERNAME+ES_PASSWORD must be provided"
            )
        if self.request_timeout <= 0:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                f"request timeout must be positive, got {self.request_timeout}"
            )

    @classmethod
    def from_env(cls) -> 'ElasticsearchConfig':
        raw_timeout = _env("MCP_ES_REQUEST_TIMEOUT", "30")
        try:
            request_timeout = float(raw_timeout)
        except ValueError:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                f"invalid MCP_ES_REQUEST_TIMEOUT: {raw_timeout!r}"
            )
        return cls(
            url=_env("ES_URL", "http://localhost:9200"),
            api_key=_env("ES_API_KEY") or None,
            username=_env("ES_USERNAME") or None,
            password=_env("ES_PASSWORD") or None,
            request_timeout=request_timeout,
        )


@dataclass(frozen=True)
class ServerConfig:
    name: str = "mcp-elasticsearch"
    version: str = field(default_factory=get_version)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "info"
    format: str = "console"
    output: str = "stderr"

    def validate(self) -> None:
        if self.level not in VALID_LOG_LEVELS:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                f"invalid log level: {self.level}"
            )
        if self.format not in VALID_LOG_FORMATS:
            raise ElasticsearchError(
                ErrorCodes.INVALID_CONFIGURATION,
                f"invalid log format: {self.format}"
            )


@dataclass(frozen=True)
class Config:
    elasticsearch: ElasticsearchConfig
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.elasticsearch.validate()
        self.logging.validate()

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'Config':
        """Load a .env file (if any) over the environment, then read settings.

        Raises ElasticsearchError with INVALID_CONFIGURATION when the result
        is unusable.
        """
        # .env is looked up from the working directory, not from this package
        load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=True)

        config = cls(
            elasticsearch=ElasticsearchConfig.from_env(),
            server=ServerConfig(name=_env("MCP_ES_SERVER_NAME", "mcp-elasticsearch")),
            logging=LoggingConfig(
                level=_env("MCP_ES_LOG_LEVEL", "info").lower(),
                format=_env("MCP_ES_LOG_FORMAT", "console").lower(),
                output=_env("MCP_ES_LOG_OUTPUT", "stderr"),
            ),
        )
        config.validate()
        return config
