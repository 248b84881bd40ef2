from pydantic import Field, NonNegativeInt, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class HttpcConfig(BaseSettings):
    DEFAULT_CHARSET: str = Field(
        description="Charset used to decode response bodies whose Content-Type names none",
        default="UTF-8",
    )

    MAX_REDIRECTS: NonNegativeInt | None = Field(
        description="Maximum redirect hops followed per call, None for no limit",
        default=20,
    )

    RAISE_ON_STATUS: bool = Field(
        description="Raise StatusError for statuses outside ALLOWED_STATUSES",
        default=False,
    )

    ALLOWED_STATUSES: set[int] = Field(
        description="Statuses accepted when RAISE_ON_STATUS is enabled",
        default={200, 201, 202, 203, 204, 205, 206, 207, 300, 301, 302, 303, 307},
    )

    TIMEOUT: PositiveFloat = Field(
        description="Transport timeout in seconds",
        default=30.0,
    )

    # Transport pool
    POOL_MAX_CONNECTIONS: PositiveInt = Field(default=100, description="Max open connections")
    POOL_MAX_KEEPALIVE: PositiveInt = Field(default=20, description="Max idle keep-alive connections")
    POOL_KEEPALIVE_EXPIRY: PositiveFloat = Field(default=30.0, description="Idle connection expiry in seconds")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_FORMAT: str = Field(
        default="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] [%(filename)s:%(lineno)d] %(trace_id)s - %(message)s",
        description="Log record format",
    )
    LOG_DATEFORMAT: str | None = Field(default=None, description="Log date format")
    LOG_FILE: str | None = Field(default=None, description="Optional log file path")
    LOG_FILE_MAX_SIZE: PositiveInt = Field(default=20, description="Log file size in MB before rotation")
    LOG_FILE_BACKUP_COUNT: NonNegativeInt = Field(default=5, description="Rotated log files kept")

    model_config = SettingsConfigDict(
        env_prefix="HTTPC_",
        # read from dotenv format config file
        env_file=".env",
        env_file_encoding="utf-8",
        # ignore extra attributes
        extra="ignore",
    )


httpc_config: HttpcConfig = HttpcConfig()

__all__ = ["HttpcConfig", "httpc_config"]
