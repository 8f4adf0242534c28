from pydantic import BaseModel, Field


class ConcurrencyConfig(BaseModel):
    """Concurrency ceiling for task execution."""

    max_concurrency: int = Field(
        default=3,
        gt=0,
        description="Maximum number of tasks holding a permit at once",
    )


class RetryConfig(BaseModel):
    """Defaults for ``execute_task_with_retry``."""

    max_retries: int = Field(
        default=3, ge=0, description="Retries after the first attempt"
    )
    base_delay_ms: int = Field(
        default=1000, ge=0, description="Backoff delay after the first failure"
    )
    multiplier: float = Field(
        default=2.0, gt=1, description="Backoff growth factor per attempt"
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=False, description="Emit JSON lines instead of plain text"
    )


class TracingConfig(BaseModel):
    """OpenTelemetry export settings (disabled by default)."""

    enabled: bool = Field(default=False, description="Enable OTLP span export")
    endpoint: str = Field(default="", description="OTLP HTTP traces endpoint")
    username: str = Field(default="", description="Basic-auth username")
    password: str = Field(default="", description="Basic-auth password")
    service_name: str = Field(default="taskgate", description="service.name resource")
    sample_rate: float = Field(
        default=1.0, ge=0.0, le=1.0, description="Root span sampling ratio"
    )
