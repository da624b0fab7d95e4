from pydantic_settings import BaseSettings

from sequenceable.core.modules.sequence.models import RetryPolicy, SequenceDefaults


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 3200
    debug: bool = False
    cors_origins: list[str] = []
    collection_name: str = "counters"  # MongoDB collection holding counter documents
    # Sequence generation defaults, overridable per call
    namespace: str = "Sequence"
    year_format: str = "%y"  # strftime format of the default prefix (two-digit year)
    start: int = 1  # First allocated value for a fresh counter with increment 1
    increment: int = 1
    length: int = 4
    pad: str = "0"
    separator: str = ""
    # Retry behaviour on write conflicts
    max_attempts: int = 10
    retry_min_wait: float = 0.01
    retry_max_wait: float = 1.0
    retry_multiplier: float = 0.01
    allocation_timeout: float | None = None  # Seconds; None waits for max_attempts only

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SEQUENCEABLE_",
        "extra": "ignore",
    }

    def sequence_defaults(self) -> SequenceDefaults:
        return SequenceDefaults(
            namespace=self.namespace,
            year_format=self.year_format,
            start=self.start,
            increment=self.increment,
            length=self.length,
            pad=self.pad,
            separator=self.separator,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            min_wait=self.retry_min_wait,
            max_wait=self.retry_max_wait,
            multiplier=self.retry_multiplier,
            timeout=self.allocation_timeout,
        )
