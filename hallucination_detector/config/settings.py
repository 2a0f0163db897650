"""Application settings using Pydantic BaseSettings for environment variable management."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from hallucination_detector.verification.schemas import (
    DetectionConfig,
    ProviderCredentials,
)
from hallucination_detector.verification.time_sensitivity import (
    DEFAULT_TIME_SENSITIVITY_KEYWORDS,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        anthropic_api_key: Anthropic key (international extraction/adjudication)
        exa_api_key: Exa key (international search)
        deepseek_api_key: DeepSeek key (domestic extraction/adjudication)
        bocha_api_key: Bocha key (domestic search)
        use_domestic_providers: Default provider pair switch for new runs
        extraction_timeout: Seconds allowed for one extraction call
        search_timeout: Seconds allowed for one search call
        adjudication_timeout: Seconds allowed for one adjudication call
        extraction_max_attempts: Attempts for transient extraction failures
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
    """

    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    exa_api_key: str | None = Field(default=None, description="Exa API key")
    deepseek_api_key: str | None = Field(default=None, description="DeepSeek API key")
    bocha_api_key: str | None = Field(default=None, description="Bocha web search API key")

    anthropic_base_url: str = Field(default="https://api.anthropic.com")
    anthropic_version: str = Field(default="2023-06-01")
    anthropic_extraction_model: str = Field(
        default="claude-3-5-haiku-20241022",
        description="Model used for claim extraction",
    )
    anthropic_adjudication_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Model used for claim adjudication",
    )
    deepseek_base_url: str = Field(default="https://api.deepseek.com")
    deepseek_model: str = Field(default="deepseek-chat")
    exa_base_url: str = Field(default="https://api.exa.ai")
    bocha_base_url: str = Field(default="https://api.bochaai.com")

    use_domestic_providers: bool = Field(
        default=False,
        description="Route every stage through the domestic provider pair",
    )
    max_search_results: int = Field(default=3, ge=1)
    confidence_threshold: float = Field(default=80, ge=0, le=100)
    search_result_limit: int = Field(default=10, ge=1)
    strict_credentials: bool = Field(default=False)

    extraction_timeout: float = Field(default=60.0, gt=0)
    search_timeout: float = Field(default=30.0, gt=0)
    adjudication_timeout: float = Field(default=90.0, gt=0)
    extraction_max_attempts: int = Field(default=3, ge=1)

    time_sensitivity_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TIME_SENSITIVITY_KEYWORDS),
        description="Claim markers that trigger the time-sensitivity disclosure",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="json",
        description="Log output format: json or console",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def credentials(self) -> ProviderCredentials:
        """Credentials taken from the environment."""
        return ProviderCredentials(
            anthropic_api_key=self.anthropic_api_key,
            exa_api_key=self.exa_api_key,
            deepseek_api_key=self.deepseek_api_key,
            bocha_api_key=self.bocha_api_key,
        )

    def detection_config(self, **overrides) -> DetectionConfig:
        """Build a per-run DetectionConfig from settings defaults."""
        values = {
            "max_search_results": self.max_search_results,
            "confidence_threshold": self.confidence_threshold,
            "use_domestic_providers": self.use_domestic_providers,
            "search_result_limit": self.search_result_limit,
            "strict_credentials": self.strict_credentials,
            "credentials": self.credentials(),
        }
        values.update(overrides)
        return DetectionConfig(**values)


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once per process. Treat the returned object as read-only."""
    return Settings()
