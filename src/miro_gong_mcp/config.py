"""Application settings via pydantic-settings."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .categories import ScoringMode

DEFAULT_GONG_API_BASE = "https://api.gong.io/v2"


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MIRO_GONG_", env_file=".env", extra="ignore"
    )

    # Credentials keep their conventional, unprefixed names.
    miro_access_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MIRO_ACCESS_TOKEN", "MIRO_GONG_MIRO_ACCESS_TOKEN"),
        description="Miro REST API access token.",
    )
    gong_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GONG_KEY", "MIRO_GONG_GONG_KEY"),
        description="Gong API access key.",
    )
    gong_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GONG_SECRET", "MIRO_GONG_GONG_SECRET"),
        description="Gong API access key secret.",
    )

    miro_api_base: str = Field(default="https://api.miro.com/v2")
    gong_api_base: str = Field(
        default=DEFAULT_GONG_API_BASE,
        description="Gong API base URL; tenants usually have their own host.",
    )
    http_timeout: float = Field(default=30.0, description="Seconds per HTTP request.")
    log_level: str = Field(default="info", description="Logging level")
    timezone: str | None = Field(
        default=None,
        description="IANA timezone for displayed call dates. Defaults to the system zone.",
    )

    # Analysis
    scoring_mode: ScoringMode = Field(
        default=ScoringMode.WEIGHTED,
        description="Category ranking: 'weighted' or 'count'.",
    )
    categories: list[str] | None = Field(
        default=None, description="Restrict analysis to these category keys."
    )
    taxonomy_path: str | None = Field(
        default=None, description="Replacement taxonomy JSON file."
    )
    summary_max_items: int = Field(default=20, ge=0)
    templates_per_category: int | None = Field(
        default=None, ge=1, description="Cap on templates offered per category."
    )

    # Upstream paging and retries
    miro_max_pages: int = Field(default=20, ge=1)
    cache_max_entries: int = Field(default=128, ge=0)
    cache_ttl_seconds: float | None = Field(default=300.0)
    gong_max_retries: int = Field(default=3, ge=0)
    gong_retry_base_delay: float = Field(default=3.0, ge=0)
    gong_retry_max_delay: float = Field(default=60.0, ge=0)
    gong_max_pages: int = Field(default=50, ge=1)
    gong_page_delay: float = Field(default=0.2, ge=0)
    gong_page_limit: int = Field(default=100, ge=1)
    search_lookback_months: int = Field(default=2, ge=0)

    @property
    def miro_configured(self) -> bool:
        return bool(self.miro_access_token)

    @property
    def gong_configured(self) -> bool:
        return bool(self.gong_key and self.gong_secret)
