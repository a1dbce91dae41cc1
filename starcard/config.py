from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "StarCard"
    debug: bool = False
    log_level: str = "INFO"

    # Backs the key-value storage that holds the card list
    storage_url: str = "sqlite:///starcard.db"

    # Empty key means analysis short-circuits to the unconfigured result
    anthropic_api_key: str = ""
    analysis_model: str = "claude-sonnet-4-20250514"
    analysis_max_tokens: int = 512
    analysis_timeout_seconds: float = 30.0

    # Empty webhook means sharing is unavailable
    share_webhook_url: str = ""
    share_url: str = "http://localhost:8000/"


settings = Settings()


# =============================================================================
# STORAGE KEYS
# =============================================================================

CARDS_STORAGE_KEY = "starcard_cards"

# Reserved for named collections; no operation reads or writes it yet
COLLECTIONS_STORAGE_KEY = "starcard_collections"
