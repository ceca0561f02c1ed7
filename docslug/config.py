"""Engine configuration using Pydantic Settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``DOCSLUG_``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOCSLUG_",
    )

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "docslug"

    # Slugs
    default_reserved_words: str = "new,edit"
    use_transactions: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def reserved_words(self) -> set[str]:
        """Parse default reserved words from comma-separated string."""
        return {word.strip() for word in self.default_reserved_words.split(",") if word.strip()}


settings = Settings()
