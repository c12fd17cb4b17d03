"""Application configuration settings."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # OpenAI Configuration (summaries fall back to schema-derived text without a key)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # CORS Configuration
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    # File Upload Configuration
    max_file_size: int = 50 * 1024 * 1024  # 50MB
    upload_dir: str = "./data/uploads"
    registry_dir: str = "./data/datasets"
    insight_dir: str = "./data/insights"

    # Application Configuration
    app_name: str = "AppLens Data API"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # Sampling Configuration
    schema_sample_rows: int = 20
    connect_sample_rows: int = 10
    preview_default_limit: int = 100
    ai_sample_rows: int = 50
    chat_sample_rows: int = 10
    chat_history_turns: int = 5
    schema_strategy: str = "first_row"

    # Aggregation Configuration
    ranked_bucket_limit: int = 50
    pie_fold_threshold: int = 12
    pie_top_k: int = 10

    # External source timeouts
    source_connect_timeout_seconds: float = 10.0
    source_query_timeout_seconds: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
