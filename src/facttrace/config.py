import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).resolve().parents[2] / "data" / "source_reliability.csv"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.3"
)


class Settings(BaseSettings):
    """Configuration sourced from environment variables."""

    # Search collaborator
    search_api_key: str | None = None
    search_api_url: str = "https://api.exa.ai/search"
    search_num_results: int = Field(default=8, ge=1, le=50)
    search_type: str = "auto"
    search_timeout: float = 15.0

    # Language model collaborator (OpenAI-compatible chat completions)
    llm_api_key: str | None = None
    llm_api_url: str = "https://api.openai.com/v1/chat/completions"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 400
    llm_timeout: float = 30.0
    article_char_budget: int = 6000

    # Reliability dataset and thresholds
    reliability_dataset_path: str = str(DEFAULT_DATASET_PATH)
    max_bias_threshold: float = 10.0
    min_reliability_threshold: float = 35.0

    # Article fetching and selection
    fetch_timeout: float = 15.0
    fetch_user_agent: str = DEFAULT_USER_AGENT
    mirror_base: str = "https://r.jina.ai/"
    min_content_length: int = 600
    min_article_length: int = 400
    fallback_snippet_length: int = 800
    snippet_length: int = 280
    preferred_domain: str | None = None

    # HTTP surface
    max_body_bytes: int = 1_048_576
    cors_origins: str = "*"
    rate_limit_per_minute: int = 60
    debug: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def get_cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def log_summary(self) -> None:
        """Log the effective configuration without secrets."""
        logger.info("Configuration loaded:")
        logger.info("  Search API: %s (key %s)", self.search_api_url, "set" if self.search_api_key else "missing")
        logger.info("  LLM API: %s model=%s (key %s)", self.llm_api_url, self.llm_model, "set" if self.llm_api_key else "missing")
        logger.info("  Reliability dataset: %s", self.reliability_dataset_path)
        logger.info(
            "  Thresholds: |bias| <= %s, reliability >= %s",
            self.max_bias_threshold,
            self.min_reliability_threshold,
        )


@lru_cache(1)
def get_settings() -> Settings:
    return Settings()
