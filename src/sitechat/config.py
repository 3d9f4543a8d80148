from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Embedding + generation collaborators (OpenAI-compatible API)
    ai_base_url: str = "https://api.openai.com"
    ai_api_key: SecretStr = SecretStr("")
    ai_model: str = "gpt-4o-mini"
    embed_model: str = "text-embedding-3-small"
    embed_batch_size: int = 16
    llm_temperature: float = 0.2
    http_timeout_seconds: float = 60.0

    # Crawling
    crawl_timeout_seconds: float = 15.0
    crawl_user_agent: str = "SiteChatBot/1.0 (+knowledge base builder)"
    session_max_pages: int = 10
    snapshot_max_pages: int = 120
    same_host_only: bool = True

    # Chunking / retrieval
    max_chunk_chars: int = 1500
    top_k: int = 5

    # Session lifecycle (seconds)
    session_ttl_seconds: int = 1800
    session_sweep_interval_seconds: int = 600

    knowledge_base_path: str = "data/embeddings.json"

    # Comma-separated CORS origins
    allowed_origins: str = "*"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
