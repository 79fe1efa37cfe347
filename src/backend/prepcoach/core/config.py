from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/prepcoach"

    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    embedding_model: str = "text-embedding-3-small"
    openai_temperature: float = 0.7
    openai_timeout: float = 60.0

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Retrieval pipeline
    chunk_max_words: int = 500
    retrieval_top_k: int = 2
    jd_char_budget: int = 3000  # keeps question prompts inside the context window
    citation_excerpt_chars: int = 200
    max_upload_bytes: int = 10 * 1024 * 1024

    debug: bool = False  # include upstream error detail in API responses
    log_level: str = "INFO"

    model_config = {"env_prefix": "PREPCOACH_"}


settings = Settings()
