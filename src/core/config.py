from typing import Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Photo Grouping Worker"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Embedding
    CLIP_MODEL_NAME: str = "ViT-B-32"
    CLIP_PRETRAINED: str = "openai"
    EMBEDDING_DEVICE: str = "cpu"
    EMBEDDING_CONCURRENCY: int = 4
    PRELOAD_EMBEDDING_MODEL: bool = False

    # Quality scorer (OpenAI-compatible chat completions)
    LLM_PROVIDER: str = "openai"  # openai, azure, google, custom
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: Optional[str] = None
    LLM_MODEL_NAME: Optional[str] = None
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_TOKENS: int = 2000
    LLM_TEMPERATURE: float = 0.3
    SCORER_IMAGE_MAX_SIDE: int = 1024
    SCORER_JPEG_QUALITY: int = 85
    BEST_PICK_CONCURRENCY: int = 3

    # Limits
    MAX_CLUSTER_PHOTOS: int = 1000
    MAX_BEST_PICK_PHOTOS: int = 10
    MAX_PATH_LENGTH: int = 1000

    class Config:
        env_file = ".env"

configs = Settings()
