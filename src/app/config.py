from dataclasses import dataclass, field
from typing import Optional

from core.config import configs


@dataclass
class ClusteringConfig:
    eps: float = 0.25
    min_pts: int = 2


@dataclass
class EmbeddingConfig:
    model_name: str = field(default_factory=lambda: configs.CLIP_MODEL_NAME)
    pretrained: str = field(default_factory=lambda: configs.CLIP_PRETRAINED)
    device: str = field(default_factory=lambda: configs.EMBEDDING_DEVICE)
    max_concurrency: int = field(default_factory=lambda: configs.EMBEDDING_CONCURRENCY)


@dataclass
class ScorerConfig:
    provider: str = field(default_factory=lambda: configs.LLM_PROVIDER)
    api_key: Optional[str] = field(default_factory=lambda: configs.LLM_API_KEY)
    base_url: Optional[str] = field(default_factory=lambda: configs.LLM_BASE_URL)
    model_name: Optional[str] = field(default_factory=lambda: configs.LLM_MODEL_NAME)
    timeout_seconds: float = field(default_factory=lambda: configs.LLM_TIMEOUT_SECONDS)
    max_tokens: int = field(default_factory=lambda: configs.LLM_MAX_TOKENS)
    temperature: float = field(default_factory=lambda: configs.LLM_TEMPERATURE)
    image_max_side: int = field(default_factory=lambda: configs.SCORER_IMAGE_MAX_SIDE)
    jpeg_quality: int = field(default_factory=lambda: configs.SCORER_JPEG_QUALITY)


@dataclass
class BestPickConfig:
    # The scorer never sees more than this many photos in one request.
    batch_size: int = 10
    max_concurrency: int = field(default_factory=lambda: configs.BEST_PICK_CONCURRENCY)
    single_photo_score: float = 100.0

    def __post_init__(self):
        if self.batch_size < 2:
            raise ValueError("batch_size must be at least 2")
