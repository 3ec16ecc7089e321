from functools import lru_cache

from app.bestpick.scorer import LLMQualityScorer, QualityScorer
from app.grouping.model_loader import EmbeddingCache, get_embedding_cache as _process_embedding_cache


def get_embedding_cache() -> EmbeddingCache:
    return _process_embedding_cache()


@lru_cache()
def get_quality_scorer() -> QualityScorer:
    # Not cached when construction raises, so a fixed configuration is picked up on the next request.
    return LLMQualityScorer()
