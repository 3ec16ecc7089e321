import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_embedding_cache
from app.grouping.model_loader import EmbeddingCache
from app.grouping.schema import GenerateEmbeddingsRequest, GenerateEmbeddingsResponse
from app.grouping.services.embedding_producer import EmbeddingProducer
from app.grouping.services.formatters import format_embeddings_response

logger = logging.getLogger(__name__)
router = APIRouter()


def get_embedding_producer(cache: EmbeddingCache = Depends(get_embedding_cache)) -> EmbeddingProducer:
    return EmbeddingProducer(cache)


@router.post("", response_model=GenerateEmbeddingsResponse)
async def generate_embeddings(
    req: GenerateEmbeddingsRequest,
    producer: EmbeddingProducer = Depends(get_embedding_producer),
):
    """
    Embed each photo path. Missing or unreadable photos come back with an error instead of a vector.
    """
    logger.info(f"📥 Embedding request for {len(req.photo_paths)} photos.")
    results = await producer.produce(req.photo_paths)
    return GenerateEmbeddingsResponse(embeddings=format_embeddings_response(results))
