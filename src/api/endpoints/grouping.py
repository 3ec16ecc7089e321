import logging
import uuid

from fastapi import APIRouter, Depends

from core.dependencies import get_embedding_cache
from app.common.models import PhotoRef
from app.grouping.model_loader import EmbeddingCache
from app.grouping.schema import GroupPhotosRequest, GroupPhotosResponse
from app.grouping.services.embedding_producer import EmbeddingProducer
from app.grouping.services.formatters import format_grouping_response
from app.grouping.services.pipeline import PhotoGroupingPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


def get_grouping_pipeline(cache: EmbeddingCache = Depends(get_embedding_cache)) -> PhotoGroupingPipeline:
    return PhotoGroupingPipeline(EmbeddingProducer(cache))


@router.post("", response_model=GroupPhotosResponse)
async def group_photos(
    req: GroupPhotosRequest,
    pipeline: PhotoGroupingPipeline = Depends(get_grouping_pipeline),
):
    """
    Group photos by visual similarity (DBSCAN over CLIP embeddings).
    """
    request_id = str(uuid.uuid4())
    logger.info(f"📥 [Request {request_id}] Grouping {len(req.photos)} photos. eps={req.eps}, minPts={req.min_pts}")

    photos = [PhotoRef.from_path(p.path, id=p.id, filename=p.filename) for p in req.photos]
    result = await pipeline.run(photos, eps=req.eps, min_pts=req.min_pts)

    logger.info(
        f"✅ [Request {request_id}] {result.stats.group_count} groups, {result.stats.ungrouped_count} ungrouped."
    )
    return format_grouping_response(result, include_embeddings=req.include_embeddings)
