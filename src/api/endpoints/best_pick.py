import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_quality_scorer
from app.bestpick.schema import BestPickRequest, BestPickResponse, ProcessGroupsRequest, ProcessGroupsResponse
from app.bestpick.scorer import QualityScorer
from app.bestpick.services.best_pick import BestPickService
from app.bestpick.services.formatters import format_best_pick_response, format_group_outcomes
from app.common.models import PhotoRef

logger = logging.getLogger(__name__)
router = APIRouter()


def get_best_pick_service(scorer: QualityScorer = Depends(get_quality_scorer)) -> BestPickService:
    return BestPickService(scorer)


@router.post("", response_model=BestPickResponse)
async def select_best_photo(
    req: BestPickRequest,
    service: BestPickService = Depends(get_best_pick_service),
):
    """
    Score up to 10 photos and return the best one with a per-photo breakdown.
    """
    logger.info(f"📥 Best pick requested for {len(req.photo_paths)} photos.")
    result = await service.pick_best(req.photo_paths)
    return format_best_pick_response(result)


@router.post("/groups", response_model=ProcessGroupsResponse, response_model_exclude_none=True)
async def process_photo_groups(
    req: ProcessGroupsRequest,
    service: BestPickService = Depends(get_best_pick_service),
):
    """
    Pick a winner for each group. Groups fail independently; empty groups are skipped.
    """
    groups = [
        [PhotoRef.from_path(p.path, id=p.id, filename=p.filename) for p in group]
        for group in req.photo_groups
    ]
    logger.info(f"📥 Best pick requested for {len(groups)} groups.")
    outcomes = await service.pick_for_groups(groups)
    return ProcessGroupsResponse(results=format_group_outcomes(outcomes))
