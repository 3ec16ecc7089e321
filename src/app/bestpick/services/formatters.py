from typing import List

from app.bestpick.schema import (
    BestPhotoResponse,
    BestPickResponse,
    FaceQuality,
    GroupPickResponse,
    ImageQuality,
    PhotoScoreResponse,
)
from app.common.models import BestPickResult, GroupPickOutcome, PhotoScore


def _to_photo_score_response(s: PhotoScore) -> PhotoScoreResponse:
    return PhotoScoreResponse(
        path=s.path,
        final_score=s.final_score,
        image_quality=ImageQuality(sharpness=s.sharpness, brightness=s.brightness, composition=s.composition),
        face_quality=FaceQuality(all_eyes_open=s.all_eyes_open, face_count=s.face_count, face_score=s.face_score),
        reasoning=s.reasoning,
    )


def format_best_pick_response(result: BestPickResult) -> BestPickResponse:
    winner = result.winner
    return BestPickResponse(
        best_photo=BestPhotoResponse(
            path=winner.path,
            final_score=winner.final_score,
            image_quality_score=winner.image_quality_score,
            face_quality_score=winner.face_quality_score,
            reasoning=result.reasoning,
        ),
        all_photos=[_to_photo_score_response(s) for s in result.per_photo_scores],
        auto_selected=result.auto_selected,
    )


def format_group_outcomes(outcomes: List[GroupPickOutcome]) -> List[GroupPickResponse]:
    formatted = []
    for outcome in outcomes:
        if outcome.result is None:
            formatted.append(GroupPickResponse(group_id=outcome.group_id, error=outcome.error))
            continue

        winner_photo = outcome.winner_photo
        formatted.append(
            GroupPickResponse(
                group_id=outcome.group_id,
                best_photo_id=winner_photo.id if winner_photo else None,
                best_photo_path=outcome.result.winner_path,
                score=outcome.result.winner_score,
                reasoning=outcome.result.reasoning,
                all_photos=[_to_photo_score_response(s) for s in outcome.result.per_photo_scores],
            )
        )
    return formatted
