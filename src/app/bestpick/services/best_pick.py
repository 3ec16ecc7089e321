import asyncio
import logging
import math
from typing import List, Optional, Sequence

from app.bestpick.parsing import ScorerAnalysis
from app.bestpick.scorer import QualityScorer
from app.common.errors import InputValidationError, ScorerError, sanitize_error_message
from app.common.models import BestPickResult, GroupPickOutcome, PhotoRef, PhotoScore
from app.config import BestPickConfig
from app.utils.performance import record_item_failures

logger = logging.getLogger(__name__)


def build_best_pick_result(photo_paths: Sequence[str], analysis: ScorerAnalysis) -> BestPickResult:
    """Checks a scorer reply against the submitted paths and turns it into a result."""
    if len(analysis.photos) != len(photo_paths):
        raise ScorerError(
            f"Quality scorer returned {len(analysis.photos)} photo analyses for {len(photo_paths)} photos"
        )

    best_index = analysis.best_photo_index
    if not 0 <= best_index < len(photo_paths):
        raise ScorerError(f"Quality scorer picked photo index {best_index}, expected 0..{len(photo_paths) - 1}")

    scores = [
        PhotoScore(
            path=path,
            final_score=a.final_score,
            sharpness=a.sharpness,
            brightness=a.brightness,
            composition=a.composition,
            face_score=a.face_score,
            face_count=a.face_count,
            all_eyes_open=a.all_eyes_open,
            reasoning=a.reasoning,
        )
        for path, a in zip(photo_paths, analysis.photos)
    ]
    return BestPickResult(
        winner=scores[best_index],
        per_photo_scores=scores,
        reasoning=analysis.best_photo_reasoning,
    )


def split_into_batches(photo_paths: Sequence[str], batch_size: int) -> List[Sequence[str]]:
    """Splits into the fewest batches of at most batch_size, sized as evenly as possible."""
    batch_count = math.ceil(len(photo_paths) / batch_size)
    base, extra = divmod(len(photo_paths), batch_count)
    batches, start = [], 0
    for i in range(batch_count):
        end = start + base + (1 if i < extra else 0)
        batches.append(photo_paths[start:end])
        start = end
    return batches


class BestPickService:
    """
    Picks the best photo of a group with the external quality scorer.

    Single-photo groups win outright without a scorer call. Groups larger
    than one scorer batch are scored batch by batch, then the batch winners
    face each other in a final round.
    """

    def __init__(self, scorer: QualityScorer, config: Optional[BestPickConfig] = None):
        self.scorer = scorer
        self.config = config or BestPickConfig()

    async def pick_best(self, photo_paths: Sequence[str]) -> BestPickResult:
        if not photo_paths:
            raise InputValidationError("Photo paths array cannot be empty", "photoPaths")

        if len(photo_paths) == 1:
            return self._auto_pick(photo_paths[0])

        batch_size = self.config.batch_size
        if len(photo_paths) <= batch_size:
            return await self._score_batch(photo_paths)

        batches = split_into_batches(photo_paths, batch_size)
        logger.info(f"Scoring {len(photo_paths)} photos in {len(batches)} batches before a final round.")
        # A batch can only hold one photo when batch_size < 3; pick_best auto-selects it.
        batch_results = await asyncio.gather(*(self.pick_best(b) for b in batches))

        per_photo_scores = [s for r in batch_results for s in r.per_photo_scores]
        final = await self.pick_best([r.winner_path for r in batch_results])
        winner = next(s for s in per_photo_scores if s.path == final.winner_path)

        return BestPickResult(winner=winner, per_photo_scores=per_photo_scores, reasoning=final.reasoning)

    async def pick_for_groups(self, groups: Sequence[List[PhotoRef]]) -> List[GroupPickOutcome]:
        """
        Runs pick_best for every non-empty group. A failing group is reported
        as an error outcome; the other groups are unaffected.
        """
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))

        async def run_one(group_id: int, photos: List[PhotoRef]) -> GroupPickOutcome:
            async with semaphore:
                try:
                    result = await self.pick_best([p.path for p in photos])
                except Exception as e:
                    logger.error(f"❌ [Group {group_id}] Best pick failed: {e}")
                    message = str(e) if isinstance(e, ScorerError) else sanitize_error_message(e)
                    return GroupPickOutcome(group_id=group_id, photos=photos, error=message)

            logger.info(f"✅ [Group {group_id}] Winner: {result.winner_path} ({result.winner_score})")
            return GroupPickOutcome(group_id=group_id, photos=photos, result=result)

        tasks = [run_one(group_id, photos) for group_id, photos in enumerate(groups) if photos]
        outcomes = list(await asyncio.gather(*tasks))
        record_item_failures("best_pick", sum(1 for o in outcomes if o.error is not None))
        return outcomes

    async def _score_batch(self, photo_paths: Sequence[str]) -> BestPickResult:
        analysis = await self.scorer.score(list(photo_paths))
        return build_best_pick_result(photo_paths, analysis)

    def _auto_pick(self, photo_path: str) -> BestPickResult:
        winner = PhotoScore(
            path=photo_path,
            final_score=self.config.single_photo_score,
            reasoning="Only photo in the group; selected without scoring.",
        )
        return BestPickResult(
            winner=winner,
            per_photo_scores=[winner],
            reasoning=winner.reasoning,
            auto_selected=True,
        )
