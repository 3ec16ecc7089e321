import asyncio
import logging
from typing import List, Optional, Sequence

from app.common.models import Group, GroupingResult, GroupStats, PhotoRef
from app.config import ClusteringConfig
from app.grouping.clusters.dbscan import dbscan, mean_pairwise_similarity
from app.grouping.services.embedding_producer import EmbeddingProducer
from app.utils.performance import PerformanceMonitor, record_item_failures

logger = logging.getLogger(__name__)


def compute_group_stats(total_photos: int, groups: Sequence[Group], ungrouped_count: int) -> GroupStats:
    group_count = len(groups)
    avg_group_size = sum(len(g) for g in groups) / group_count if group_count else 0.0
    return GroupStats(
        total_photos=total_photos,
        group_count=group_count,
        ungrouped_count=ungrouped_count,
        avg_group_size=avg_group_size,
    )


class PhotoGroupingPipeline:
    """
    Photos -> embeddings -> DBSCAN -> groups.

    Clustering runs only over photos that embedded successfully. Noise
    points and photos that failed to embed are reported as ungrouped, so
    every input photo ends up in exactly one group or in ``ungrouped``.
    """

    def __init__(self, producer: EmbeddingProducer, config: Optional[ClusteringConfig] = None):
        self.producer = producer
        self.config = config or ClusteringConfig()
        self.performance_monitor = PerformanceMonitor()

    async def run(
        self,
        photos: List[PhotoRef],
        eps: Optional[float] = None,
        min_pts: Optional[int] = None,
    ) -> GroupingResult:
        eps = self.config.eps if eps is None else eps
        min_pts = self.config.min_pts if min_pts is None else min_pts
        logger.info(f"Grouping {len(photos)} photos (eps={eps}, min_pts={min_pts}).")

        self.performance_monitor.start()
        embeddings = await self.producer.produce([p.path for p in photos])
        self.performance_monitor.stop()
        self.performance_monitor.report("EmbeddingProducer", count=len(photos))

        # Results line up with photos by position, so duplicate paths stay distinct.
        valid_positions = [i for i, r in enumerate(embeddings) if r.ok]
        failed_positions = [i for i, r in enumerate(embeddings) if not r.ok]
        record_item_failures("embedding", len(failed_positions))

        if not valid_positions:
            logger.warning("No photo produced an embedding. Returning everything as ungrouped.")
            return GroupingResult(
                groups=[],
                ungrouped=list(photos),
                stats=compute_group_stats(len(photos), [], len(photos)),
                embeddings=embeddings,
            )

        vectors = [embeddings[i].embedding for i in valid_positions]

        self.performance_monitor.start()
        assignment = await asyncio.to_thread(dbscan, vectors, eps, min_pts)
        self.performance_monitor.stop()
        self.performance_monitor.report("DBSCAN", count=len(vectors))
        logger.info(f"DBSCAN results: {len(assignment.clusters)} clusters, {len(assignment.noise)} noise points")

        groups = [
            Group(
                photos=[photos[valid_positions[idx]] for idx in cluster],
                avg_similarity=mean_pairwise_similarity([vectors[idx] for idx in cluster]),
            )
            for cluster in assignment.clusters
        ]

        ungrouped = [photos[valid_positions[idx]] for idx in assignment.noise]
        ungrouped.extend(photos[i] for i in failed_positions)

        return GroupingResult(
            groups=groups,
            ungrouped=ungrouped,
            stats=compute_group_stats(len(photos), groups, len(ungrouped)),
            embeddings=embeddings,
        )
