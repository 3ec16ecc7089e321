from typing import List

from app.common.models import EmbeddingResult, GroupingResult, PhotoRef
from app.grouping.schema import (
    EmbeddingResponse,
    GroupPhotosResponse,
    GroupStatsResponse,
    GroupSummary,
    PhotoResponse,
)


def to_photo_response(p: PhotoRef) -> PhotoResponse:
    return PhotoResponse(id=p.id, path=p.path, filename=p.filename)


def to_embedding_response(r: EmbeddingResult) -> EmbeddingResponse:
    return EmbeddingResponse(
        path=r.path,
        embedding=r.embedding.tolist() if r.embedding is not None else None,
        error=r.error,
    )


def format_embeddings_response(results: List[EmbeddingResult]) -> List[EmbeddingResponse]:
    return [to_embedding_response(r) for r in results]


def format_grouping_response(result: GroupingResult, include_embeddings: bool = False) -> GroupPhotosResponse:
    """Converts a GroupingResult into the API payload."""
    embeddings = None
    if include_embeddings:
        embeddings = format_embeddings_response([r for r in result.embeddings if r.ok])

    return GroupPhotosResponse(
        groups=[[to_photo_response(p) for p in g.photos] for g in result.groups],
        group_summaries=[
            GroupSummary(id=idx, count=len(g), avg_similarity=g.avg_similarity)
            for idx, g in enumerate(result.groups)
        ],
        ungrouped=[to_photo_response(p) for p in result.ungrouped],
        stats=GroupStatsResponse(
            total_photos=result.stats.total_photos,
            group_count=result.stats.group_count,
            ungrouped_count=result.stats.ungrouped_count,
            avg_group_size=result.stats.avg_group_size,
        ),
        embeddings=embeddings,
    )
