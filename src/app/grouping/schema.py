from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from app.common.schema import CamelModel, validate_photo_path
from app.config import ClusteringConfig
from core.config import configs


class PhotoInput(CamelModel):
    model_config = ConfigDict(extra="allow")

    path: str = Field(description="Absolute path of the photo on disk")
    id: Optional[str] = Field(None, description="Scanner id; derived from the path when omitted")
    filename: Optional[str] = Field(None, description="Display name; basename of the path when omitted")

    @field_validator("path")
    @classmethod
    def check_path(cls, v: str) -> str:
        return validate_photo_path(v)


class GroupPhotosRequest(CamelModel):
    photos: List[PhotoInput] = Field(min_length=1, max_length=configs.MAX_CLUSTER_PHOTOS)
    eps: float = Field(ClusteringConfig.eps, ge=0.0, le=1.0, strict=True, allow_inf_nan=False, description="DBSCAN cosine distance threshold")
    min_pts: int = Field(ClusteringConfig.min_pts, ge=1, le=100, strict=True, description="DBSCAN minimum neighbourhood size")
    include_embeddings: bool = Field(False, description="Return the embedding vectors with the groups")


class GenerateEmbeddingsRequest(CamelModel):
    photo_paths: List[str] = Field(min_length=1, max_length=configs.MAX_CLUSTER_PHOTOS)

    @field_validator("photo_paths")
    @classmethod
    def check_paths(cls, v: List[str]) -> List[str]:
        return [validate_photo_path(p) for p in v]


class PhotoResponse(CamelModel):
    id: str
    path: str
    filename: str


class GroupSummary(CamelModel):
    id: int
    count: int
    avg_similarity: float


class GroupStatsResponse(CamelModel):
    total_photos: int
    group_count: int
    ungrouped_count: int
    avg_group_size: float


class EmbeddingResponse(CamelModel):
    path: str
    embedding: Optional[List[float]] = None
    error: Optional[str] = None


class GroupPhotosResponse(CamelModel):
    groups: List[List[PhotoResponse]]
    group_summaries: List[GroupSummary]
    ungrouped: List[PhotoResponse]
    stats: GroupStatsResponse
    embeddings: Optional[List[EmbeddingResponse]] = None


class GenerateEmbeddingsResponse(CamelModel):
    embeddings: List[EmbeddingResponse]
