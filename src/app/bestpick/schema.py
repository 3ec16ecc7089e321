from typing import List, Optional

from pydantic import Field, field_validator

from app.common.schema import CamelModel, validate_photo_path
from app.grouping.schema import PhotoInput
from core.config import configs


class BestPickRequest(CamelModel):
    photo_paths: List[str] = Field(min_length=1, max_length=configs.MAX_BEST_PICK_PHOTOS)

    @field_validator("photo_paths")
    @classmethod
    def check_paths(cls, v: List[str]) -> List[str]:
        return [validate_photo_path(p) for p in v]


class ProcessGroupsRequest(CamelModel):
    photo_groups: List[List[PhotoInput]] = Field(min_length=1)

    @field_validator("photo_groups")
    @classmethod
    def check_total(cls, v: List[List[PhotoInput]]) -> List[List[PhotoInput]]:
        total = sum(len(g) for g in v)
        if total > configs.MAX_CLUSTER_PHOTOS:
            raise ValueError(f"Too many photos (max {configs.MAX_CLUSTER_PHOTOS})")
        return v


class ImageQuality(CamelModel):
    sharpness: Optional[float] = None
    brightness: Optional[float] = None
    composition: Optional[float] = None


class FaceQuality(CamelModel):
    all_eyes_open: bool
    face_count: int
    face_score: float


class PhotoScoreResponse(CamelModel):
    path: str
    final_score: float
    image_quality: ImageQuality
    face_quality: FaceQuality
    reasoning: str


class BestPhotoResponse(CamelModel):
    path: str
    final_score: float
    image_quality_score: Optional[float] = None
    face_quality_score: float
    reasoning: str


class BestPickResponse(CamelModel):
    best_photo: BestPhotoResponse
    all_photos: List[PhotoScoreResponse]
    auto_selected: bool = False


class GroupPickResponse(CamelModel):
    group_id: int
    best_photo_id: Optional[str] = None
    best_photo_path: Optional[str] = None
    score: Optional[float] = None
    reasoning: Optional[str] = None
    all_photos: Optional[List[PhotoScoreResponse]] = None
    error: Optional[str] = None


class ProcessGroupsResponse(CamelModel):
    results: List[GroupPickResponse]
