import base64
import os
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


def photo_id_for_path(path: str) -> str:
    """Stable photo id used by the scanner: base64 of the full path."""
    return base64.b64encode(path.encode("utf-8")).decode("ascii")


@dataclass(frozen=True)
class PhotoRef:
    id: str
    path: str
    filename: str

    @classmethod
    def from_path(cls, path: str, id: Optional[str] = None, filename: Optional[str] = None) -> "PhotoRef":
        return cls(
            id=id or photo_id_for_path(path),
            path=path,
            filename=filename or os.path.basename(path),
        )


@dataclass
class EmbeddingResult:
    path: str
    embedding: Optional[np.ndarray] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.embedding is not None


@dataclass
class ClusterAssignment:
    # Point indices per cluster, in discovery order.
    clusters: List[List[int]] = field(default_factory=list)
    # Indices that belong to no cluster, ascending.
    noise: List[int] = field(default_factory=list)


@dataclass
class Group:
    photos: List[PhotoRef]
    avg_similarity: float = 1.0

    def __len__(self) -> int:
        return len(self.photos)


@dataclass
class GroupStats:
    total_photos: int
    group_count: int
    ungrouped_count: int
    avg_group_size: float


@dataclass
class GroupingResult:
    groups: List[Group]
    ungrouped: List[PhotoRef]
    stats: GroupStats
    embeddings: List[EmbeddingResult] = field(default_factory=list)


@dataclass
class PhotoScore:
    path: str
    final_score: float
    sharpness: Optional[float] = None
    brightness: Optional[float] = None
    composition: Optional[float] = None
    face_score: float = 0.0
    face_count: int = 0
    all_eyes_open: bool = False
    reasoning: str = ""

    @property
    def image_quality_score(self) -> Optional[float]:
        parts = (self.sharpness, self.brightness, self.composition)
        if any(p is None for p in parts):
            return None
        return sum(parts) / 3

    @property
    def face_quality_score(self) -> float:
        return self.face_score


@dataclass
class BestPickResult:
    winner: PhotoScore
    per_photo_scores: List[PhotoScore]
    reasoning: str
    auto_selected: bool = False

    @property
    def winner_path(self) -> str:
        return self.winner.path

    @property
    def winner_score(self) -> float:
        return self.winner.final_score


@dataclass
class GroupPickOutcome:
    """Best-pick outcome for one group: either a result or an error message."""

    group_id: int
    photos: List[PhotoRef]
    result: Optional[BestPickResult] = None
    error: Optional[str] = None

    @property
    def winner_photo(self) -> Optional[PhotoRef]:
        if self.result is None:
            return None
        for photo in self.photos:
            if photo.path == self.result.winner_path:
                return photo
        return None
