import logging
from typing import List, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine_similarity

from app.common.models import ClusterAssignment

logger = logging.getLogger(__name__)

NOISE = -1

# Absorbs floating-point error so identical vectors are neighbours at eps=0.
DISTANCE_TOLERANCE = 1e-9


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Normalized dot product. A zero-magnitude vector has similarity 0 to anything."""
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")

    magnitude = np.linalg.norm(a) * np.linalg.norm(b)
    if magnitude == 0:
        return 0.0
    return float(np.dot(a, b) / magnitude)


def cosine_distance(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    return 1.0 - cosine_similarity(vec_a, vec_b)


def _as_matrix(embeddings: Sequence[Sequence[float]]) -> np.ndarray:
    lengths = {len(e) for e in embeddings}
    if len(lengths) > 1:
        raise ValueError(f"All embeddings must have the same length, got lengths {sorted(lengths)}")
    return np.asarray(embeddings, dtype=np.float64)


def cosine_distance_matrix(embeddings: Sequence[Sequence[float]]) -> np.ndarray:
    """
    (N, N) matrix of cosine distances.

    sklearn leaves zero rows at zero after normalization, so zero vectors get
    similarity 0 (distance 1) against everything, matching cosine_similarity.
    """
    matrix = _as_matrix(embeddings)
    return np.clip(1.0 - pairwise_cosine_similarity(matrix), 0.0, 2.0)


def mean_pairwise_similarity(embeddings: Sequence[Sequence[float]]) -> float:
    """Average cosine similarity over all distinct pairs; 1.0 for fewer than two vectors."""
    n = len(embeddings)
    if n < 2:
        return 1.0
    similarities = pairwise_cosine_similarity(_as_matrix(embeddings))
    upper = similarities[np.triu_indices(n, k=1)]
    return float(upper.mean())


def dbscan(embeddings: Sequence[Sequence[float]], eps: float = 0.25, min_pts: int = 2) -> ClusterAssignment:
    """
    DBSCAN over cosine distance.

    Points are visited in input order. A point's neighbourhood always contains
    the point itself, so with ``min_pts == 1`` nothing ends up as noise. Noise
    is provisional: a noise point reached while expanding a later cluster
    becomes a border point of that cluster.

    Args:
        embeddings: N vectors of equal length.
        eps: Maximum cosine distance for two points to be neighbours.
        min_pts: Minimum neighbourhood size (including the point) for a core point.

    Returns:
        ClusterAssignment with clusters in discovery order and ascending noise.

    Raises:
        ValueError: if the vectors do not all have the same length.
    """
    n = len(embeddings)
    if n == 0:
        return ClusterAssignment()

    distances = cosine_distance_matrix(embeddings)
    labels = [NOISE] * n
    visited = [False] * n
    # Members per cluster in the order they were assigned.
    members: List[List[int]] = []

    def region_query(idx: int) -> List[int]:
        neighbors = [idx]
        neighbors.extend(int(j) for j in np.flatnonzero(distances[idx] <= eps + DISTANCE_TOLERANCE) if j != idx)
        return neighbors

    def expand_cluster(idx: int, neighbors: List[int], cluster_id: int) -> None:
        labels[idx] = cluster_id
        members[cluster_id].append(idx)

        # neighbors grows while we walk it; duplicates are harmless.
        k = 0
        while k < len(neighbors):
            q = neighbors[k]
            if not visited[q]:
                visited[q] = True
                q_neighbors = region_query(q)
                if len(q_neighbors) >= min_pts:
                    neighbors.extend(q_neighbors)

            if labels[q] == NOISE:
                labels[q] = cluster_id
                members[cluster_id].append(q)
            k += 1

    cluster_count = 0
    for i in range(n):
        if visited[i]:
            continue
        visited[i] = True
        neighbors = region_query(i)

        if len(neighbors) < min_pts:
            labels[i] = NOISE
        else:
            members.append([])
            expand_cluster(i, neighbors, cluster_count)
            cluster_count += 1

    noise = [idx for idx, label in enumerate(labels) if label == NOISE]
    result = ClusterAssignment(clusters=[m for m in members if m], noise=noise)
    logger.debug(f"DBSCAN eps={eps} min_pts={min_pts}: {len(result.clusters)} clusters, {len(noise)} noise of {n}")
    return result
