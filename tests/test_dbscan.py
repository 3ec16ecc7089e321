import math
import os
import sys

import numpy as np
import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.grouping.clusters.dbscan import (
    cosine_distance,
    cosine_similarity,
    dbscan,
    mean_pairwise_similarity,
)


def unit(deg: float) -> list:
    rad = math.radians(deg)
    return [math.cos(rad), math.sin(rad)]


@pytest.fixture
def five_points():
    # 0,1,2 are nearly parallel; 3 and 4 are far from everything.
    return [
        [1.0, 0.0, 0.0],
        [0.99, 0.05, 0.0],
        [0.98, 0.1, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ]


def assert_partition(result, n):
    seen = [idx for cluster in result.clusters for idx in cluster] + list(result.noise)
    assert sorted(seen) == list(range(n))


def test_cosine_similarity_of_vector_with_itself_is_one():
    v = [0.3, -1.2, 4.5, 0.01]
    assert cosine_similarity(v, v) == pytest.approx(1.0, abs=1e-12)
    assert cosine_distance(v, v) == pytest.approx(0.0, abs=1e-12)


def test_cosine_distance_is_symmetric():
    a, b = [1.0, 2.0, 3.0], [-2.0, 0.5, 1.0]
    assert cosine_distance(a, b) == pytest.approx(cosine_distance(b, a))


def test_zero_vector_has_zero_similarity():
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
    assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0
    assert cosine_distance([0.0, 0.0], [3.0, 4.0]) == 1.0


def test_mismatched_lengths_fail_fast():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        dbscan([[1.0, 0.0], [1.0, 0.0, 0.0]])


def test_dense_triplet_and_two_outliers(five_points):
    result = dbscan(five_points, eps=0.25, min_pts=2)

    assert result.clusters == [[0, 1, 2]]
    assert result.noise == [3, 4]


def test_min_pts_one_never_produces_noise(five_points):
    result = dbscan(five_points, eps=0.25, min_pts=1)

    assert result.noise == []
    assert result.clusters == [[0, 1, 2], [3], [4]]


def test_noise_point_is_reclaimed_as_border_point():
    # A(0deg) has only B in range, so it is noise when visited first.
    # B(10deg) is core (A, B, C) and absorbs A as a border point.
    points = [unit(0), unit(10), unit(20)]
    eps = 0.022  # roughly 12 degrees

    result = dbscan(points, eps=eps, min_pts=3)

    assert result.noise == []
    # Discovery order: seed B first, then A, then C.
    assert result.clusters == [[1, 0, 2]]


def test_border_point_stays_with_first_cluster():
    # Two tight triplets with a lone point between them. The point reaches a
    # core of each triplet but is not a core itself; the left cluster claims it.
    points = [unit(0), unit(1), unit(2), unit(17), unit(32), unit(33), unit(34)]
    eps = 1 - math.cos(math.radians(15.5))

    result = dbscan(points, eps=eps, min_pts=4)

    assert result.noise == []
    assert result.clusters == [[2, 0, 1, 3], [4, 5, 6]]


def test_single_point():
    assert dbscan([[1.0, 2.0]], eps=0.25, min_pts=2).noise == [0]
    assert dbscan([[1.0, 2.0]], eps=0.25, min_pts=1).clusters == [[0]]


def test_all_identical_points_form_one_cluster():
    points = [[0.5, 0.5, 0.1]] * 4
    result = dbscan(points, eps=0.01, min_pts=2)

    assert result.clusters == [[0, 1, 2, 3]]
    assert result.noise == []


def test_identical_vectors_are_neighbours_at_zero_eps():
    rng = np.random.default_rng(3)
    for _ in range(50):
        v = rng.normal(size=512)
        result = dbscan([v, v.copy()], eps=0.0, min_pts=2)

        assert result.clusters == [[0, 1]]
        assert result.noise == []


def test_zero_vectors_are_not_similar_to_each_other():
    result = dbscan([[0.0, 0.0], [0.0, 0.0]], eps=0.5, min_pts=2)

    assert result.clusters == []
    assert result.noise == [0, 1]


def test_empty_input():
    result = dbscan([], eps=0.25, min_pts=2)
    assert result.clusters == []
    assert result.noise == []


@pytest.mark.parametrize("eps,min_pts", [(0.0, 1), (0.1, 2), (0.3, 3), (0.6, 5), (1.0, 2)])
def test_every_point_is_in_exactly_one_place(eps, min_pts):
    rng = np.random.default_rng(42)
    points = rng.normal(size=(40, 16))

    result = dbscan(points, eps=eps, min_pts=min_pts)

    assert_partition(result, len(points))
    assert all(result.clusters)


def test_membership_is_invariant_to_permutation(five_points):
    order = [4, 2, 0, 3, 1]
    shuffled = [five_points[i] for i in order]

    original = dbscan(five_points, eps=0.25, min_pts=2)
    permuted = dbscan(shuffled, eps=0.25, min_pts=2)

    def memberships(result, mapping):
        return {frozenset(mapping[i] for i in c) for c in result.clusters}

    assert memberships(original, list(range(5))) == memberships(permuted, order)
    assert {order[i] for i in permuted.noise} == set(original.noise)


def test_rerun_is_identical():
    rng = np.random.default_rng(7)
    points = rng.normal(size=(30, 8))

    first = dbscan(points, eps=0.4, min_pts=2)
    second = dbscan(points, eps=0.4, min_pts=2)

    assert first == second


def test_mean_pairwise_similarity():
    assert mean_pairwise_similarity([[1.0, 0.0]]) == 1.0
    assert mean_pairwise_similarity([[1.0, 0.0], [1.0, 0.0], [0.0, 1.0]]) == pytest.approx(1 / 3)
