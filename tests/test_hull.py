"""
Tests for gift-wrapping hull ordering and anchor rotation.

Run with: python -m pytest tests/test_hull.py -v
"""

import itertools

import numpy as np
import pytest
from scipy.spatial import ConvexHull

from quadwarp.geometry.hull import (
    convex_hull,
    cross,
    lowest_point_index,
    order_counterclockwise,
    rotate_to_anchor,
)

P_POINTS = [(2.0, 1.0), (6.0, 2.0), (4.0, 5.0), (1.0, 4.0)]


def _signed_area(points: np.ndarray) -> float:
    x, y = points[:, 0], points[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


class TestCross:

    def test_orientation_signs(self):
        o = np.array([0.0, 0.0])
        assert cross(o, np.array([1.0, 0.0]), np.array([0.0, 1.0])) > 0
        assert cross(o, np.array([0.0, 1.0]), np.array([1.0, 0.0])) < 0
        assert cross(o, np.array([1.0, 1.0]), np.array([2.0, 2.0])) == 0

    def test_lowest_point_breaks_ties_by_x(self):
        pts = np.array([[3.0, 0.0], [1.0, 0.0], [2.0, 5.0]])
        assert lowest_point_index(pts) == 1


class TestConvexHull:

    def test_quadrilateral_hull_is_counterclockwise(self):
        hull = convex_hull(P_POINTS)
        np.testing.assert_array_equal(hull, P_POINTS)
        assert _signed_area(hull) > 0

    @pytest.mark.parametrize("perm", list(itertools.permutations(range(4))))
    def test_hull_independent_of_input_order(self, perm):
        shuffled = [P_POINTS[i] for i in perm]
        np.testing.assert_array_equal(convex_hull(shuffled), P_POINTS)

    def test_interior_point_is_dropped(self):
        hull = convex_hull([(0, 0), (4, 0), (1, 1), (0, 4)])
        assert len(hull) == 3
        assert [1.0, 1.0] not in hull.tolist()

    def test_collinear_edge_point_prefers_farther(self):
        # (2, 0) lies on the edge (0, 0) -> (4, 0)
        hull = convex_hull([(0, 0), (2, 0), (4, 0), (4, 4), (0, 4)])
        np.testing.assert_array_equal(hull, [[0, 0], [4, 0], [4, 4], [0, 4]])

    def test_duplicate_points_terminate(self):
        hull = convex_hull([(0, 0), (0, 0), (1, 0), (1, 0), (0, 1)])
        np.testing.assert_array_equal(hull, [[0, 0], [1, 0], [0, 1]])

    def test_all_collinear_gives_segment(self):
        hull = convex_hull([(1, 1), (0, 0), (3, 3), (2, 2)])
        np.testing.assert_array_equal(hull, [[0, 0], [3, 3]])

    def test_identical_points(self):
        hull = convex_hull([(2, 2), (2, 2), (2, 2)])
        np.testing.assert_array_equal(hull, [[2, 2]])

    def test_fewer_than_three_points_unchanged(self):
        np.testing.assert_array_equal(convex_hull([(5, 5), (0, 0)]), [[5, 5], [0, 0]])

    def test_matches_scipy_on_random_cloud(self):
        rng = np.random.default_rng(0)
        pts = rng.uniform(-10, 10, size=(40, 2))
        ours = convex_hull(pts)
        reference = pts[ConvexHull(pts).vertices]
        assert sorted(map(tuple, ours)) == sorted(map(tuple, reference))
        assert _signed_area(ours) > 0


class TestOrdering:

    def test_rotates_to_point_nearest_origin(self):
        q = [(6.0, 1.0), (5.0, 4.0), (2.0, 5.0), (1.0, 2.0)]
        ordered = order_counterclockwise(q)
        np.testing.assert_array_equal(ordered, [[1, 2], [6, 1], [5, 4], [2, 5]])

    def test_custom_anchor(self):
        ordered = order_counterclockwise(P_POINTS, anchor=(10.0, 10.0))
        np.testing.assert_array_equal(ordered[0], [4.0, 5.0])
        assert _signed_area(ordered) > 0

    def test_anchor_tie_goes_to_first_in_cycle(self):
        square = [(1, 0), (0, 1), (-1, 0), (0, -1)]
        ordered = order_counterclockwise(square)
        np.testing.assert_array_equal(ordered[0], [0, -1])

    def test_rotate_empty_cycle(self):
        assert rotate_to_anchor(np.empty((0, 2))).shape == (0, 2)

    def test_fewer_than_three_points_unchanged(self):
        np.testing.assert_array_equal(order_counterclockwise([(3, 3), (1, 1)]),
                                      [[3, 3], [1, 1]])
