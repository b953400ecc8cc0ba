"""
Immutable triangle and quadrilateral values.

Quadrilaterals use the vertex names from Eberly's *Perspective Mappings*:
"The first convex quadrilateral has vertices p00, p10, p11 and p01, listed
in counterclockwise order."  ::

                 v11
       v01
                       v10
          v00
"""

import logging
from dataclasses import dataclass, fields
from typing import Tuple

import numpy as np

from quadwarp.errors import DegenerateInputError, NonConvexInputError
from quadwarp.geometry.hull import order_counterclockwise
from quadwarp.linalg.matrix import determinant, to_homogeneous, transpose

logger = logging.getLogger(__name__)

Point2 = Tuple[float, float]


def as_point(value) -> Point2:
    """Coerce *value* to a finite ``(x, y)`` tuple of floats."""
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (2,):
        raise DegenerateInputError(f"A point needs exactly 2 coordinates, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise DegenerateInputError(f"Point coordinates must be finite, got {arr.tolist()}")
    return float(arr[0]), float(arr[1])


def _as_points(points, count: int, shape_name: str):
    pts = np.asarray(points, dtype=np.float64)
    if pts.shape != (count, 2):
        raise DegenerateInputError(
            f"A {shape_name} needs exactly {count} (x, y) points, got shape {pts.shape}"
        )
    return list(pts)


def _validate_fields(instance):
    for f in fields(instance):
        object.__setattr__(instance, f.name, as_point(getattr(instance, f.name)))


@dataclass(frozen=True)
class Triangle:
    """Three points nominally forming a triangle, possibly collinear."""

    point1: Point2
    point2: Point2
    point3: Point2

    def __post_init__(self):
        _validate_fields(self)

    @classmethod
    def from_points(cls, points) -> "Triangle":
        return cls(*_as_points(points, 3, "triangle"))

    @property
    def points(self) -> np.ndarray:
        return np.array([self.point1, self.point2, self.point3], dtype=np.float64)

    def to_matrix(self) -> np.ndarray:
        """Point matrix whose columns are the homogeneous vertices.

        ::

            | x1  x2  x3 |
            | y1  y2  y3 |
            |  1   1   1 |
        """
        return transpose(to_homogeneous(self.points))

    def has_coincident_vertices(self) -> bool:
        return len({self.point1, self.point2, self.point3}) < 3

    def is_collinear(self, tolerance: float = 0.01) -> bool:
        """Near-zero determinant of the point matrix means collinear."""
        return abs(determinant(self.to_matrix())) < tolerance

    def is_collinear_by_angle(self, degrees_tolerance: float = 0.5) -> bool:
        """Collinear when the edges v1->v2 and v2->v3 are (anti)parallel.

        The angle between the edge vectors is folded into [0, 90] degrees so
        a reversal counts the same as a continuation.  A zero-length edge
        makes the angle undefined and is reported as collinear.
        """
        pts = self.points
        e1 = pts[1] - pts[0]
        e2 = pts[2] - pts[1]
        norms = np.linalg.norm(e1) * np.linalg.norm(e2)
        if norms == 0.0:
            return True
        cos_theta = np.clip(np.dot(e1, e2) / norms, -1.0, 1.0)
        degrees = np.degrees(np.arccos(cos_theta))
        if degrees > 90.0:
            degrees = 180.0 - degrees
        return bool(degrees < degrees_tolerance)


CANONICAL_TRIANGLE = Triangle((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))


@dataclass(frozen=True)
class Quadrilateral:
    """Four corners labelled v00, v10, v11, v01 (counter-clockwise when ordered)."""

    v00: Point2
    v10: Point2
    v11: Point2
    v01: Point2

    def __post_init__(self):
        _validate_fields(self)

    @classmethod
    def from_points(cls, points) -> "Quadrilateral":
        """Assign four (x, y) points to v00, v10, v11, v01 in the given order."""
        return cls(*_as_points(points, 4, "quadrilateral"))

    @property
    def points(self) -> np.ndarray:
        """4 x 2 array in label order v00, v10, v11, v01."""
        return np.array([self.v00, self.v10, self.v11, self.v01], dtype=np.float64)

    def base_triangle(self) -> Triangle:
        """The triangle (v00, v10, v01) used to anchor the affine frame."""
        return Triangle(self.v00, self.v10, self.v01)

    def ordered(self, anchor=(0.0, 0.0), label: str = None) -> "Quadrilateral":
        """Relabel the corners canonically.

        The corners are sorted counter-clockwise around their convex hull
        and v00 becomes the corner nearest *anchor*.  Any input permutation
        of the same four points gives the same result.

        Raises
        ------
        NonConvexInputError
            If one corner lies inside (or on an edge of) the triangle
            formed by the other three.
        DegenerateInputError
            If two corners coincide or all four are collinear.
        """
        if len({self.v00, self.v10, self.v11, self.v01}) < 4:
            raise DegenerateInputError("Quadrilateral has coincident corners",
                                       quadrilateral=label, step="ordering")

        ordered = order_counterclockwise(self.points, anchor=anchor)
        if len(ordered) == 4:
            return Quadrilateral.from_points(ordered)

        logger.debug("Hull of quadrilateral %s has %d vertices", label or "?", len(ordered))
        if len(ordered) == 3:
            raise NonConvexInputError(
                "One corner lies inside or on the triangle of the other three",
                quadrilateral=label, step="ordering",
            )
        raise DegenerateInputError(
            f"Corners span only {len(ordered)} distinct hull point(s)",
            quadrilateral=label, step="ordering",
        )


# ---------------------------------------------------------------------------
# Sample generation
# ---------------------------------------------------------------------------

def random_quadrilateral(magnitude: float = 10.0, rng=None) -> Quadrilateral:
    """Quadrilateral with corners drawn uniformly from [-magnitude, magnitude]^2.

    The corners are not ordered and the shape is not guaranteed convex.
    """
    rng = np.random.default_rng(rng)
    return Quadrilateral.from_points(rng.uniform(-magnitude, magnitude, size=(4, 2)))


def jumble_order(quad: Quadrilateral, rng=None) -> Quadrilateral:
    """Same four corners assigned to the labels in a random order."""
    rng = np.random.default_rng(rng)
    return Quadrilateral.from_points(quad.points[rng.permutation(4)])
