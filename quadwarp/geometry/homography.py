"""
Perspective transform (homography) between two convex quadrilaterals.

A planar homography maps one quadrilateral onto another corner for corner.
Rather than solving the 8 x 8 DLT system, the matrix is assembled in closed
form following Eberly, *Perspective Mappings* (Geometric Tools):

1. Both quadrilaterals are relabelled canonically (counter-clockwise,
   v00 nearest an anchor point).
2. Affine maps A_p, A_q take the canonical triangle (0,0), (1,0), (0,1) onto
   the (v00, v10, v01) corners of p and q.
3. In those frames the fourth corners become (a, b) and (c, d).  A
   quadrilateral is convex iff ``s = a + b - 1 > 0`` (``t = c + d - 1``).
4. A fractional-linear matrix F maps canonical p onto canonical q and the
   homography is ``H = A_q @ F @ inv(A_p)``.

All matrices act on column vectors (x, y, 1).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from quadwarp.errors import (
    NonConvexInputError,
    SingularMatrixError,
    TransformError,
)
from quadwarp.geometry.affine import affine_transform
from quadwarp.geometry.shapes import CANONICAL_TRIANGLE, Quadrilateral
from quadwarp.linalg.matrix import (
    SINGULAR_TOLERANCE,
    as_matrix,
    determinant,
    from_homogeneous,
    inverse,
    multiply,
    to_homogeneous,
    transform_points,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PerspectiveTransform:
    """A solved homography together with the corner labelling it refers to.

    ``matrix`` sends ``source.v00`` to ``target.v00``, ``source.v10`` to
    ``target.v10`` and so on; consumers need the ordered quadrilaterals to
    know which physical corner ended up where.
    """

    matrix: np.ndarray
    source: Quadrilateral
    target: Quadrilateral
    convexity: Tuple[float, float]

    def apply(self, points) -> np.ndarray:
        return apply_homography(self.matrix, points)

    def inverse(self) -> "PerspectiveTransform":
        """The transform mapping ``target`` back onto ``source``."""
        s, t = self.convexity
        det = determinant(self.matrix)
        if not np.isfinite(det) or det == 0.0:
            raise SingularMatrixError("Homography is not invertible", step="inverse")
        # unit determinant; the singular tolerance is absolute
        unit = np.asarray(self.matrix) / np.cbrt(det)
        return PerspectiveTransform(
            matrix=inverse(unit),
            source=self.target,
            target=self.source,
            convexity=(t, s),
        )

    def residuals(self) -> np.ndarray:
        return corner_residuals(self)


@dataclass(frozen=True)
class SolveResult:
    """Outcome of :func:`solve`: exactly one of ``transform`` / ``error`` is set."""

    transform: Optional[PerspectiveTransform] = None
    error: Optional[TransformError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PerspectiveTransform:
        """Return the transform, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.transform


def fractional_linear_matrix(a: float, b: float, c: float, d: float) -> np.ndarray:
    """Matrix F mapping canonical quadrilateral p onto canonical q.

    Canonical p has corners (0,0), (1,0), (a,b), (0,1); canonical q has
    (0,0), (1,0), (c,d), (0,1).  With ``s = a + b - 1``, ``t = c + d - 1``::

        F = | b*c*s            0                0     |
            | 0                a*d*s            0     |
            | b*(c*s - a*t)    a*(d*s - b*t)    a*b*t |
    """
    s = a + b - 1.0
    t = c + d - 1.0
    return as_matrix([
        [b * c * s,           0.0,                 0.0],
        [0.0,                 a * d * s,           0.0],
        [b * (c * s - a * t), a * (d * s - b * t), a * b * t],
    ])


def canonical_coordinates(inverse_affine: np.ndarray, point) -> Tuple[float, float]:
    """Express *point* in the frame whose inverse affine map is given."""
    v = np.asarray(multiply(inverse_affine, to_homogeneous(point)))
    if abs(v[2]) < SINGULAR_TOLERANCE:
        raise SingularMatrixError("Point maps to infinity in the canonical frame",
                                  step="canonical coordinates")
    x, y = from_homogeneous(v)
    return float(x), float(y)


def _as_quadrilateral(points, label: str) -> Quadrilateral:
    if isinstance(points, Quadrilateral):
        return points
    try:
        return Quadrilateral.from_points(points)
    except TransformError as exc:
        raise exc.with_context(quadrilateral=label, step="input") from exc


def _base_affine(quad: Quadrilateral, label: str) -> Tuple[np.ndarray, np.ndarray]:
    """Affine map from the canonical triangle onto *quad*, and its inverse."""
    try:
        a = affine_transform(CANONICAL_TRIANGLE, quad.base_triangle())
        return a, inverse(a)
    except TransformError as exc:
        logger.debug("No invertible affine frame for quadrilateral %s: %s", label, exc)
        raise SingularMatrixError(
            "Singular affine transform: corners v00, v10, v01 are (nearly) collinear",
            quadrilateral=label, step="affine",
        ) from exc


def perspective_transform(source, target, anchor=(0.0, 0.0)) -> PerspectiveTransform:
    """Find the homography mapping quadrilateral *source* onto *target*.

    Parameters
    ----------
    source, target : Quadrilateral or array_like
        The four corners of each quadrilateral, in any order.
    anchor : tuple of float
        Reference point for canonical ordering; the corner nearest to it
        becomes v00 in both quadrilaterals.

    Returns
    -------
    PerspectiveTransform
        The 3 x 3 homography and the canonically ordered quadrilaterals.

    Raises
    ------
    DegenerateInputError
        If either input is not four distinct, finite, non-collinear points.
    NonConvexInputError
        If either quadrilateral is not strictly convex.
    SingularMatrixError
        If an affine frame cannot be inverted.
    """
    p = _as_quadrilateral(source, "p").ordered(anchor=anchor, label="p")
    q = _as_quadrilateral(target, "q").ordered(anchor=anchor, label="q")

    a_p, inv_a_p = _base_affine(p, "p")
    a_q, inv_a_q = _base_affine(q, "q")

    # (a, b) is v11 of p in p's canonical frame, (c, d) likewise for q
    a, b = canonical_coordinates(inv_a_p, p.v11)
    c, d = canonical_coordinates(inv_a_q, q.v11)

    s = a + b - 1.0
    t = c + d - 1.0
    logger.debug("Canonical v11: p=(%.6g, %.6g) s=%.6g, q=(%.6g, %.6g) t=%.6g",
                 a, b, s, c, d, t)

    # ordering already rejects concave input; this catches labellings
    # that bypass it
    if not s > 0.0:
        raise NonConvexInputError(f"Quadrilateral is not convex (s = {s:.6g})",
                                  quadrilateral="p", step="convexity")
    if not t > 0.0:
        raise NonConvexInputError(f"Quadrilateral is not convex (t = {t:.6g})",
                                  quadrilateral="q", step="convexity")

    f = fractional_linear_matrix(a, b, c, d)
    h = multiply(multiply(a_q, f), inv_a_p)

    if not np.all(np.isfinite(h)):
        raise SingularMatrixError("Composed homography has non-finite entries",
                                  step="compose")

    return PerspectiveTransform(matrix=h, source=p, target=q, convexity=(s, t))


def solve(source, target, anchor=(0.0, 0.0)) -> SolveResult:
    """Like :func:`perspective_transform` but report failure as a value."""
    try:
        return SolveResult(transform=perspective_transform(source, target, anchor=anchor))
    except TransformError as exc:
        logger.debug("Perspective transform failed: %s", exc)
        return SolveResult(error=exc)


def apply_homography(H: np.ndarray, points) -> np.ndarray:
    """Apply a homography to a set of (x, y) coordinates.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography matrix.
    points : array_like
        N x 2 array (or a single (x, y) pair).

    Returns
    -------
    np.ndarray
        N x 2 array of transformed (x, y) coordinates.  Points sent to
        infinity (w == 0) come back as ``inf``/``nan``.
    """
    return transform_points(as_matrix(H), points)


def corner_residuals(transform: PerspectiveTransform) -> np.ndarray:
    """Distance between ``H @ source`` and ``target`` for each labelled corner."""
    mapped = apply_homography(transform.matrix, transform.source.points)
    return np.linalg.norm(mapped - transform.target.points, axis=1)
