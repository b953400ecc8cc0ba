"""
Fixed-size 3x3 matrix algebra for planar projective geometry.

Matrices are float64 arrays indexed ``M[row, col]``.  Points are column
vectors, so a transform acts as ``M @ (x, y, 1)`` and products compose
right-to-left: ``(A @ B) @ v`` applies ``B`` first.  Every function returns
a new read-only array.
"""

import numpy as np

from quadwarp.errors import SingularMatrixError

SINGULAR_TOLERANCE = 1e-7


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


def as_matrix(values) -> np.ndarray:
    """Coerce *values* to a read-only 3 x 3 float64 matrix.

    Raises
    ------
    ValueError
        If *values* is not 3 x 3 or holds non-finite entries.
    """
    m = np.asarray(values, dtype=np.float64)
    if m.shape != (3, 3):
        raise ValueError(f"Matrix must be 3x3, got {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ValueError("Matrix entries must be finite")
    return _frozen(m)


def identity() -> np.ndarray:
    return _frozen(np.eye(3))


def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Row-by-column product of a 3 x 3 matrix with a matrix or vector.

    *b* may be a 3 x 3 matrix, a length-3 homogeneous vector, or a 3 x N
    stack of column vectors.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != (3, 3):
        raise ValueError(f"Left operand must be 3x3, got {a.shape}")
    if b.shape[0] != 3 or b.ndim > 2:
        raise ValueError(f"Right operand must have 3 rows, got {b.shape}")
    return _frozen(a @ b)


def transpose(m: np.ndarray) -> np.ndarray:
    return _frozen(np.asarray(m, dtype=np.float64).T)


def determinant(m: np.ndarray) -> float:
    """Determinant by cofactor expansion along the first row."""
    m = np.asarray(m, dtype=np.float64)
    return float(
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


def adjugate(m: np.ndarray) -> np.ndarray:
    """Transpose of the cofactor matrix of *m*."""
    m = np.asarray(m, dtype=np.float64)
    cofactors = np.empty((3, 3), dtype=np.float64)
    for row in range(3):
        for col in range(3):
            minor = np.delete(np.delete(m, row, axis=0), col, axis=1)
            sign = -1.0 if (row + col) % 2 else 1.0
            cofactors[row, col] = sign * (minor[0, 0] * minor[1, 1]
                                          - minor[0, 1] * minor[1, 0])
    return _frozen(cofactors.T)


def inverse(m: np.ndarray, tolerance: float = SINGULAR_TOLERANCE) -> np.ndarray:
    """Invert *m* as ``adjugate(m) / det(m)``.

    Parameters
    ----------
    m : np.ndarray
        3 x 3 matrix.
    tolerance : float
        Matrices with ``|det| < tolerance`` are treated as singular.

    Returns
    -------
    np.ndarray
        The 3 x 3 inverse.

    Raises
    ------
    SingularMatrixError
        If the determinant is below *tolerance* in magnitude.
    """
    det = determinant(m)
    if not np.isfinite(det) or abs(det) < tolerance:
        raise SingularMatrixError(
            f"Matrix is singular (|det| = {abs(det):.3g} < {tolerance:g})",
            step="inverse",
        )
    return _frozen(np.asarray(adjugate(m)) / det)


# ---------------------------------------------------------------------------
# Homogeneous coordinates
# ---------------------------------------------------------------------------

def to_homogeneous(points) -> np.ndarray:
    """Append ``w = 1`` to a point (2,) or a stack of points (N, 2)."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.shape[-1] != 2:
        raise ValueError(f"Points must have 2 coordinates, got {pts.shape}")
    ones = np.ones(pts.shape[:-1] + (1,), dtype=np.float64)
    return _frozen(np.concatenate([pts, ones], axis=-1))


def from_homogeneous(vectors) -> np.ndarray:
    """Divide (x, y, w) by w to recover (x, y).

    A vector with ``w == 0`` is a point at infinity and comes back as
    ``±inf`` (or NaN for ``0 / 0``); no error is raised.
    """
    v = np.asarray(vectors, dtype=np.float64)
    if v.shape[-1] != 3:
        raise ValueError(f"Homogeneous vectors must have 3 entries, got {v.shape}")
    with np.errstate(divide="ignore", invalid="ignore"):
        return _frozen(v[..., :2] / v[..., 2:3])


def transform_points(m: np.ndarray, points) -> np.ndarray:
    """Apply *m* to an (N, 2) array of points and return (N, 2) points."""
    homog = np.asarray(to_homogeneous(np.atleast_2d(points)))
    mapped = np.asarray(multiply(m, homog.T)).T
    return from_homogeneous(mapped)


# ---------------------------------------------------------------------------
# Comparison up to scale
# ---------------------------------------------------------------------------

def normalize(m: np.ndarray) -> np.ndarray:
    """Scale *m* to unit Frobenius norm with its largest entry positive.

    Homographies are only defined up to a non-zero scalar; two matrices
    describe the same transform iff their normalised forms agree.
    """
    m = np.asarray(m, dtype=np.float64)
    norm = np.linalg.norm(m)
    if norm == 0.0:
        raise ValueError("Cannot normalise the zero matrix")
    pivot = m.flat[np.argmax(np.abs(m))]
    return _frozen(m / (norm * np.sign(pivot)))


def is_scalar_multiple(a: np.ndarray, b: np.ndarray,
                       atol: float = 1e-6) -> bool:
    """True when ``a == k * b`` for some non-zero scalar ``k``."""
    return bool(np.allclose(normalize(a), normalize(b), atol=atol))


# ---------------------------------------------------------------------------
# Export to consumer layouts
# ---------------------------------------------------------------------------

def to_matrix4x4(m: np.ndarray, row_vectors: bool = False) -> np.ndarray:
    """Lift a planar homography to a 4 x 4 transform on (x, y, z, w).

    The z coordinate passes through unchanged.  With ``row_vectors=True``
    the result is transposed for APIs that multiply ``v @ M``
    (layer transforms in most UI toolkits).
    """
    h = np.asarray(as_matrix(m))
    lifted = np.array([
        [h[0, 0], h[0, 1], 0.0, h[0, 2]],
        [h[1, 0], h[1, 1], 0.0, h[1, 2]],
        [0.0,     0.0,     1.0, 0.0    ],
        [h[2, 0], h[2, 1], 0.0, h[2, 2]],
    ])
    return _frozen(lifted.T if row_vectors else lifted)


def affine_parameters(m: np.ndarray, atol: float = 1e-9):
    """Return ``(a, b, c, d, tx, ty)`` for an affine 3 x 3 matrix.

    The parameters follow the usual 2-D graphics convention
    ``x' = a*x + c*y + tx`` and ``y' = b*x + d*y + ty``.

    Raises
    ------
    ValueError
        If the bottom row of *m* is not ``(0, 0, 1)``.
    """
    m = np.asarray(as_matrix(m))
    if not np.allclose(m[2], [0.0, 0.0, 1.0], atol=atol):
        raise ValueError(f"Matrix is not affine: bottom row is {m[2].tolist()}")
    return (float(m[0, 0]), float(m[1, 0]), float(m[0, 1]),
            float(m[1, 1]), float(m[0, 2]), float(m[1, 2]))
