"""
Affine transform between two triangles.

Writing each triangle's homogeneous vertices as the columns of a 3 x 3
point matrix, the affine map M taking ``source`` onto ``target`` satisfies
``M @ S = T`` and so ``M = T @ inv(S)``.  It exists and is unique whenever
the source triangle is not degenerate.
"""

import numpy as np

from quadwarp.errors import DegenerateInputError, SingularMatrixError
from quadwarp.geometry.shapes import Triangle
from quadwarp.linalg.matrix import inverse, multiply


def affine_transform(source: Triangle, target: Triangle) -> np.ndarray:
    """Return the 3 x 3 affine matrix mapping *source* vertices onto *target*.

    Vertex ``k`` of *source* is sent to vertex ``k`` of *target*.

    Parameters
    ----------
    source, target : Triangle
        Triangles with vertices listed in corresponding order.

    Returns
    -------
    np.ndarray
        Read-only 3 x 3 matrix acting on column vectors (x, y, 1).

    Raises
    ------
    DegenerateInputError
        If two vertices of *source* coincide.
    SingularMatrixError
        If *source* is collinear, so no affine map exists.
    """
    if source.has_coincident_vertices():
        raise DegenerateInputError("Source triangle has coincident vertices",
                                   step="affine")
    try:
        inv_source = inverse(source.to_matrix())
    except SingularMatrixError as exc:
        raise SingularMatrixError(
            "Cannot build affine transform: source triangle is collinear",
            step="affine",
        ) from exc
    return multiply(target.to_matrix(), inv_source)
