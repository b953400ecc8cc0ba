"""
Counter-clockwise ordering of planar point sets.

The convex hull is traced with gift wrapping (Jarvis march): starting from
the lowest point, each step picks the point that leaves every other point
on its left.  The cost is O(n * h) for n points and h hull vertices, which
is fine for the four corners of a quadrilateral but does not scale to large
point clouds (use ``scipy.spatial.ConvexHull`` for those).

Coordinates are assumed to be y-up; in a y-down (screen) frame the same
ordering appears clockwise on screen.
"""

import numpy as np
from scipy.spatial.distance import cdist

# |cross| at or below this is treated as an exact collinear tie
COLLINEAR_TOLERANCE = 1e-12


def cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    """Signed doubled area of triangle (o, a, b).

    Positive when ``o -> a -> b`` turns counter-clockwise, negative when it
    turns clockwise and zero when the three points are collinear.
    """
    return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))


def lowest_point_index(points: np.ndarray) -> int:
    """Index of the point with minimum y, ties broken by minimum x."""
    return int(np.lexsort((points[:, 0], points[:, 1]))[0])


def convex_hull(points) -> np.ndarray:
    """Return the convex hull vertices in counter-clockwise order.

    The first vertex is the lowest (then leftmost) point.  Points lying
    strictly inside the hull or on one of its edges are dropped; when the
    orientation test ties, the candidate farther from the current vertex is
    preferred, so collinear runs keep only their end points and duplicate
    points never stall the wrap.

    Parameters
    ----------
    points : array_like
        N x 2 array of (x, y) coordinates.

    Returns
    -------
    np.ndarray
        H x 2 array of hull vertices (H <= N).  Inputs with fewer than
        three points are returned unchanged.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return pts.copy()

    start = lowest_point_index(pts)
    hull = []
    current = start

    # A hull never has more vertices than there are points
    for _ in range(len(pts)):
        hull.append(current)
        candidate = None

        for i in range(len(pts)):
            if np.array_equal(pts[i], pts[current]):
                continue
            if candidate is None:
                candidate = i
                continue

            turn = cross(pts[current], pts[candidate], pts[i])
            if turn < -COLLINEAR_TOLERANCE:
                # i lies to the right of current -> candidate
                candidate = i
            elif abs(turn) <= COLLINEAR_TOLERANCE:
                d_i = np.sum((pts[i] - pts[current]) ** 2)
                d_c = np.sum((pts[candidate] - pts[current]) ** 2)
                if d_i > d_c:
                    candidate = i

        if candidate is None or np.array_equal(pts[candidate], pts[start]):
            break
        current = candidate

    return pts[hull]


def rotate_to_anchor(cycle, anchor=(0.0, 0.0)) -> np.ndarray:
    """Rotate a vertex cycle so index 0 is the vertex nearest *anchor*.

    Ties go to the vertex that comes first in the cycle.
    """
    cycle = np.asarray(cycle, dtype=np.float64).reshape(-1, 2)
    if len(cycle) == 0:
        return cycle.copy()
    anchor = np.asarray(anchor, dtype=np.float64).reshape(1, 2)
    distances = cdist(cycle, anchor)[:, 0]
    return np.roll(cycle, -int(np.argmin(distances)), axis=0)


def order_counterclockwise(points, anchor=(0.0, 0.0)) -> np.ndarray:
    """Canonical counter-clockwise ordering of a point set.

    The hull is traced counter-clockwise and then rotated so the vertex
    nearest *anchor* comes first.  The result depends only on the set of
    points, not on the order they were supplied in.

    Parameters
    ----------
    points : array_like
        N x 2 array of (x, y) coordinates.
    anchor : tuple of float
        Reference point deciding which hull vertex is listed first.

    Returns
    -------
    np.ndarray
        H x 2 array of ordered hull vertices.  Fewer than three points are
        returned unchanged since their order carries no meaning.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return pts.copy()
    return rotate_to_anchor(convex_hull(pts), anchor)
