"""
Visualization utilities for quadrilateral perspective transforms.

All functions save figures to disk rather than displaying them interactively,
making the module suitable for headless execution.
"""

import os
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend
import matplotlib.pyplot as plt

from quadwarp.geometry.homography import PerspectiveTransform, apply_homography

LABELS = ("v00", "v10", "v11", "v01")


def _closed(points: np.ndarray) -> np.ndarray:
    return np.vstack([points, points[:1]])


def _draw_quadrilateral(ax, points: np.ndarray, style: str, label: str) -> None:
    loop = _closed(points)
    ax.plot(loop[:, 0], loop[:, 1], style, linewidth=2, label=label)
    for name, (x, y) in zip(LABELS, points):
        ax.annotate(name, (x, y), textcoords="offset points", xytext=(5, 5),
                    fontsize=8)


# ---------------------------------------------------------------------------
# Corner mapping
# ---------------------------------------------------------------------------

def save_quadrilateral_mapping(transform: PerspectiveTransform, scene: str,
                               out_dir: str, name: str = "mapping",
                               dpi: int = 150) -> str:
    """Save a plot of p, q and the corners of p pushed through H.

    Returns the path of the written image.
    """
    p = transform.source.points
    q = transform.target.points
    mapped = transform.apply(p)
    residual = float(np.max(transform.residuals()))

    fig, ax = plt.subplots(figsize=(8, 8))
    _draw_quadrilateral(ax, p, "b-", "p (source)")
    _draw_quadrilateral(ax, q, "g-", "q (target)")
    ax.plot(mapped[:, 0], mapped[:, 1], "rx", markersize=10,
            markeredgewidth=2, label="H · p")

    ax.set_title(f"{scene} – {name}  |  max residual {residual:.2e}")
    ax.set_aspect("equal")
    ax.grid(True, alpha=0.3)
    ax.legend()

    path = os.path.join(out_dir, scene, f"{name}.png")
    plt.tight_layout()
    plt.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path


# ---------------------------------------------------------------------------
# Grid warp
# ---------------------------------------------------------------------------

def _bilinear_grid(quad: np.ndarray, n: int, samples: int = 50):
    """Lines of a bilinear n x n grid spanning *quad* (v00, v10, v11, v01)."""
    v00, v10, v11, v01 = quad
    u = np.linspace(0.0, 1.0, samples)[:, None]
    lines = []
    for k in np.linspace(0.0, 1.0, n + 1):
        # constant-v line, then constant-u line
        lines.append((1 - u) * ((1 - k) * v00 + k * v01) + u * ((1 - k) * v10 + k * v11))
        lines.append((1 - u) * ((1 - k) * v00 + k * v10) + u * ((1 - k) * v01 + k * v11))
    return lines


def save_grid_warp(transform: PerspectiveTransform, scene: str, out_dir: str,
                   n: int = 8, name: str = "grid", dpi: int = 150) -> str:
    """Save a side-by-side view of a grid on p and its image under H.

    Straight lines stay straight under a homography while their spacing
    changes with perspective, which makes the warp easy to judge by eye.
    """
    p = transform.source.points
    q = transform.target.points

    fig, axes = plt.subplots(1, 2, figsize=(14, 7))
    for line in _bilinear_grid(p, n):
        axes[0].plot(line[:, 0], line[:, 1], "b-", linewidth=0.8, alpha=0.7)
        warped = apply_homography(transform.matrix, line)
        axes[1].plot(warped[:, 0], warped[:, 1], "r-", linewidth=0.8, alpha=0.7)

    _draw_quadrilateral(axes[0], p, "b-", "p")
    _draw_quadrilateral(axes[1], q, "g-", "q")

    axes[0].set_title(f"{scene} – grid on p")
    axes[1].set_title(f"{scene} – grid mapped by H")
    for ax in axes:
        ax.set_aspect("equal")
        ax.grid(True, alpha=0.3)
        ax.legend()

    path = os.path.join(out_dir, scene, f"{name}.png")
    plt.tight_layout()
    plt.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path
