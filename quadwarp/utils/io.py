"""
Configuration and output directory helpers.

Thin wrappers around PyYAML for loading run configurations, with defaults
filled in and scene definitions validated up front so a bad config fails
before any work starts.
"""

import copy
import os

import yaml

DEFAULTS = {
    "anchor": [0.0, 0.0],
    "tolerance": 1e-3,
    "results_dir": "results",
    "scenes": [],
    "random": {"runs": 0, "magnitude": 10.0, "seed": None},
    "visualization": {"enabled": True, "dpi": 150, "grid_lines": 8},
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _check_corners(scene: dict, key: str) -> None:
    corners = scene.get(key)
    if (not isinstance(corners, list) or len(corners) != 4
            or any(not isinstance(c, (list, tuple)) or len(c) != 2 for c in corners)):
        raise ValueError(
            f"Scene '{scene.get('name', '?')}': '{key}' must be a list of four [x, y] pairs"
        )


def load_config(path: str) -> dict:
    """Load a YAML run configuration and fill in defaults.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    dict
        Configuration with every key of ``DEFAULTS`` present.

    Raises
    ------
    ValueError
        If a scene lacks a name or does not define exactly four corners
        for both ``p`` and ``q``.
    """
    with open(path, "r") as fh:
        cfg = _merge(DEFAULTS, yaml.safe_load(fh) or {})

    for scene in cfg["scenes"]:
        if not isinstance(scene, dict) or "name" not in scene:
            raise ValueError(f"Every scene needs a 'name', got {scene!r}")
        _check_corners(scene, "p")
        _check_corners(scene, "q")

    if len(cfg["anchor"]) != 2:
        raise ValueError(f"'anchor' must be an [x, y] pair, got {cfg['anchor']!r}")
    return cfg


def ensure_output_dirs(scenes: list, base: str = "results") -> None:
    """Create output subdirectories for each scene name.

    Parameters
    ----------
    scenes : list of str
        Scene identifiers (one subdirectory is created per scene).
    base : str
        Root output directory.
    """
    for scene in scenes:
        os.makedirs(os.path.join(base, scene), exist_ok=True)
