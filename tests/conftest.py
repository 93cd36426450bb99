"""Shared fixtures.

- Headless matplotlib backend
- Small reference polygons (square, L, U, chevron)
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from shadow2d.visualization.plot_styling import setup_matplotlib_backend
from shadow2d.config.scene_config_schemas import GeometryTolerances

setup_matplotlib_backend(headless=True)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture()
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture()
def tolerances() -> GeometryTolerances:
    return GeometryTolerances()


@pytest.fixture()
def unit_square() -> np.ndarray:
    return np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


@pytest.fixture()
def l_hexagon() -> np.ndarray:
    return np.array([[0.0, 0.0], [2.0, 0.0], [2.0, 1.0], [1.0, 1.0], [1.0, 2.0], [0.0, 2.0]])


@pytest.fixture()
def u_shape() -> np.ndarray:
    return np.array([
        [0.0, 0.0], [3.0, 0.0], [3.0, 2.0], [2.0, 2.0],
        [2.0, 1.0], [1.0, 1.0], [1.0, 2.0], [0.0, 2.0],
    ])


@pytest.fixture()
def chevron() -> np.ndarray:
    # Reflex vertex at (1, 1)
    return np.array([[0.0, 0.0], [2.0, 1.0], [0.0, 2.0], [1.0, 1.0]])
