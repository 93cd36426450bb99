"""
Shadow2D Visualization Module
=============================

Debug plotting for decomposed occluders and shadow geometry.

Modules:
- shadow_plotter: Scene plots with occluders, convex pieces, shadows and lights
- plot_styling: Shared constants and backend configuration
"""

from .shadow_plotter import create_shadow_plot
from .plot_styling import setup_matplotlib_backend, PLOT_DPI, FIGURE_SIZE, SCENE_COLORS

__all__ = [
    'create_shadow_plot',
    'setup_matplotlib_backend',
    'PLOT_DPI',
    'FIGURE_SIZE',
    'SCENE_COLORS'
]
