"""
Plot Styling and Configuration Module
====================================

Shared styling constants and matplotlib backend configuration for the
shadow debug plots.

Constants:
    PLOT_DPI: Output resolution
    FIGURE_SIZE: Figure dimensions
    SCENE_COLORS: Colours for occluders, pieces, shadows and lights

Functions:
    setup_matplotlib_backend: Configure matplotlib backend
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

PLOT_DPI = 150
FIGURE_SIZE = (10, 10)

SCENE_COLORS: Dict[str, str] = {
    'occluder': '#333333',
    'piece': '#1f77b4',
    'shadow': '#000000',
    'light': '#ffbf00',
    'light_range': '#ffbf00'
}


def setup_matplotlib_backend(headless: bool) -> None:
    """
    Configure matplotlib backend.

    Headless runs (tests, servers) use 'Agg'; otherwise the default
    interactive backend is kept.

    Args:
        headless: True to force the non-interactive backend
    """
    if headless:
        logger.info("Configuring matplotlib for headless rendering")
        try:
            import matplotlib
            matplotlib.use('Agg')
        except Exception as e:
            logger.warning(f"Failed to set matplotlib backend to 'Agg': {e}")
    else:
        logger.debug("Using default matplotlib backend for interactive plotting")
