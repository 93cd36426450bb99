"""
Shadow Plotting Module
======================

Debug plots of a scene: occluder outlines, their convex pieces, the
current shadow geometry of each light and the light ranges.

Functions:
    create_shadow_plot: Draw the scene and optionally save it as PNG
"""

import time
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Polygon as PolygonPatch

from ..computation.occluder_registry import OccluderRegistry
from ..computation.shadow_engine import LightUpdateLoop
from ..utils.geometry_utils import apply_transform
from .plot_styling import FIGURE_SIZE, PLOT_DPI, SCENE_COLORS

logger = logging.getLogger(__name__)


def create_shadow_plot(
    registry: OccluderRegistry,
    loop: Optional[LightUpdateLoop] = None,
    output_path: Optional[Path] = None,
    light_ids: Optional[List[str]] = None,
    title: str = "Shadow Geometry",
    show: bool = False
) -> float:
    """
    Plot occluders, convex pieces and shadow geometry.

    Args:
        registry: Occluders to draw
        loop: Update loop whose current shadows are drawn (optional)
        output_path: PNG path; nothing is saved if omitted
        light_ids: Restrict shadows to these lights, all lights if omitted
        title: Figure title
        show: Display the figure interactively

    Returns:
        Time taken to generate the plot in seconds

    Raises:
        RuntimeError: If plot generation fails
    """
    logger.info("Creating shadow plot...")
    plot_start = time.time()

    fig = None
    try:
        fig, ax = plt.subplots(1, 1, figsize=FIGURE_SIZE)
        fig.suptitle(title, fontsize=16, fontweight='bold')

        if loop is not None:
            selected = light_ids if light_ids is not None else loop.light_ids()
            for light_id in selected:
                for geometry in loop.active_geometries(light_id):
                    for tri in geometry.triangles:
                        ax.add_patch(PolygonPatch(geometry.vertices[tri], closed=True,
                                                  facecolor=SCENE_COLORS['shadow'], alpha=0.35,
                                                  edgecolor='none'))

                light = loop.get_light(light_id)
                ax.add_patch(Circle(light.position, light.radius, fill=False, linestyle='--',
                                    edgecolor=SCENE_COLORS['light_range'], alpha=0.6))
                ax.plot(light.position[0], light.position[1], marker='*', markersize=14,
                        color=SCENE_COLORS['light'])

        for occluder_id in registry.ids():
            occluder = registry.get(occluder_id)
            outline = apply_transform(occluder.polygon, occluder.transform.matrix())
            ax.add_patch(PolygonPatch(outline, closed=True, fill=False, linewidth=2,
                                      edgecolor=SCENE_COLORS['occluder']))

            for piece in registry.world_polygons(occluder_id):
                ax.add_patch(PolygonPatch(piece, closed=True, facecolor=SCENE_COLORS['piece'],
                                          alpha=0.25, edgecolor=SCENE_COLORS['piece'], linewidth=0.8))

            center = np.mean(outline, axis=0)
            ax.annotate(occluder.name, center, ha='center', va='center', fontsize=8)

        ax.set_aspect('equal')
        ax.autoscale_view()
        ax.grid(True, alpha=0.3)
        ax.set_xlabel('x', fontsize=12)
        ax.set_ylabel('y', fontsize=12)

        if output_path is not None:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            plt.savefig(output_path, dpi=PLOT_DPI, bbox_inches='tight')
            logger.info(f"Plot saved: {output_path}")

        plot_time = time.time() - plot_start
        logger.info(f"Shadow plot generated ({plot_time:.2f}s)")

        if show:
            plt.show()

        return plot_time

    except Exception as e:
        logger.error(f"Plot generation failed: {e}")
        raise RuntimeError(f"Plot generation failed: {e}") from e

    finally:
        # Always close the figure to release memory
        if fig is not None:
            plt.close(fig)
