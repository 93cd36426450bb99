#!/usr/bin/env python3
"""
Shadow2D Example 1: Simple Shadow Generation
============================================

This script demonstrates the minimal pipeline: load a scene, decompose
its occluders, move a light around for a few ticks and export the result.

Run from project root:
    python examples/01_simple_shadows.py

Expected output:
    - Console output showing decomposition and per-tick shadow counts
    - Plot, convex-piece CSV and shadow OBJ saved to data/results/demo_results/
"""

import sys
import time
import logging
from pathlib import Path

# =============================================================================
# SETUP PROJECT ROOT
# =============================================================================
# This ensures imports work whether run from project root or examples/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np

from shadow2d.config.scene_config_manager import SceneConfigManager
from shadow2d.io.scene_loader import SceneLoader
from shadow2d.io.data_writer import save_convex_polygons, save_shadow_meshes
from shadow2d.visualization import create_shadow_plot, setup_matplotlib_backend


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    setup_matplotlib_backend(headless=True)

    print("=" * 60)
    print("Shadow2D Example 1: Simple Shadow Generation")
    print("=" * 60)

    # =========================================================================
    # STEP 1: Load Configuration
    # =========================================================================
    print("\n[1/4] Loading configuration...")

    config_manager = SceneConfigManager(PROJECT_ROOT)
    config = config_manager.load_config("demo_scene.yaml")

    print(f"  Scene: {config.name}")
    print(f"  Lights: {', '.join(config.lights)}")

    # =========================================================================
    # STEP 2: Build Scene (decomposition happens here, once)
    # =========================================================================
    print("\n[2/4] Decomposing occluders...")

    scene = SceneLoader.build_scene(config, show_progress=True)

    for name, occluder_id in scene.occluder_ids.items():
        pieces = len(scene.registry.get(occluder_id).convex_polygons)
        print(f"  {name}: {pieces} convex piece(s)")
    for diagnostic in scene.diagnostics:
        print(f"  REJECTED {diagnostic.name}: {diagnostic.reason}")

    # =========================================================================
    # STEP 3: Run a few ticks with an orbiting light
    # =========================================================================
    print("\n[3/4] Running light updates...")

    dt = 1.0 / 30.0
    num_ticks = 30
    tick_start = time.time()

    for tick in range(num_ticks):
        angle = 2 * np.pi * tick / num_ticks
        scene.loop.set_light_position("lantern", (2.0 * np.cos(angle), 2.0 * np.sin(angle)))
        updated = scene.loop.update(dt)

        if tick % 10 == 0:
            counts = {call.light_id: len(call.geometries) for call in scene.loop.draw_calls()}
            print(f"  tick {tick:2d}: updated={updated} shadows={counts}")

    print(f"  {num_ticks} ticks in {time.time() - tick_start:.3f}s")
    print(f"  Summary: {scene.loop.get_performance_summary()}")

    # =========================================================================
    # STEP 4: Export
    # =========================================================================
    print("\n[4/4] Exporting results...")

    output_dir = config_manager.get_output_directory(config)
    csv_path = save_convex_polygons(output_dir, scene.registry)
    obj_path = save_shadow_meshes(output_dir, scene.loop, "lantern")
    png_path = output_dir / "demo_scene.png"
    create_shadow_plot(scene.registry, scene.loop, png_path, title=config.name)

    print(f"  Convex pieces: {csv_path}")
    print(f"  Shadow mesh:   {obj_path}")
    print(f"  Plot:          {png_path}")
    print("\nExample complete!")


if __name__ == "__main__":
    main()
