from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from shadow2d.computation.occluder_registry import OccluderRegistry
from shadow2d.computation.shadow_engine import LightSource, LightUpdateLoop
from shadow2d.io.data_writer import save_convex_polygons, save_shadow_meshes
from shadow2d.io.occluder_loader import Transform2D
from shadow2d.visualization import create_shadow_plot


def _scene(l_hexagon: np.ndarray, unit_square: np.ndarray):
    registry = OccluderRegistry()
    registry.register(l_hexagon, name="wall")
    registry.register(unit_square, Transform2D(position=(4.0, 0.0)), name="box")

    loop = LightUpdateLoop(registry)
    loop.add_light(LightSource("lamp", position=(2.0, -4.0), radius=15.0, projection_range=12.0))
    loop.update(0.0)
    return registry, loop


def test_convex_polygons_csv(tmp_path: Path, l_hexagon: np.ndarray, unit_square: np.ndarray) -> None:
    registry, _ = _scene(l_hexagon, unit_square)
    path = save_convex_polygons(tmp_path, registry, timestamp="1200")

    assert path.name == "1200_convex_pieces_2occ.csv"
    lines = path.read_text().strip().splitlines()
    assert lines[0] == "Occluder_Id,Name,Piece,Vertex,X,Y"
    # L: two 4-vertex pieces, box: one 4-vertex piece
    assert len(lines) == 1 + 12
    assert lines[-1].startswith("1,box,0,3,")


def test_empty_registry_is_not_exported(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        save_convex_polygons(tmp_path, OccluderRegistry())


def test_shadow_mesh_obj(tmp_path: Path, l_hexagon: np.ndarray, unit_square: np.ndarray) -> None:
    _, loop = _scene(l_hexagon, unit_square)
    path = save_shadow_meshes(tmp_path, loop, "lamp", timestamp="1200")

    assert path.name == "1200_shadows_lamp.obj"
    faces = [line for line in path.read_text().splitlines() if line.startswith("f ")]
    # Two pieces for the L plus one for the box, two triangles each
    assert len(faces) == 6


def test_light_without_shadows_is_not_exported(tmp_path: Path) -> None:
    loop = LightUpdateLoop(OccluderRegistry())
    loop.add_light(LightSource("lamp"))
    loop.update(0.0)
    with pytest.raises(ValueError):
        save_shadow_meshes(tmp_path, loop, "lamp")


def test_shadow_plot(tmp_path: Path, l_hexagon: np.ndarray, unit_square: np.ndarray) -> None:
    registry, loop = _scene(l_hexagon, unit_square)
    output_path = tmp_path / "plots" / "scene.png"

    plot_time = create_shadow_plot(registry, loop, output_path, title="Test")

    assert output_path.exists()
    assert plot_time >= 0.0
