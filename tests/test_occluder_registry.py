from __future__ import annotations

import numpy as np
import pytest

from shadow2d.computation.occluder_registry import OccluderRegistry
from shadow2d.config.scene_config_schemas import OccluderDefinition
from shadow2d.io.occluder_loader import (
    InvalidPolygonError,
    Transform2D,
    validate_definition,
    validate_polygon,
)
from shadow2d.utils.geometry_utils import signed_area


@pytest.mark.parametrize("points", [
    [[0.0, 0.0], [1.0, 0.0]],
    [[0.0, 0.0], [1.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
    [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.0, 0.001]],
    [[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]],
    [[0.0, 0.0], [2.0, 2.0], [2.0, 0.0], [0.0, 2.0]],
    [[0.0, 0.0], [3.0, 0.0], [3.0, 1.0], [1.0, -1.0], [0.0, 2.0]],
    [[0.0, 0.0], [1.0, np.nan], [0.0, 1.0]],
    [0.0, 1.0, 2.0],
])
def test_invalid_polygons_are_rejected(points) -> None:
    with pytest.raises(InvalidPolygonError):
        validate_polygon(points)


def test_validated_polygon_is_read_only(l_hexagon: np.ndarray) -> None:
    points = validate_polygon(l_hexagon)
    with pytest.raises(ValueError):
        points[0, 0] = 5.0


def test_definition_with_holes_is_rejected() -> None:
    definition = OccluderDefinition(paths=[
        [[0.0, 0.0], [3.0, 0.0], [3.0, 3.0], [0.0, 3.0]],
        [[1.0, 1.0], [2.0, 1.0], [2.0, 2.0], [1.0, 2.0]],
    ])
    with pytest.raises(InvalidPolygonError, match="holes"):
        validate_definition(definition)

    with pytest.raises(InvalidPolygonError):
        validate_definition(OccluderDefinition(paths=[]))


def test_register_assigns_increasing_ids(unit_square: np.ndarray, l_hexagon: np.ndarray) -> None:
    registry = OccluderRegistry()
    a = registry.register(unit_square, name="box")
    b = registry.register(l_hexagon)

    assert (a, b) == (0, 1)
    assert registry.ids() == [0, 1]
    assert len(registry) == 2
    assert 1 in registry
    assert registry.get(a).name == "box"
    assert registry.get(b).name == "occluder_1"


def test_registered_pieces_are_convex_and_frozen(l_hexagon: np.ndarray) -> None:
    registry = OccluderRegistry()
    occluder_id = registry.register(l_hexagon)
    shapes = registry.collision_shapes(occluder_id)

    assert len(shapes) == 2
    assert registry.get(occluder_id).decomposition_complete
    assert all(signed_area(s) > 0 for s in shapes)
    with pytest.raises(ValueError):
        shapes[0][0, 0] = 9.0


def test_unregister_drops_all_pieces(unit_square: np.ndarray, l_hexagon: np.ndarray) -> None:
    registry = OccluderRegistry()
    registry.register(unit_square)
    occluder_id = registry.register(l_hexagon)

    registry.unregister(occluder_id)
    assert occluder_id not in registry
    assert registry.ids() == [0]
    with pytest.raises(KeyError):
        registry.collision_shapes(occluder_id)
    with pytest.raises(KeyError):
        registry.unregister(occluder_id)

    # Ids are not reused
    assert registry.register(unit_square) == 2


def test_transform_does_not_resplit(l_hexagon: np.ndarray) -> None:
    registry = OccluderRegistry()
    occluder_id = registry.register(l_hexagon)
    pieces_before = registry.get(occluder_id).convex_polygons

    registry.set_transform(occluder_id, Transform2D(position=(10.0, -2.0), rotation=90.0))

    assert registry.get(occluder_id).convex_polygons is pieces_before
    world = registry.world_polygons(occluder_id)
    for local, moved in zip(pieces_before, world):
        expected = np.column_stack([-local[:, 1], local[:, 0]]) + [10.0, -2.0]
        assert np.allclose(moved, expected)


def test_update_geometry_decomposes_again(unit_square: np.ndarray, u_shape: np.ndarray) -> None:
    registry = OccluderRegistry()
    occluder_id = registry.register(unit_square)
    registry.update_geometry(occluder_id, u_shape)
    assert len(registry.collision_shapes(occluder_id)) == 3

    with pytest.raises(InvalidPolygonError):
        registry.update_geometry(occluder_id, [[0.0, 0.0], [1.0, 0.0]])
    assert len(registry.collision_shapes(occluder_id)) == 3


def test_query_circle_uses_world_bounds(unit_square: np.ndarray) -> None:
    registry = OccluderRegistry()
    near = registry.register(unit_square, Transform2D(position=(2.0, 0.0)))
    far = registry.register(unit_square, Transform2D(position=(10.0, 0.0)))

    assert registry.query_circle([0.0, 0.0], 9.5) == [near]
    assert registry.query_circle([0.0, 0.0], 10.5) == [near, far]
    assert registry.query_circle([0.0, 0.0], 1.0) == []


def test_register_many_reports_rejections(unit_square: np.ndarray, l_hexagon: np.ndarray) -> None:
    registry = OccluderRegistry()
    registered, rejected = registry.register_many([
        ("box", unit_square, None),
        ("sliver", [[0.0, 0.0], [1.0, 0.0]], None),
        ("wall", l_hexagon, Transform2D(position=(5.0, 5.0))),
    ], show_progress=True)

    assert registered == {"box": 0, "wall": 1}
    assert list(rejected) == ["sliver"]
