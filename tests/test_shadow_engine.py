from __future__ import annotations

import numpy as np
import pytest

from shadow2d.computation.occluder_registry import OccluderRegistry
from shadow2d.computation.shadow_engine import LightSource, LightUpdateLoop
from shadow2d.io.occluder_loader import Transform2D


def _loop_with(polygons, **light_kwargs) -> LightUpdateLoop:
    registry = OccluderRegistry()
    for polygon, position in polygons:
        registry.register(polygon, Transform2D(position=position))

    params = dict(position=(0.5, -5.0), radius=20.0, projection_range=10.0)
    params.update(light_kwargs)
    loop = LightUpdateLoop(registry)
    loop.add_light(LightSource("main", **params))
    return loop


def test_single_square_shadow(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))])
    assert loop.update(0.0) == ["main"]

    geometries = loop.active_geometries("main")
    assert len(geometries) == 1
    geometry = geometries[0]
    assert geometry.occluder_id == 0
    assert geometry.vertices.shape == (4, 2)
    assert geometry.triangles.shape == (2, 3)

    light = np.array([0.5, -5.0])
    far = geometry.vertices[1::2]
    assert np.allclose(np.linalg.norm(far - light, axis=1), 10.0)


def test_concave_occluder_shadows_every_piece(l_hexagon: np.ndarray) -> None:
    loop = _loop_with([(l_hexagon, (0.0, 0.0))])
    loop.update(0.0)

    geometry = loop.active_geometries("main")[0]
    assert geometry.vertices.shape == (8, 2)
    assert geometry.indices.size == 3 * 4


def test_light_inside_occluder_casts_nothing(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], position=(0.5, 0.5))
    loop.update(0.0)

    geometry = loop.active_geometries("main")[0]
    assert geometry.is_empty
    assert geometry.occluder_id == 0
    assert loop.draw_calls()[0].geometries == []


def test_light_on_occluder_edge_casts_nothing(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], position=(0.5, 0.0))
    loop.update(0.0)

    geometry = loop.active_geometries("main")[0]
    assert geometry.is_empty
    assert loop.stats["pieces_skipped"] == 0


def test_capacity_drops_extra_occluders(unit_square: np.ndarray) -> None:
    loop = _loop_with(
        [(unit_square, (0.0, 0.0)), (unit_square, (3.0, 0.0)), (unit_square, (6.0, 0.0))],
        position=(3.5, -5.0), shadow_capacity=2)
    loop.update(0.0)

    geometries = loop.active_geometries("main")
    assert [g.occluder_id for g in geometries] == [0, 1]
    assert loop.stats['occluders_dropped'] == 1

    # Move away so only the first occluder stays in range
    loop.set_light_position("main", (-3.0, 0.5))
    loop.get_light("main").radius = 3.5
    loop.update(0.0)
    assert [g.occluder_id for g in loop.active_geometries("main")] == [0]


def test_update_frequency_skips_ticks(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], update_frequency=0.5)
    assert loop.update(0.1) == ["main"]
    before = loop.active_geometries("main")[0].vertices.copy()

    loop.set_light_position("main", (-4.0, 0.5))
    assert loop.update(0.1) == []
    assert np.array_equal(loop.active_geometries("main")[0].vertices, before)

    assert loop.update(0.5) == ["main"]
    assert not np.array_equal(loop.active_geometries("main")[0].vertices, before)


def test_update_timer_carries_leftover_time(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], update_frequency=0.5)
    assert loop.update(0.1) == ["main"]
    assert loop.update(0.3) == []
    # 0.6 elapsed: recompute and keep 0.1 for the next period
    assert loop.update(0.3) == ["main"]
    assert loop.update(0.45) == ["main"]
    assert loop.update(0.2) == []


def test_update_light_forces_recompute(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], update_frequency=10.0)
    loop.update(0.0)
    before = loop.active_geometries("main")[0].vertices.copy()

    loop.set_light_position("main", (-4.0, 0.5))
    assert loop.update(0.1) == []
    loop.update_light("main")
    assert not np.array_equal(loop.active_geometries("main")[0].vertices, before)


def test_results_are_deterministic(u_shape: np.ndarray, unit_square: np.ndarray) -> None:
    scene = [(u_shape, (0.0, 0.0)), (unit_square, (4.0, 1.0))]
    a = _loop_with(scene, position=(1.5, -3.0))
    b = _loop_with(scene, position=(1.5, -3.0))
    a.update(0.0)
    b.update(0.0)

    for ga, gb in zip(a.active_geometries("main"), b.active_geometries("main")):
        assert np.array_equal(ga.vertices, gb.vertices)
        assert np.array_equal(ga.triangles, gb.triangles)


def test_lights_have_separate_pools(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))])
    loop.add_light(LightSource("second", position=(-5.0, 0.5), radius=20.0, projection_range=10.0))
    loop.update(0.0)

    first = loop.active_geometries("main")[0]
    second = loop.active_geometries("second")[0]
    assert first is not second
    assert not np.array_equal(first.vertices, second.vertices)


def test_draw_calls(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))], intensity=0.4, subdivisions=10)
    loop.update(0.0)

    (call,) = loop.draw_calls()
    assert call.light_id == "main"
    assert np.allclose(call.position, [0.5, -5.0])
    assert call.intensity == 0.4
    assert call.light_mesh.vertices.shape == (10, 2)
    assert len(call.geometries) == 1


def test_light_management(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))])
    with pytest.raises(ValueError):
        loop.add_light(LightSource("main"))

    loop.remove_light("main")
    assert loop.light_ids() == []
    with pytest.raises(KeyError):
        loop.remove_light("main")
    with pytest.raises(KeyError):
        loop.active_geometries("main")


def test_performance_summary(unit_square: np.ndarray) -> None:
    loop = _loop_with([(unit_square, (0.0, 0.0))])
    loop.update(0.0)
    loop.update(0.0)

    summary = loop.get_performance_summary()
    assert summary['ticks'] == 2
    assert summary['occluders_processed'] == 2
    assert summary['average_tick_time'] >= 0
