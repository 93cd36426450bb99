from __future__ import annotations

import numpy as np
import pytest

from shadow2d.computation.shadow_mesh_builder import (
    ShadowGeometry,
    ShadowMeshBuilder,
    ShadowPool,
    strip_triangles,
)
from shadow2d.utils.geometry_utils import cross2

LIGHT = np.array([0.5, -5.0])


def _tri_area2(vertices: np.ndarray, tri: np.ndarray) -> float:
    a, b, c = vertices[tri[0]], vertices[tri[1]], vertices[tri[2]]
    return cross2(b - a, c - a)


def test_square_shadow_counts(unit_square: np.ndarray) -> None:
    vertices, triangles = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 10.0)
    assert vertices.shape == (4, 2)
    assert triangles.shape == (2, 3)
    assert triangles.reshape(-1).size == 6
    assert triangles.min() >= 0
    assert triangles.max() < len(vertices)


def test_near_and_far_vertices(unit_square: np.ndarray) -> None:
    vertices, _ = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 10.0)
    assert np.allclose(vertices[0], [0.0, 0.0])
    assert np.allclose(vertices[2], [1.0, 0.0])

    for near, far in ((vertices[0], vertices[1]), (vertices[2], vertices[3])):
        assert np.linalg.norm(far - LIGHT) == pytest.approx(10.0)
        # Far vertex lies on the ray from the light through the near vertex
        assert cross2(near - LIGHT, far - LIGHT) == pytest.approx(0.0, abs=1e-9)


def test_far_equals_near_beyond_range(unit_square: np.ndarray) -> None:
    vertices, _ = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 3.0)
    assert np.allclose(vertices[0::2], vertices[1::2])


@pytest.mark.parametrize("front_face, sign", [("ccw", 1.0), ("cw", -1.0)])
def test_triangles_share_one_winding(unit_square: np.ndarray, front_face: str, sign: float) -> None:
    vertices, triangles = ShadowMeshBuilder(front_face).build(LIGHT, unit_square, [0, 1], 10.0)
    for tri in triangles:
        assert sign * _tri_area2(vertices, tri) > 0


def test_raw_strip_order(unit_square: np.ndarray) -> None:
    _, triangles = ShadowMeshBuilder(None).build(LIGHT, unit_square, [0, 1], 10.0)
    assert triangles.tolist() == [[2, 1, 0], [2, 1, 3]]


def test_strip_length_for_more_boundaries() -> None:
    triangles = strip_triangles(3)
    assert triangles.shape == (4, 3)
    assert triangles.tolist() == [[2, 1, 0], [2, 1, 3], [4, 3, 2], [4, 3, 5]]


def test_too_few_boundaries(unit_square: np.ndarray) -> None:
    with pytest.raises(ValueError):
        ShadowMeshBuilder().build(LIGHT, unit_square, [0], 10.0)


def test_invalid_front_face() -> None:
    with pytest.raises(ValueError):
        ShadowMeshBuilder("sideways")


def test_geometry_append_offsets_indices(unit_square: np.ndarray) -> None:
    vertices, triangles = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 10.0)
    geometry = ShadowGeometry(vertex_capacity=2, triangle_capacity=1)
    geometry.append(vertices, triangles)
    geometry.append(vertices, triangles)

    assert geometry.vertices.shape == (8, 2)
    assert geometry.triangles.shape == (4, 3)
    assert np.array_equal(geometry.triangles[2:], triangles + 4)
    assert geometry.indices.size == 12


def test_geometry_clear_keeps_storage(unit_square: np.ndarray) -> None:
    vertices, triangles = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 10.0)
    geometry = ShadowGeometry()
    geometry.append(vertices, triangles)
    geometry.occluder_id = 3
    storage = geometry._vertices

    geometry.clear()
    assert geometry.is_empty
    assert geometry.occluder_id is None
    assert len(geometry.vertices) == 0

    geometry.append(vertices, triangles)
    assert geometry._vertices is storage


def test_geometry_exports(unit_square: np.ndarray) -> None:
    vertices, triangles = ShadowMeshBuilder().build(LIGHT, unit_square, [0, 1], 10.0)
    geometry = ShadowGeometry()
    geometry.append(vertices, triangles)

    v3 = geometry.vertices3d(z=1.5)
    assert v3.shape == (4, 3)
    assert np.all(v3[:, 2] == 1.5)

    mesh = geometry.to_trimesh()
    assert len(mesh.vertices) == 4
    assert len(mesh.faces) == 2


def test_pool_resize_active() -> None:
    pool = ShadowPool(3)
    assert len(pool) == 3
    assert pool.resize_active(5) == 2
    assert pool.active_count == 3

    pool.slots[2].occluder_id = 7
    assert pool.resize_active(1) == 0
    assert pool.active_count == 1
    assert len(pool.active()) == 1
    assert pool.slots[2].occluder_id is None


def test_pool_needs_capacity() -> None:
    with pytest.raises(ValueError):
        ShadowPool(0)
