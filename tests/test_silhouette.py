from __future__ import annotations

import numpy as np
import pytest

from shadow2d.computation.silhouette import boundaries, facing_mask


def _regular_polygon(sides: int, radius: float = 1.0) -> np.ndarray:
    angles = 2 * np.pi * np.arange(sides) / sides
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


def test_square_lit_from_below(unit_square: np.ndarray) -> None:
    assert facing_mask([0.5, -5.0], unit_square).tolist() == [True, False, False, False]
    assert boundaries([0.5, -5.0], unit_square) == [0, 1]


def test_light_inside_has_no_boundaries(unit_square: np.ndarray) -> None:
    assert boundaries([0.5, 0.5], unit_square) == []


@pytest.mark.parametrize("sides", [3, 4, 6, 9])
@pytest.mark.parametrize("reverse", [False, True])
def test_exactly_two_boundaries_around_polygon(sides: int, reverse: bool) -> None:
    polygon = _regular_polygon(sides)
    if reverse:
        polygon = polygon[::-1]

    for angle in np.linspace(0.0, 2 * np.pi, 37)[:-1]:
        light = 5.0 * np.array([np.cos(angle), np.sin(angle)])
        found = boundaries(light, polygon)
        assert len(found) == 2
        assert found == sorted(found)


def test_light_on_edge_line_is_deterministic() -> None:
    triangle = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    first = boundaries([2.0, 0.0], triangle)
    assert first == [1, 2]
    assert boundaries([2.0, 0.0], triangle) == first
