"""
Light disc mesh generation.

Builds the triangle fan a point light is drawn with before its shadow
geometry is rendered on top of it.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class LightMesh:
    """
    Triangle fan for a point light.

    Attributes:
        vertices: (S, 2) local-space positions, centre first
        uvs: (S, 2) texture coordinates in [0, 1]
        colors: (S, 4) RGBA colours
        triangles: (S - 1, 3) int32 indices, counter-clockwise
    """
    vertices: np.ndarray
    uvs: np.ndarray
    colors: np.ndarray
    triangles: np.ndarray


def create_light_mesh(
    radius: float,
    subdivisions: int = 32,
    inner: Sequence[float] = (1.0, 1.0, 1.0, 1.0),
    outer: Sequence[float] = (1.0, 0.92, 0.016, 1.0),
    intensity: float = 1.0
) -> LightMesh:
    """
    Create the light's disc mesh.

    The centre vertex carries the inner colour with the given intensity as
    alpha; the subdivisions - 1 rim vertices carry the outer colour with
    zero alpha, so the light fades towards its radius.

    Args:
        radius: Disc radius
        subdivisions: Total vertex count (centre plus rim), at least 4
        inner: Inner RGB(A) colour
        outer: Outer RGB(A) colour
        intensity: Alpha of the centre vertex

    Returns:
        LightMesh
    """
    if subdivisions < 4:
        raise ValueError(f"Light mesh needs at least 4 subdivisions, got {subdivisions}")
    if radius <= 0:
        raise ValueError(f"Light radius must be positive, got {radius}")

    rim_count = subdivisions - 1
    angles = np.pi / 2 + 2 * np.pi * np.arange(rim_count) / rim_count

    vertices = np.zeros((subdivisions, 2), dtype=np.float64)
    vertices[1:, 0] = radius * np.cos(angles)
    vertices[1:, 1] = radius * np.sin(angles)

    uvs = vertices / (2.0 * radius) + 0.5

    colors = np.zeros((subdivisions, 4), dtype=np.float64)
    colors[0, :3] = inner[:3]
    colors[0, 3] = intensity
    colors[1:, :3] = outer[:3]

    triangles = np.zeros((rim_count, 3), dtype=np.int32)
    for i in range(rim_count):
        triangles[i] = (0, i + 1, (i + 1) % rim_count + 1)

    logger.debug(f"Created light mesh: radius={radius}, {subdivisions} vertices")
    return LightMesh(vertices=vertices, uvs=uvs, colors=colors, triangles=triangles)
