"""
Silhouette extraction for convex occluders.

For a point light outside a convex polygon, the edges facing the light
form one contiguous chain. The two vertices where the chain starts and
ends are the tangent points of the shadow.
"""

import logging
from typing import List

import numpy as np
from numpy.typing import NDArray

from ..utils.geometry_utils import as_points

logger = logging.getLogger(__name__)


def facing_mask(light_pos, polygon) -> NDArray[np.bool_]:
    """
    Per-edge facing test.

    Edge k runs from vertex k to vertex k + 1. Its normal is the edge
    vector rotated 90 degrees counter-clockwise, and the edge "faces" when
    the normalized ray from the light to its end vertex has a positive dot
    product with that normal. A zero dot product (light on the edge's
    supporting line) counts as not facing.

    Args:
        light_pos: Light position (2,)
        polygon: (N, 2) convex polygon in world space

    Returns:
        (N,) boolean array
    """
    pts = as_points(polygon)
    light = np.asarray(light_pos, dtype=np.float64)

    ends = np.roll(pts, -1, axis=0)
    edges = ends - pts
    normals = np.column_stack([-edges[:, 1], edges[:, 0]])
    normal_len = np.linalg.norm(normals, axis=1, keepdims=True)
    normals = normals / np.where(normal_len > 1e-12, normal_len, 1.0)

    rays = ends - light
    ray_len = np.linalg.norm(rays, axis=1, keepdims=True)
    rays = rays / np.where(ray_len > 1e-12, ray_len, 1.0)

    facing = np.einsum('ij,ij->i', rays, normals)
    return facing > 0


def boundaries(light_pos, polygon) -> List[int]:
    """
    Find the silhouette vertices of a convex polygon seen from a light.

    Vertex k is a boundary vertex when the facing of edge k - 1 differs
    from the facing of edge k.

    Args:
        light_pos: Light position (2,)
        polygon: (N, 2) convex polygon in world space

    Returns:
        Ascending vertex indices. Exactly two for a light strictly outside
        the polygon; an empty list when the light is inside it.
    """
    mask = facing_mask(light_pos, polygon)
    changes = mask != np.roll(mask, 1)
    indices = [int(i) for i in np.flatnonzero(changes)]

    if len(indices) != 2:
        logger.debug(f"Degenerate silhouette: {len(indices)} boundary vertices for light at {light_pos}")

    return indices
