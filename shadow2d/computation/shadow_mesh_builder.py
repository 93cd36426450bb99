"""
Shadow mesh construction.

Turns ordered silhouette vertices into a projected triangle strip and
provides the pooled vertex/index buffers the update loop writes into.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from numpy.typing import NDArray

from ..utils.geometry_utils import as_points, cross2

logger = logging.getLogger(__name__)

VALID_FRONT_FACES = ("ccw", "cw", None)


class ShadowMeshBuilder:
    """Builds shadow strips from silhouette vertices."""

    def __init__(self, front_face: Optional[str] = "ccw"):
        """
        Initialize the builder.

        Args:
            front_face: "ccw" or "cw" to orient every triangle to that winding,
                None to keep the raw alternating strip winding
        """
        if front_face not in VALID_FRONT_FACES:
            raise ValueError(f"front_face must be one of {VALID_FRONT_FACES}, got {front_face!r}")
        self.front_face = front_face

    def build(
        self,
        light_pos,
        points,
        boundary_indices: Sequence[int],
        projection_range: float
    ) -> Tuple[NDArray[np.float64], NDArray[np.int32]]:
        """
        Build the projected shadow strip.

        Each boundary point p yields a near vertex p and a far vertex pushed
        away from the light so that it lies at most projection_range from
        the light. Points already beyond the range get far == near.

        Args:
            light_pos: Light position (2,)
            points: (N, 2) polygon in world space
            boundary_indices: Ordered silhouette indices into points, at least 2
            projection_range: Maximum shadow reach measured from the light

        Returns:
            vertices: (2B, 2) array, near/far pairs interleaved
            triangles: (2B - 2, 3) int32 array

        Raises:
            ValueError: If fewer than 2 boundary indices are given
        """
        if len(boundary_indices) < 2:
            raise ValueError(f"Shadow mesh needs at least 2 boundary vertices, got {len(boundary_indices)}")

        pts = as_points(points)
        light = np.asarray(light_pos, dtype=np.float64)

        near = pts[list(boundary_indices)]
        directions = near - light
        distances = np.linalg.norm(directions, axis=1, keepdims=True)
        units = directions / np.where(distances > 1e-12, distances, 1.0)

        # Remaining reach after the occluder, measured from the light
        reach = np.clip(projection_range - distances, 0.0, None)
        far = near + units * reach

        vertices = np.empty((2 * len(near), 2), dtype=np.float64)
        vertices[0::2] = near
        vertices[1::2] = far

        triangles = strip_triangles(len(near))
        if self.front_face is not None:
            orient_triangles(vertices, triangles, ccw=self.front_face == "ccw")

        return vertices, triangles


def strip_triangles(boundary_count: int) -> NDArray[np.int32]:
    """
    Index buffer for a strip of near/far pairs.

    The winding alternates every other triangle so the strip faces stay
    consistently oriented.

    Args:
        boundary_count: Number of boundary points B

    Returns:
        (2B - 2, 3) int32 array
    """
    count = max(0, 2 * boundary_count - 2)
    triangles = np.empty((count, 3), dtype=np.int32)

    for index in range(count):
        if index % 2 == 0:
            triangles[index] = (index + 2, index + 1, index)
        else:
            triangles[index] = (index + 1, index, index + 2)

    return triangles


def orient_triangles(vertices: np.ndarray, triangles: np.ndarray, ccw: bool = True) -> NDArray[np.int32]:
    """
    Flip triangles in place so they all share one winding.

    Zero-area triangles (zero-length shadows) are left untouched.
    """
    for tri in triangles:
        a, b, c = vertices[tri[0]], vertices[tri[1]], vertices[tri[2]]
        area2 = cross2(b - a, c - a)
        if abs(area2) < 1e-12:
            continue
        if (area2 > 0) != ccw:
            tri[1], tri[2] = tri[2], tri[1]

    return triangles


class ShadowGeometry:
    """
    Reusable vertex/index buffer for one occluder under one light.

    Content is cleared and rewritten every tick. The backing arrays only
    grow, so steady-state updates do not allocate.
    """

    def __init__(self, vertex_capacity: int = 16, triangle_capacity: int = 16):
        self._vertices = np.zeros((max(1, vertex_capacity), 2), dtype=np.float64)
        self._triangles = np.zeros((max(1, triangle_capacity), 3), dtype=np.int32)
        self.vertex_count = 0
        self.triangle_count = 0
        self.occluder_id: Optional[int] = None

    def clear(self) -> None:
        """Forget the current content, keep the storage."""
        self.vertex_count = 0
        self.triangle_count = 0
        self.occluder_id = None

    def append(self, vertices: np.ndarray, triangles: np.ndarray) -> None:
        """
        Append a mesh part, offsetting its indices past the current vertices.

        Args:
            vertices: (V, 2) array
            triangles: (T, 3) indices into vertices
        """
        v_count = len(vertices)
        t_count = len(triangles)
        self._reserve(self.vertex_count + v_count, self.triangle_count + t_count)

        self._vertices[self.vertex_count:self.vertex_count + v_count] = vertices
        self._triangles[self.triangle_count:self.triangle_count + t_count] = \
            np.asarray(triangles, dtype=np.int32) + self.vertex_count

        self.vertex_count += v_count
        self.triangle_count += t_count

    def _reserve(self, vertex_total: int, triangle_total: int) -> None:
        if vertex_total > len(self._vertices):
            grown = np.zeros((max(vertex_total, 2 * len(self._vertices)), 2), dtype=np.float64)
            grown[:self.vertex_count] = self._vertices[:self.vertex_count]
            self._vertices = grown
        if triangle_total > len(self._triangles):
            grown = np.zeros((max(triangle_total, 2 * len(self._triangles)), 3), dtype=np.int32)
            grown[:self.triangle_count] = self._triangles[:self.triangle_count]
            self._triangles = grown

    @property
    def vertices(self) -> NDArray[np.float64]:
        """(V, 2) view of the active vertices."""
        return self._vertices[:self.vertex_count]

    @property
    def triangles(self) -> NDArray[np.int32]:
        """(T, 3) view of the active triangles."""
        return self._triangles[:self.triangle_count]

    @property
    def indices(self) -> NDArray[np.int32]:
        """Flat (3T,) triangle index list."""
        return self.triangles.reshape(-1)

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0

    def vertices3d(self, z: float = 0.0) -> NDArray[np.float64]:
        """(V, 3) copy of the vertices for 3D backends."""
        out = np.full((self.vertex_count, 3), z, dtype=np.float64)
        out[:, :2] = self.vertices
        return out

    def to_trimesh(self) -> trimesh.Trimesh:
        """Snapshot the buffer as an unprocessed trimesh in the z = 0 plane."""
        return trimesh.Trimesh(
            vertices=self.vertices3d(),
            faces=self.triangles.copy(),
            process=False
        )


class ShadowPool:
    """
    Fixed set of ShadowGeometry slots for one light.

    active_count marks how many leading slots hold this tick's shadows.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Shadow pool capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.slots: List[ShadowGeometry] = [ShadowGeometry() for _ in range(capacity)]
        self.active_count = 0

    def resize_active(self, count: int) -> int:
        """
        Move the active cursor towards count, clamped to capacity.

        Slots beyond the new cursor are released (cleared) but kept.

        Returns:
            The number of requested slots that did not fit.
        """
        target = min(count, self.capacity)

        while self.active_count > target:
            self.active_count -= 1
            self.slots[self.active_count].clear()
        while self.active_count < target:
            self.active_count += 1

        return max(0, count - self.capacity)

    def active(self) -> List[ShadowGeometry]:
        return self.slots[:self.active_count]

    def __len__(self) -> int:
        return self.capacity
