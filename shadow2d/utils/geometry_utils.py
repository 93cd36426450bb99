"""
Geometry utilities for 2D occluder decomposition and shadow projection.

Provides:
- get_normal / SplitPlane / plane_intersection: splitting-plane primitives
- triangle_area / signed_area / polygon_winding: area and collinearity tests
- remove_duplicates / concave_indices / is_convex: polygon clean-up and classification
- build_transform_matrix / apply_transform: occluder-local to world transforms
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import logging
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Two points are considered the "same" if the squared distance is less than this threshold
SQR_DIST_THRESHOLD = 1e-2

# Three points are considered to be on the same line if the triangle area is less than this threshold
COLLINEARITY_THRESHOLD = 1e-3

# Upper bound on split operations per top-level decomposition
MAX_SPLITS = 20

# Type aliases
Point2 = NDArray[np.float64]   # (2,)
Polygon = NDArray[np.float64]  # (N, 2)


def as_points(points) -> Polygon:
    """Convert a sequence of (x, y) pairs into an (N, 2) float64 array."""
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def cross2(a: np.ndarray, b: np.ndarray) -> float:
    """z component of the cross product of two 2D vectors."""
    return float(a[0] * b[1] - a[1] * b[0])


def get_normal(start: np.ndarray, end: np.ndarray) -> Point2:
    """
    Get the unit normal of the segment start -> end.

    The edge vector is rotated 90 degrees counter-clockwise, so for a
    counter-clockwise polygon the normal of every edge points inward.

    Args:
        start: Segment start point.
        end: Segment end point.

    Returns:
        Unit normal, or a zero vector for a zero-length segment.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    normal = np.array([-dy, dx], dtype=np.float64)

    length = np.hypot(normal[0], normal[1])
    if length < 1e-12:
        return np.zeros(2, dtype=np.float64)

    return normal / length


@dataclass(frozen=True)
class SplitPlane:
    """
    A directed line given by a unit normal and an anchor point.

    Points with a non-negative distance are on the front side.
    """
    normal: Point2
    anchor: Point2

    @classmethod
    def through(cls, start: np.ndarray, end: np.ndarray) -> "SplitPlane":
        """Plane containing segment start -> end, anchored at start."""
        return cls(normal=get_normal(start, end), anchor=np.array(start, dtype=np.float64))

    def distance(self, point: np.ndarray) -> float:
        """Signed perpendicular distance of point to the plane."""
        return float(np.dot(self.normal, np.asarray(point) - self.anchor))

    def distances(self, points: np.ndarray) -> NDArray[np.float64]:
        """Vectorized signed distances for an (N, 2) array."""
        return (np.asarray(points) - self.anchor) @ self.normal


def side(plane: SplitPlane, point: np.ndarray) -> int:
    """Return +1 for the front side (distance >= 0), -1 for the back side."""
    return 1 if plane.distance(point) >= 0 else -1


def plane_intersection(
    plane: SplitPlane,
    start: np.ndarray,
    end: np.ndarray
) -> Optional[Tuple[Point2, float]]:
    """
    Intersect segment start -> end with the plane.

    Args:
        plane: The splitting plane.
        start: Segment start point.
        end: Segment end point.

    Returns:
        (point, t) where t is the parametric distance along start -> end,
        or None if the segment is parallel to the plane.
    """
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)

    d_start = plane.distance(start)
    d_end = plane.distance(end)
    denom = d_start - d_end

    if denom == 0.0:
        return None

    t = d_start / denom
    return start + t * (end - start), t


def triangle_area(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """
    Unsigned area of the triangle abc.

    Used as a collinearity test: three points are treated as lying on one
    line when the area is below COLLINEARITY_THRESHOLD.
    """
    ab = np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    ac = np.asarray(c, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    return 0.5 * abs(cross2(ab, ac))


def is_zero_area(a, b, c, threshold: float = COLLINEARITY_THRESHOLD) -> bool:
    """True if the triangle abc is degenerate (collinear points)."""
    return triangle_area(a, b, c) < threshold


def signed_area(polygon: np.ndarray) -> float:
    """Shoelace area, positive for counter-clockwise winding."""
    pts = np.asarray(polygon, dtype=np.float64)
    if len(pts) < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def polygon_winding(polygon: np.ndarray, eps: float = 1e-12) -> int:
    """Return +1 for counter-clockwise, -1 for clockwise and 0 for degenerate polygons."""
    area = signed_area(polygon)
    if abs(area) <= eps:
        return 0
    return 1 if area > 0 else -1


def remove_duplicates(points: Sequence, sqr_threshold: float = SQR_DIST_THRESHOLD) -> Polygon:
    """
    Remove near-duplicate points.

    A point is dropped if its squared distance to the previously kept
    point is below the threshold. The closing pair (last, first) is
    checked as well, so no two consecutive points of the closed path
    coincide afterwards.

    Args:
        points: Sequence of 2D points.
        sqr_threshold: Squared distance under which two points are the same.

    Returns:
        (M, 2) array with M <= N, original order preserved.
    """
    pts = as_points(points)
    kept: List[np.ndarray] = []

    def _close(a, b):
        diff = a - b
        return diff[0] * diff[0] + diff[1] * diff[1] < sqr_threshold

    for point in pts:
        if kept and _close(point, kept[-1]):
            continue
        kept.append(point)

    while len(kept) > 1 and _close(kept[-1], kept[0]):
        kept.pop()

    if not kept:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array(kept, dtype=np.float64)


def vertex_turns(polygon: np.ndarray, collinearity: float = COLLINEARITY_THRESHOLD) -> Tuple[List[int], List[int]]:
    """
    Classify vertices by the turn direction of their two incident edges.

    Near-collinear vertices (triangle area below `collinearity`) are skipped.

    Returns:
        (positive, negative) lists of vertex indices, where positive means
        a counter-clockwise (left) turn.
    """
    pts = np.asarray(polygon, dtype=np.float64)
    length = len(pts)
    positive: List[int] = []
    negative: List[int] = []

    for i in range(length):
        prev_pt = pts[i - 1]
        curr_pt = pts[i]
        next_pt = pts[(i + 1) % length]

        if triangle_area(prev_pt, curr_pt, next_pt) < collinearity:
            continue

        turn = cross2(curr_pt - prev_pt, next_pt - curr_pt)
        if turn < 0:
            negative.append(i)
        else:
            positive.append(i)

    return positive, negative


def concave_indices(polygon: np.ndarray, collinearity: float = COLLINEARITY_THRESHOLD) -> List[int]:
    """
    Indices of reflex (concave) vertices.

    The polygon's winding decides which turn direction is reflex. If the
    winding is degenerate the minority turn group is returned instead.
    """
    positive, negative = vertex_turns(polygon, collinearity)

    winding = polygon_winding(polygon)
    if winding > 0:
        return negative
    if winding < 0:
        return positive

    return positive if len(negative) > len(positive) else negative


def is_convex(polygon: np.ndarray, collinearity: float = COLLINEARITY_THRESHOLD) -> bool:
    """True if the polygon has no reflex vertex."""
    return len(concave_indices(polygon, collinearity)) == 0


def point_in_convex_polygon(point: np.ndarray, polygon: np.ndarray) -> bool:
    """Inclusive point-in-polygon test for a convex polygon of either winding."""
    pts = np.asarray(polygon, dtype=np.float64)
    p = np.asarray(point, dtype=np.float64)
    sign = 0

    for i in range(len(pts)):
        a = pts[i]
        b = pts[(i + 1) % len(pts)]
        c = cross2(b - a, p - a)
        if abs(c) < 1e-12:
            continue
        s = 1 if c > 0 else -1
        if sign == 0:
            sign = s
        elif s != sign:
            return False

    return True


def segments_intersect(p1, p2, q1, q2) -> bool:
    """Proper or touching intersection test for segments p1p2 and q1q2."""
    d1 = cross2(q2 - q1, p1 - q1)
    d2 = cross2(q2 - q1, p2 - q1)
    d3 = cross2(p2 - p1, q1 - p1)
    d4 = cross2(p2 - p1, q2 - p1)

    if ((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0)):
        return True

    def _on_segment(a, b, c, d):
        return abs(d) < 1e-12 and min(a[0], b[0]) - 1e-12 <= c[0] <= max(a[0], b[0]) + 1e-12 \
            and min(a[1], b[1]) - 1e-12 <= c[1] <= max(a[1], b[1]) + 1e-12

    return (_on_segment(q1, q2, p1, d1) or _on_segment(q1, q2, p2, d2)
            or _on_segment(p1, p2, q1, d3) or _on_segment(p1, p2, q2, d4))


def is_self_intersecting(polygon: np.ndarray) -> bool:
    """True if any two non-adjacent edges of the closed polygon intersect."""
    pts = np.asarray(polygon, dtype=np.float64)
    n = len(pts)
    if n < 4:
        return False

    for i in range(n):
        a1, a2 = pts[i], pts[(i + 1) % n]
        for j in range(i + 2, n):
            # Edges sharing the closing vertex are adjacent
            if i == 0 and j == n - 1:
                continue
            b1, b2 = pts[j], pts[(j + 1) % n]
            if segments_intersect(a1, a2, b1, b2):
                return True

    return False


def build_transform_matrix(
    position: Sequence[float] = (0.0, 0.0),
    rotation_deg: float = 0.0,
    scale: Sequence[float] = (1.0, 1.0)
) -> NDArray[np.float64]:
    """
    Build a 3x3 homogeneous 2D transform: translation * rotation * scale.

    Args:
        position: World translation [x, y].
        rotation_deg: Counter-clockwise rotation in degrees.
        scale: Scale factors [sx, sy].

    Returns:
        3x3 homogeneous transformation matrix.
    """
    angle_rad = np.radians(rotation_deg)
    cos_a, sin_a = np.cos(angle_rad), np.sin(angle_rad)
    sx, sy = float(scale[0]), float(scale[1])

    matrix = np.array([
        [cos_a * sx, -sin_a * sy, float(position[0])],
        [sin_a * sx, cos_a * sy, float(position[1])],
        [0.0, 0.0, 1.0]
    ])
    return matrix


def apply_transform(points: np.ndarray, matrix: np.ndarray) -> Polygon:
    """Apply a 3x3 homogeneous transform to an (N, 2) array of points."""
    pts = np.asarray(points, dtype=np.float64)
    return pts @ matrix[:2, :2].T + matrix[:2, 2]
