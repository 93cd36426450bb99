"""
Polygon Splitter
================

Convex decomposition of occluder polygons.

A concave polygon is cut at one of its reflex vertices. The cut follows
the supporting line of an edge incident to that vertex; when the full
line would split the polygon badly, the cut is shortened to the chord
ending at the first boundary crossing, and as a last resort a diagonal
to a visible vertex is used. Pieces are processed from an explicit
worklist with a global split budget, so adversarial or self-intersecting
input always terminates.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..config.scene_config_schemas import GeometryTolerances
from ..utils.geometry_utils import (
    Polygon,
    SplitPlane,
    as_points,
    concave_indices,
    cross2,
    get_normal,
    is_self_intersecting,
    is_zero_area,
    plane_intersection,
    polygon_winding,
    remove_duplicates,
    segments_intersect,
    signed_area,
    triangle_area,
)

logger = logging.getLogger(__name__)

# Relative area mismatch above which a cut is rejected
AREA_TOLERANCE = 1e-9


@dataclass
class SplitResult:
    """
    The two halves of a polygon clipped against a plane.

    Attributes:
        front: Points on the non-negative side, shared intersection points included.
        back: Points on the negative side, shared intersection points included.
    """
    front: Polygon
    back: Polygon


@dataclass
class DecompositionResult:
    """
    Outcome of a decomposition.

    Attributes:
        polygons: Convex pieces (best effort when incomplete).
        complete: False if the split budget ran out or a piece could not be cut.
        split_count: Number of splits performed.
    """
    polygons: List[Polygon] = field(default_factory=list)
    complete: bool = True
    split_count: int = 0


def _crossing(plane: SplitPlane, start: np.ndarray, end: np.ndarray, sqr_threshold: float) -> np.ndarray:
    """Intersection of a straddling segment, snapped to an endpoint closer than the threshold."""
    # Straddling segments are never parallel to the plane
    point, _ = plane_intersection(plane, start, end)

    nearest = min((start, end), key=lambda vertex: float(np.sum((point - vertex) ** 2)))
    if float(np.sum((point - nearest) ** 2)) < sqr_threshold:
        return np.array(nearest, dtype=np.float64)
    return point


def split(plane: SplitPlane, path: np.ndarray, sqr_threshold: float) -> SplitResult:
    """
    Clip a closed path against a plane.

    The path keeps its winding in both halves. Intersection points are
    added to both halves, and near-duplicate points are removed. An
    intersection point that falls within the duplicate distance of a
    path vertex is replaced by that vertex, so no vertex of the input is
    lost to de-duplication.

    Args:
        plane: The splitting plane.
        path: (N, 2) closed polygon.
        sqr_threshold: Squared distance under which two points are the same.

    Returns:
        SplitResult with front (distance >= 0) and back (distance < 0) paths.
    """
    path = as_points(path)
    front = []
    back = []

    distances = plane.distances(path)
    previous = path[-1]
    prev_dist = distances[-1]

    for current, curr_dist in zip(path, distances):
        if prev_dist < 0:
            if curr_dist < 0:
                back.append(current)
            else:
                point = _crossing(plane, previous, current, sqr_threshold)
                back.append(point)
                front.append(point)
                front.append(current)
        else:
            if curr_dist >= 0:
                front.append(current)
            else:
                point = _crossing(plane, previous, current, sqr_threshold)
                back.append(point)
                back.append(current)
                front.append(point)

        previous, prev_dist = current, curr_dist

    return SplitResult(
        front=remove_duplicates(front, sqr_threshold),
        back=remove_duplicates(back, sqr_threshold)
    )


def _cyclic_slice(points: Polygon, start: int, stop: int) -> Polygon:
    """Vertices start..stop inclusive, wrapping around the end of the path."""
    length = len(points)
    count = (stop - start) % length + 1
    return points[(start + np.arange(count)) % length]


class PolygonSplitter:
    """Breaks polygons down into convex pieces."""

    def __init__(self, tolerances: Optional[GeometryTolerances] = None):
        """
        Initialize the splitter.

        Args:
            tolerances: Duplicate, collinearity and split-budget settings
        """
        self.tolerances = tolerances or GeometryTolerances()

    def decompose(self, polygon) -> List[Polygon]:
        """
        Decompose a polygon into convex pieces.

        Args:
            polygon: (N, 2) polygon, either winding

        Returns:
            List of convex (N_i, 2) polygons. A convex input is returned unchanged.
        """
        return self.decompose_with_report(polygon).polygons

    def decompose_with_report(self, polygon) -> DecompositionResult:
        """
        Decompose a polygon and report whether the decomposition is complete.

        Pieces are handled depth first, front half before back half. Every
        accepted cut lowers the sum of (vertex count - 3) over all pieces,
        so a simple polygon with N vertices needs at most N - 3 splits.

        Args:
            polygon: (N, 2) polygon, either winding

        Returns:
            DecompositionResult
        """
        tol = self.tolerances
        result = DecompositionResult()

        points = as_points(polygon)
        # Cuts are computed on the counter-clockwise path; pieces are handed back in the input winding
        clockwise = polygon_winding(points) < 0
        if clockwise:
            points = points[::-1]

        pending = [points]

        while pending:
            piece = pending.pop()
            reflex = concave_indices(piece, tol.collinearity)

            if not reflex:
                result.polygons.append(piece)
                continue

            if result.split_count >= tol.max_splits:
                logger.warning(f"Split budget of {tol.max_splits} exhausted, "
                               f"returning {len(pending) + 1} unsplit piece(s) as-is")
                result.polygons.append(piece)
                result.polygons.extend(reversed(pending))
                result.complete = False
                break

            halves = self._split_at_reflex(piece, reflex)
            if halves is None:
                logger.warning(f"Could not cut concave piece with {len(piece)} vertices, keeping it as-is")
                result.polygons.append(piece)
                result.complete = False
                continue

            result.split_count += 1
            front, back = halves
            # Stack order: front is popped first
            pending.append(back)
            pending.append(front)

        if clockwise:
            result.polygons = [piece[::-1].copy() for piece in result.polygons]

        logger.debug(f"Decomposed polygon into {len(result.polygons)} piece(s) "
                     f"with {result.split_count} split(s)")
        return result

    def _split_at_reflex(self, piece: Polygon, reflex: List[int]) -> Optional[Tuple[Polygon, Polygon]]:
        """
        Cut a piece at the first reflex vertex that admits a valid cut.

        Returns:
            (front, back), or None if no candidate cut is valid.
        """
        for current in reflex:
            for first, second in self._candidate_cuts(piece, current):
                if self._accept(piece, first, second):
                    return first, second

        return None

    def _candidate_cuts(self, piece: Polygon, current: int) -> Iterator[Tuple[Polygon, Polygon]]:
        """
        Candidate cuts at one reflex vertex, in order of preference.

        1. Clip along the line through (current, next), then (previous, current).
        2. The same lines, cut only up to the first boundary crossing.
        3. Diagonals to visible vertices, nearest first.
        """
        length = len(piece)
        prev_idx = (current - 1) % length
        next_idx = (current + 1) % length

        for start, end in ((current, next_idx), (prev_idx, current)):
            plane = SplitPlane(normal=get_normal(piece[end], piece[start]), anchor=piece[end])
            halves = split(plane, piece, self.tolerances.duplicate_sqr_distance)

            front = self._remove_collinear(halves.front)
            back = self._remove_collinear(halves.back)
            if not (self._degenerate(front) or self._degenerate(back)):
                yield front, back

        for behind in (next_idx, prev_idx):
            chord = self._chord_cut(piece, current, behind)
            if chord is not None:
                yield chord

        for target in self._visible_vertices(piece, current):
            yield _cyclic_slice(piece, current, target), _cyclic_slice(piece, target, current)

    def _chord_cut(self, piece: Polygon, current: int, behind: int) -> Optional[Tuple[Polygon, Polygon]]:
        """
        Cut from a reflex vertex along the extension of its edge to `behind`.

        The ray starts at the reflex vertex, points away from `behind` and
        stops at the nearest boundary edge. The reflex vertex becomes a
        straight-angle vertex in one half and is dropped there.

        Returns:
            (first, second), or None if the ray misses or ends too close to a vertex.
        """
        length = len(piece)
        origin = piece[current]
        direction = origin - piece[behind]

        best = None
        for j in range(length):
            k = (j + 1) % length
            if j == current or k == current:
                continue

            edge = piece[k] - piece[j]
            denom = cross2(direction, edge)
            if denom == 0.0:
                continue

            offset = piece[j] - origin
            t = cross2(offset, edge) / denom
            s = cross2(offset, direction) / denom
            if t <= 0.0 or s < 0.0 or s > 1.0:
                continue
            if best is None or t < best[0]:
                best = (t, j)

        if best is None:
            return None

        t, j = best
        k = (j + 1) % length
        hit = origin + t * direction

        sqr_threshold = self.tolerances.duplicate_sqr_distance
        for vertex in (origin, piece[j], piece[k]):
            if float(np.sum((hit - vertex) ** 2)) < sqr_threshold:
                return None

        first = np.vstack([_cyclic_slice(piece, current, j), hit])
        second = np.vstack([hit, _cyclic_slice(piece, k, current)])

        # The reflex vertex sits on the straight segment between hit and behind
        if behind == (current + 1) % length:
            first = first[1:]
        else:
            second = second[:-1]

        return first, second

    def _visible_vertices(self, piece: Polygon, current: int) -> List[int]:
        """
        Vertices that form a diagonal with a reflex vertex, nearest first.

        The segment must leave the reflex vertex into the interior and must
        not touch any edge that is not incident to either endpoint.
        """
        length = len(piece)
        origin = piece[current]
        before = piece[(current - 1) % length]
        after = piece[(current + 1) % length]

        candidates = []
        for target in range(length):
            if (target - current) % length in (0, 1, length - 1):
                continue

            point = piece[target]
            ray = point - origin
            # Exterior wedge of a reflex vertex: right of both incident edges
            if cross2(origin - before, ray) <= 0 and cross2(after - origin, ray) <= 0:
                continue

            incident = {current, (current - 1) % length, target, (target - 1) % length}
            blocked = any(
                segments_intersect(origin, point, piece[m], piece[(m + 1) % length])
                for m in range(length) if m not in incident
            )
            if not blocked:
                candidates.append((float(ray @ ray), target))

        return [target for _, target in sorted(candidates)]

    def _accept(self, piece: Polygon, first: Polygon, second: Polygon) -> bool:
        """
        Check that a cut tiles the piece with two simple counter-clockwise halves.

        The combined vertex count may grow by at most two, which bounds
        the number of splits.
        """
        if len(first) < 3 or len(second) < 3:
            return False
        if len(first) + len(second) > len(piece) + 2:
            return False

        first_area = signed_area(first)
        second_area = signed_area(second)
        if first_area <= 0 or second_area <= 0:
            return False

        area = signed_area(piece)
        if abs(first_area + second_area - area) > AREA_TOLERANCE * max(1.0, abs(area)):
            return False

        return not (is_self_intersecting(first) or is_self_intersecting(second))

    def _degenerate(self, path: Polygon) -> bool:
        """Fewer than 3 points, or a zero-area triangle."""
        if len(path) < 3:
            return True
        return len(path) == 3 and is_zero_area(path[0], path[1], path[2], self.tolerances.collinearity)

    def _remove_collinear(self, path: Polygon) -> Polygon:
        """
        Drop vertices whose triangle with both neighbours has zero area.

        Clipping a concave polygon can leave zero-width spikes along the
        cutting line; these vertices are removed until none remain.
        """
        points = list(path)
        threshold = self.tolerances.collinearity

        changed = True
        while changed and len(points) > 3:
            changed = False
            for i in range(len(points)):
                prev_pt = points[i - 1]
                next_pt = points[(i + 1) % len(points)]
                if triangle_area(prev_pt, points[i], next_pt) < threshold:
                    del points[i]
                    changed = True
                    break

        if not points:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array(points, dtype=np.float64)


def decompose(polygon, tolerances: Optional[GeometryTolerances] = None) -> List[Polygon]:
    """Convenience wrapper around PolygonSplitter.decompose."""
    return PolygonSplitter(tolerances).decompose(polygon)
