"""
Occluder model definitions and polygon ingestion.

This module provides:
- Core data structures: Transform2D, Occluder
- InvalidPolygonError and validate_polygon for ingestion checks

Polygons are validated here, before they ever reach the splitter.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from ..config.scene_config_schemas import GeometryTolerances, OccluderDefinition
from ..utils.geometry_utils import (
    Polygon,
    build_transform_matrix,
    is_self_intersecting,
    signed_area,
)

logger = logging.getLogger(__name__)


class InvalidPolygonError(ValueError):
    """Raised when an occluder polygon is rejected at ingestion."""


# =============================================================================
# Core Data Structures
# =============================================================================

@dataclass
class Transform2D:
    """
    World transform shared by all pieces of an occluder.

    Attributes:
        position: Translation [x, y].
        rotation: Counter-clockwise rotation in degrees.
        scale: Scale factors [sx, sy].
    """
    position: Tuple[float, float] = (0.0, 0.0)
    rotation: float = 0.0
    scale: Tuple[float, float] = (1.0, 1.0)

    @classmethod
    def from_definition(cls, definition: OccluderDefinition) -> "Transform2D":
        return cls(
            position=(definition.position[0], definition.position[1]),
            rotation=definition.rotation,
            scale=(definition.scale[0], definition.scale[1])
        )

    def matrix(self) -> NDArray[np.float64]:
        """3x3 homogeneous matrix."""
        return build_transform_matrix(self.position, self.rotation, self.scale)


@dataclass
class Occluder:
    """
    An entity whose polygon blocks light.

    The convex pieces are computed once in local space and owned by the
    occluder; the transform is applied at query time.

    Attributes:
        id: Registry identifier.
        name: Descriptive name.
        polygon: Validated source polygon in local space (read-only).
        convex_polygons: Convex decomposition in local space (read-only arrays).
        transform: World transform.
        decomposition_complete: False if the splitter returned a best-effort result.
    """
    id: int
    name: str
    polygon: Polygon = field(repr=False)
    convex_polygons: List[Polygon] = field(default_factory=list, repr=False)
    transform: Transform2D = field(default_factory=Transform2D)
    decomposition_complete: bool = True


# =============================================================================
# Validation
# =============================================================================

def freeze(points: np.ndarray) -> Polygon:
    """Return a read-only float64 copy."""
    frozen = np.array(points, dtype=np.float64)
    frozen.flags.writeable = False
    return frozen


def validate_polygon(
    points,
    tolerances: Optional[GeometryTolerances] = None,
    check_simple: bool = True
) -> Polygon:
    """
    Validate an occluder polygon.

    Args:
        points: Sequence of (x, y) pairs
        tolerances: Duplicate and collinearity thresholds
        check_simple: Also reject self-intersecting polygons

    Returns:
        (N, 2) read-only float64 array

    Raises:
        InvalidPolygonError: If the polygon cannot be used as an occluder
    """
    tol = tolerances or GeometryTolerances()

    try:
        pts = np.asarray(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidPolygonError(f"Polygon is not a numeric point list: {e}") from e

    if pts.ndim != 2 or pts.shape[1] != 2:
        raise InvalidPolygonError(f"Polygon must be an (N, 2) point list, got shape {pts.shape}")

    if len(pts) < 3:
        raise InvalidPolygonError(f"Polygon needs at least 3 points, got {len(pts)}")

    if not np.all(np.isfinite(pts)):
        raise InvalidPolygonError("Polygon contains non-finite coordinates")

    diffs = np.roll(pts, -1, axis=0) - pts
    sqr_dists = np.einsum('ij,ij->i', diffs, diffs)
    duplicates = np.flatnonzero(sqr_dists < tol.duplicate_sqr_distance)
    if len(duplicates) > 0:
        i = int(duplicates[0])
        raise InvalidPolygonError(
            f"Consecutive duplicate points at indices {i} and {(i + 1) % len(pts)}")

    if abs(signed_area(pts)) < tol.collinearity:
        raise InvalidPolygonError("Polygon has zero area")

    if check_simple and is_self_intersecting(pts):
        raise InvalidPolygonError("Polygon is self-intersecting")

    return freeze(pts)


def validate_definition(
    definition: OccluderDefinition,
    tolerances: Optional[GeometryTolerances] = None,
    check_simple: bool = True
) -> Polygon:
    """
    Validate a configured occluder, including its path count.

    Raises:
        InvalidPolygonError: For missing paths, holes or an invalid outline
    """
    if not definition.paths:
        raise InvalidPolygonError("Occluder has no path")
    if len(definition.paths) > 1:
        raise InvalidPolygonError(
            f"Occluder has {len(definition.paths)} paths; polygons with holes are not supported")

    return validate_polygon(definition.paths[0], tolerances, check_simple)
