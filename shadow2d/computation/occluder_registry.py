"""
Occluder registry.

Owns the convex decomposition of every registered occluder and answers
the broad-phase "which occluders are near this light" query.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from tqdm.auto import tqdm

from ..config.scene_config_schemas import GeometryTolerances
from ..io.occluder_loader import (
    InvalidPolygonError,
    Occluder,
    Transform2D,
    freeze,
    validate_polygon,
)
from ..utils.geometry_utils import Polygon, apply_transform
from .polygon_splitter import PolygonSplitter

logger = logging.getLogger(__name__)


class OccluderRegistry:
    """
    Arena of occluders keyed by integer id.

    Ids increase monotonically and are never reused. Removing an occluder
    drops all of its convex pieces at once.
    """

    def __init__(self, tolerances: Optional[GeometryTolerances] = None, check_simple: bool = True):
        """
        Initialize the registry.

        Args:
            tolerances: Geometry tolerances for validation and splitting
            check_simple: Reject self-intersecting polygons at registration
        """
        self.tolerances = tolerances or GeometryTolerances()
        self.check_simple = check_simple
        self.splitter = PolygonSplitter(self.tolerances)
        self._occluders: Dict[int, Occluder] = {}
        self._next_id = 0

    def register(self, polygon, transform: Optional[Transform2D] = None, name: Optional[str] = None) -> int:
        """
        Validate and decompose a polygon and store it as a new occluder.

        Args:
            polygon: (N, 2) polygon in occluder-local space
            transform: World transform, identity if omitted
            name: Descriptive name

        Returns:
            The new occluder id

        Raises:
            InvalidPolygonError: If the polygon is rejected
        """
        points = validate_polygon(polygon, self.tolerances, self.check_simple)

        occluder_id = self._next_id
        self._next_id += 1

        occluder = Occluder(
            id=occluder_id,
            name=name or f"occluder_{occluder_id}",
            polygon=points,
            transform=transform or Transform2D()
        )
        self._decompose(occluder)
        self._occluders[occluder_id] = occluder

        logger.info(f"Registered occluder '{occluder.name}' (id={occluder_id}) "
                    f"as {len(occluder.convex_polygons)} convex piece(s)")
        return occluder_id

    def register_many(
        self,
        items: Iterable[Tuple[str, object, Optional[Transform2D]]],
        show_progress: bool = False
    ) -> Tuple[Dict[str, int], Dict[str, str]]:
        """
        Register several occluders, skipping the ones that are rejected.

        Args:
            items: (name, polygon, transform) tuples
            show_progress: If True, display a tqdm progress bar

        Returns:
            (registered name -> id, rejected name -> reason)
        """
        items = list(items)
        registered: Dict[str, int] = {}
        rejected: Dict[str, str] = {}

        item_iter = items
        if show_progress:
            item_iter = tqdm(items, desc="Decomposing occluders", unit="occluder", mininterval=0.3)

        for name, polygon, transform in item_iter:
            try:
                registered[name] = self.register(polygon, transform, name)
            except InvalidPolygonError as e:
                logger.warning(f"Skipping occluder '{name}': {e}")
                rejected[name] = str(e)

        return registered, rejected

    def unregister(self, occluder_id: int) -> None:
        """Remove an occluder and all of its convex pieces."""
        occluder = self._occluders.pop(occluder_id, None)
        if occluder is None:
            raise KeyError(f"Unknown occluder id {occluder_id}")
        logger.debug(f"Unregistered occluder '{occluder.name}' (id={occluder_id})")

    def update_geometry(self, occluder_id: int, polygon) -> None:
        """
        Replace an occluder's polygon and decompose it again.

        Raises:
            KeyError: If the id is unknown
            InvalidPolygonError: If the polygon is rejected; the old geometry is kept
        """
        occluder = self.get(occluder_id)
        points = validate_polygon(polygon, self.tolerances, self.check_simple)
        occluder.polygon = points
        self._decompose(occluder)

    def set_transform(self, occluder_id: int, transform: Transform2D) -> None:
        """Move an occluder. The stored decomposition is not recomputed."""
        self.get(occluder_id).transform = transform

    def _decompose(self, occluder: Occluder) -> None:
        report = self.splitter.decompose_with_report(occluder.polygon)
        occluder.convex_polygons = [freeze(piece) for piece in report.polygons]
        occluder.decomposition_complete = report.complete

        if not report.complete:
            logger.warning(f"Decomposition of occluder '{occluder.name}' is incomplete "
                           f"after {report.split_count} split(s)")

    def get(self, occluder_id: int) -> Occluder:
        try:
            return self._occluders[occluder_id]
        except KeyError:
            raise KeyError(f"Unknown occluder id {occluder_id}") from None

    def ids(self) -> List[int]:
        """Registered ids in ascending order."""
        return sorted(self._occluders)

    def __len__(self) -> int:
        return len(self._occluders)

    def __contains__(self, occluder_id) -> bool:
        return occluder_id in self._occluders

    def collision_shapes(self, occluder_id: int) -> List[Polygon]:
        """Convex pieces in local space, winding preserved, for the physics collaborator."""
        return list(self.get(occluder_id).convex_polygons)

    def world_polygons(self, occluder_id: int) -> List[Polygon]:
        """Convex pieces with the occluder's current transform applied."""
        occluder = self.get(occluder_id)
        matrix = occluder.transform.matrix()
        return [apply_transform(piece, matrix) for piece in occluder.convex_polygons]

    def world_bounds(self, occluder_id: int) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned (min, max) corners of the transformed outline."""
        occluder = self.get(occluder_id)
        world = apply_transform(occluder.polygon, occluder.transform.matrix())
        return world.min(axis=0), world.max(axis=0)

    def query_circle(self, center, radius: float) -> List[int]:
        """
        Broad-phase query: occluders whose world AABB overlaps the circle.

        Args:
            center: Circle centre (2,)
            radius: Circle radius

        Returns:
            Matching ids in ascending order
        """
        c = np.asarray(center, dtype=np.float64)
        found = []

        for occluder_id in self.ids():
            lo, hi = self.world_bounds(occluder_id)
            closest = np.clip(c, lo, hi)
            if float(np.sum((closest - c) ** 2)) <= radius * radius:
                found.append(occluder_id)

        return found
