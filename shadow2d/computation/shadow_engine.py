"""
Shadow Engine
=============

Per-tick light update loop.

For every light whose update timer elapsed, the loop queries nearby
occluders, extracts the silhouette of each convex piece and writes the
projected shadow strips into the light's pooled geometry slots.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..config.scene_config_schemas import LightDefinition
from ..utils.geometry_utils import point_in_convex_polygon
from .light_mesh import LightMesh, create_light_mesh
from .occluder_registry import OccluderRegistry
from .shadow_mesh_builder import ShadowGeometry, ShadowMeshBuilder, ShadowPool
from .silhouette import boundaries

logger = logging.getLogger(__name__)


class SpatialQuery(Protocol):
    """Broad-phase collaborator returning occluder ids near a point, in a stable order."""

    def query_circle(self, center, radius: float) -> List[int]:
        ...


@dataclass
class LightSource:
    """
    A point light.

    Attributes:
        light_id: Stable identity used to key the light's pool.
        position: World position, refreshed every tick.
        radius: Occluder query radius.
        projection_range: Maximum shadow length measured from the light.
        update_frequency: Seconds between recomputations, 0 for every update.
        shadow_capacity: Pool size, a hard ceiling on shadowed occluders.
        inner_color: RGBA colour at the light centre.
        outer_color: RGBA colour at the light rim.
        intensity: Centre alpha.
        subdivisions: Vertex count of the light disc mesh.
    """
    light_id: str
    position: Tuple[float, float] = (0.0, 0.0)
    radius: float = 10.0
    projection_range: float = 100.0
    update_frequency: float = 0.0
    shadow_capacity: int = 50
    inner_color: Tuple[float, ...] = (1.0, 1.0, 1.0, 1.0)
    outer_color: Tuple[float, ...] = (1.0, 0.92, 0.016, 1.0)
    intensity: float = 1.0
    subdivisions: int = 32

    @classmethod
    def from_definition(cls, light_id: str, definition: LightDefinition) -> "LightSource":
        return cls(
            light_id=light_id,
            position=(definition.position[0], definition.position[1]),
            radius=definition.radius,
            projection_range=definition.projection_range,
            update_frequency=definition.update_frequency,
            shadow_capacity=definition.shadow_capacity,
            inner_color=tuple(definition.inner_color),
            outer_color=tuple(definition.outer_color),
            intensity=definition.intensity,
            subdivisions=definition.subdivisions
        )


@dataclass
class LightDrawCall:
    """
    Everything the rendering collaborator needs to draw one light.

    The light mesh is in light-local space and drawn at `position`;
    shadow geometries are already in world space.
    """
    light_id: str
    position: np.ndarray
    light_mesh: LightMesh
    inner_color: Tuple[float, ...]
    outer_color: Tuple[float, ...]
    intensity: float
    geometries: List[ShadowGeometry] = field(default_factory=list)


@dataclass
class _LightState:
    light: LightSource
    pool: ShadowPool
    light_mesh: LightMesh
    elapsed: float = 0.0
    updated_once: bool = False


class LightUpdateLoop:
    """
    Runs silhouette extraction and shadow mesh building for every light.

    Each light owns a disjoint pool, so lights never share buffers.
    """

    def __init__(
        self,
        registry: OccluderRegistry,
        spatial_query: Optional[SpatialQuery] = None,
        mesh_builder: Optional[ShadowMeshBuilder] = None
    ):
        """
        Initialize the loop.

        Args:
            registry: Source of occluder convex pieces and transforms
            spatial_query: Broad-phase collaborator, the registry itself if omitted
            mesh_builder: Shadow strip builder, counter-clockwise front face if omitted
        """
        self.registry = registry
        self.spatial_query = spatial_query or registry
        self.mesh_builder = mesh_builder or ShadowMeshBuilder()
        self._lights: Dict[str, _LightState] = {}
        self.stats = {
            'ticks': 0,
            'occluders_processed': 0,
            'occluders_dropped': 0,
            'pieces_skipped': 0,
            'total_time': 0.0
        }

    # =========================================================================
    # Light management
    # =========================================================================

    def add_light(self, light: LightSource) -> None:
        """Register a light and allocate its shadow pool."""
        if light.light_id in self._lights:
            raise ValueError(f"Light '{light.light_id}' is already registered")

        self._lights[light.light_id] = _LightState(
            light=light,
            pool=ShadowPool(light.shadow_capacity),
            light_mesh=create_light_mesh(
                light.radius, light.subdivisions, light.inner_color, light.outer_color, light.intensity)
        )
        logger.info(f"Added light '{light.light_id}' with capacity {light.shadow_capacity}")

    def remove_light(self, light_id: str) -> None:
        if self._lights.pop(light_id, None) is None:
            raise KeyError(f"Unknown light '{light_id}'")

    def get_light(self, light_id: str) -> LightSource:
        return self._state(light_id).light

    def light_ids(self) -> List[str]:
        return list(self._lights)

    def set_light_position(self, light_id: str, position: Sequence[float]) -> None:
        """Refresh a light's position from its external transform."""
        self._state(light_id).light.position = (float(position[0]), float(position[1]))

    def _state(self, light_id: str) -> _LightState:
        try:
            return self._lights[light_id]
        except KeyError:
            raise KeyError(f"Unknown light '{light_id}'") from None

    # =========================================================================
    # Update
    # =========================================================================

    def update(self, dt: float = 0.0) -> List[str]:
        """
        Advance every light's timer and recompute the ones that are due.

        A light is always recomputed on its first update. Lights that are
        not due keep last tick's buffers untouched.

        Args:
            dt: Seconds since the previous update

        Returns:
            Ids of the lights that were recomputed
        """
        start_time = time.time()
        updated = []

        for light_id, state in self._lights.items():
            state.elapsed += dt
            frequency = state.light.update_frequency

            if state.updated_once and frequency > 0 and state.elapsed < frequency:
                continue

            self._update_state(state)
            if state.updated_once and frequency > 0:
                # Leftover time counts toward the next period
                state.elapsed %= frequency
            else:
                state.elapsed = 0.0
            state.updated_once = True
            updated.append(light_id)

        self.stats['ticks'] += 1
        self.stats['total_time'] += time.time() - start_time
        return updated

    def update_light(self, light_id: str) -> None:
        """Recompute one light now, regardless of its timer."""
        state = self._state(light_id)
        self._update_state(state)
        state.elapsed = 0.0
        state.updated_once = True

    def _update_state(self, state: _LightState) -> None:
        light = state.light
        light_pos = np.asarray(light.position, dtype=np.float64)

        found = self.spatial_query.query_circle(light_pos, light.radius)
        dropped = state.pool.resize_active(len(found))

        if dropped:
            self.stats['occluders_dropped'] += dropped
            logger.debug(f"Light '{light.light_id}': {dropped} occluder(s) over capacity "
                         f"{state.pool.capacity} dropped this tick")

        for slot_index, occluder_id in enumerate(found[:state.pool.capacity]):
            geometry = state.pool.slots[slot_index]
            self._write_occluder_shadow(light, light_pos, occluder_id, geometry)

    def _write_occluder_shadow(
        self,
        light: LightSource,
        light_pos: np.ndarray,
        occluder_id: int,
        geometry: ShadowGeometry
    ) -> None:
        """Rewrite one slot with the shadow of one occluder."""
        geometry.clear()
        geometry.occluder_id = occluder_id
        self.stats['occluders_processed'] += 1

        for piece in self.registry.world_polygons(occluder_id):
            indices = boundaries(light_pos, piece)

            if not indices or point_in_convex_polygon(light_pos, piece):
                # Light inside or on the occluder: no shadow for this pair
                logger.debug(f"Light '{light.light_id}' is inside occluder {occluder_id}")
                geometry.clear()
                geometry.occluder_id = occluder_id
                return

            if len(indices) != 2:
                self.stats['pieces_skipped'] += 1
                continue

            vertices, triangles = self.mesh_builder.build(
                light_pos, piece, indices, light.projection_range)
            geometry.append(vertices, triangles)

    # =========================================================================
    # Egress
    # =========================================================================

    def active_geometries(self, light_id: str) -> List[ShadowGeometry]:
        """Slots holding the current shadows of one light, in slot order."""
        return self._state(light_id).pool.active()

    def draw_calls(self) -> List[LightDrawCall]:
        """Per-light parameter structs for the rendering collaborator."""
        calls = []
        for light_id, state in self._lights.items():
            light = state.light
            calls.append(LightDrawCall(
                light_id=light_id,
                position=np.asarray(light.position, dtype=np.float64),
                light_mesh=state.light_mesh,
                inner_color=light.inner_color,
                outer_color=light.outer_color,
                intensity=light.intensity,
                geometries=[g for g in state.pool.active() if not g.is_empty]
            ))
        return calls

    def get_performance_summary(self) -> Dict:
        """Get performance summary statistics."""
        return {
            'ticks': self.stats['ticks'],
            'occluders_processed': self.stats['occluders_processed'],
            'occluders_dropped': self.stats['occluders_dropped'],
            'pieces_skipped': self.stats['pieces_skipped'],
            'total_time': self.stats['total_time'],
            'average_tick_time': self.stats['total_time'] / self.stats['ticks']
                                 if self.stats['ticks'] > 0 else 0
        }
