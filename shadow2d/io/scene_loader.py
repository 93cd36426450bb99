"""
Scene assembly from configuration.

Builds an OccluderRegistry and a LightUpdateLoop from a SceneConfig.
Occluders that fail ingestion are skipped and reported as diagnostics
instead of aborting the whole scene.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from tqdm.auto import tqdm

from ..config.scene_config_schemas import SceneConfig
from ..computation.occluder_registry import OccluderRegistry
from ..computation.shadow_engine import LightSource, LightUpdateLoop
from ..computation.shadow_mesh_builder import ShadowMeshBuilder
from .occluder_loader import InvalidPolygonError, Transform2D, validate_definition

logger = logging.getLogger(__name__)


@dataclass
class IngestionDiagnostic:
    """Why an occluder was excluded from collision and shadow output."""
    name: str
    reason: str


@dataclass
class Scene:
    """
    A loaded scene.

    Attributes:
        name: Scene name.
        registry: Registered occluders.
        loop: Light update loop with all configured lights.
        occluder_ids: Occluder name -> registry id.
        diagnostics: Occluders rejected at ingestion.
    """
    name: str
    registry: OccluderRegistry
    loop: LightUpdateLoop
    occluder_ids: Dict[str, int] = field(default_factory=dict)
    diagnostics: List[IngestionDiagnostic] = field(default_factory=list)


class SceneLoader:
    """Creates Scene objects from scene configurations."""

    @staticmethod
    def build_scene(config: SceneConfig, show_progress: bool = False) -> Scene:
        """
        Create a scene from configuration.

        Args:
            config: Scene configuration
            show_progress: If True, display a tqdm progress bar while decomposing

        Returns:
            Scene with every valid occluder registered and every light added
        """
        logger.info(f"Building scene '{config.name}'")

        registry = OccluderRegistry(config.tolerances)
        loop = LightUpdateLoop(registry, mesh_builder=ShadowMeshBuilder(config.render.front_face))
        scene = Scene(name=config.name, registry=registry, loop=loop)

        occluder_iter = config.occluders.items()
        if show_progress:
            occluder_iter = tqdm(occluder_iter, total=len(config.occluders),
                                 desc="Decomposing occluders", unit="occluder", mininterval=0.3)

        for occ_name, occ_def in occluder_iter:
            try:
                polygon = validate_definition(occ_def, config.tolerances, registry.check_simple)
                scene.occluder_ids[occ_name] = registry.register(
                    polygon, Transform2D.from_definition(occ_def), occ_name)
            except InvalidPolygonError as e:
                logger.warning(f"Skipping occluder '{occ_name}': {e}")
                scene.diagnostics.append(IngestionDiagnostic(name=occ_name, reason=str(e)))

        for light_name, light_def in config.lights.items():
            loop.add_light(LightSource.from_definition(light_name, light_def))

        total_pieces = sum(len(registry.get(i).convex_polygons) for i in registry.ids())
        logger.info(f"Built scene '{config.name}' with {len(registry)} occluders "
                    f"({total_pieces} convex pieces), {len(config.lights)} lights, "
                    f"{len(scene.diagnostics)} rejected")

        return scene
