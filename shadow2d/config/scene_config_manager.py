"""
Scene configuration manager for 2D shadow casting.
Handles loading of YAML scene files into SceneConfig objects.
"""

import yaml
import logging
from pathlib import Path
from typing import Union, Any, Dict

# Project Imports
from .scene_config_schemas import (
    SceneConfig,
    GeometryTolerances,
    LightDefinition,
    OccluderDefinition,
    RenderSettings,
    OutputSettings
)

logger = logging.getLogger(__name__)

VALID_FRONT_FACES = ("ccw", "cw", None)


class SceneConfigManager:
    """
    Configuration manager for shadow scenes.
    Handles configuration loading and path resolution.
    """

    def __init__(self, project_root: Path = None):
        """Initialize the scene configuration manager."""
        if project_root is None:
            self.project_root = Path(__file__).parent.parent.parent
        else:
            self.project_root = Path(project_root)

        self.scenes_dir = self.project_root / "data" / "scenes"
        self.config_directory = None

    def load_config(self, config_path: Union[str, Path]) -> SceneConfig:
        """
        Load scene configuration from a YAML file.

        Args:
            config_path: Path to the scene YAML file, absolute or relative to data/scenes

        Returns:
            SceneConfig: Loaded scene configuration

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the document is not a valid scene description
        """
        config_path = Path(config_path)

        if not config_path.is_absolute():
            config_path = self.scenes_dir / config_path

        if not config_path.exists():
            raise FileNotFoundError(f"Scene file not found: {config_path}")

        self.config_directory = config_path.parent
        logger.info(f"Loading scene config from: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)

        return self.parse_config(config_data)

    def parse_config(self, config_data: Any) -> SceneConfig:
        """
        Build a SceneConfig from an already parsed YAML document.

        Args:
            config_data: Mapping as returned by yaml.safe_load

        Returns:
            SceneConfig: Parsed configuration
        """
        if not isinstance(config_data, dict):
            raise ValueError("Scene document must be a mapping")

        scene = SceneConfig()
        scene.name = config_data.get('name', 'Unnamed Scene')

        if 'tolerances' in config_data:
            tol = config_data['tolerances'] or {}
            scene.tolerances = GeometryTolerances(
                duplicate_sqr_distance=float(tol.get('duplicate_sqr_distance', 1e-2)),
                collinearity=float(tol.get('collinearity', 1e-3)),
                max_splits=int(tol.get('max_splits', 20))
            )
            if scene.tolerances.max_splits < 1:
                raise ValueError("tolerances.max_splits must be at least 1")

        if 'render' in config_data:
            render = config_data['render'] or {}
            front_face = render.get('front_face', 'ccw')
            if front_face not in VALID_FRONT_FACES:
                raise ValueError(f"render.front_face must be one of {VALID_FRONT_FACES}, got {front_face!r}")
            scene.render = RenderSettings(front_face=front_face)

        if 'output' in config_data:
            output = config_data['output'] or {}
            scene.output = OutputSettings(output_dir=output.get('output_dir', 'shadow_results'))

        for light_name, light_data in (config_data.get('lights') or {}).items():
            scene.lights[light_name] = self._parse_light(light_name, light_data or {})
            logger.debug(f"  Light '{light_name}': radius={scene.lights[light_name].radius}")

        for occ_name, occ_data in (config_data.get('occluders') or {}).items():
            scene.occluders[occ_name] = self._parse_occluder(occ_name, occ_data or {})
            logger.debug(f"  Occluder '{occ_name}': {len(scene.occluders[occ_name].paths)} path(s)")

        logger.info(f"Loaded scene config: {scene.name} with {len(scene.lights)} lights, "
                    f"{len(scene.occluders)} occluders")
        return scene

    @staticmethod
    def _parse_light(name: str, data: Dict) -> LightDefinition:
        light = LightDefinition(
            position=[float(v) for v in data.get('position', [0.0, 0.0])],
            radius=float(data.get('radius', 10.0)),
            projection_range=float(data.get('projection_range', 100.0)),
            update_frequency=float(data.get('update_frequency', 0.0)),
            shadow_capacity=int(data.get('shadow_capacity', 50)),
            inner_color=[float(v) for v in data.get('inner_color', [1.0, 1.0, 1.0, 1.0])],
            outer_color=[float(v) for v in data.get('outer_color', [1.0, 0.92, 0.016, 1.0])],
            intensity=float(data.get('intensity', 1.0)),
            subdivisions=int(data.get('subdivisions', 32))
        )

        if len(light.position) != 2:
            raise ValueError(f"Light '{name}' position must have 2 components")
        if light.radius <= 0 or light.projection_range <= 0:
            raise ValueError(f"Light '{name}' radius and projection_range must be positive")
        if light.shadow_capacity < 1:
            raise ValueError(f"Light '{name}' shadow_capacity must be at least 1")
        if light.update_frequency < 0:
            raise ValueError(f"Light '{name}' update_frequency must not be negative")

        return light

    @staticmethod
    def _parse_occluder(name: str, data: Dict) -> OccluderDefinition:
        # A single 'path' is shorthand for 'paths: [path]'
        if 'paths' in data:
            paths = data['paths'] or []
        elif 'path' in data:
            paths = [data['path']]
        else:
            raise ValueError(f"Occluder '{name}' has no path")

        scale = data.get('scale', [1.0, 1.0])
        if isinstance(scale, (int, float)):
            scale = [scale, scale]

        return OccluderDefinition(
            paths=[[[float(x), float(y)] for x, y in path] for path in paths],
            position=[float(v) for v in data.get('position', [0.0, 0.0])],
            rotation=float(data.get('rotation', 0.0)),
            scale=[float(v) for v in scale]
        )

    def get_output_directory(self, config: SceneConfig) -> Path:
        """
        Get the output directory path.
        Creates it under data/results/<output_dir_name>.
        """
        output_dir = config.get_output_directory(self.project_root)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir
