"""
Scene configuration schemas for 2D shadow casting.
Unified configuration for lights, occluders and geometry tolerances.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from pathlib import Path

from ..utils.geometry_utils import COLLINEARITY_THRESHOLD, MAX_SPLITS, SQR_DIST_THRESHOLD


@dataclass
class GeometryTolerances:
    """Numerical tolerances used by decomposition and ingestion."""
    duplicate_sqr_distance: float = SQR_DIST_THRESHOLD
    collinearity: float = COLLINEARITY_THRESHOLD
    max_splits: int = MAX_SPLITS


@dataclass
class LightDefinition:
    """Definition of a point light."""
    position: List[float] = field(default_factory=lambda: [0.0, 0.0])
    radius: float = 10.0
    projection_range: float = 100.0
    update_frequency: float = 0.0  # Seconds between recomputation, 0 = every update
    shadow_capacity: int = 50
    inner_color: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0, 1.0])
    outer_color: List[float] = field(default_factory=lambda: [1.0, 0.92, 0.016, 1.0])
    intensity: float = 1.0
    subdivisions: int = 32


@dataclass
class OccluderDefinition:
    """
    Definition of an occluder polygon in occluder-local space.

    Only the first path is decomposed; more than one path means the shape
    has holes, which is rejected at ingestion.
    """
    paths: List[List[List[float]]] = field(default_factory=list)
    position: List[float] = field(default_factory=lambda: [0.0, 0.0])
    rotation: float = 0.0  # Degrees, counter-clockwise
    scale: List[float] = field(default_factory=lambda: [1.0, 1.0])


@dataclass
class RenderSettings:
    """Settings forwarded to the rendering collaborator."""
    front_face: Optional[str] = "ccw"


@dataclass
class OutputSettings:
    """Export settings."""
    output_dir: str = "shadow_results"


@dataclass
class SceneConfig:
    """
    Complete scene configuration.
    Lights and occluders are keyed by name.
    """
    name: str = "Unnamed Scene"

    tolerances: GeometryTolerances = field(default_factory=GeometryTolerances)
    render: RenderSettings = field(default_factory=RenderSettings)
    output: OutputSettings = field(default_factory=OutputSettings)

    lights: Dict[str, LightDefinition] = field(default_factory=dict)
    occluders: Dict[str, OccluderDefinition] = field(default_factory=dict)

    def get_output_directory(self, project_root: Path) -> Path:
        """Get the full output directory path under data/results/."""
        return project_root / "data" / "results" / self.output.output_dir
