# Core computational functions for 2D shadow casting

from .polygon_splitter import (
    PolygonSplitter,
    SplitResult,
    DecompositionResult,
    decompose,
    split,
)

from .silhouette import boundaries, facing_mask

from .shadow_mesh_builder import (
    ShadowMeshBuilder,
    ShadowGeometry,
    ShadowPool,
    strip_triangles,
    orient_triangles,
)

from .light_mesh import LightMesh, create_light_mesh

from .occluder_registry import OccluderRegistry

from .shadow_engine import (
    LightSource,
    LightDrawCall,
    LightUpdateLoop,
    SpatialQuery,
)

__all__ = [
    # Decomposition
    'PolygonSplitter',
    'SplitResult',
    'DecompositionResult',
    'decompose',
    'split',
    # Silhouettes
    'boundaries',
    'facing_mask',
    # Shadow meshes
    'ShadowMeshBuilder',
    'ShadowGeometry',
    'ShadowPool',
    'strip_triangles',
    'orient_triangles',
    'LightMesh',
    'create_light_mesh',
    # Registry and update loop
    'OccluderRegistry',
    'LightSource',
    'LightDrawCall',
    'LightUpdateLoop',
    'SpatialQuery',
]
