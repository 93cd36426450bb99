"""
Data export utilities for decomposition and shadow results.

Provides CSV export of convex pieces for the physics collaborator and
mesh export of a light's shadow geometry.
"""

import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

import numpy as np
import trimesh

from ..computation.occluder_registry import OccluderRegistry
from ..computation.shadow_engine import LightUpdateLoop

logger = logging.getLogger(__name__)


def save_convex_polygons(
    output_dir: Path,
    registry: OccluderRegistry,
    timestamp: Optional[str] = None
) -> Path:
    """
    Save every occluder's convex pieces (local space) to CSV.

    One row per vertex: occluder_id, name, piece, vertex, x, y.

    Args:
        output_dir: Directory to save the CSV file
        registry: Registry holding the decompositions
        timestamp: Optional HHMM timestamp string. If not provided, generates current time.

    Returns:
        Path to the saved CSV file

    Raises:
        ValueError: If the registry is empty
        RuntimeError: If CSV saving fails
    """
    if len(registry) == 0:
        raise ValueError("Registry has no occluders to export")

    logger.info("Saving convex decomposition to CSV...")

    try:
        if timestamp is None:
            timestamp = datetime.now().strftime("%H%M")
        data_path = Path(output_dir) / f"{timestamp}_convex_pieces_{len(registry)}occ.csv"

        rows = []
        for occluder_id in registry.ids():
            occluder = registry.get(occluder_id)
            for piece_idx, piece in enumerate(occluder.convex_polygons):
                for vertex_idx, (x, y) in enumerate(piece):
                    rows.append([occluder_id, occluder.name, piece_idx, vertex_idx, f"{x:.9g}", f"{y:.9g}"])

        data_array = np.array(rows, dtype=object)
        header = "Occluder_Id,Name,Piece,Vertex,X,Y"
        np.savetxt(data_path, data_array, delimiter=',', header=header, fmt='%s', comments='')

        logger.info(f"Data saved: {data_path}")
        return data_path

    except Exception as e:
        logger.error(f"Failed to save convex decomposition: {e}")
        raise RuntimeError(f"CSV export failed: {e}") from e


def save_shadow_meshes(
    output_dir: Path,
    loop: LightUpdateLoop,
    light_id: str,
    timestamp: Optional[str] = None
) -> Path:
    """
    Save the current shadow geometry of one light as a single OBJ mesh.

    Args:
        output_dir: Directory to save the mesh file
        loop: Update loop holding the light's pool
        light_id: Light whose shadows are exported
        timestamp: Optional HHMM timestamp string

    Returns:
        Path to the saved OBJ file

    Raises:
        ValueError: If the light has no shadow geometry
        RuntimeError: If the export fails
    """
    meshes = [g.to_trimesh() for g in loop.active_geometries(light_id) if not g.is_empty]
    if not meshes:
        raise ValueError(f"Light '{light_id}' has no shadow geometry to export")

    try:
        if timestamp is None:
            timestamp = datetime.now().strftime("%H%M")
        mesh_path = Path(output_dir) / f"{timestamp}_shadows_{light_id}.obj"

        combined = trimesh.util.concatenate(meshes)
        combined.export(mesh_path)

        logger.info(f"Shadow mesh saved: {mesh_path} ({len(combined.faces)} faces)")
        return mesh_path

    except Exception as e:
        logger.error(f"Failed to save shadow meshes: {e}")
        raise RuntimeError(f"Mesh export failed: {e}") from e
