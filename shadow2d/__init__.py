"""
Shadow2D
========

Hard-edged 2D shadow geometry for point lights and polygonal occluders.

Occluder polygons are decomposed once into convex pieces; every tick the
silhouette of each nearby piece is extracted and projected away from the
light into a triangle strip.
"""

__version__ = "0.1.0"
