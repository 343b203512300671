"""
Data loaders for the AD site finder.

Includes:
- AD plant locations (GeoJSON file, URL or built-in placeholder)
- Analysis boundaries (GeoJSON FeatureCollection)
"""

from loaders.reference import ReferenceDataLoader, get_reference_loader, parse_plants, parse_boundaries

__all__ = [
    "ReferenceDataLoader",
    "get_reference_loader",
    "parse_plants",
    "parse_boundaries",
]
