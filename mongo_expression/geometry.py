#!/usr/bin/env python3
"""
GeoJSON shapes for geospatial query operators.

The builder accepts any object implementing the ``__geo_interface__``
protocol (``geojson``, ``shapely`` and friends), a plain GeoJSON mapping,
or one of the lightweight shapes defined here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .exceptions import MalformedArgumentError


Position = List[float]


def _position(coordinates: Sequence[float]) -> Position:
    return [float(c) for c in coordinates]


@dataclass
class Point:
    """A single GeoJSON position, longitude first."""
    longitude: float
    latitude: float

    @property
    def __geo_interface__(self) -> Dict[str, Any]:
        return {
            "type": "Point",
            "coordinates": [float(self.longitude), float(self.latitude)],
        }


@dataclass
class LineString:
    coordinates: List[Sequence[float]] = field(default_factory=list)

    @property
    def __geo_interface__(self) -> Dict[str, Any]:
        return {
            "type": "LineString",
            "coordinates": [_position(p) for p in self.coordinates],
        }


@dataclass
class Polygon:
    """
    A GeoJSON polygon.

    ``rings`` holds the exterior ring followed by any holes. Each ring must be
    closed (first and last position equal); MongoDB rejects open rings, so
    they are closed here when needed.
    """
    rings: List[List[Sequence[float]]] = field(default_factory=list)

    @property
    def __geo_interface__(self) -> Dict[str, Any]:
        rings = []
        for ring in self.rings:
            positions = [_position(p) for p in ring]
            if positions and positions[0] != positions[-1]:
                positions.append(list(positions[0]))
            rings.append(positions)
        return {"type": "Polygon", "coordinates": rings}


def _listify(value: Any) -> Any:
    # shapely hands out tuples, BSON wants arrays
    if isinstance(value, (list, tuple)):
        return [_listify(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _listify(v) for k, v in value.items()}
    return value


def to_geometry(shape: Any) -> Dict[str, Any]:
    """
    Serialize a shape argument to a GeoJSON geometry mapping.

    Args:
        shape: Object exposing ``__geo_interface__`` or a GeoJSON mapping

    Returns:
        Fresh GeoJSON dict with list coordinates

    Raises:
        MalformedArgumentError: If the shape cannot be serialized
    """
    geometry = getattr(shape, "__geo_interface__", None)
    if geometry is None and isinstance(shape, Mapping):
        geometry = shape

    if not isinstance(geometry, Mapping) or "type" not in geometry:
        raise MalformedArgumentError(
            f"Expected a GeoJSON geometry, got {type(shape).__name__}", shape
        )

    return _listify(geometry)
