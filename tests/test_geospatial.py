#!/usr/bin/env python3
"""
Tests for geospatial constraints and shape serialization.
"""

import pytest

from mongo_expression import (
    Expression, LineString, MalformedArgumentError, Point, Polygon, to_geometry
)


class GeoInterfaceShape:
    """Stand-in for third-party shapes exposing __geo_interface__."""

    __geo_interface__ = {"type": "Point", "coordinates": (30, 50)}


class TestNear:
    """Test $near and $nearSphere."""

    def test_max_distance(self, expression):
        """A single number is the maximum distance."""
        expression.near_point("location", 30, 50, 1000.7)
        assert expression.to_dict() == {
            "location": {
                "$near": {
                    "$geometry": {"type": "Point", "coordinates": [30.0, 50.0]},
                    "$maxDistance": 1000,
                }
            }
        }

    def test_distance_range(self, expression):
        """A [min, max] pair sets both bounds."""
        expression.near_point("location", 30, 50, [100, 1000])
        near = expression.to_dict()["location"]["$near"]

        assert near["$minDistance"] == 100
        assert near["$maxDistance"] == 1000

    @pytest.mark.parametrize("distance,expected", [
        ([0, 1000], {"$maxDistance": 1000}),
        ([100, None], {"$minDistance": 100}),
        ((100,), {"$minDistance": 100}),
        ([0, 0], {}),
    ])
    def test_falsy_bounds_are_omitted(self, expression, distance, expected):
        expression.near_point("location", 1, 2, distance)
        near = expression.to_dict()["location"]["$near"]
        near.pop("$geometry")

        assert near == expected

    def test_spherical(self, expression):
        expression.near_point_spherical("location", "30.5", 50, 500)
        near = expression.to_dict()["location"]["$nearSphere"]

        assert near["$geometry"]["coordinates"] == [30.5, 50.0]
        assert near["$maxDistance"] == 500

    def test_bad_range_leaves_builder_untouched(self, expression):
        with pytest.raises(MalformedArgumentError):
            expression.near_point("location", 1, 2, [1, 2, 3])
        assert expression.to_dict() == {}


class TestShapes:
    """Test $geoIntersects and $geoWithin with GeoJSON shapes."""

    def test_intersects_polygon(self, expression):
        """Open rings are closed when serialized."""
        polygon = Polygon([[(0, 0), (3, 6), (6, 1)]])
        expression.intersects("area", polygon)

        assert expression.to_dict() == {
            "area": {
                "$geoIntersects": {
                    "$geometry": {
                        "type": "Polygon",
                        "coordinates": [[[0.0, 0.0], [3.0, 6.0], [6.0, 1.0], [0.0, 0.0]]],
                    }
                }
            }
        }

    def test_within_geo_interface(self, expression):
        """Any object exposing __geo_interface__ is accepted."""
        expression.within("location", GeoInterfaceShape())
        assert expression.to_dict() == {
            "location": {
                "$geoWithin": {"$geometry": {"type": "Point", "coordinates": [30, 50]}}
            }
        }

    def test_within_mapping(self, expression):
        line = {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}
        expression.within("route", line)
        assert expression.to_dict()["route"]["$geoWithin"]["$geometry"] == line

    @pytest.mark.parametrize("shape", [None, "POINT (1 2)", {"coordinates": [1, 2]}])
    def test_rejects_unknown_shapes(self, expression, shape):
        with pytest.raises(MalformedArgumentError):
            expression.intersects("area", shape)
        assert expression.to_dict() == {}

    def test_shape_classes(self):
        assert to_geometry(Point(1, 2)) == {"type": "Point", "coordinates": [1.0, 2.0]}
        assert to_geometry(LineString([(0, 0), (1, 1)])) == {
            "type": "LineString",
            "coordinates": [[0.0, 0.0], [1.0, 1.0]],
        }


class TestLegacyCoordinates:
    """Test $center, $centerSphere, $box and $polygon."""

    def test_within_circle(self, expression):
        expression.within_circle("location", 30, 50, 10)
        assert expression.to_dict() == {
            "location": {"$geoWithin": {"$center": [[30, 50], 10]}}
        }

    def test_within_circle_spherical(self, expression):
        expression.within_circle_spherical("location", 30, 50, 0.01)
        assert expression.to_dict() == {
            "location": {"$geoWithin": {"$centerSphere": [[30, 50], 0.01]}}
        }

    def test_within_box(self, expression):
        expression.within_box("location", (0, 0), (10, 10))
        assert expression.to_dict() == {
            "location": {"$geoWithin": {"$box": [[0, 0], [10, 10]]}}
        }

    def test_within_polygon(self, expression):
        expression.within_polygon("location", [(0, 0), (3, 6), (6, 0)])
        assert expression.to_dict() == {
            "location": {"$geoWithin": {"$polygon": [[0, 0], [3, 6], [6, 0]]}}
        }

    def test_geo_constraints_accumulate(self, expression):
        """Two $geoWithin shapes on one field merge like any fragment."""
        expression.within_circle("location", 0, 0, 1)
        expression.within_box("location", (0, 0), (1, 1))

        assert expression.to_dict() == {
            "location": {
                "$geoWithin": {
                    "$center": [[0, 0], 1],
                    "$box": [[0, 0], [1, 1]],
                }
            }
        }
