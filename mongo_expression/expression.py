#!/usr/bin/env python3
"""
Fluent builder for MongoDB query documents.

Every constraint method funnels through ``Expression.where``, which merges
the new fragment into the accumulated document:

    expression = (Expression()
        .where("type", "alert")
        .where_greater("priority", 5)
        .where_less("priority", 10)
        .where_or(
            Expression().where("status", "active"),
            Expression().where_exists("escalated_at"),
        ))

    expression.to_dict()
    # {"type": "alert",
    #  "priority": {"$gt": 5, "$lt": 10},
    #  "$or": [{"status": "active"}, {"escalated_at": {"$exists": True}}]}
"""

import copy
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .config import ARRAY_CHECK_TYPE, Config
from .exceptions import MalformedArgumentError
from .field_types import FieldType
from .geometry import Point, to_geometry
from .operators import QueryOperator

logger = logging.getLogger(__name__)


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def merge_values(existing: Any, incoming: Any) -> Any:
    """
    Recursively combine two stored values.

    Mappings merge key by key, applying the same rule to overlapping keys.
    Sequences concatenate; positions are not keys, nothing is deduplicated.
    Any other pairing (a scalar on either side, or a mapping against a
    sequence) is a replacement by ``incoming``.

    Neither argument is modified; the result shares no structure with
    ``incoming``.
    """
    if isinstance(existing, Mapping) and isinstance(incoming, Mapping):
        merged = dict(existing)
        for key, value in incoming.items():
            if key in merged:
                merged[key] = merge_values(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged

    if isinstance(existing, (list, tuple)) and isinstance(incoming, (list, tuple)):
        return list(existing) + copy.deepcopy(list(incoming))

    return copy.deepcopy(incoming)


_COMBINATORS = frozenset({
    QueryOperator.OR.value,
    QueryOperator.AND.value,
    QueryOperator.NOR.value,
})


def _is_operator_fragment(value: Any) -> bool:
    # Only operator mappings can sit under $not; values and embedded documents need $ne
    if not isinstance(value, Mapping) or not value:
        return False
    return QueryOperator.is_operator_key(next(iter(value)))


class Expression:
    """
    Accumulates query constraints into a MongoDB filter document.

    Mutating methods return the builder itself so calls can be chained.
    Builders passed to other builders (combinators, negation, merge,
    element match) are only read through a snapshot.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize an empty expression.

        Args:
            config: Builder defaults (default: Config())
        """
        self.config = config or Config()
        self._expression: Dict[str, Any] = {}

    def expression(self) -> "Expression":
        """Create a new empty expression sharing this builder's config."""
        return Expression(config=self.config)

    # ------------------------------------------------------------------
    # Merge primitive
    # ------------------------------------------------------------------

    def where(self, field: str, value: Any) -> "Expression":
        """
        Merge ``value`` into the document under ``field``.

        A new key, or a scalar on either side, replaces what was stored.
        When both the stored and incoming values are mappings or arrays they
        are merged recursively, so constraints on the same field accumulate:

            where("age", {"$gt": 5}).where("age", {"$lt": 10})
            # {"age": {"$gt": 5, "$lt": 10}}

        Args:
            field: Dot-delimited field path or operator keyword
            value: Scalar, list of sub-documents or constraint fragment

        Returns:
            self
        """
        stored = self._expression.get(field)
        if field in self._expression and _is_container(value) and _is_container(stored):
            self._expression[field] = merge_values(stored, value)
            logger.debug(f"Merged constraint into '{field}'")
        else:
            self._expression[field] = copy.deepcopy(value)
            logger.debug(f"Set constraint on '{field}'")

        return self

    where_equal = where

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def where_greater(self, field: str, value: Any) -> "Expression":
        return self.where(field, {QueryOperator.GT.value: value})

    def where_greater_or_equal(self, field: str, value: Any) -> "Expression":
        return self.where(field, {QueryOperator.GTE.value: value})

    def where_less(self, field: str, value: Any) -> "Expression":
        return self.where(field, {QueryOperator.LT.value: value})

    def where_less_or_equal(self, field: str, value: Any) -> "Expression":
        return self.where(field, {QueryOperator.LTE.value: value})

    def where_not_equal(self, field: str, value: Any) -> "Expression":
        return self.where(field, {QueryOperator.NE.value: value})

    def where_in(self, field: str, values: Sequence[Any]) -> "Expression":
        """
        Select documents where ``field`` equals any value in ``values``.
        """
        return self.where(field, {QueryOperator.IN.value: list(values)})

    def where_not_in(self, field: str, values: Sequence[Any]) -> "Expression":
        return self.where(field, {QueryOperator.NIN.value: list(values)})

    # ------------------------------------------------------------------
    # Element
    # ------------------------------------------------------------------

    def where_exists(self, field: str) -> "Expression":
        return self.where(field, {QueryOperator.EXISTS.value: True})

    def where_not_exists(self, field: str) -> "Expression":
        return self.where(field, {QueryOperator.EXISTS.value: False})

    def where_has_type(self, field: str, type_: Union[int, FieldType, str]) -> "Expression":
        """
        Select documents where ``field`` holds a value of the given BSON type.

        Args:
            field: Field path
            type_: BSON type number (see FieldType) or a MongoDB type alias
        """
        if not isinstance(type_, str):
            type_ = int(type_)
        return self.where(field, {QueryOperator.TYPE.value: type_})

    def where_double(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.DOUBLE)

    def where_string(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.STRING)

    def where_object(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.OBJECT)

    def where_boolean(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.BOOLEAN)

    def where_array(self, field: str) -> "Expression":
        """
        Select documents where ``field`` is an array.

        ``$type: 4`` also matches documents whose array holds a nested array,
        so by default this uses a JavaScript ``$where`` condition. Set
        ``Config.array_check`` to ``"type"`` for ``{"$type": "array"}``,
        which servers since 3.6 evaluate without JavaScript.
        """
        if self.config.array_check == ARRAY_CHECK_TYPE:
            return self.where(field, {QueryOperator.TYPE.value: "array"})
        return self.where_js_condition(f"Array.isArray(this.{field})")

    def where_array_of_arrays(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.ARRAY)

    def where_object_id(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.OBJECT_ID)

    def where_date(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.DATE)

    def where_null(self, field: str) -> "Expression":
        return self.where_has_type(field, FieldType.NULL)

    def where_empty(self, field: str) -> "Expression":
        """Field is null, empty string, empty array or missing."""
        return self.where(QueryOperator.OR.value, self._empty_arms(field))

    def where_not_empty(self, field: str) -> "Expression":
        """Field is none of null, empty string, empty array or missing."""
        return self.where(QueryOperator.NOR.value, self._empty_arms(field))

    @staticmethod
    def _empty_arms(field: str) -> List[Dict[str, Any]]:
        return [
            {field: None},
            {field: ""},
            {field: []},
            {field: {QueryOperator.EXISTS.value: False}},
        ]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def where_js_condition(self, condition: str) -> "Expression":
        """Add a raw JavaScript ``$where`` condition. Replaces any earlier one."""
        return self.where(QueryOperator.WHERE.value, condition)

    def where_like(self, field: str, regex: str,
                   case_insensitive: Optional[bool] = None) -> "Expression":
        """
        Match ``field`` against a regular expression.

        Args:
            field: Field path
            regex: Pattern source
            case_insensitive: Add the "i" option (default: Config.case_insensitive)
        """
        if case_insensitive is None:
            case_insensitive = self.config.case_insensitive

        options = ""
        if case_insensitive:
            options += "i"

        return self.where(field, {
            QueryOperator.REGEX.value: regex,
            QueryOperator.OPTIONS.value: options,
        })

    def where_mod(self, field: str, divisor: int, remainder: int) -> "Expression":
        """Select documents where ``field % divisor == remainder``."""
        return self.where(field, {QueryOperator.MOD.value: [int(divisor), int(remainder)]})

    # ------------------------------------------------------------------
    # Array
    # ------------------------------------------------------------------

    def where_all(self, field: str, values: Sequence[Any]) -> "Expression":
        """
        Array ``field`` contains all of ``values`` (logical AND over elements).
        """
        return self.where(field, {QueryOperator.ALL.value: list(values)})

    def where_none_of(self, field: str, values: Sequence[Any]) -> "Expression":
        """
        Array ``field`` does not contain all of ``values``.
        """
        return self.where(field, {QueryOperator.NOT.value: {QueryOperator.ALL.value: list(values)}})

    def where_any(self, field: str, values: Sequence[Any]) -> "Expression":
        """Array ``field`` contains any of ``values``."""
        return self.where_in(field, values)

    def where_array_size(self, field: str, length: int) -> "Expression":
        return self.where(field, {QueryOperator.SIZE.value: int(length)})

    def where_elem_match(
        self,
        field: str,
        expression: Union["Expression", Callable[["Expression"], Any], Mapping],
    ) -> "Expression":
        """
        Array ``field`` has at least one element matching every criterion.

        Args:
            field: Field path of the array
            expression: One of
                - an Expression
                - a callable invoked with a fresh child Expression; it may
                  return that builder, another Expression, a mapping, or
                  None to use the child as configured
                - a plain mapping of criteria

        Raises:
            MalformedArgumentError: If ``expression`` is none of the above
        """
        criteria = self._resolve_sub_expression(expression)
        return self.where(field, {QueryOperator.ELEM_MATCH.value: criteria})

    def where_elem_not_match(
        self,
        field: str,
        expression: Union["Expression", Callable[["Expression"], Any], Mapping],
    ) -> "Expression":
        """
        Array ``field`` has no element matching every criterion.

        Same arguments as ``where_elem_match``.
        """
        return self.where_not(self.expression().where_elem_match(field, expression))

    def _resolve_sub_expression(self, expression: Any) -> Dict[str, Any]:
        if isinstance(expression, Expression):
            return expression.to_dict()

        if callable(expression):
            child = self.expression()
            result = expression(child)
            if result is None:
                result = child
            if isinstance(result, Expression):
                return result.to_dict()
            expression = result

        if isinstance(expression, Mapping):
            return copy.deepcopy(dict(expression))

        logger.warning(f"Rejected sub-expression of type {type(expression).__name__}")
        raise MalformedArgumentError(
            f"Expected Expression, callable or mapping, got {type(expression).__name__}",
            expression,
        )

    # ------------------------------------------------------------------
    # Logical
    # ------------------------------------------------------------------

    def where_or(self, *expressions: Union["Expression", Sequence["Expression"]]) -> "Expression":
        """
        Select documents matching at least one of ``expressions``.

        Accepts Expression arguments or a single list of them. Repeated calls
        add more alternatives to the same ``$or``.
        """
        return self._combine(QueryOperator.OR, expressions)

    def where_and(self, *expressions: Union["Expression", Sequence["Expression"]]) -> "Expression":
        """Select documents matching all of ``expressions``."""
        return self._combine(QueryOperator.AND, expressions)

    def where_nor(self, *expressions: Union["Expression", Sequence["Expression"]]) -> "Expression":
        """Select documents matching none of ``expressions``."""
        return self._combine(QueryOperator.NOR, expressions)

    def _combine(self, operator: QueryOperator, expressions: tuple) -> "Expression":
        if len(expressions) == 1 and isinstance(expressions[0], (list, tuple)):
            expressions = tuple(expressions[0])

        if not expressions:
            raise MalformedArgumentError(f"{operator.value} requires at least one expression")

        documents = []
        for expression in expressions:
            if not isinstance(expression, Expression):
                logger.warning(f"{operator.value} rejected item of type {type(expression).__name__}")
                raise MalformedArgumentError(
                    f"{operator.value} items must be Expression instances, "
                    f"got {type(expression).__name__}",
                    expression,
                )
            documents.append(expression.to_dict())

        return self.where(operator.value, documents)

    def where_not(self, expression: "Expression") -> "Expression":
        """
        Merge the negation of ``expression`` into this builder.

        Each field of ``expression`` is negated on its own: operator
        fragments are wrapped in ``$not``, bare values and embedded documents
        become ``$ne``. The negated fields are then ANDed like any other
        constraints, so for a multi-field expression the result is
        NOT a AND NOT b, not NOT (a AND b).

        A fragment that is already a lone ``$not`` is unwrapped instead of
        nested. ``$or`` becomes ``$nor``, ``$and`` becomes a one-arm ``$nor``
        and ``$nor`` becomes an ``$or`` nested in ``$and`` so it never joins
        an ``$or`` this builder already holds. A ``$where`` condition is
        wrapped in ``!( )``, and goes under ``$and`` when a ``$where`` is
        already set.

        Raises:
            MalformedArgumentError: If ``expression`` is not an Expression
        """
        if not isinstance(expression, Expression):
            logger.warning(f"where_not rejected argument of type {type(expression).__name__}")
            raise MalformedArgumentError(
                f"where_not requires an Expression, got {type(expression).__name__}",
                expression,
            )

        for field, value in expression.to_dict().items():
            if field in _COMBINATORS:
                self._negate_combinator(field, value)
            elif field == QueryOperator.WHERE.value:
                self._negate_js_condition(value)
            elif _is_operator_fragment(value):
                inner = value.get(QueryOperator.NOT.value)
                if len(value) == 1 and _is_operator_fragment(inner):
                    self.where(field, inner)
                else:
                    self.where(field, {QueryOperator.NOT.value: value})
            else:
                self.where_not_equal(field, value)
            logger.debug(f"Negated constraint on '{field}'")

        return self

    def _negate_combinator(self, operator: str, documents: List[Dict[str, Any]]) -> None:
        # New arms never join an existing $or, that would widen it
        if operator == QueryOperator.OR.value:
            self.where(QueryOperator.NOR.value, documents)
        elif operator == QueryOperator.AND.value:
            self.where(QueryOperator.NOR.value, [{QueryOperator.AND.value: documents}])
        else:
            self.where(QueryOperator.AND.value, [{QueryOperator.OR.value: documents}])

    def _negate_js_condition(self, condition: str) -> None:
        negated = f"!({condition})"
        if QueryOperator.WHERE.value in self._expression:
            # $where holds one string, keep the caller's condition
            self.where(QueryOperator.AND.value, [{QueryOperator.WHERE.value: negated}])
        else:
            self.where_js_condition(negated)

    # ------------------------------------------------------------------
    # Geospatial
    # ------------------------------------------------------------------

    def near_point(self, field: str, longitude: float, latitude: float,
                   distance: Union[int, float, Sequence[Optional[float]]]) -> "Expression":
        """
        Documents near a point, nearest first, on a flat surface.

        Args:
            field: Field holding the location
            longitude: Point longitude
            latitude: Point latitude
            distance: Maximum distance in meters, or a [min, max] pair where
                a falsy bound is omitted
        """
        return self.where(field, {QueryOperator.NEAR.value: self._near(longitude, latitude, distance)})

    def near_point_spherical(self, field: str, longitude: float, latitude: float,
                             distance: Union[int, float, Sequence[Optional[float]]]) -> "Expression":
        """Same as ``near_point`` using spherical geometry."""
        return self.where(field, {QueryOperator.NEAR_SPHERE.value: self._near(longitude, latitude, distance)})

    @staticmethod
    def _near(longitude: float, latitude: float, distance: Any) -> Dict[str, Any]:
        near = {QueryOperator.GEOMETRY.value: to_geometry(Point(longitude, latitude))}

        if isinstance(distance, (list, tuple)):
            if not 1 <= len(distance) <= 2:
                raise MalformedArgumentError(
                    f"Distance range must be [min, max], got {len(distance)} elements",
                    distance,
                )
            minimum = distance[0]
            maximum = distance[1] if len(distance) > 1 else None
            if minimum:
                near[QueryOperator.MIN_DISTANCE.value] = int(minimum)
            if maximum:
                near[QueryOperator.MAX_DISTANCE.value] = int(maximum)
        else:
            near[QueryOperator.MAX_DISTANCE.value] = int(distance)

        return near

    def intersects(self, field: str, geometry: Any) -> "Expression":
        """
        Geospatial data in ``field`` intersects ``geometry`` (spherical).
        Shared edges count as an intersection.
        """
        return self.where(field, {
            QueryOperator.GEO_INTERSECTS.value: {QueryOperator.GEOMETRY.value: to_geometry(geometry)},
        })

    def within(self, field: str, geometry: Any) -> "Expression":
        """Geospatial data in ``field`` lies entirely within ``geometry``."""
        return self.where(field, {
            QueryOperator.GEO_WITHIN.value: {QueryOperator.GEOMETRY.value: to_geometry(geometry)},
        })

    def within_circle(self, field: str, longitude: float, latitude: float,
                      radius: float) -> "Expression":
        """Legacy coordinates within a circle on a flat surface."""
        return self.where(field, {
            QueryOperator.GEO_WITHIN.value: {QueryOperator.CENTER.value: [[longitude, latitude], radius]},
        })

    def within_circle_spherical(self, field: str, longitude: float, latitude: float,
                                radius_in_radians: float) -> "Expression":
        """
        Coordinates within a circle on a sphere.

        The radius is in radians: divide a distance by the Earth's radius
        (6378.1 km, 3963.2 mi) to convert.
        """
        return self.where(field, {
            QueryOperator.GEO_WITHIN.value: {
                QueryOperator.CENTER_SPHERE.value: [[longitude, latitude], radius_in_radians],
            },
        })

    def within_box(self, field: str, bottom_left: Sequence[float],
                   upper_right: Sequence[float]) -> "Expression":
        """Legacy coordinates within a rectangle, planar geometry."""
        return self.where(field, {
            QueryOperator.GEO_WITHIN.value: {QueryOperator.BOX.value: [list(bottom_left), list(upper_right)]},
        })

    def within_polygon(self, field: str, points: Sequence[Sequence[float]]) -> "Expression":
        """Legacy coordinates within a polygon, planar geometry."""
        return self.where(field, {
            QueryOperator.GEO_WITHIN.value: {QueryOperator.POLYGON.value: [list(point) for point in points]},
        })

    # ------------------------------------------------------------------
    # Snapshot and merge
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the accumulated query document."""
        return copy.deepcopy(self._expression)

    to_array = to_dict

    def merge(self, expression: "Expression") -> "Expression":
        """
        Merge every top-level entry of another expression into this one,
        following the same rules as ``where``.

        Raises:
            MalformedArgumentError: If ``expression`` is not an Expression
        """
        if not isinstance(expression, Expression):
            raise MalformedArgumentError(
                f"merge requires an Expression, got {type(expression).__name__}",
                expression,
            )

        for field, value in expression.to_dict().items():
            self.where(field, value)

        return self

    def copy(self) -> "Expression":
        clone = self.expression()
        clone._expression = self.to_dict()
        return clone

    def __eq__(self, other):
        if isinstance(other, Expression):
            return self._expression == other._expression
        if isinstance(other, Mapping):
            return self._expression == dict(other)
        return NotImplemented

    __hash__ = None

    def __bool__(self):
        return bool(self._expression)

    def __repr__(self):
        return f"Expression({self._expression!r})"
