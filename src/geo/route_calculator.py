"""
Route translation for maps whose edges wrap around.

On a map that wraps horizontally and/or vertically the same logical point
appears on several copies of the map image. RouteCalculator enumerates
those copies and picks, point by point, the copy closest to the previous
point, so a route crossing a map edge is drawn as one continuous line.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from domain.models import MapGeometry

if TYPE_CHECKING:
    from collections.abc import Sequence


class Point(NamedTuple):
    """Screen/map coordinate in pixels."""

    x: float
    y: float

    def distance(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def translated(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)


class RouteCalculator:
    """Translates routes and paths across wrapping map edges.

    Usage:
        calc = RouteCalculator(MapGeometry(wrap_x=True, width=4000, height=2000))
        points = calc.translated_route([Point(10, 5), Point(3990, 5)])
        # -> [Point(10, 5), Point(-10, 5)]
    """

    def __init__(self, geometry: MapGeometry) -> None:
        self.geometry = geometry

    @classmethod
    def from_flags(cls, wrap_x: bool, wrap_y: bool, width: int, height: int) -> RouteCalculator:
        return cls(MapGeometry(wrap_x=wrap_x, wrap_y=wrap_y, width=width, height=height))

    @property
    def wrap_x(self) -> bool:
        return self.geometry.wrap_x

    @property
    def wrap_y(self) -> bool:
        return self.geometry.wrap_y

    def possible_translations(self) -> list[tuple[float, float]]:
        """
        Offsets of every map copy a point may be drawn on.

        The identity comes first. When both axes wrap only the four
        diagonal copies are added, not the single-axis ones, so a fully
        wrapping map yields 5 offsets rather than 9.
        """
        w = float(self.geometry.width)
        h = float(self.geometry.height)
        result: list[tuple[float, float]] = [(0.0, 0.0)]
        if self.wrap_x and self.wrap_y:
            result.extend([(-w, -h), (-w, h), (w, -h), (w, h)])
        elif self.wrap_x:
            result.extend([(-w, 0.0), (w, 0.0)])
        elif self.wrap_y:
            result.extend([(0.0, -h), (0.0, h)])
        return result

    def possible_points(self, point: Point | tuple[float, float]) -> list[Point]:
        """The point shifted by every possible translation, in order."""
        p = Point(*point)
        return [p.translated(dx, dy) for dx, dy in self.possible_translations()]

    @staticmethod
    def closest_point(source: Point, pool: Sequence[Point]) -> Point | None:
        """Pool member nearest to source; the first one wins on ties."""
        if not pool:
            return None
        return min(pool, key=source.distance)

    def translated_route(self, route: Sequence[Point] | None) -> Sequence[Point] | None:
        """
        Shortest on-screen version of a route.

        The first point is kept; every following point is replaced by its
        copy closest to the already translated previous point.

        Args:
            route: Route joints in map coordinates

        Returns:
            New list of points, or route itself when it is None, empty or
            the map does not wrap

        """
        if route is None or len(route) == 0 or not self.geometry.wraps:
            return route
        result: list[Point] = []
        for i, point in enumerate(route):
            if i == 0:
                result.append(Point(*point))
            else:
                result.append(self.closest_point(result[i - 1], self.possible_points(point)))
        return result

    def all_points(self, points: Sequence[Point]) -> list[list[Point]]:
        """
        Transpose of possible_points over a sequence.

        Returns one list per translation holding every input point shifted
        by that same translation.
        """
        if not points:
            return []
        return [
            [Point(*p).translated(dx, dy) for p in points]
            for dx, dy in self.possible_translations()
        ]

    def all_normalized_lines(
        self,
        xcoords: Sequence[float] | None,
        ycoords: Sequence[float] | None,
    ) -> list[np.ndarray]:
        """
        The polyline through (xcoords[i], ycoords[i]) on every map copy.

        Args:
            xcoords: X coordinates of the joints
            ycoords: Y coordinates of the joints

        Returns:
            One (N, 2) float array per translation, identity first

        Raises:
            ValueError: Coordinates are missing, empty or of unequal length

        """
        path = _normalized_line(xcoords, ycoords)
        return [path + np.array([dx, dy]) for dx, dy in self.possible_translations()]


def _normalized_line(
    xcoords: Sequence[float] | None,
    ycoords: Sequence[float] | None,
) -> np.ndarray:
    if xcoords is None or ycoords is None:
        msg = 'coordinates must not be None'
        raise ValueError(msg)
    if len(xcoords) == 0:
        msg = 'x coordinates must contain at least one element'
        raise ValueError(msg)
    if len(ycoords) == 0:
        msg = 'y coordinates must contain at least one element'
        raise ValueError(msg)
    if len(xcoords) != len(ycoords):
        msg = f'coordinate arrays differ in length: {len(xcoords)} != {len(ycoords)}'
        raise ValueError(msg)
    return np.column_stack(
        (np.asarray(xcoords, dtype=np.float64), np.asarray(ycoords, dtype=np.float64))
    )
