"""Geo module - route geometry on wrapping maps."""

from .route_calculator import Point, RouteCalculator

__all__ = [
    'Point',
    'RouteCalculator',
]
