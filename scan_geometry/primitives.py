"""
Geometric Primitive Types.

This module provides the 2D value types consumed by the fitting algorithms:
- Point2D: Planar point / vector with arithmetic helpers
- LineSegment2D: Directed segment between two points
- Circle: Center and radius, constructible from three points
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Optional


POINT_EQUALITY_TOLERANCE = 1e-3
DIVISION_EPSILON = 1e-9
SLOPE_EPSILON = 1e-6
PARALLEL_EPSILON = 1e-10
COLLINEAR_EPSILON = 1e-10


@dataclass(frozen=True, eq=False)
class Point2D:
    """Point (or vector) in a planar frame."""
    x: float = 0.0
    y: float = 0.0

    @staticmethod
    def init_from_radial_coord(radius: float, angle: float) -> 'Point2D':
        return Point2D(radius * math.cos(angle), radius * math.sin(angle))

    @staticmethod
    def from_array(arr) -> 'Point2D':
        return Point2D(float(arr[0]), float(arr[1]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def dist_to(self, other: 'Point2D') -> float:
        return math.sqrt(self.squared_dist_to(other))

    def squared_dist_to(self, other: 'Point2D') -> float:
        return (self.x - other.x) ** 2 + (self.y - other.y) ** 2

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def as_normalised(self) -> 'Point2D':
        """Unit vector in the same direction; the zero vector stays zero."""
        mag = self.magnitude()
        if mag > 0:
            return Point2D(self.x / mag, self.y / mag)
        return self

    def dot_product(self, other: 'Point2D') -> float:
        return (self.x * other.x) + (self.y * other.y)

    def scalar_cross_product(self, other: 'Point2D') -> float:
        return (self.x * other.y) - (self.y * other.x)

    def angle(self) -> float:
        """Bearing of the point from the origin."""
        return math.atan2(self.y, self.x)

    def __add__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Point2D':
        return Point2D(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> 'Point2D':
        if abs(scalar) < DIVISION_EPSILON:
            scalar = DIVISION_EPSILON
        return self * (1.0 / scalar)

    def __neg__(self) -> 'Point2D':
        return Point2D(-self.x, -self.y)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return self.dist_to(other) < POINT_EQUALITY_TOLERANCE

    __hash__ = None

    def __repr__(self) -> str:
        return f'<x: {self.x}, y: {self.y}>'


@dataclass
class LineSegment2D:
    """
    Directed line segment from `start` to `end`.

    A zero-length segment is valid; derived quantities fall back to
    epsilon-guarded values instead of raising.
    """
    start: Point2D = field(default_factory=Point2D)
    end: Point2D = field(default_factory=Point2D)

    def angle(self) -> float:
        diff = self.end - self.start
        return math.atan2(diff.y, diff.x)

    def length(self) -> float:
        return self.start.dist_to(self.end)

    def slope(self) -> float:
        diff = self.end - self.start
        dx = diff.x
        if abs(dx) < SLOPE_EPSILON:
            dx = SLOPE_EPSILON
        return diff.y / dx

    def constant(self) -> float:
        """Y-intercept of the line through the segment."""
        return self.start.y - (self.slope() * self.start.x)

    def center(self) -> Point2D:
        return (self.start + self.end) * 0.5

    def unit_vector(self) -> Point2D:
        return (self.end - self.start) / self.length()

    def intersects(self, other: 'LineSegment2D') -> bool:
        return self.calc_intersection_point_with(other) is not None

    def calc_intersection_point_with(
        self,
        other: 'LineSegment2D',
        is_outside_allowed: bool = False
    ) -> Optional[Point2D]:
        """
        Intersection point of two segments.

        Args:
            other: Segment to intersect with
            is_outside_allowed: Treat both segments as infinite lines

        Returns:
            Intersection point, or None when the segments do not meet.
            Collinear overlapping segments return the start of the overlap.
        """
        vec1 = self.end - self.start
        vec2 = other.end - other.start
        vec3 = other.start - self.start
        vec1_cross_vec2 = vec1.scalar_cross_product(vec2)
        vec3_cross_vec1 = vec3.scalar_cross_product(vec1)
        vec3_cross_vec2 = vec3.scalar_cross_product(vec2)

        if abs(vec1_cross_vec2) < PARALLEL_EPSILON:
            if abs(vec3_cross_vec1) >= PARALLEL_EPSILON:
                return None  # parallel, never meet
            vec1_sq = vec1.dot_product(vec1)
            if vec1_sq < PARALLEL_EPSILON:
                return self.start if other.contains_point(self.start, POINT_EQUALITY_TOLERANCE) else None
            t0 = vec3.dot_product(vec1) / vec1_sq
            t1 = t0 + (vec2.dot_product(vec1) / vec1_sq)
            are_lines_opposite = vec2.dot_product(vec1) < 0.0
            if ((not are_lines_opposite and (t0 > 1.0 or t1 < 0.0)) or
                    (are_lines_opposite and (t1 > 1.0 or t0 < 0.0))):
                return None
            return self.start + (vec1 * max(0.0, min(t0, t1)))

        t = vec3_cross_vec2 / vec1_cross_vec2
        u = vec3_cross_vec1 / vec1_cross_vec2
        if not is_outside_allowed and (t < 0.0 or t > 1.0 or u < 0.0 or u > 1.0):
            return None
        return self.start + (vec1 * t)

    def closest_point_to(self, point: Point2D) -> Point2D:
        length_sq = self.start.squared_dist_to(self.end)
        if length_sq < PARALLEL_EPSILON:
            return self.start
        line_vec = self.end - self.start
        t = (point - self.start).dot_product(line_vec) / length_sq
        t = max(min(t, 1.0), 0.0)
        return self.start + (line_vec * t)

    def min_dist_to(self, point: Point2D) -> float:
        return point.dist_to(self.closest_point_to(point))

    def squared_min_dist_to(self, point: Point2D) -> float:
        return point.squared_dist_to(self.closest_point_to(point))

    def contains_point(self, point: Point2D, dist_threshold: float = 1e-3) -> bool:
        return self.min_dist_to(point) < dist_threshold

    def __eq__(self, other) -> bool:
        if not isinstance(other, LineSegment2D):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    __hash__ = None

    def __repr__(self) -> str:
        return f'<start: {self.start!r}, end: {self.end!r}>'


@dataclass(frozen=True, eq=False)
class Circle:
    """Circle with center (x, y) and radius r."""
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0

    @property
    def center(self) -> Point2D:
        return Point2D(self.x, self.y)

    def dist_to(self, point: Point2D) -> float:
        """Distance from the circle's center to `point`."""
        return self.center.dist_to(point)

    @staticmethod
    def from_points(a: Point2D, b: Point2D, c: Point2D) -> Optional['Circle']:
        """
        Circumcircle of three points.

        Args:
            a, b, c: Points on the circle

        Returns:
            Circle through all three points, or None if they are collinear
        """
        d = 2.0 * ((a.x * (b.y - c.y)) + (b.x * (c.y - a.y)) + (c.x * (a.y - b.y)))
        if abs(d) < COLLINEAR_EPSILON:
            return None

        a_sq = (a.x ** 2) + (a.y ** 2)
        b_sq = (b.x ** 2) + (b.y ** 2)
        c_sq = (c.x ** 2) + (c.y ** 2)
        ux = ((a_sq * (b.y - c.y)) + (b_sq * (c.y - a.y)) + (c_sq * (a.y - b.y))) / d
        uy = ((a_sq * (c.x - b.x)) + (b_sq * (a.x - c.x)) + (c_sq * (b.x - a.x))) / d
        radius = math.hypot(a.x - ux, a.y - uy)
        return Circle(ux, uy, radius)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Circle):
            return NotImplemented
        return self.center == other.center and abs(self.r - other.r) < POINT_EQUALITY_TOLERANCE

    __hash__ = None
