"""
Unit tests for the geometric primitive types.
"""

import math
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scan_geometry.primitives import Point2D, LineSegment2D, Circle


class TestPoint2D:
    """Tests for Point2D."""

    def test_arithmetic(self):
        """Test vector arithmetic operators."""
        a = Point2D(1.0, 2.0)
        b = Point2D(3.0, 4.0)

        assert a + b == Point2D(4.0, 6.0)
        assert b - a == Point2D(2.0, 2.0)
        assert a * 2.0 == Point2D(2.0, 4.0)
        assert b / 2.0 == Point2D(1.5, 2.0)
        assert a.dot_product(b) == pytest.approx(11.0)
        assert a.scalar_cross_product(b) == pytest.approx(-2.0)

    def test_division_by_zero_is_guarded(self):
        """Test that dividing by zero scales by 1/1e-9 instead of raising."""
        p = Point2D(1.0, -1.0) / 0.0

        assert p.x == pytest.approx(1e9)
        assert p.y == pytest.approx(-1e9)

    def test_approximate_equality(self):
        """Test that points closer than 1e-3 compare equal."""
        assert Point2D(0.0, 0.0) == Point2D(0.0005, 0.0)
        assert Point2D(0.0, 0.0) != Point2D(0.01, 0.0)

    def test_distances_and_angle(self):
        """Test distance, magnitude and bearing helpers."""
        p = Point2D(3.0, 4.0)

        assert p.magnitude() == pytest.approx(5.0)
        assert p.dist_to(Point2D()) == pytest.approx(5.0)
        assert p.squared_dist_to(Point2D(0.0, 4.0)) == pytest.approx(9.0)
        assert Point2D(0.0, 1.0).angle() == pytest.approx(math.pi / 2)
        assert p.as_normalised() == Point2D(0.6, 0.8)
        assert Point2D().as_normalised() == Point2D()

    def test_radial_construction(self):
        """Test creating a point from polar coordinates."""
        p = Point2D.init_from_radial_coord(2.0, math.pi / 2)

        assert p == Point2D(0.0, 2.0)


class TestLineSegment2D:
    """Tests for LineSegment2D."""

    def test_derived_quantities(self):
        """Test angle, length, slope, constant and center."""
        seg = LineSegment2D(Point2D(0.0, 1.0), Point2D(2.0, 3.0))

        assert seg.angle() == pytest.approx(math.pi / 4)
        assert seg.length() == pytest.approx(math.sqrt(8.0))
        assert seg.slope() == pytest.approx(1.0)
        assert seg.constant() == pytest.approx(1.0)
        assert seg.center() == Point2D(1.0, 2.0)
        assert seg.unit_vector() == Point2D(math.sqrt(0.5), math.sqrt(0.5))

    def test_vertical_slope_uses_epsilon(self):
        """Test that a vertical segment gets a large finite slope."""
        seg = LineSegment2D(Point2D(0.0, 0.0), Point2D(0.0, 1.0))

        assert seg.slope() == pytest.approx(1e6)

    def test_default_segment_is_zero_length(self):
        """Test the default constructed segment."""
        seg = LineSegment2D()

        assert seg.length() == 0.0
        assert seg.start == Point2D() and seg.end == Point2D()

    def test_crossing_intersection(self):
        """Test intersection of two crossing segments."""
        a = LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 2.0))
        b = LineSegment2D(Point2D(0.0, 2.0), Point2D(2.0, 0.0))

        assert a.intersects(b)
        assert a.calc_intersection_point_with(b) == Point2D(1.0, 1.0)

    def test_parallel_segments_do_not_intersect(self):
        """Test that parallel disjoint segments return None."""
        a = LineSegment2D(Point2D(0.0, 0.0), Point2D(1.0, 0.0))
        b = LineSegment2D(Point2D(0.0, 1.0), Point2D(1.0, 1.0))

        assert a.calc_intersection_point_with(b) is None
        assert not a.intersects(b)

    def test_collinear_overlap(self):
        """Test that overlapping collinear segments meet at the overlap start."""
        a = LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0))
        b = LineSegment2D(Point2D(1.0, 0.0), Point2D(3.0, 0.0))

        assert a.calc_intersection_point_with(b) == Point2D(1.0, 0.0)

    def test_intersection_outside_bounds(self):
        """Test intersection beyond segment ends with and without extension."""
        a = LineSegment2D(Point2D(0.0, 0.0), Point2D(1.0, 0.0))
        b = LineSegment2D(Point2D(2.0, -1.0), Point2D(2.0, 1.0))

        assert a.calc_intersection_point_with(b) is None
        assert a.calc_intersection_point_with(b, is_outside_allowed=True) == Point2D(2.0, 0.0)

    def test_closest_point_is_clipped(self):
        """Test that the closest point stays on the segment."""
        seg = LineSegment2D(Point2D(0.0, 0.0), Point2D(1.0, 0.0))

        assert seg.closest_point_to(Point2D(2.0, 1.0)) == Point2D(1.0, 0.0)
        assert seg.min_dist_to(Point2D(2.0, 1.0)) == pytest.approx(math.sqrt(2.0))
        assert seg.squared_min_dist_to(Point2D(0.5, 0.3)) == pytest.approx(0.09)
        assert seg.contains_point(Point2D(0.5, 0.0005))


class TestCircle:
    """Tests for Circle."""

    def test_unit_circle_from_points(self):
        """Test circumcircle of three points on the unit circle."""
        circle = Circle.from_points(Point2D(1.0, 0.0), Point2D(0.0, 1.0), Point2D(-1.0, 0.0))

        assert circle is not None
        assert circle.x == pytest.approx(0.0, abs=1e-9)
        assert circle.y == pytest.approx(0.0, abs=1e-9)
        assert circle.r == pytest.approx(1.0)

    def test_offset_circle_from_points(self):
        """Test that a known center and radius are reproduced."""
        center = Point2D(2.0, 3.0)
        radius = 5.0
        pts = [center + Point2D.init_from_radial_coord(radius, a) for a in (0.3, 2.0, 4.1)]

        circle = Circle.from_points(*pts)

        assert circle.center == center
        assert circle.r == pytest.approx(radius)
        for p in pts:
            assert circle.dist_to(p) == pytest.approx(radius)

    def test_collinear_points_give_no_circle(self):
        """Test that collinear points fail circle construction."""
        circle = Circle.from_points(Point2D(0.0, 0.0), Point2D(1.0, 1.0), Point2D(2.0, 2.0))

        assert circle is None


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
