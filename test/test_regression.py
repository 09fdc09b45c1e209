"""
Unit tests for regression line fitting and piecewise segmentation.
"""

import pytest
import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scan_geometry.primitives import LineSegment2D, Point2D
from scan_geometry.regression import (
    _grow_segment_ranges,
    _split_segment_ranges,
    apply_piecewise_regression,
    apply_piecewise_regression_split,
    fit_line_regression,
)


def _l_shape():
    horizontal = np.column_stack([np.arange(10.0), np.zeros(10)])
    vertical = np.column_stack([np.full(9, 9.0), np.arange(1.0, 10.0)])
    return np.vstack([horizontal, vertical])


class TestFitLineRegression:
    """Tests for single segment regression."""

    def test_exact_line(self):
        """Test that points on a line give that line with no error."""
        x = np.arange(5.0)
        points = np.column_stack([x, 2 * x + 1])

        segment, error = fit_line_regression(points)

        assert segment.start == Point2D(0.0, 1.0)
        assert segment.end == Point2D(4.0, 9.0)
        assert error == pytest.approx(0.0, abs=1e-12)

    def test_error_is_sum_of_squared_distances(self):
        """Test the error of a three point zigzag."""
        points = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]])

        segment, error = fit_line_regression(points, is_ordered=True)

        assert segment.start == Point2D(0.0, 1.0 / 3.0)
        assert segment.end == Point2D(2.0, 1.0 / 3.0)
        assert error == pytest.approx(2.0 / 3.0)

    def test_ordered_keeps_scan_direction(self):
        """Test ordered end points against coordinate extrema."""
        x = np.arange(4.0, -1.0, -1.0)
        points = np.column_stack([x, x])

        ordered, _ = fit_line_regression(points, is_ordered=True)
        unordered, _ = fit_line_regression(points)

        assert ordered.start == Point2D(4.0, 4.0)
        assert ordered.end == Point2D(0.0, 0.0)
        assert unordered.start == Point2D(0.0, 0.0)
        assert unordered.end == Point2D(4.0, 4.0)

    def test_vertical_points_swap_axis(self):
        """Test that a vertical range regresses x on y."""
        points = np.column_stack([np.ones(5), np.arange(5.0)])

        segment, error = fit_line_regression(points, is_ordered=True)

        assert segment.start == Point2D(1.0, 0.0)
        assert segment.end == Point2D(1.0, 4.0)
        assert error == pytest.approx(0.0, abs=1e-12)

    def test_sub_range(self):
        """Test fitting only part of the cloud."""
        points = np.array([[9.0, 9.0], [0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [9.0, -9.0]])

        segment, error = fit_line_regression(points, 1, 3, is_ordered=True)

        assert segment == LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0))
        assert error == pytest.approx(0.0, abs=1e-12)

    def test_invalid_ranges_give_default(self):
        """Test that bad index ranges return an empty segment."""
        points = np.column_stack([np.arange(5.0), np.zeros(5)])

        for start, end in [(3, 3), (3, 1), (0, 5), (5, 6)]:
            segment, error = fit_line_regression(points, start, end)
            assert segment == LineSegment2D()
            assert error == 0.0

        segment, error = fit_line_regression(np.array([[1.0, 1.0]]))
        assert segment == LineSegment2D()


class TestPiecewiseRegression:
    """Tests for bottom-up piecewise regression."""

    def test_initial_ranges_even(self):
        """Test pairing of an even number of points."""
        points = np.array([[0, 0], [1, 1], [2, 0], [3, 1], [4, 0], [5, 1]], dtype=float)

        assert _grow_segment_ranges(points, 1e-6) == [(0, 1), (2, 3), (4, 5)]

    def test_initial_ranges_odd(self):
        """Test that the last range takes the leftover point."""
        points = np.array([[0, 0], [1, 1], [2, 0], [3, 1], [4, 0]], dtype=float)

        assert _grow_segment_ranges(points, 1e-6) == [(0, 1), (2, 4)]

    def test_two_points(self):
        """Test the smallest cloud that gives a segment."""
        points = np.array([[0.0, 0.0], [1.0, 1.0]])

        assert _grow_segment_ranges(points, 0.1) == [(0, 1)]
        assert len(apply_piecewise_regression(points)) == 1

    def test_ranges_cover_cloud(self):
        """Test that the ranges are contiguous and cover every point."""
        rng = np.random.default_rng(42)
        points = np.cumsum(rng.normal(0, 0.1, (51, 2)), axis=0)

        ranges = _grow_segment_ranges(points, 0.05)

        assert ranges[0][0] == 0
        assert ranges[-1][1] == 50
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert start == end + 1

    def test_l_shape(self):
        """Test that an L shaped cloud gives two segments."""
        segments = apply_piecewise_regression(_l_shape(), error_threshold=0.1)

        assert len(segments) == 2
        assert segments[0] == LineSegment2D(Point2D(0.0, 0.0), Point2D(9.0, 0.0))
        assert segments[1] == LineSegment2D(Point2D(9.0, 1.0), Point2D(9.0, 9.0))

    def test_l_shape_with_shared_corner(self):
        """Test that a corner point repeated in both walls stays with its own wall."""
        horizontal = np.column_stack([np.arange(10.0), np.zeros(10)])
        vertical = np.column_stack([np.full(10, 9.0), np.arange(10.0)])
        points = np.vstack([horizontal, vertical])

        assert _grow_segment_ranges(points, 0.1) == [(0, 9), (10, 19)]
        segments = apply_piecewise_regression(points, error_threshold=0.1)
        assert segments == [
            LineSegment2D(Point2D(0.0, 0.0), Point2D(9.0, 0.0)),
            LineSegment2D(Point2D(9.0, 0.0), Point2D(9.0, 9.0)),
        ]

    def test_straight_line(self):
        """Test that a straight cloud gives one segment."""
        x = np.linspace(0, 5, 30)
        points = np.column_stack([x, 0.3 * x - 1])

        segments = apply_piecewise_regression(points)

        assert len(segments) == 1
        assert segments[0].start == Point2D(0.0, -1.0)
        assert segments[0].end == Point2D(5.0, 0.5)

    def test_degenerate_input(self):
        """Test small clouds and invalid thresholds."""
        assert apply_piecewise_regression(np.zeros((0, 2))) == []
        assert apply_piecewise_regression(np.array([[1.0, 1.0]])) == []
        with pytest.raises(ValueError):
            apply_piecewise_regression(_l_shape(), error_threshold=0.0)


class TestPiecewiseRegressionSplit:
    """Tests for top-down piecewise regression."""

    def test_l_shape(self):
        """Test that the split variant finds the corner."""
        segments = apply_piecewise_regression_split(_l_shape(), error_threshold=0.1)

        assert len(segments) == 2
        assert segments[0] == LineSegment2D(Point2D(0.0, 0.0), Point2D(9.0, 0.0))
        assert segments[1] == LineSegment2D(Point2D(9.0, 1.0), Point2D(9.0, 9.0))

    def test_good_fit_is_not_split(self):
        """Test that a cloud under the error threshold stays whole."""
        points = np.column_stack([np.arange(6.0), np.zeros(6)])

        pieces = _split_segment_ranges(points, 0.1)

        assert len(pieces) == 1
        assert pieces[0][:2] == (0, 5)

    def test_single_point_ranges_are_dropped(self):
        """Test that one point residues of a split give no segment."""
        points = np.array([[0, 0], [1, 0], [2, 0], [3, 2], [4, 0]], dtype=float)

        pieces = _split_segment_ranges(points, 0.1)
        segments = apply_piecewise_regression_split(points, 0.1)

        assert [p[:2] for p in pieces] == [(0, 2), (3, 3), (4, 4)]
        assert len(segments) == 1
        assert segments[0] == LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0))

    def test_degenerate_input(self):
        """Test small clouds and invalid thresholds."""
        assert apply_piecewise_regression_split(np.array([[1.0, 1.0]])) == []
        with pytest.raises(ValueError):
            apply_piecewise_regression_split(_l_shape(), error_threshold=-1.0)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
