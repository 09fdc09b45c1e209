"""
Regression-Based Line Fitting.

This module fits line segments to 2D points by least squares:
- fit_line_regression: Single segment over an index range
- apply_piecewise_regression: Bottom-up segmentation, merging cheapest neighbours
- apply_piecewise_regression_split: Top-down segmentation, splitting worst segments
"""

import logging
import numpy as np
from typing import List, Optional, Tuple

from .primitives import LineSegment2D, Point2D
from .utils import (
    as_point_array,
    calc_split_index,
    check_positive,
    squared_dists_to_line_through,
)


logger = logging.getLogger(__name__)

REGRESSION_DENOMINATOR_EPSILON = 1e-8
# Upper bound used when searching for the cheapest merge
MAX_MERGE_ERROR = 1e6


def fit_line_regression(
    points,
    start_index: int = 0,
    end_index: Optional[int] = None,
    is_ordered: bool = False
) -> Tuple[LineSegment2D, float]:
    """
    Fit a line segment to the points in [start_index, end_index] by least squares.

    The dependent axis is picked from the extent of the range: when it is
    taller than wide, x is regressed on y instead of y on x, so near
    vertical ranges do not blow up the slope.

    Args:
        points: Array of shape (N, 2)
        start_index: First point of the range
        end_index: Last point of the range (inclusive), defaults to the last point
        is_ordered: Take the segment extent from the first and last point of
            the range (scan order) rather than from the coordinate extrema

    Returns:
        Tuple of (line_segment, error) where error is the sum of squared
        distances of the range's points to the segment. Invalid or
        single-point ranges give a zero-length segment and error 0.
    """
    pts = as_point_array(points)
    if end_index is None:
        end_index = len(pts) - 1
    if (len(pts) < 2 or start_index < 0 or
            start_index >= len(pts) or end_index >= len(pts) or
            end_index <= start_index):
        return LineSegment2D(), 0.0

    subset = pts[start_index:end_index + 1]
    mean_pt = np.mean(subset, axis=0)

    if is_ordered:
        start_pt = subset[0]
        end_pt = subset[-1]
    else:
        start_pt = np.min(subset, axis=0)
        end_pt = np.max(subset, axis=0)

    diff = end_pt - start_pt
    swap_axis = abs(diff[0]) < abs(diff[1])

    centered = subset - mean_pt
    numerator = float(np.sum(centered[:, 0] * centered[:, 1]))
    if not swap_axis:
        denominator = float(np.sum(centered[:, 0] ** 2))
    else:
        denominator = float(np.sum(centered[:, 1] ** 2))
    if denominator < REGRESSION_DENOMINATOR_EPSILON:
        denominator = REGRESSION_DENOMINATOR_EPSILON

    if not swap_axis:
        m = numerator / denominator
        c = mean_pt[1] - (m * mean_pt[0])
        start = Point2D(float(start_pt[0]), float((m * start_pt[0]) + c))
        end = Point2D(float(end_pt[0]), float((m * end_pt[0]) + c))
    else:
        n = numerator / denominator
        d = mean_pt[0] - (n * mean_pt[1])
        start = Point2D(float((n * start_pt[1]) + d), float(start_pt[1]))
        end = Point2D(float((n * end_pt[1]) + d), float(end_pt[1]))

    line_segment = LineSegment2D(start, end)
    error = float(np.sum(squared_dists_to_line_through(
        start.as_array(), end.as_array(), subset, is_segment=True)))
    return line_segment, error


def _merge_error(pts: np.ndarray, start_index: int, end_index: int) -> float:
    _, error = fit_line_regression(pts, start_index, end_index, is_ordered=True)
    return error


def _grow_segment_ranges(pts: np.ndarray, error_threshold: float) -> List[Tuple[int, int]]:
    """
    Index ranges of the bottom-up segmentation.

    Starts from pairs of consecutive points (the last range takes 3 points
    when the cloud size is odd) and repeatedly merges the neighbouring
    ranges whose merged fit has the lowest error, while that error is within
    `error_threshold`.
    """
    n_points = len(pts)
    ranges = [[2 * i, (2 * i) + 1] for i in range(n_points // 2)]
    ranges[-1][1] = n_points - 1

    # errors[i] is the error of ranges i and i+1 fitted as one
    errors = [_merge_error(pts, ranges[i][0], ranges[i + 1][1]) for i in range(len(ranges) - 1)]

    while len(ranges) > 1:
        i = 0
        lowest_error = MAX_MERGE_ERROR
        for j, error in enumerate(errors):
            if error < lowest_error:
                lowest_error = error
                i = j

        if lowest_error > error_threshold:
            break

        ranges[i][1] = ranges[i + 1][1]
        del ranges[i + 1]

        if i > 0:
            errors[i - 1] = _merge_error(pts, ranges[i - 1][0], ranges[i][1])
        if i < len(ranges) - 1:
            errors[i + 1] = _merge_error(pts, ranges[i][0], ranges[i + 1][1])
        del errors[i]

    return [(start, end) for start, end in ranges]


def apply_piecewise_regression(points, error_threshold: float = 0.1) -> List[LineSegment2D]:
    """
    Segment an ordered point cloud into lines by bottom-up merging.

    Args:
        points: Array of shape (N, 2), ordered (e.g. by scan angle)
        error_threshold: Maximum regression error of a merged segment

    Returns:
        List of LineSegment2D, in point order. Fewer than 2 points give an
        empty list.
    """
    check_positive('error_threshold', error_threshold)
    pts = as_point_array(points)
    if len(pts) < 2:
        return []

    ranges = _grow_segment_ranges(pts, error_threshold)
    logger.debug(f'Piecewise regression merged {len(pts)} points into {len(ranges)} segments')
    return [fit_line_regression(pts, start, end, is_ordered=True)[0] for start, end in ranges]


def _split_segment_ranges(
    pts: np.ndarray,
    error_threshold: float
) -> List[Tuple[int, int, LineSegment2D]]:
    """
    Index ranges and fitted segments of the top-down segmentation.

    The range with the highest error is split at the point farthest from
    its chord while that error reaches `error_threshold` and the range has
    more than 3 points.
    """
    last_index = len(pts) - 1
    segment, error = fit_line_regression(pts, 0, last_index, is_ordered=True)
    if error < error_threshold:
        return [(0, last_index, segment)]

    ranges = [(0, last_index)]
    segments = [segment]
    errors = [error]

    while True:
        i = 0
        highest_error = 0.0
        for j, err in enumerate(errors):
            if err > highest_error:
                highest_error = err
                i = j

        if highest_error < error_threshold:
            break

        start_index, end_index = ranges[i]
        if end_index - start_index < 3:
            break

        split_index = calc_split_index(pts, start_index, end_index)
        first, first_error = fit_line_regression(pts, start_index, split_index, is_ordered=True)
        second, second_error = fit_line_regression(pts, split_index + 1, end_index, is_ordered=True)
        ranges[i:i + 1] = [(start_index, split_index), (split_index + 1, end_index)]
        segments[i:i + 1] = [first, second]
        errors[i:i + 1] = [first_error, second_error]

    return [(start, end, seg) for (start, end), seg in zip(ranges, segments)]


def apply_piecewise_regression_split(points, error_threshold: float = 0.1) -> List[LineSegment2D]:
    """
    Segment an ordered point cloud into lines by top-down splitting.

    Args:
        points: Array of shape (N, 2), ordered (e.g. by scan angle)
        error_threshold: Regression error below which a segment is kept whole

    Returns:
        List of LineSegment2D, in point order. Single-point residue ranges
        left behind by a split are dropped.
    """
    check_positive('error_threshold', error_threshold)
    pts = as_point_array(points)
    if len(pts) < 2:
        return []

    pieces = _split_segment_ranges(pts, error_threshold)
    segments = [seg for start, end, seg in pieces if start != end]
    logger.debug(f'Piecewise regression split {len(pts)} points into {len(segments)} segments')
    return segments
