"""
Line Segment Merging.

This module joins fitted line segments that continue one another. All
merge passes modify the given list in place; a merged segment is always a
new LineSegment2D, so segment objects shared with the caller are left
untouched.
"""

import logging
from typing import List

from .primitives import LineSegment2D
from .regression import apply_piecewise_regression
from .utils import calc_projected_point_on_line_through, calc_shortest_angle, check_positive


logger = logging.getLogger(__name__)


def _angle_gap(first: LineSegment2D, second: LineSegment2D) -> float:
    return abs(calc_shortest_angle(first.angle(), second.angle()))


def merge_close_lines(
    line_segments: List[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
):
    """
    Merge consecutive segments that continue each other, in place.

    Segment i absorbs segment i+1 when the gap from i's end to i+1's start
    is below `distance_threshold` and their directions differ by less than
    `angle_threshold`. After a merge the same index is checked again.

    Args:
        line_segments: Ordered segments, modified in place
        distance_threshold: Maximum end-to-start gap
        angle_threshold: Maximum angle between the segments (radians)
    """
    check_positive('distance_threshold', distance_threshold)
    check_positive('angle_threshold', angle_threshold)
    if len(line_segments) < 2:
        return

    initial_count = len(line_segments)
    i = 0
    while i < len(line_segments) - 1:
        current = line_segments[i]
        following = line_segments[i + 1]
        if (current.end.dist_to(following.start) < distance_threshold and
                _angle_gap(current, following) < angle_threshold):
            line_segments[i] = LineSegment2D(current.start, following.end)
            del line_segments[i + 1]
            continue
        i += 1

    logger.debug(f'Merged {initial_count} close lines into {len(line_segments)}')


def merge_close_lines_bf(
    line_segments: List[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
):
    """
    Merge segments that continue each other at any index distance, in place.

    Pairs (i, i + skip) are checked for skip = 1, 2, ... in either direction
    (i's end to the other's start, or the other's end to i's start). The
    skip only grows after a full pass at that distance merges nothing; any
    merge sends the search back to skip = 1, so the result is a fixed point.

    Args:
        line_segments: Segments, modified in place
        distance_threshold: Maximum end-to-start gap
        angle_threshold: Maximum angle between the segments (radians)
    """
    check_positive('distance_threshold', distance_threshold)
    check_positive('angle_threshold', angle_threshold)
    if len(line_segments) < 2:
        return

    initial_count = len(line_segments)
    skip_index = 1
    while skip_index < len(line_segments):
        merged_lines = False
        i = 0
        while i + skip_index < len(line_segments):
            current = line_segments[i]
            other = line_segments[i + skip_index]
            if _angle_gap(current, other) < angle_threshold:
                if current.end.dist_to(other.start) < distance_threshold:
                    line_segments[i] = LineSegment2D(current.start, other.end)
                    del line_segments[i + skip_index]
                    merged_lines = True
                    continue
                if other.end.dist_to(current.start) < distance_threshold:
                    line_segments[i] = LineSegment2D(other.start, current.end)
                    del line_segments[i + skip_index]
                    merged_lines = True
                    continue
            i += 1

        # A merged segment may now continue one at any separation
        skip_index = 1 if merged_lines else skip_index + 1

    logger.debug(f'Brute force merged {initial_count} lines into {len(line_segments)}')


def _is_co_linear_continuation(
    first: LineSegment2D,
    second: LineSegment2D,
    distance_threshold: float,
    angle_threshold: float,
    perp_dist_threshold: float
) -> bool:
    if first.end.dist_to(second.start) >= distance_threshold:
        return False
    if _angle_gap(first, second) >= angle_threshold:
        return False
    # Both ends of the second segment must lie on the first one's line
    for point in (second.start, second.end):
        proj = calc_projected_point_on_line_through(first.start, first.end, point, False)
        if proj.dist_to(point) >= perp_dist_threshold:
            return False
    return True


def merge_co_linear_lines(
    line_segments: List[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2,
    perp_dist_threshold: float = 0.1
):
    """
    Merge co-linear line segments, in place.

    Segment i absorbs segment j (any i != j) when j starts close to i's end,
    points the same way, and both of j's end points lie within
    `perp_dist_threshold` of the infinite line through i. Parallel but
    laterally offset segments are therefore kept apart. The scan restarts
    after every merge until a full pass merges nothing.

    Args:
        line_segments: Segments, modified in place
        distance_threshold: Maximum gap from i's end to j's start
        angle_threshold: Maximum angle between the segments (radians)
        perp_dist_threshold: Maximum distance of j's end points from i's line
    """
    check_positive('distance_threshold', distance_threshold)
    check_positive('angle_threshold', angle_threshold)
    check_positive('perp_dist_threshold', perp_dist_threshold)
    if len(line_segments) < 2:
        return

    initial_count = len(line_segments)
    merged_lines = True
    while merged_lines:
        merged_lines = False
        for i, first in enumerate(line_segments):
            for j, second in enumerate(line_segments):
                if i == j:
                    continue
                if _is_co_linear_continuation(
                        first, second, distance_threshold, angle_threshold, perp_dist_threshold):
                    line_segments[i] = LineSegment2D(first.start, second.end)
                    del line_segments[j]
                    merged_lines = True
                    break
            if merged_lines:
                break

    logger.debug(f'Merged {initial_count} co-linear lines into {len(line_segments)}')


def fit_line_segments(
    points,
    regression_error_threshold: float = 0.1,
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
) -> List[LineSegment2D]:
    """
    Fit line segments to an ordered point cloud.

    Runs the bottom-up piecewise regression and merges the resulting
    consecutive segments that continue each other.

    Args:
        points: Array of shape (N, 2), ordered (e.g. by scan angle)
        regression_error_threshold: Maximum regression error per segment
        distance_threshold: Maximum gap between merged segments
        angle_threshold: Maximum angle between merged segments (radians)

    Returns:
        List of LineSegment2D
    """
    lines = apply_piecewise_regression(points, regression_error_threshold)
    merge_close_lines(lines, distance_threshold, angle_threshold)
    return lines
