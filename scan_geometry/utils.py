"""
Utility functions for geometric fitting.

Point-cloud conversion, angle arithmetic, line projections and Bezier spline
generation shared by the clustering, RANSAC, regression and merging modules.
"""

import math
import numpy as np
from enum import Enum
from typing import List, Sequence, Optional

from .primitives import Point2D


PERPENDICULAR_SLOPE_EPSILON = 1e-8
PERPENDICULAR_SLOPE_LIMIT = 1e8
PROJECTION_EPSILON = 1e-10


class WindingOrder(Enum):
    """Turning direction of three consecutive points."""
    CLOCKWISE = 'clockwise'
    COUNTER_CLOCKWISE = 'counter_clockwise'
    COLLINEAR = 'collinear'


def as_point_array(points) -> np.ndarray:
    """
    Convert a point cloud to a float array of shape (N, 2).

    Args:
        points: Array of shape (N, 2) or a sequence of Point2D / (x, y) pairs

    Returns:
        Numpy array of shape (N, 2)
    """
    if isinstance(points, np.ndarray):
        arr = points.astype(float, copy=False)
    else:
        points = list(points)
        if len(points) == 0:
            return np.zeros((0, 2), dtype=float)
        arr = np.array(
            [(p.x, p.y) if isinstance(p, Point2D) else (p[0], p[1]) for p in points],
            dtype=float
        )

    if arr.size == 0:
        return np.zeros((0, 2), dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f'Expected points of shape (N, 2), got {arr.shape}')
    return arr


def check_positive(name: str, value: float):
    """Raise ValueError unless `value` is strictly positive."""
    if not value > 0:
        raise ValueError(f'{name} must be positive, got {value}')


def check_non_negative(name: str, value):
    if value < 0:
        raise ValueError(f'{name} must not be negative, got {value}')


def resolve_index_range(
    points: np.ndarray,
    start_index: int,
    end_index: Optional[int]
) -> tuple:
    """
    Resolve an inclusive index range over `points`.

    `end_index=None` means the last point. Degenerate ranges
    (end_index <= start_index) are returned untouched so callers can answer
    them with their sentinel output; a non-degenerate range reaching outside
    the cloud raises IndexError.
    """
    if end_index is None:
        end_index = len(points) - 1
    if end_index > start_index and (start_index < 0 or end_index >= len(points)):
        raise IndexError(
            f'Index range [{start_index}, {end_index}] outside cloud of {len(points)} points'
        )
    return start_index, end_index


def calc_mean_point(points, start_index: int = 0, end_index: Optional[int] = None) -> Point2D:
    """Mean of the points in the inclusive range [start_index, end_index]."""
    pts = as_point_array(points)
    if end_index is None:
        end_index = len(pts) - 1
    if len(pts) == 0 or end_index < start_index:
        return Point2D()
    return Point2D.from_array(np.mean(pts[start_index:end_index + 1], axis=0))


def calc_closest_point(points, pt: Point2D = Point2D()) -> Point2D:
    """Point of the cloud nearest to `pt` (first one on ties)."""
    pts = as_point_array(points)
    if len(pts) == 0:
        return Point2D()
    dist_sq = np.sum((pts - pt.as_array()) ** 2, axis=1)
    return Point2D.from_array(pts[int(np.argmin(dist_sq))])


def calc_shortest_angle(angle1: float, angle2: float) -> float:
    """Signed shortest angular difference angle1 - angle2, in [-pi, pi]."""
    return math.atan2(math.sin(angle1 - angle2), math.cos(angle1 - angle2))


def clip(value: float, max_limit: float, min_limit: float) -> float:
    return max(min(value, max_limit), min_limit)


def clip_signed(value: float, max_limit: float, min_limit: float) -> float:
    """Clip the magnitude of `value` and keep its sign."""
    return math.copysign(clip(abs(value), max_limit, min_limit), value)


def clip_angle(raw_angle: float) -> float:
    """Wrap any angle into [-pi, pi]."""
    two_pi = 2.0 * math.pi
    angle = raw_angle
    if abs(raw_angle) > two_pi:
        angle = raw_angle - (math.floor(raw_angle / two_pi) * two_pi)
    if angle > math.pi:
        angle -= two_pi
    elif angle < -math.pi:
        angle += two_pi
    return angle


def calc_perpendicular_angle(angle: float) -> float:
    perpendicular_angle = angle + (math.pi / 2)
    if perpendicular_angle > math.pi:
        perpendicular_angle -= 2 * math.pi
    return perpendicular_angle


def calc_reverse_angle(angle: float) -> float:
    reverse_angle = angle + math.pi
    if reverse_angle > math.pi:
        reverse_angle -= 2 * math.pi
    return reverse_angle


def is_angle_within_bounds(angle: float, max_angle: float, min_angle: float) -> bool:
    """
    Check whether `angle` lies between the two bounds.

    When `min_angle` is not smaller than `max_angle` the bounds are swapped.
    """
    if min_angle < max_angle:
        return min_angle <= angle <= max_angle
    return max_angle <= angle <= min_angle


def find_perpendicular_line_at(m: float, c: float, p: Point2D) -> tuple:
    """
    Slope and constant of the line perpendicular to y = m*x + c through `p`.

    Returns:
        Tuple of (perpendicular_m, perpendicular_c)
    """
    if abs(m) < PERPENDICULAR_SLOPE_EPSILON:
        perpendicular_m = PERPENDICULAR_SLOPE_LIMIT
    else:
        perpendicular_m = -1.0 / m
    perpendicular_c = p.y - (perpendicular_m * p.x)
    return perpendicular_m, perpendicular_c


def calc_projected_point_on_line(m: float, c: float, p: Point2D) -> Point2D:
    """Orthogonal projection of `p` onto the line y = m*x + c."""
    perpendicular_m, perpendicular_c = find_perpendicular_line_at(m, c, p)
    x = (perpendicular_c - c) / (m - perpendicular_m)
    return Point2D(x, (m * x) + c)


def calc_squared_dist_to_line(m: float, c: float, p: Point2D) -> float:
    """Squared perpendicular distance of `p` from the line y = m*x + c."""
    return p.squared_dist_to(calc_projected_point_on_line(m, c, p))


def squared_dists_to_line(m: float, c: float, points: np.ndarray) -> np.ndarray:
    """Vectorised `calc_squared_dist_to_line` for an (N, 2) array."""
    if abs(m) < PERPENDICULAR_SLOPE_EPSILON:
        perpendicular_m = PERPENDICULAR_SLOPE_LIMIT
    else:
        perpendicular_m = -1.0 / m
    perpendicular_c = points[:, 1] - (perpendicular_m * points[:, 0])
    proj_x = (perpendicular_c - c) / (m - perpendicular_m)
    proj_y = (m * proj_x) + c
    return ((points[:, 0] - proj_x) ** 2) + ((points[:, 1] - proj_y) ** 2)


def calc_projected_point_on_line_through(
    line_start: Point2D,
    line_end: Point2D,
    p: Point2D,
    is_segment: bool
) -> Point2D:
    """
    Projection of `p` onto the line through `line_start` and `line_end`.

    Args:
        line_start: A point on the line (segment start)
        line_end: Another point on the line (segment end)
        p: Point to project
        is_segment: Clip the projection to lie between the two points

    Returns:
        Projected point. Coincident line points project everything onto
        `line_start`.
    """
    length_sq = line_start.squared_dist_to(line_end)
    if length_sq < PROJECTION_EPSILON:
        return line_start
    line_vec = line_end - line_start
    t = (p - line_start).dot_product(line_vec) / length_sq
    if is_segment:
        t = clip(t, 1.0, 0.0)
    return line_start + (line_vec * t)


def calc_squared_dist_to_line_through(
    a: Point2D,
    b: Point2D,
    p: Point2D,
    is_segment: bool = False
) -> float:
    """Squared distance of `p` from the line (or segment) through a and b."""
    return p.squared_dist_to(calc_projected_point_on_line_through(a, b, p, is_segment))


def squared_dists_to_line_through(
    a: np.ndarray,
    b: np.ndarray,
    points: np.ndarray,
    is_segment: bool = False
) -> np.ndarray:
    """
    Vectorised `calc_squared_dist_to_line_through` for an (N, 2) array.

    Args:
        a: First point on the line, shape (2,)
        b: Second point on the line, shape (2,)
        points: Array of shape (N, 2)
        is_segment: Clip projections to the segment a-b

    Returns:
        Array of squared distances
    """
    line_vec = b - a
    length_sq = float(np.dot(line_vec, line_vec))
    if length_sq < PROJECTION_EPSILON:
        return np.sum((points - a) ** 2, axis=1)
    t = np.dot(points - a, line_vec) / length_sq
    if is_segment:
        t = np.clip(t, 0.0, 1.0)
    proj = a + np.outer(t, line_vec)
    return np.sum((points - proj) ** 2, axis=1)


def calc_split_index(points: np.ndarray, start_index: int, end_index: int) -> int:
    """
    Index of the interior point farthest from the chord between the range ends.

    Distances are measured to the straight segment pts[start]-pts[end], not
    to any fitted line. The first farthest point wins; if no interior point
    is off the chord, `start_index` is returned.
    """
    interior = points[start_index + 1:end_index]
    if len(interior) == 0:
        return start_index
    dists = squared_dists_to_line_through(
        points[start_index], points[end_index], interior, is_segment=True)
    best = int(np.argmax(dists))
    if dists[best] <= 0.0:
        return start_index
    return start_index + 1 + best


def calc_projected_point_on_major_axis(m: float, c: float, p: Point2D) -> Point2D:
    """
    Project `p` onto y = m*x + c along the axis the line is closer to.

    For |m| < 1 the x coordinate is kept and y is taken from the line,
    otherwise y is kept and x is taken from the line.
    """
    if abs(m) < 1.0:
        return Point2D(p.x, (m * p.x) + c)
    return Point2D((p.y - c) / m, p.y)


def calc_angle_between_points(a: Point2D, b: Point2D, c: Point2D) -> float:
    """Angle at `b` from ray b->a to ray b->c, wrapped into [-pi, pi]."""
    vec_b_a = a - b
    vec_b_c = c - b
    return clip_angle(math.atan2(vec_b_c.y, vec_b_c.x) - math.atan2(vec_b_a.y, vec_b_a.x))


def calc_winding_order(
    a: Point2D,
    b: Point2D,
    c: Point2D,
    tolerance: float = 1e-3
) -> WindingOrder:
    angle = calc_angle_between_points(a, b, c)
    if abs(angle) <= tolerance or abs(abs(angle) - math.pi) <= tolerance:
        return WindingOrder.COLLINEAR
    return WindingOrder.CLOCKWISE if angle > 0 else WindingOrder.COUNTER_CLOCKWISE


def calc_pascal_triangle_row_coefficients(row_num: int) -> List[int]:
    coefficients = [1]
    for i in range(1, row_num + 1):
        coefficients.append((coefficients[-1] * (row_num + 1 - i)) // i)
    return coefficients


def calc_spline_curve_point(
    control_points: Sequence[Point2D],
    coefficients: Sequence[int],
    t: float
) -> Point2D:
    """Bezier curve point at parameter t in [0, 1]."""
    if len(control_points) < 2:
        return control_points[0]
    order = len(control_points) - 1
    x = 0.0
    y = 0.0
    for i, (cp, coef) in enumerate(zip(control_points, coefficients)):
        weight = coef * ((1.0 - t) ** (order - i)) * (t ** i)
        x += weight * cp.x
        y += weight * cp.y
    return Point2D(x, y)


def calc_spline_curve_points(
    control_points: Sequence[Point2D],
    num_of_points: int
) -> List[Point2D]:
    """
    Sample a Bezier curve defined by `control_points`.

    Args:
        control_points: Curve control points, first and last lie on the curve
        num_of_points: Number of samples, including both end points

    Returns:
        List of curve points, empty for fewer than 2 control points or samples
    """
    if len(control_points) < 2 or num_of_points < 2:
        return []

    coefficients = calc_pascal_triangle_row_coefficients(len(control_points) - 1)
    offset = 1.0 / (num_of_points - 1)
    curve_points = [control_points[0]]
    for factor in range(1, num_of_points - 1):
        curve_points.append(calc_spline_curve_point(control_points, coefficients, offset * factor))
    curve_points.append(control_points[-1])
    return curve_points
