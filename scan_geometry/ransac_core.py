"""
Core RANSAC Algorithm Implementations.

This module provides RANSAC fitting of geometric primitives to 2D point sets:
- RANSACLine2D: Fits an infinite line y = m*x + c
- RANSACCircle2D: Fits a circle through three sampled points

Both work on an inclusive index range of a point cloud and score a model by
the fraction of the range lying within `distance_threshold` of it.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Tuple
from abc import ABC, abstractmethod

from .primitives import Circle, LineSegment2D, Point2D
from .utils import (
    as_point_array,
    calc_projected_point_on_major_axis,
    calc_split_index,
    check_non_negative,
    check_positive,
    resolve_index_range,
    squared_dists_to_line,
    squared_dists_to_line_through,
)


logger = logging.getLogger(__name__)

SLOPE_DENOMINATOR_EPSILON = 1e-8
# Initial segment extent; only overwritten by inliers
EXTENT_SENTINEL = 1e6

# Process-wide sampling source used when no generator is injected
_default_rng = np.random.default_rng()


@dataclass
class RANSACResult:
    """Result of RANSAC fitting."""
    coefficients: np.ndarray  # [m, c] for lines, [x, y, r] for circles
    inlier_indices: np.ndarray  # Cloud indices of inliers of the best model
    score: float  # Ratio of inliers to points in the range
    num_iterations: int  # Number of iterations performed


class RANSACBase(ABC):
    """Base class for RANSAC algorithms."""

    def __init__(
        self,
        max_iterations: int = 10,
        distance_threshold: float = 0.2,
        random_seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize RANSAC algorithm.

        Args:
            max_iterations: Number of random samples to try
            distance_threshold: Maximum distance for a point to be considered inlier
            random_seed: Optional seed for reproducibility
            rng: Optional generator to sample from; takes precedence over
                `random_seed`. The process-wide generator is used if neither
                is given.
        """
        check_non_negative('max_iterations', max_iterations)
        check_positive('distance_threshold', distance_threshold)
        self.max_iterations = max_iterations
        self.distance_threshold = distance_threshold
        if rng is not None:
            self.rng = rng
        elif random_seed is not None:
            self.rng = np.random.default_rng(random_seed)
        else:
            self.rng = _default_rng

    @abstractmethod
    def _min_samples(self) -> int:
        """Return minimum number of points the range must hold."""
        pass

    @abstractmethod
    def _draw_sample(self, num_points: int) -> List[int]:
        """Draw sample offsets into a range of `num_points` points."""
        pass

    @abstractmethod
    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        """Fit model to sample points. Returns None if fitting fails."""
        pass

    @abstractmethod
    def _inlier_mask(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        """Boolean mask of points within tolerance of the model."""
        pass

    @abstractmethod
    def _coefficients(self, points: np.ndarray, best_model: Optional[np.ndarray]) -> np.ndarray:
        """Turn the best sampled model into output coefficients."""
        pass

    def _draw_index(self, num_points: int) -> int:
        return int(self.rng.integers(num_points))

    def fit(
        self,
        points,
        start_index: int = 0,
        end_index: Optional[int] = None
    ) -> RANSACResult:
        """
        Fit model to the points in [start_index, end_index] using RANSAC.

        Args:
            points: Array of shape (N, 2)
            start_index: First point of the range
            end_index: Last point of the range (inclusive), defaults to the
                last point of the cloud

        Returns:
            RANSACResult. Ranges with fewer than `_min_samples()` points give
            zero coefficients and a score of 0.
        """
        pts = as_point_array(points)
        start_index, end_index = resolve_index_range(pts, start_index, end_index)
        n_points = end_index - start_index + 1

        if n_points < self._min_samples():
            return self._degenerate_result()

        subset = pts[start_index:end_index + 1]
        best_model = None
        best_inlier_count = 0
        best_inliers = np.zeros(n_points, dtype=bool)

        for _ in range(self.max_iterations):
            sample_indices = self._draw_sample(n_points)

            model = self._fit_model(subset[sample_indices])
            if model is None:
                continue

            inliers = self._inlier_mask(subset, model)
            inlier_count = int(np.sum(inliers))

            # Strictly better only, so the first model found wins ties
            if inlier_count > best_inlier_count:
                best_model = model
                best_inlier_count = inlier_count
                best_inliers = inliers

        return RANSACResult(
            coefficients=self._coefficients(subset, best_model),
            inlier_indices=np.where(best_inliers)[0] + start_index,
            score=best_inlier_count / n_points,
            num_iterations=self.max_iterations
        )

    def _degenerate_result(self) -> RANSACResult:
        return RANSACResult(
            coefficients=self._coefficients(np.zeros((0, 2)), None),
            inlier_indices=np.array([], dtype=int),
            score=0.0,
            num_iterations=0
        )


class RANSACLine2D(RANSACBase):
    """
    RANSAC algorithm for fitting lines to 2D point sets.

    Line equation: y = m*x + c

    Sample pairs are drawn with replacement, so a pair may repeat a point;
    such a pair scores points by their distance to that single point.
    """

    def _min_samples(self) -> int:
        return 2

    def _draw_sample(self, num_points: int) -> List[int]:
        return [self._draw_index(num_points), self._draw_index(num_points)]

    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        # The model is the sampled pair itself; slope form comes at the end
        return points.copy()

    def _inlier_mask(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        dists_sq = squared_dists_to_line_through(model[0], model[1], points)
        return dists_sq < self.distance_threshold ** 2

    def _coefficients(self, points: np.ndarray, best_model: Optional[np.ndarray]) -> np.ndarray:
        if best_model is None:
            if len(points) < 2:
                return np.zeros(2)
            # No sample scored; fall back to the pair spanning the range
            best_model = points[[0, -1]]
        p1, p2 = best_model
        dx = p1[0] - p2[0]
        if abs(dx) < SLOPE_DENOMINATOR_EPSILON:
            dx = SLOPE_DENOMINATOR_EPSILON
        m = (p1[1] - p2[1]) / dx
        c = p1[1] - (m * p1[0])
        return np.array([m, c])


class RANSACCircle2D(RANSACBase):
    """
    RANSAC algorithm for fitting circles to 2D point sets.

    Each iteration draws three pairwise distinct points. A collinear triple
    has no circumcircle; the iteration is spent without a candidate.
    """

    def _min_samples(self) -> int:
        return 3

    def _draw_sample(self, num_points: int) -> List[int]:
        ind_1 = self._draw_index(num_points)
        ind_2 = ind_1
        while ind_2 == ind_1:
            ind_2 = self._draw_index(num_points)
        ind_3 = ind_1
        while ind_3 in (ind_1, ind_2):
            ind_3 = self._draw_index(num_points)
        return [ind_1, ind_2, ind_3]

    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        circle = Circle.from_points(*(Point2D.from_array(p) for p in points))
        if circle is None:
            return None
        return np.array([circle.x, circle.y, circle.r])

    def _inlier_mask(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        center = model[:2]
        radius = model[2]
        dists = np.sqrt(np.sum((points - center) ** 2, axis=1))
        return np.abs(dists - radius) < self.distance_threshold

    def _coefficients(self, points: np.ndarray, best_model: Optional[np.ndarray]) -> np.ndarray:
        if best_model is None:
            return np.zeros(3)
        return best_model


def fit_line_ransac(
    points,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[float, float, float]:
    """
    Fit a line y = m*x + c to a range of points using RANSAC.

    Args:
        points: Array of shape (N, 2)
        start_index: First point of the range
        end_index: Last point of the range (inclusive), defaults to the last point
        delta: Inlier tolerance (perpendicular distance)
        itr_limit: Number of sampled pairs
        rng: Optional random generator

    Returns:
        Tuple of (m, c, score). A range of fewer than 2 points returns
        (0, 0, 0).
    """
    result = RANSACLine2D(max_iterations=itr_limit, distance_threshold=delta, rng=rng).fit(
        points, start_index, end_index)
    m, c = result.coefficients
    return float(m), float(c), float(result.score)


def fit_line_segment_ransac(
    points,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[LineSegment2D, float]:
    """
    Fit a line segment to a range of points using RANSAC.

    The extent of the segment comes from the inliers of the best line that
    are extreme along the line's major axis (x when |m| < 1, else y),
    projected onto the line along that axis.

    Note:
        The segment starts from sentinel end points at +/-1e6 that only
        inliers overwrite. If no point of the range is an inlier the
        sentinels are returned as they are.

    Args:
        points: Array of shape (N, 2)
        start_index: First point of the range
        end_index: Last point of the range (inclusive)
        delta: Inlier tolerance (perpendicular distance)
        itr_limit: Number of sampled pairs
        rng: Optional random generator

    Returns:
        Tuple of (line_segment, score)
    """
    pts = as_point_array(points)
    start_index, end_index = resolve_index_range(pts, start_index, end_index)
    m, c, score = fit_line_ransac(pts, start_index, end_index, delta, itr_limit, rng)

    start = Point2D(EXTENT_SENTINEL, EXTENT_SENTINEL)
    end = Point2D(-EXTENT_SENTINEL, -EXTENT_SENTINEL)
    subset = pts[start_index:end_index + 1]
    if len(subset) == 0:
        return LineSegment2D(start, end), score

    inliers = squared_dists_to_line(m, c, subset) < delta ** 2
    axis = 0 if abs(m) < 1.0 else 1
    coords = subset[:, axis]

    lower = inliers & (coords < EXTENT_SENTINEL)
    if np.any(lower):
        first_min = int(np.argmin(np.where(lower, coords, np.inf)))
        start = calc_projected_point_on_major_axis(m, c, Point2D.from_array(subset[first_min]))
    upper = inliers & (coords > -EXTENT_SENTINEL)
    if np.any(upper):
        first_max = int(np.argmax(np.where(upper, coords, -np.inf)))
        end = calc_projected_point_on_major_axis(m, c, Point2D.from_array(subset[first_max]))

    return LineSegment2D(start, end), score


def fit_line_segments_ransac(
    points,
    score_threshold: float = 0.9,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> List[LineSegment2D]:
    """
    Split an ordered point cloud into line segments scored by RANSAC.

    Starting from one segment over the whole cloud, the segment with the
    lowest score is split at the point farthest from its chord until every
    score is above `score_threshold` or the worst segment has 3 points or
    fewer.

    Args:
        points: Array of shape (N, 2), ordered
        score_threshold: Inlier ratio a segment must exceed
        delta: Inlier tolerance
        itr_limit: RANSAC iterations per segment
        rng: Optional random generator

    Returns:
        List of LineSegment2D, in point order
    """
    check_positive('score_threshold', score_threshold)
    pts = as_point_array(points)
    if len(pts) < 2:
        return []

    ranges = [(0, len(pts) - 1)]
    segment, score = fit_line_segment_ransac(pts, 0, len(pts) - 1, delta, itr_limit, rng)
    if score > score_threshold:
        return [segment]

    segments = [segment]
    scores = [score]
    while True:
        i = int(np.argmin(scores))
        if scores[i] > score_threshold:
            break

        start_index, end_index = ranges[i]
        if end_index - start_index < 3:
            break

        split_index = calc_split_index(pts, start_index, end_index)
        ranges[i:i + 1] = [(start_index, split_index), (split_index + 1, end_index)]
        first, first_score = fit_line_segment_ransac(
            pts, start_index, split_index, delta, itr_limit, rng)
        second, second_score = fit_line_segment_ransac(
            pts, split_index + 1, end_index, delta, itr_limit, rng)
        segments[i:i + 1] = [first, second]
        scores[i:i + 1] = [first_score, second_score]

    logger.debug(f'RANSAC split {len(pts)} points into {len(segments)} segments')
    return segments


def fit_circle_ransac(
    points,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[Circle, float]:
    """
    Fit a circle to a range of points using RANSAC.

    Args:
        points: Array of shape (N, 2)
        start_index: First point of the range
        end_index: Last point of the range (inclusive)
        delta: Radius error tolerated for inliers
        itr_limit: Number of sampled triples, collinear ones included
        rng: Optional random generator

    Returns:
        Tuple of (circle, score). Fewer than 3 points, or no non-collinear
        sample, gives a zero circle.
    """
    result = RANSACCircle2D(max_iterations=itr_limit, distance_threshold=delta, rng=rng).fit(
        points, start_index, end_index)
    x, y, r = result.coefficients
    return Circle(float(x), float(y), float(r)), float(result.score)
