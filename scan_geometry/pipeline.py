"""
Line Extraction Pipeline.

This module chains the fitting stages for one point cloud: ordering,
clustering, per-cluster line fitting and segment merging. Sensor I/O and
visualisation stay with the caller.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .clustering import cluster_points, cluster_ordered_points
from .config import ExtractorConfig
from .merging import fit_line_segments, merge_close_lines, merge_close_lines_bf, merge_co_linear_lines
from .primitives import Circle, LineSegment2D
from .ransac_core import fit_circle_ransac, fit_line_segments_ransac
from .regression import apply_piecewise_regression_split
from .scan import ScanHandler
from .utils import as_point_array


logger = logging.getLogger(__name__)

FIT_METHODS = ('regression', 'split', 'ransac')


@dataclass
class ExtractionResult:
    """Result of running the extraction pipeline on one cloud."""
    clusters: List[np.ndarray]  # Point clusters that were fitted
    line_segments: List[LineSegment2D]  # Final merged segments
    num_fitted: int = 0  # Segments before the extra merge passes
    stage_counts: dict = field(default_factory=dict)


class LineExtractor:
    """
    Extracts line segments and circles from 2D point clouds.

    Every stage is driven by an ExtractorConfig; defaults reproduce
    `fit_line_segments` applied to each cluster of an ordered scan.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()
        if self.config.fit_method not in FIT_METHODS:
            raise ValueError(
                f'Unknown fit_method {self.config.fit_method!r}, expected one of {FIT_METHODS}')

        self.rng = np.random.default_rng(self.config.ransac.random_seed)

        logger.info(
            f'Line extractor initialized\n'
            f'  Fit method: {self.config.fit_method}\n'
            f'  Clustering: {self.config.clustering.enabled} '
            f'(ordered={self.config.clustering.ordered})\n'
            f'  Brute force merge: {self.config.merge.brute_force}\n'
            f'  Co-linear merge: {self.config.merge.co_linear}'
        )

    def cluster(self, points) -> List[np.ndarray]:
        """
        Prepare and cluster a point cloud as configured.

        Args:
            points: Array of shape (N, 2)

        Returns:
            List of clusters; the whole cloud when clustering is disabled
        """
        cfg = self.config.clustering
        pts = as_point_array(points)
        if cfg.order_by_angle:
            pts = ScanHandler.order_points_based_on_angle(pts, cfg.angle_offset)

        if not cfg.enabled:
            return [pts] if len(pts) > 0 else []

        if cfg.ordered:
            return cluster_ordered_points(pts, cfg.cluster_distance_threshold, cfg.min_cluster_size)
        return cluster_points(pts, cfg.cluster_distance_threshold, cfg.min_cluster_size)

    def fit_cluster(self, cluster: np.ndarray) -> List[LineSegment2D]:
        """Fit line segments to a single ordered cluster."""
        merge = self.config.merge
        if self.config.fit_method == 'regression':
            return fit_line_segments(
                cluster,
                self.config.regression.error_threshold,
                merge.distance_threshold,
                merge.angle_threshold
            )

        if self.config.fit_method == 'split':
            lines = apply_piecewise_regression_split(cluster, self.config.regression.error_threshold)
            merge_close_lines(lines, merge.distance_threshold, merge.angle_threshold)
            return lines

        ransac = self.config.ransac
        lines = fit_line_segments_ransac(
            cluster, ransac.score_threshold, ransac.delta, ransac.itr_limit, self.rng)
        merge_close_lines(lines, merge.distance_threshold, merge.angle_threshold)
        return lines

    def extract(self, points) -> ExtractionResult:
        """
        Run the full pipeline on one point cloud.

        Args:
            points: Array of shape (N, 2)

        Returns:
            ExtractionResult with the clusters and merged line segments
        """
        clusters = self.cluster(points)
        if not clusters:
            logger.warning('No clusters to fit lines to')
            return ExtractionResult(clusters=[], line_segments=[])

        lines = []
        for cluster in clusters:
            lines.extend(self.fit_cluster(cluster))
        num_fitted = len(lines)
        stage_counts = {'clusters': len(clusters), 'fitted': num_fitted}

        merge = self.config.merge
        if merge.brute_force:
            merge_close_lines_bf(lines, merge.distance_threshold, merge.angle_threshold)
            stage_counts['brute_force'] = len(lines)
        if merge.co_linear:
            merge_co_linear_lines(
                lines, merge.distance_threshold, merge.angle_threshold, merge.perp_dist_threshold)
            stage_counts['co_linear'] = len(lines)

        logger.debug(
            f'Extracted {len(lines)} line segments from {len(clusters)} clusters '
            f'({num_fitted} before merging)'
        )
        return ExtractionResult(
            clusters=clusters,
            line_segments=lines,
            num_fitted=num_fitted,
            stage_counts=stage_counts
        )

    def fit_circles(self, points) -> List[Tuple[Circle, float]]:
        """
        Fit one circle per cluster and keep the well supported ones.

        Args:
            points: Array of shape (N, 2)

        Returns:
            List of (circle, score) with score >= ransac.min_circle_score
        """
        ransac = self.config.ransac
        circles = []
        for cluster in self.cluster(points):
            if len(cluster) < 3:
                logger.debug('Skipping cluster too small for a circle')
                continue
            circle, score = fit_circle_ransac(
                cluster, delta=ransac.delta, itr_limit=ransac.itr_limit, rng=self.rng)
            if score >= ransac.min_circle_score:
                circles.append((circle, score))

        logger.debug(f'Detected {len(circles)} circles')
        return circles
