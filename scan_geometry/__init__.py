"""
Scan Geometry - line and circle extraction from 2D range-sensor point clouds.

This package provides clustering, RANSAC and regression fitting and segment
merging for point clouds such as laser scans.
"""

__version__ = '1.0.0'

from .primitives import Point2D, LineSegment2D, Circle
from .clustering import cluster_points, cluster_ordered_points
from .ransac_core import (
    RANSACLine2D,
    RANSACCircle2D,
    fit_line_ransac,
    fit_line_segment_ransac,
    fit_line_segments_ransac,
    fit_circle_ransac,
)
from .regression import (
    fit_line_regression,
    apply_piecewise_regression,
    apply_piecewise_regression_split,
)
from .merging import (
    merge_close_lines,
    merge_close_lines_bf,
    merge_co_linear_lines,
    fit_line_segments,
)
from .scan import ScanHandler
from .config import ExtractorConfig, load_config
from .pipeline import LineExtractor, ExtractionResult

__all__ = [
    'Point2D',
    'LineSegment2D',
    'Circle',
    'cluster_points',
    'cluster_ordered_points',
    'RANSACLine2D',
    'RANSACCircle2D',
    'fit_line_ransac',
    'fit_line_segment_ransac',
    'fit_line_segments_ransac',
    'fit_circle_ransac',
    'fit_line_regression',
    'apply_piecewise_regression',
    'apply_piecewise_regression_split',
    'merge_close_lines',
    'merge_close_lines_bf',
    'merge_co_linear_lines',
    'fit_line_segments',
    'ScanHandler',
    'ExtractorConfig',
    'load_config',
    'LineExtractor',
    'ExtractionResult',
]
