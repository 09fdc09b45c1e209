"""
Laser Scan Preparation.

This module provides utilities for turning raw laser range readings into
2D point clouds and putting them into the bearing order expected by the
ordered clustering.
"""

import math
import numpy as np
from typing import List

from .utils import as_point_array, check_positive


class ScanHandler:
    """
    Helpers for converting range readings to numpy point arrays.
    """

    @staticmethod
    def scan_to_points(
        ranges,
        angle_min: float,
        angle_increment: float,
        range_min: float = 0.0,
        range_max: float = float('inf')
    ) -> np.ndarray:
        """
        Convert polar range readings to 2D Cartesian coordinates.

        Readings that are NaN, infinite, not above `range_min` or not below
        `range_max` are dropped.

        Args:
            ranges: Sequence of range readings, one per beam
            angle_min: Bearing of the first beam in radians
            angle_increment: Angular step between beams
            range_min: Lower range limit (exclusive)
            range_max: Upper range limit (exclusive)

        Returns:
            Numpy array of shape (N, 2), in beam order
        """
        ranges = np.asarray(ranges, dtype=float)
        angles = angle_min + (np.arange(len(ranges)) * angle_increment)

        valid_mask = np.isfinite(ranges) & (ranges > range_min) & (ranges < range_max)
        valid_ranges = ranges[valid_mask]
        valid_angles = angles[valid_mask]

        return np.column_stack([
            valid_ranges * np.cos(valid_angles),
            valid_ranges * np.sin(valid_angles)
        ])

    @staticmethod
    def order_points_based_on_angle(points, angle_offset: float = 0.0) -> np.ndarray:
        """
        Sort points by the bearing they make with the origin.

        Args:
            points: Array of shape (N, 2)
            angle_offset: Bearings below -pi + angle_offset are shifted by
                2*pi, moving the split of the sweep away from -pi/+pi

        Returns:
            Sorted copy of the points
        """
        pts = as_point_array(points)
        angles = np.arctan2(pts[:, 1], pts[:, 0])
        angles = np.where(angles < -math.pi + angle_offset, angles + (2 * math.pi), angles)
        return pts[np.argsort(angles, kind='stable')]

    @staticmethod
    def segment_by_gap(points, gap_threshold: float = 0.5) -> List[np.ndarray]:
        """
        Segment points into clusters based on gaps between consecutive points.

        Args:
            points: Numpy array of shape (N, 2), expected to be in scan order
            gap_threshold: Distance above which consecutive points are split

        Returns:
            List of numpy arrays, each containing points in a segment
        """
        check_positive('gap_threshold', gap_threshold)
        pts = as_point_array(points)
        if len(pts) < 2:
            return [pts] if len(pts) > 0 else []

        distances = np.sqrt(np.sum(np.diff(pts, axis=0) ** 2, axis=1))
        gap_indices = np.where(distances > gap_threshold)[0]
        return np.split(pts, gap_indices + 1)
