"""
Point Cloud Clustering.

This module groups 2D point clouds into spatially coherent clusters:
- cluster_points: Flood fill over the distance graph of an unordered cloud
- cluster_ordered_points: Single pass over a cloud sorted by bearing
"""

import logging
import numpy as np
from typing import List

from .utils import as_point_array, check_positive, check_non_negative


logger = logging.getLogger(__name__)


def cluster_points(
    points,
    cluster_distance_threshold: float = 0.1,
    min_cluster_size: int = 3
) -> List[np.ndarray]:
    """
    Cluster an unordered 2D point cloud by distance.

    A cluster grows breadth-first from the first remaining point: every
    remaining point closer than the threshold to a point taken from the
    fringe joins the fringe. Remaining points are always visited in input
    order, so membership is deterministic.

    Args:
        points: Array of shape (N, 2) or sequence of points
        cluster_distance_threshold: Maximum gap between neighbouring points
        min_cluster_size: Clusters with this many points or fewer are dropped

    Returns:
        List of arrays of shape (M, 2), in discovery order
    """
    check_positive('cluster_distance_threshold', cluster_distance_threshold)
    check_non_negative('min_cluster_size', min_cluster_size)

    pts = as_point_array(points)
    threshold_dist_sq = cluster_distance_threshold ** 2
    remaining = np.arange(len(pts))
    clusters = []

    while len(remaining) > 0:
        cluster = []
        fringe = [int(remaining[0])]
        remaining = remaining[1:]

        while fringe:
            index = fringe.pop(0)
            cluster.append(index)
            if len(remaining) == 0:
                continue

            dist_sq = np.sum((pts[remaining] - pts[index]) ** 2, axis=1)
            close = dist_sq < threshold_dist_sq
            fringe.extend(int(i) for i in remaining[close])
            remaining = remaining[~close]

        if len(cluster) > min_cluster_size:
            clusters.append(pts[cluster])

    logger.debug(f'Clustered {len(pts)} points into {len(clusters)} clusters')
    return clusters


def cluster_ordered_points(
    points,
    cluster_distance_threshold: float = 0.1,
    min_cluster_size: int = 3
) -> List[np.ndarray]:
    """
    Cluster a 2D point cloud that is ordered by bearing (e.g. a laser scan).

    Consecutive points stay in one cluster while each is closer than the
    threshold to the previous one. If the first point of the first cluster
    is also close to the last point of the last cluster (a full 360 degree
    scan), the last cluster is moved in front of the first one.

    Args:
        points: Array of shape (N, 2), sorted by angle
        cluster_distance_threshold: Maximum gap between consecutive points
        min_cluster_size: Clusters with this many points or fewer are dropped

    Returns:
        List of ordered arrays of shape (M, 2)
    """
    check_positive('cluster_distance_threshold', cluster_distance_threshold)
    check_non_negative('min_cluster_size', min_cluster_size)

    pts = as_point_array(points)
    threshold_dist_sq = cluster_distance_threshold ** 2
    clusters = []

    if len(pts) > 0:
        # Cluster boundaries sit wherever consecutive points are too far apart
        gaps_sq = np.sum(np.diff(pts, axis=0) ** 2, axis=1)
        breaks = np.where(gaps_sq >= threshold_dist_sq)[0] + 1
        for cluster in np.split(pts, breaks):
            if len(cluster) > min_cluster_size:
                clusters.append(cluster)

    if len(clusters) > 1:
        wrap_dist_sq = np.sum((clusters[0][0] - clusters[-1][-1]) ** 2)
        if wrap_dist_sq < threshold_dist_sq:
            last = clusters.pop()
            clusters[0] = np.vstack([last, clusters[0]])
            logger.debug('Merged last cluster into first across scan wraparound')

    logger.debug(f'Clustered {len(pts)} ordered points into {len(clusters)} clusters')
    return clusters
