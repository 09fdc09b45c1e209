"""
Configuration management for scan geometry extraction.

Loads YAML parameter files with defaults matching the fitting functions.
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Optional

import yaml


logger = logging.getLogger(__name__)


@dataclass
class ClusteringConfig:
    """Configuration for point clustering."""
    enabled: bool = True
    ordered: bool = True  # points arrive sorted by bearing
    order_by_angle: bool = False
    angle_offset: float = 0.0
    cluster_distance_threshold: float = 0.1
    min_cluster_size: int = 3


@dataclass
class RANSACConfig:
    """Configuration for RANSAC line and circle fitting."""
    delta: float = 0.2
    itr_limit: int = 10
    score_threshold: float = 0.9
    min_circle_score: float = 0.8
    random_seed: Optional[int] = None


@dataclass
class RegressionConfig:
    """Configuration for piecewise regression."""
    error_threshold: float = 0.1


@dataclass
class MergeConfig:
    """Configuration for line segment merging."""
    distance_threshold: float = 0.2
    angle_threshold: float = 0.2  # radians
    perp_dist_threshold: float = 0.1
    brute_force: bool = False
    co_linear: bool = False


@dataclass
class ExtractorConfig:
    """Complete line extraction configuration."""
    fit_method: str = "regression"  # "regression", "split" or "ransac"
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    ransac: RANSACConfig = field(default_factory=RANSACConfig)
    regression: RegressionConfig = field(default_factory=RegressionConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)


SECTIONS = ("clustering", "ransac", "regression", "merge")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values. Unknown keys are ignored.
    """
    config = ExtractorConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass."""
    if not isinstance(yaml_data, dict):
        logger.warning(f"Ignoring config of type {type(yaml_data).__name__}, expected a mapping")
        return config

    for section in SECTIONS:
        section_config = getattr(config, section)
        section_data = yaml_data.get(section) or {}
        if not isinstance(section_data, dict):
            logger.warning(f"Ignoring section {section}, expected a mapping")
            continue
        for key, value in section_data.items():
            if hasattr(section_config, key):
                setattr(section_config, key, value)
            else:
                logger.warning(f"Ignoring unknown parameter {section}.{key}")

    if "fit_method" in yaml_data:
        config.fit_method = yaml_data["fit_method"]

    return config


def config_to_dict(config):
    """Plain dictionary view of a configuration, as written to YAML."""
    data = {"fit_method": config.fit_method}
    for section in SECTIONS:
        data[section] = asdict(getattr(config, section))
    return data


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(ExtractorConfig()), f, sort_keys=False)

