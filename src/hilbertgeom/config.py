"""
Configuration management for hilbertgeom.

Named numeric tolerances used across the kernel, plus a YAML loader that
lets a caller override them without touching code.
"""

import os
from dataclasses import dataclass, field

import yaml


# Distance below which a point counts as lying on a region edge. Smaller
# values reject more sample points near the boundary as "interior".
BOUNDARY_TOLERANCE = 1e-6

# Determinant floor for the 2x2 line-intersection solve. Lines closer to
# parallel than this are reported as non-intersecting.
PARALLEL_EPSILON = 1e-10

# Chebyshev distance (in region units) under which two sampled bisector
# points are accepted as a common intersection. Must be at least the arc
# tracing resolution or intersections are missed; larger values return a
# match sooner but less accurately.
BISECTOR_SNAP_DISTANCE = 1.0

# Allowed |d(s, p) - d(t, p)| for a grid sample to be kept on a Thompson
# bisector. Coarser grids need a looser epsilon to produce a connected curve.
HILBERT_AGREEMENT_EPSILON = 1e-2

# Slack allowed when checking that a candidate Hilbert ball covers a site.
# Absorbs the sampling error of circumcenters found on traced bisectors.
ENCLOSING_TOLERANCE = 1e-2

# Default x step of the bounded arc tracer. Point count grows linearly with
# 1 / resolution.
ARC_RESOLUTION = 1.0

# Scale applied to a raw displacement before it is used as a warp velocity.
VELOCITY_SCALE = 0.001

# |1 + p.v| below DENOMINATOR_FLOOR is replaced by +/- DENOMINATOR_CLAMP so the
# projective map cannot blow up near the unit circle.
DENOMINATOR_FLOOR = 1e-5
DENOMINATOR_CLAMP = 1e-3

# Two sites closer than this fraction of the region's bounding-box diagonal are
# treated as the same site. Distances between sites closer than that are
# dominated by rounding in the cross-ratio.
COINCIDENCE_TOLERANCE = 1e-12

# Smallest Hilbert pi accepted from a grid sample. Unit balls of planar norms
# have pi in [3, 4]; lower values come from ball vertices squeezed against the
# boundary. Raising it blanks more of the field near the boundary.
MIN_BALL_PI = 3.0


@dataclass
class ToleranceConfig:
    """Numeric tolerances for geometric predicates."""
    boundary: float = BOUNDARY_TOLERANCE
    parallel: float = PARALLEL_EPSILON
    snap_distance: float = BISECTOR_SNAP_DISTANCE
    agreement_epsilon: float = HILBERT_AGREEMENT_EPSILON
    enclosing: float = ENCLOSING_TOLERANCE
    coincidence: float = COINCIDENCE_TOLERANCE
    min_ball_pi: float = MIN_BALL_PI


@dataclass
class BisectorConfig:
    """Configuration for bisector tracing."""
    resolution: float = ARC_RESOLUTION
    thompson_resolution: float = 1.0


@dataclass
class WarpConfig:
    """Configuration for the projective space-warp."""
    velocity_scale: float = VELOCITY_SCALE
    denominator_floor: float = DENOMINATOR_FLOOR
    denominator_clamp: float = DENOMINATOR_CLAMP


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class KernelConfig:
    """Complete kernel configuration."""
    tolerance: ToleranceConfig = field(default_factory=ToleranceConfig)
    bisector: BisectorConfig = field(default_factory=BisectorConfig)
    warp: WarpConfig = field(default_factory=WarpConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


_SECTIONS = ("tolerance", "bisector", "warp", "tracing")


def get_config(config=None):
    """Return the given configuration, or the defaults when none is given."""
    return config if config is not None else KernelConfig()


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = KernelConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass."""
    for section in _SECTIONS:
        if section not in yaml_data:
            continue
        target = getattr(config, section)
        for key, value in (yaml_data[section] or {}).items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = KernelConfig()

    yaml_data = {
        "tolerance": {
            "boundary": config.tolerance.boundary,
            "parallel": config.tolerance.parallel,
            "snap_distance": config.tolerance.snap_distance,
            "agreement_epsilon": config.tolerance.agreement_epsilon,
            "enclosing": config.tolerance.enclosing,
            "coincidence": config.tolerance.coincidence,
            "min_ball_pi": config.tolerance.min_ball_pi,
        },
        "bisector": {
            "resolution": config.bisector.resolution,
            "thompson_resolution": config.bisector.thompson_resolution,
        },
        "warp": {
            "velocity_scale": config.warp.velocity_scale,
            "denominator_floor": config.warp.denominator_floor,
            "denominator_clamp": config.warp.denominator_clamp,
        },
        "tracing": {
            "enabled": config.tracing.enabled,
            "level": config.tracing.level,
        },
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
