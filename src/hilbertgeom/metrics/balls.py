"""
Metric balls of the Hilbert family and the Hilbert pi map.

Every ball is a convex polygon whose vertices sit on the spokes of its
center. Hilbert and forward Funk balls stay inside the region; the reverse
Funk ball can extend past the boundary and is clipped to it.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from shapely.geometry import Polygon

from hilbertgeom.config import MIN_BALL_PI, get_config
from hilbertgeom.geometry.primitives import as_point, convex_hull
from hilbertgeom.geometry.region import ConvexRegion
from hilbertgeom.metrics.distance import check_interior, hilbert_distance, is_interior, sites_coincide
from hilbertgeom.metrics.spokes import (
    compute_spokes, point_on_forward_spoke, point_on_reverse_spoke, point_on_spoke,
)
from hilbertgeom.models import MetricKind, Point
from hilbertgeom.tracer import get_tracer, trace


def _check_radius(radius):
    if radius < 0 or not math.isfinite(radius):
        raise ValueError(f"ball radius must be finite and non-negative, got {radius}")


def hilbert_ball(site, radius, region):
    """
    Boundary of the Hilbert ball of a given radius.

    Each spoke contributes two vertices, one walked towards each of its
    endpoints; the ball is their convex hull.
    """
    site = as_point(site)
    _check_radius(radius)
    check_interior(site, region)

    if radius == 0:
        return [site]

    points = []
    for spoke in compute_spokes(site, region):
        points.append(point_on_spoke(spoke.a, spoke.c, spoke.d, radius))
        points.append(point_on_spoke(spoke.d, spoke.c, spoke.a, radius))

    return convex_hull(points)


def funk_forward_ball(site, radius, region):
    """Forward Funk ball: the region shrunk towards the site by 1 - e^-r."""
    site = as_point(site)
    _check_radius(radius)
    check_interior(site, region)

    if radius == 0:
        return [site]

    points = [point_on_forward_spoke(spoke.c, spoke.a, radius) for spoke in compute_spokes(site, region)]
    return convex_hull(points)


def _clip(points, region):
    """Intersect a convex point hull with the region."""
    if len(points) < 3:
        return list(points)

    clipped = Polygon([p.as_tuple() for p in points]).intersection(region.to_shapely())
    result = ConvexRegion.from_shapely(clipped)
    return result.vertices if result is not None else []


def funk_reverse_ball(site, radius, region):
    """
    Reverse Funk ball, clipped to the region.

    Vertices a + e^r (c - a) overshoot the site away from each region
    vertex; for large radii the unclipped hull contains the whole region.
    """
    site = as_point(site)
    _check_radius(radius)
    check_interior(site, region)

    if radius == 0:
        return [site]

    points = [point_on_reverse_spoke(spoke.c, spoke.a, radius) for spoke in compute_spokes(site, region)]
    return _clip(convex_hull(points), region)


def thompson_ball(site, radius, region):
    """Thompson ball: the intersection of the forward and reverse Funk balls."""
    forward = funk_forward_ball(site, radius, region)
    if radius == 0:
        return forward

    reverse = funk_reverse_ball(site, radius, region)
    if len(forward) < 3 or len(reverse) < 3:
        return []

    overlap = Polygon([p.as_tuple() for p in forward]).intersection(
        Polygon([p.as_tuple() for p in reverse])
    )
    result = ConvexRegion.from_shapely(overlap)
    return result.vertices if result is not None else []


BALL_FUNCTIONS = {
    MetricKind.HILBERT: hilbert_ball,
    MetricKind.FUNK_FORWARD: funk_forward_ball,
    MetricKind.FUNK_REVERSE: funk_reverse_ball,
    MetricKind.THOMPSON: thompson_ball,
}


def ball_boundary(kind, site, radius, region):
    """Ball boundary in the metric selected by a MetricKind."""
    return BALL_FUNCTIONS[MetricKind(kind)](site, radius, region)


def multi_ball(site, radii, region):
    """
    Several balls around one site.

    Args:
        radii: mapping of MetricKind (or its value) to radius

    Returns:
        dict of MetricKind to ball boundary
    """
    return {MetricKind(kind): ball_boundary(kind, site, r, region) for kind, r in radii.items()}


def ball_perimeter(boundary, region):
    """Length of a closed polygon measured in the Hilbert metric of the region."""
    total = 0.0
    n = len(boundary)
    for i in range(n):
        p = boundary[i]
        q = boundary[(i + 1) % n]
        if sites_coincide(p, q, region):
            continue
        total += hilbert_distance(p, q, region)
    return total


def ball_pi(site, radius, region):
    """Hilbert perimeter of the Hilbert ball divided by its diameter."""
    if radius <= 0:
        raise ValueError("pi is undefined for a non-positive radius")

    boundary = hilbert_ball(site, radius, region)
    return ball_perimeter(boundary, region) / 2.0 / radius


@dataclass
class PiField:
    """
    Hilbert pi sampled on a regular grid.

    values[j, i] is the sample at (xs[i], ys[j]); NaN outside the region.
    """
    xs: np.ndarray
    ys: np.ndarray
    values: np.ndarray
    resolution: float
    radius: float


def _sample_pi(point, radius, region, min_pi=MIN_BALL_PI) -> Optional[float]:
    """Pi at one grid point, or None where it is undefined."""
    if not is_interior(point, region):
        return None

    boundary = hilbert_ball(point, radius, region)
    if len(boundary) < 3 or not all(is_interior(p, region) for p in boundary):
        return None

    value = ball_perimeter(boundary, region) / 2.0 / radius
    if not math.isfinite(value) or value < min_pi:
        return None
    return value


@trace(label="pi_field")
def pi_field(region, radius, resolution=1.0, config=None):
    """
    Sample ball_pi over the bounding box of the region.

    Undefined samples strictly inside the region take the value of the
    nearest defined sample. Samples below config.tolerance.min_ball_pi
    count as undefined.
    """
    tracer = get_tracer()
    min_pi = get_config(config).tolerance.min_ball_pi

    min_x, min_y, max_x, max_y = region.bounds
    min_x -= 1
    min_y -= 1
    max_x += 1
    max_y += 1

    width = int(math.ceil((max_x - min_x) / resolution))
    height = int(math.ceil((max_y - min_y) / resolution))

    xs = min_x + resolution * np.arange(width)
    ys = min_y + resolution * np.arange(height)
    values = np.full((height, width), np.nan)
    inside = np.zeros((height, width), dtype=bool)

    for j, y in enumerate(ys):
        for i, x in enumerate(xs):
            p = Point(x=float(x), y=float(y))
            if not region.contains(p):
                continue
            inside[j, i] = True
            sample = _sample_pi(p, radius, region, min_pi)
            if sample is not None:
                values[j, i] = sample

    defined = ~np.isnan(values)
    missing = inside & ~defined
    if missing.any() and defined.any():
        dj, di = np.nonzero(defined)
        for j, i in zip(*np.nonzero(missing)):
            nearest = np.argmin((dj - j) ** 2 + (di - i) ** 2)
            values[j, i] = values[dj[nearest], di[nearest]]

    tracer.event(f"Sampled {int(inside.sum())} interior points, filled {int(missing.sum())}")

    return PiField(xs=xs, ys=ys, values=values, resolution=resolution, radius=radius)


def pi_gradient(field):
    """
    Unit gradient directions of a pi field.

    Returns:
        (gx, gy) arrays shaped like field.values; zero where the gradient
        vanishes, NaN where it is undefined
    """
    gy, gx = np.gradient(field.values, field.resolution)
    magnitude = np.hypot(gx, gy)

    with np.errstate(invalid="ignore", divide="ignore"):
        ux = np.where(magnitude > 0, gx / magnitude, 0.0)
        uy = np.where(magnitude > 0, gy / magnitude, 0.0)

    ux[np.isnan(magnitude)] = np.nan
    uy[np.isnan(magnitude)] = np.nan
    return ux, uy
