"""
Hilbert circumcenter and minimum enclosing Hilbert ball.
"""

from itertools import combinations

from hilbertgeom.bisector.bisector import compute_bisector, intersect_bisectors
from hilbertgeom.config import get_config
from hilbertgeom.geometry.primitives import as_point
from hilbertgeom.metrics.balls import hilbert_ball
from hilbertgeom.metrics.distance import (
    check_interior, hilbert_distance, hilbert_midpoint, sites_coincide,
)
from hilbertgeom.models import EnclosingBall
from hilbertgeom.tracer import get_tracer, trace


def hilbert_circumcenter(site1, site2, site3, region, resolution=None, tolerance=None,
                         config=None):
    """
    Point equidistant from three sites, found on their sampled bisectors.

    Returns:
        Point, or None when the three bisectors do not meet inside the region
    """
    s1, s2, s3 = (as_point(s) for s in (site1, site2, site3))
    bisectors = [
        compute_bisector(s1, s2, region, resolution, config),
        compute_bisector(s1, s3, region, resolution, config),
        compute_bisector(s2, s3, region, resolution, config),
    ]
    return intersect_bisectors(bisectors, tolerance, config)


def _distance(a, b, region):
    """Hilbert distance that is zero for coincident points."""
    if sites_coincide(a, b, region):
        return 0.0
    return hilbert_distance(a, b, region)


def _covering_radius(center, sites, region):
    return max(_distance(center, s, region) for s in sites)


def _unique_sites(sites, region):
    unique = []
    for s in sites:
        s = as_point(s)
        if not any(sites_coincide(s, u, region) for u in unique):
            unique.append(s)
    return unique


@trace(label="minimum_enclosing_ball")
def minimum_enclosing_ball(sites, region, resolution=None, tolerance=None,
                           snap_distance=None, config=None):
    """
    Smallest Hilbert ball containing every site.

    Candidate centers are the sites themselves, Hilbert midpoints of pairs
    and circumcenters of triples. A pair whose midpoint ball already covers
    every site is optimal, since any enclosing ball has radius at least
    half the pair's distance; triples are only tried otherwise.

    Args:
        resolution: bisector tracing resolution (config.bisector.resolution)
        tolerance: covering slack (config.tolerance.enclosing)
        snap_distance: bisector match distance (config.tolerance.snap_distance)

    Returns:
        EnclosingBall

    Raises:
        ValueError: if no sites are given
        DomainError: if a site is not strictly inside the region
    """
    tracer = get_tracer()
    config = get_config(config)
    if resolution is None:
        resolution = config.bisector.resolution
    if tolerance is None:
        tolerance = config.tolerance.enclosing
    if snap_distance is None:
        snap_distance = config.tolerance.snap_distance

    sites = _unique_sites(sites, region)
    if not sites:
        raise ValueError("minimum enclosing ball of an empty site set")
    for s in sites:
        check_interior(s, region, config.tolerance.boundary)

    if len(sites) == 1:
        return EnclosingBall(center=sites[0], radius=0.0, defining_sites=[sites[0]], boundary=[sites[0]])

    best = None
    with tracer.span("pair_candidates", module="enclosing"):
        for a, b in combinations(sites, 2):
            half = hilbert_distance(a, b, region) / 2.0
            center = hilbert_midpoint(a, b, region)
            radius = _covering_radius(center, sites, region)
            if radius <= half + tolerance and (best is None or radius < best[1]):
                best = (center, radius)

    if best is None and len(sites) >= 3:
        bisectors = {}

        def bisector(i, j):
            if (i, j) not in bisectors:
                bisectors[(i, j)] = compute_bisector(sites[i], sites[j], region, resolution, config)
            return bisectors[(i, j)]

        with tracer.span("triple_candidates", module="enclosing"):
            for i, j, k in combinations(range(len(sites)), 3):
                center = intersect_bisectors([bisector(i, j), bisector(i, k), bisector(j, k)], snap_distance)
                if center is None or not region.contains(center):
                    continue
                radius = _covering_radius(center, sites, region)
                if best is None or radius < best[1]:
                    best = (center, radius)

    if best is None:
        # Sampled circumcenters all missed; settle for the best pair midpoint
        tracer.event("No circumcenter found, using pair midpoints", level="WARN")
        for a, b in combinations(sites, 2):
            center = hilbert_midpoint(a, b, region)
            radius = _covering_radius(center, sites, region)
            if best is None or radius < best[1]:
                best = (center, radius)

    center, radius = best
    defining = [s for s in sites if abs(_distance(center, s, region) - radius) <= tolerance]
    tracer.event(f"Enclosing ball radius={radius:.4f} defined by {len(defining)} sites")

    return EnclosingBall(
        center=center,
        radius=radius,
        defining_sites=defining,
        boundary=hilbert_ball(center, radius, region),
    )
