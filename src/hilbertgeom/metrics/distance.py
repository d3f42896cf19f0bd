"""
Hilbert, Funk and Thompson distances.

All three are computed from the chord through the two points: its boundary
endpoints I1 (on the side of the first point) and I2 (on the side of the
second) and the cross-ratio of I1, s1, s2, I2.
"""

import math

from hilbertgeom.config import BOUNDARY_TOLERANCE, COINCIDENCE_TOLERANCE
from hilbertgeom.errors import DomainError
from hilbertgeom.geometry.primitives import as_point, norm
from hilbertgeom.metrics.spokes import point_on_spoke
from hilbertgeom.models import MetricKind, Segment


def is_interior(point, region, tol=BOUNDARY_TOLERANCE):
    """Check if a point is strictly inside the region and off its boundary."""
    return region.contains(point) and not region.on_boundary(point, tol)


def check_interior(point, region, tol=BOUNDARY_TOLERANCE):
    """Raise DomainError unless the point is strictly inside the region."""
    if not is_interior(point, region, tol):
        raise DomainError(f"point ({point.x:.6g}, {point.y:.6g}) is not strictly inside the region")


def sites_coincide(site1, site2, region, tol=COINCIDENCE_TOLERANCE):
    """Check if two sites are closer than tol times the region's extent."""
    return norm(site1, site2) <= tol * region.extent


def collinear_points(site1, site2, intersections):
    """
    Order the chord endpoints around two sites.

    The endpoint pairing with the smaller total distance decides which
    intersection belongs to which site.

    Returns:
        (I1, site1, site2, I2) with I1 beyond site1 and I2 beyond site2
    """
    i1, i2 = intersections

    if norm(i1, site1) + norm(i2, site2) < norm(i1, site2) + norm(i2, site1):
        return i1, site1, site2, i2
    return i2, site1, site2, i1


def chord(site1, site2, region):
    """
    Boundary endpoints of the chord through two interior sites.

    Raises:
        DomainError: coincident sites, a site not strictly inside, or a
            line that does not cross the boundary twice
    """
    site1 = as_point(site1)
    site2 = as_point(site2)

    if sites_coincide(site1, site2, region):
        raise DomainError("distance between coincident sites is undefined")

    check_interior(site1, region)
    check_interior(site2, region)

    intersections = region.intersect_with_line(Segment(start=site1, end=site2))
    if len(intersections) != 2:
        raise DomainError(f"line through sites meets the boundary {len(intersections)} times")

    return collinear_points(site1, site2, intersections)


def hilbert_distance(site1, site2, region):
    """
    Hilbert distance between two interior sites.

    0.5 * ln(|s1 I2| |s2 I1| / (|s2 I2| |s1 I1|))

    Sites are put in lexicographic order first so that swapping them gives
    a bitwise identical result.
    """
    site1 = as_point(site1)
    site2 = as_point(site2)
    if site2.as_tuple() < site1.as_tuple():
        site1, site2 = site2, site1

    i1, s1, s2, i2 = chord(site1, site2, region)
    return 0.5 * math.log(norm(s1, i2) * norm(s2, i1) / norm(s2, i2) / norm(s1, i1))


def funk_distance(site1, site2, region):
    """Forward Funk distance ln(|s1 I2| / |s2 I2|)."""
    i1, s1, s2, i2 = chord(site1, site2, region)
    return math.log(norm(s1, i2) / norm(s2, i2))


def reverse_funk_distance(site1, site2, region):
    """Reverse Funk distance ln(|s2 I1| / |s1 I1|), the forward distance from site2 to site1."""
    i1, s1, s2, i2 = chord(site1, site2, region)
    return math.log(norm(s2, i1) / norm(s1, i1))


def thompson_distance(site1, site2, region):
    """Thompson distance: the larger of the two one-directional Funk distances."""
    i1, s1, s2, i2 = chord(site1, site2, region)
    return max(math.log(norm(s1, i2) / norm(s2, i2)), math.log(norm(s2, i1) / norm(s1, i1)))


DISTANCE_FUNCTIONS = {
    MetricKind.HILBERT: hilbert_distance,
    MetricKind.FUNK_FORWARD: funk_distance,
    MetricKind.FUNK_REVERSE: reverse_funk_distance,
    MetricKind.THOMPSON: thompson_distance,
}


def distance(kind, site1, site2, region):
    """Distance in the metric selected by a MetricKind."""
    return DISTANCE_FUNCTIONS[MetricKind(kind)](site1, site2, region)


def hilbert_midpoint(site1, site2, region):
    """
    Point on the segment site1 - site2 at equal Hilbert distance from both.

    Walks half the distance from site2 towards site1 along their chord.
    """
    i1, s1, s2, i2 = chord(site1, site2, region)
    r = 0.5 * math.log(norm(s1, i2) * norm(s2, i1) / norm(s2, i2) / norm(s1, i1))
    return point_on_spoke(i1, s2, i2, r / 2.0)
