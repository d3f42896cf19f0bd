"""
Spoke construction for sites inside a convex region.

A spoke runs from a region vertex through the site to the far side of the
boundary. Metric balls of every Hilbert-family metric have their vertices on
spokes, so this is the common first step of ball construction.
"""

import math

from hilbertgeom.config import BOUNDARY_TOLERANCE
from hilbertgeom.geometry.primitives import intersect_segments, norm, point_segment_distance
from hilbertgeom.models import Point, Segment, Spoke


def compute_spokes(site, region):
    """
    Compute one spoke per region vertex.

    For each vertex A, the line A -> site is intersected with every edge;
    among the hits lying on their edge, beyond the site and distinct from A,
    the one closest to the site is the far endpoint D.

    Returns:
        list of Spoke objects, in vertex order
    """
    spokes = []

    for vertex in region.vertices:
        ray = Segment(start=vertex, end=site)
        dx = site.x - vertex.x
        dy = site.y - vertex.y

        closest = None
        min_dist = math.inf

        for seg in region.segments:
            intersection = intersect_segments(seg, ray, mode="line")
            if intersection is None or intersection.is_close(vertex, BOUNDARY_TOLERANCE):
                continue
            if point_segment_distance(intersection, seg) > BOUNDARY_TOLERANCE * max(1.0, seg.length):
                continue
            # Must continue past the site, away from the vertex
            if (intersection.x - site.x) * dx + (intersection.y - site.y) * dy <= 0:
                continue

            dist = norm(intersection, site)
            if dist < min_dist:
                min_dist = dist
                closest = intersection

        if closest is not None:
            spokes.append(Spoke(a=vertex, c=site, d=closest))

    return spokes


def point_on_spoke(a, c, d, r):
    """
    Point at Hilbert distance r from c on the spoke a - c - d.

    The point lies between a and c; r = 0 returns c and r -> infinity
    approaches a.
    """
    scalar = 1.0 / (1.0 + (norm(c, d) / norm(a, c)) * math.exp(2.0 * r))
    return Point(x=a.x + scalar * (d.x - a.x), y=a.y + scalar * (d.y - a.y))


def point_on_forward_spoke(c, a, r):
    """Forward Funk ball vertex: a + e^-r (c - a)."""
    scalar = math.exp(-r)
    return Point(x=a.x + scalar * (c.x - a.x), y=a.y + scalar * (c.y - a.y))


def point_on_reverse_spoke(c, a, r):
    """Reverse Funk ball vertex: a + e^r (c - a)."""
    scalar = math.exp(r)
    return Point(x=a.x + scalar * (c.x - a.x), y=a.y + scalar * (c.y - a.y))
