"""
Sector arrangement for a pair of sites.

Lines from each site through every region vertex cut the region into
wedges. Inside one wedge, the chord from the site through any point leaves
the region through the same two edges. Overlaying the wedges of both sites
gives sectors on which the bisector is a single conic.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from shapely.geometry import Polygon

from hilbertgeom.config import BOUNDARY_TOLERANCE
from hilbertgeom.errors import DomainError
from hilbertgeom.geometry.primitives import norm
from hilbertgeom.geometry.region import ConvexRegion
from hilbertgeom.models import Point, Segment
from hilbertgeom.tracer import get_tracer


# Angular gap under which two wedge directions are merged
ANGLE_EPSILON = 1e-12

# Sector cells thinner than this (relative to the region area) are dropped
MIN_SECTOR_AREA = 1e-10


@dataclass(frozen=True)
class Sector:
    """
    One cell of the sector arrangement.

    edges holds the region edge indices (E1, E2, E3, E4): the edges hit
    behind s, beyond a cell point from s, behind t and beyond a cell point
    from t.
    """
    region: ConvexRegion
    edges: Tuple[int, int, int, int]

    @property
    def is_middle(self):
        """Both chords run along the same line, so the bisector piece is straight."""
        e1, e2, e3, e4 = self.edges
        return e1 == e4 and e2 == e3

    @property
    def has_bisector(self):
        """Cells where both sites see the same edge pair hold no bisector."""
        e1, e2, e3, e4 = self.edges
        return not (e1 == e3 and e2 == e4)

    def contains(self, point, tol=BOUNDARY_TOLERANCE):
        """Containment including the cell boundary."""
        return self.region.contains(point) or self.region.on_boundary(point, tol)


def omega_edges(site, point, region):
    """
    Edges hit by the chord from a site through a point.

    Returns:
        (index of the edge behind the site, index of the edge beyond the point)

    Raises:
        DomainError: if the chord does not cross the boundary twice
    """
    intersections = region.intersect_with_line(Segment(start=site, end=point))
    if len(intersections) != 2:
        raise DomainError(f"chord through site meets the boundary {len(intersections)} times")

    i1, i2 = intersections
    if norm(i1, site) < norm(i1, point):
        behind, beyond = i1, i2
    else:
        behind, beyond = i2, i1

    return region.find_segment(behind), region.find_segment(beyond)


def _wedge_directions(site, region):
    """Sorted, de-duplicated directions from a site to each vertex and away from it."""
    angles = []
    for v in region.vertices:
        theta = math.atan2(v.y - site.y, v.x - site.x)
        angles.append(theta % (2 * math.pi))
        angles.append((theta + math.pi) % (2 * math.pi))

    angles.sort()
    unique = []
    for a in angles:
        if not unique or a - unique[-1] > ANGLE_EPSILON:
            unique.append(a)

    if len(unique) > 1 and unique[0] + 2 * math.pi - unique[-1] <= ANGLE_EPSILON:
        unique.pop()

    return unique


def site_wedges(site, region):
    """
    Wedge polygons around a site, one per pair of adjacent directions.

    Each wedge spans less than pi and reaches past the whole region, so
    intersecting it with the region gives the exact cell.
    """
    min_x, min_y, max_x, max_y = region.bounds
    reach = 4.0 * math.hypot(max_x - min_x, max_y - min_y) + 1.0

    directions = _wedge_directions(site, region)
    wedges = []

    for k, start in enumerate(directions):
        end = directions[(k + 1) % len(directions)]
        if end <= start:
            end += 2 * math.pi
        middle = 0.5 * (start + end)

        ring = [(site.x, site.y)]
        for theta in (start, middle, end):
            ring.append((site.x + reach * math.cos(theta), site.y + reach * math.sin(theta)))
        wedges.append(Polygon(ring))

    return wedges


def build_sectors(s, t, region):
    """
    Overlay the wedges of two sites on the region.

    Returns:
        list of Sector objects, including cells that hold no bisector
    """
    tracer = get_tracer()

    omega = region.to_shapely()
    min_area = MIN_SECTOR_AREA * abs(region.area)
    t_wedges = site_wedges(t, region)
    sectors = []

    for s_wedge in site_wedges(s, region):
        s_cell = omega.intersection(s_wedge)
        if s_cell.is_empty or s_cell.area <= min_area:
            continue

        for t_wedge in t_wedges:
            cell = s_cell.intersection(t_wedge)
            if cell.is_empty or cell.area <= min_area:
                continue

            cell_region = ConvexRegion.from_shapely(cell)
            if cell_region is None:
                continue

            rep = cell.representative_point()
            rep = Point(x=rep.x, y=rep.y)

            e1, e2 = omega_edges(s, rep, region)
            e3, e4 = omega_edges(t, rep, region)
            sectors.append(Sector(region=cell_region, edges=(e1, e2, e3, e4)))

    tracer.event(f"Built {len(sectors)} sectors")
    return sectors
