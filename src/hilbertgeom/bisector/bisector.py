"""
Hilbert and Thompson bisectors and their intersection.

A Hilbert bisector is assembled piece by piece: one conic arc per sector of
the arrangement, traced between the points where the conic crosses the
sector boundary.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from hilbertgeom.bisector.conic import (
    bisector_conic_equation, classify_conic, conic_line_roots, conic_segment_crossings,
)
from hilbertgeom.bisector.sectors import Sector, build_sectors
from hilbertgeom.bisector.trace import polyline_length, trace_arc
from hilbertgeom.config import BOUNDARY_TOLERANCE, get_config
from hilbertgeom.errors import DegenerateConicError, DomainError
from hilbertgeom.geometry.primitives import as_point, line_equation, norm, points_on_line
from hilbertgeom.metrics.distance import (
    check_interior, hilbert_midpoint, is_interior, sites_coincide, thompson_distance,
)
from hilbertgeom.models import ConicEquation, ConicKind, Point, Segment
from hilbertgeom.tracer import get_tracer, trace


# Rows of the first bisector compared per numpy batch
_BATCH_ROWS = 512

# Relative size under which the normal of a combined line counts as zero
LINE_EPSILON = 1e-9


@dataclass(frozen=True)
class BisectorPiece:
    """The part of a bisector inside one sector."""
    sector: Sector
    equation: ConicEquation
    kind: ConicKind
    start: Point
    end: Point
    points: Tuple[Point, ...]
    straight: bool = False


@dataclass(frozen=True)
class Bisector:
    """
    Hilbert bisector of two sites.

    Pieces are ordered along the bisector and oriented consistently, so
    points reads as one polyline.
    """
    site1: Point
    site2: Point
    pieces: Tuple[BisectorPiece, ...] = field(default_factory=tuple)

    @property
    def points(self):
        result = []
        for piece in self.pieces:
            for p in piece.points:
                if result and p.is_close(result[-1], BOUNDARY_TOLERANCE):
                    continue
                result.append(p)
        return result

    @property
    def length(self):
        return polyline_length(self.points)

    def as_array(self):
        """Points as an (n, 2) float array."""
        pts = self.points
        if not pts:
            return np.empty((0, 2))
        return np.array([p.as_tuple() for p in pts], dtype=float)


def _sector_crossings(equation, sector):
    """Distinct points where the conic crosses the boundary of a sector."""
    crossings = []
    for seg in sector.region.segments:
        for p in conic_segment_crossings(equation, seg):
            if not any(p.is_close(q, BOUNDARY_TOLERANCE) for q in crossings):
                crossings.append(p)
    return crossings


def _arc_endpoints(equation, crossings, sector):
    """
    The widest pair of crossings joined by an arc through the sector.

    The perpendicular bisector of the chord between two arc endpoints must
    meet the arc, so a pair counts only if the conic has a point on that
    line strictly inside the sector.
    """
    pairs = [(norm(p, q), p, q) for i, p in enumerate(crossings) for q in crossings[i + 1:]]
    pairs.sort(key=lambda item: item[0], reverse=True)

    for _, p, q in pairs:
        middle = Point(x=0.5 * (p.x + q.x), y=0.5 * (p.y + q.y))
        normal = Point(x=-(q.y - p.y), y=q.x - p.x)
        for u in conic_line_roots(equation, middle, normal):
            if sector.region.contains(Point(x=middle.x + u * normal.x, y=middle.y + u * normal.y)):
                return p, q

    return None


def _evaluate(line, p):
    a, b, c = line
    return a * p.x + b * p.y + c


def _combine(first, second, k):
    """The line first - k * second, as (a, b, c)."""
    return tuple(f - k * g for f, g in zip(first, second))


def _line_distance(point, line):
    a, b, c = line
    return abs(a * point.x + b * point.y + c) / math.hypot(a, b)


def _straight_line(s, t, sector, region):
    """
    The bisector line of a sector whose conic splits into two lines.

    When both sites see the same edge beyond the point (E2 = E4) or behind
    themselves (E1 = E3), that edge's line factors out of the conic. In the
    middle sector the conic is L_B^2 - k L_A^2 and the factor passing
    through the Hilbert midpoint of s and t is kept.

    Returns:
        (a, b, c) of the line, or None when the conic does not factor
    """
    segments = region.segments
    e1, e2, e3, e4 = sector.edges
    la, lb, lc, ld = (line_equation(segments[i]) for i in (e1, e2, e3, e4))
    k = (_evaluate(lb, s) * _evaluate(lc, t)) / (_evaluate(ld, t) * _evaluate(la, s))

    if sector.is_middle:
        root = math.sqrt(abs(k))
        candidates = [_combine(lb, la, root), _combine(lb, la, -root)]
    elif e2 == e4:
        candidates = [_combine(lc, la, k)]
    elif e1 == e3:
        candidates = [_combine(lb, ld, k)]
    else:
        return None

    # Factors of two parallel edges can cancel to a constant
    reference = max(abs(v) for line in (la, lb, lc, ld) for v in line[:2])
    candidates = [c for c in candidates if math.hypot(c[0], c[1]) > LINE_EPSILON * reference]
    if not candidates:
        return None

    if len(candidates) == 1:
        return candidates[0]
    middle = hilbert_midpoint(s, t, region)
    return min(candidates, key=lambda c: _line_distance(middle, c))


def _clip_line(line, sector):
    """Endpoints of a line clipped to a sector, or None if it misses the sector."""
    a, b, c = line
    n2 = a * a + b * b
    p0 = Point(x=-a * c / n2, y=-b * c / n2)
    span = Segment(start=p0, end=Point(x=p0.x - b, y=p0.y + a))

    hits = sector.region.intersect_with_line(span)
    if len(hits) < 2:
        return None
    return hits[0], hits[1]


def _trace_piece(s, t, sector, region, resolution):
    """Trace the bisector inside one sector, or None if it misses the sector."""
    segments = region.segments
    e1, e2, e3, e4 = sector.edges
    equation = bisector_conic_equation(s, t, segments[e1], segments[e2], segments[e3], segments[e4])
    kind = classify_conic(equation)

    line = _straight_line(s, t, sector, region)
    if line is not None:
        endpoints = _clip_line(line, sector)
        if endpoints is None:
            return None
        start, end = endpoints
        points = points_on_line(start, end, resolution)
        straight = True
    else:
        endpoints = _arc_endpoints(equation, _sector_crossings(equation, sector), sector)
        if endpoints is None:
            return None
        start, end = endpoints
        try:
            points = trace_arc(equation, start, end, sector, resolution)
            straight = False
        except DegenerateConicError:
            # No quadratic terms: the piece is a line segment
            points = points_on_line(start, end, resolution)
            straight = True

    return BisectorPiece(
        sector=sector,
        equation=equation,
        kind=kind,
        start=start,
        end=end,
        points=tuple(points),
        straight=straight,
    )


def _order_pieces(s, t, pieces):
    """Sort pieces along the direction perpendicular to s -> t and orient each along it."""
    nx = -(t.y - s.y)
    ny = t.x - s.x

    def key(p):
        return (p.x - s.x) * nx + (p.y - s.y) * ny

    oriented = []
    for piece in pieces:
        points = piece.points
        if key(points[0]) > key(points[-1]):
            piece = BisectorPiece(
                sector=piece.sector,
                equation=piece.equation,
                kind=piece.kind,
                start=points[-1],
                end=points[0],
                points=tuple(reversed(points)),
                straight=piece.straight,
            )
        oriented.append(piece)

    oriented.sort(key=lambda piece: key(piece.points[0]) + key(piece.points[-1]))
    return oriented


@trace(label="compute_bisector")
def compute_bisector(site1, site2, region, resolution=None, config=None):
    """
    Hilbert bisector of two interior sites.

    Args:
        site1, site2: distinct sites strictly inside the region
        region: ConvexRegion
        resolution: point spacing of the traced arcs; defaults to
            config.bisector.resolution
        config: KernelConfig supplying resolution and tolerances

    Returns:
        Bisector

    Raises:
        DomainError: coincident sites or a site not strictly inside
    """
    tracer = get_tracer()
    config = get_config(config)
    if resolution is None:
        resolution = config.bisector.resolution

    s = as_point(site1)
    t = as_point(site2)

    if sites_coincide(s, t, region, config.tolerance.coincidence):
        raise DomainError("bisector of coincident sites is undefined")
    check_interior(s, region, config.tolerance.boundary)
    check_interior(t, region, config.tolerance.boundary)

    pieces = []
    with tracer.span("trace_sectors", module="bisector"):
        for sector in build_sectors(s, t, region):
            if not sector.has_bisector:
                continue
            piece = _trace_piece(s, t, sector, region, resolution)
            if piece is not None:
                pieces.append(piece)

    pieces = _order_pieces(s, t, pieces)
    tracer.event(f"Traced {len(pieces)} bisector pieces")

    return Bisector(site1=s, site2=t, pieces=tuple(pieces))


def _as_array(bisector):
    if isinstance(bisector, Bisector):
        return bisector.as_array()
    points = [as_point(p) for p in bisector]
    if not points:
        return np.empty((0, 2))
    return np.array([p.as_tuple() for p in points], dtype=float)


def _near_any(chunk, other, tolerance):
    """For each row of chunk, whether some row of other is within Chebyshev tolerance."""
    diff = np.abs(chunk[:, None, :] - other[None, :, :]).max(axis=2)
    return (diff < tolerance).any(axis=1)


def intersect_bisectors(bisectors, tolerance=None, config=None):
    """
    First point of the first bisector that lies near every other bisector.

    Args:
        bisectors: two or three Bisector objects (or point lists)
        tolerance: Chebyshev distance for two sample points to match;
            defaults to config.tolerance.snap_distance
        config: KernelConfig

    Returns:
        Point, or None when the sampled bisectors never come close
    """
    if len(bisectors) not in (2, 3):
        raise ValueError(f"can intersect 2 or 3 bisectors, got {len(bisectors)}")
    if tolerance is None:
        tolerance = get_config(config).tolerance.snap_distance

    first = _as_array(bisectors[0])
    others = [_as_array(b) for b in bisectors[1:]]
    if len(first) == 0 or any(len(o) == 0 for o in others):
        return None

    for offset in range(0, len(first), _BATCH_ROWS):
        chunk = first[offset:offset + _BATCH_ROWS]
        match = np.ones(len(chunk), dtype=bool)
        for other in others:
            match &= _near_any(chunk, other, tolerance)

        hits = np.nonzero(match)[0]
        if len(hits):
            x, y = chunk[hits[0]]
            return Point(x=float(x), y=float(y))

    return None


def intersect_two_bisectors(b1, b2, tolerance=None, config=None):
    return intersect_bisectors([b1, b2], tolerance, config)


def intersect_three_bisectors(b1, b2, b3, tolerance=None, config=None):
    return intersect_bisectors([b1, b2, b3], tolerance, config)


def _thompson_gap(s, t, point, region) -> Optional[float]:
    """|d_T(s, p) - d_T(t, p)|, or None where either distance is undefined."""
    if not is_interior(point, region):
        return None
    if sites_coincide(point, s, region) or sites_coincide(point, t, region):
        return None
    return abs(thompson_distance(s, point, region) - thompson_distance(t, point, region))


@trace(label="thompson_bisector")
def thompson_bisector(site1, site2, region, resolution=None, epsilon=None,
                      config=None) -> List[Point]:
    """
    Sampled Thompson bisector.

    Scans a grid over the region's bounding box and keeps the interior
    points whose Thompson distances to the two sites agree within epsilon.
    resolution and epsilon default to config.bisector.thompson_resolution
    and config.tolerance.agreement_epsilon.
    """
    config = get_config(config)
    if resolution is None:
        resolution = config.bisector.thompson_resolution
    if epsilon is None:
        epsilon = config.tolerance.agreement_epsilon

    s = as_point(site1)
    t = as_point(site2)
    check_interior(s, region, config.tolerance.boundary)
    check_interior(t, region, config.tolerance.boundary)

    min_x, min_y, max_x, max_y = region.bounds
    nx = int(math.floor((max_x - min_x) / resolution)) + 1
    ny = int(math.floor((max_y - min_y) / resolution)) + 1

    points = []
    for j in range(ny):
        y = min_y + j * resolution
        for i in range(nx):
            p = Point(x=min_x + i * resolution, y=y)
            gap = _thompson_gap(s, t, p, region)
            if gap is not None and gap < epsilon:
                points.append(p)

    get_tracer().event(f"Kept {len(points)} Thompson bisector samples")
    return points
