"""
Planar primitives shared by every kernel component.

Distances, orientation tests, line equations, segment intersection and the
monotone-chain convex hull.
"""

import math

from hilbertgeom.config import BOUNDARY_TOLERANCE, PARALLEL_EPSILON
from hilbertgeom.models import Point, Segment


def as_point(value):
    """Coerce a Point, (x, y) pair or array-like into a Point."""
    if isinstance(value, Point):
        return value
    return Point(x=float(value[0]), y=float(value[1]))


def norm(a, b):
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def cross(o, a, b):
    """
    Z component of (a - o) x (b - o).

    Positive when o -> a -> b turns left.
    """
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def centroid(points):
    """Vertex average of a list of points."""
    if not points:
        raise ValueError("centroid of an empty point set")

    n = len(points)
    return Point(x=sum(p.x for p in points) / n, y=sum(p.y for p in points) / n)


def lerp(a, b, t):
    """Point at parameter t on the segment a -> b."""
    return Point(x=a.x + t * (b.x - a.x), y=a.y + t * (b.y - a.y))


def line_equation(segment):
    """
    Implicit line a x + b y + c = 0 through the segment endpoints.

    Returns (a, b, c). For a counter-clockwise polygon edge, interior
    points evaluate negative.
    """
    x1, y1 = segment.start.x, segment.start.y
    x2, y2 = segment.end.x, segment.end.y

    a = y2 - y1
    b = x1 - x2
    c = x2 * y1 - x1 * y2

    return a, b, c


def point_segment_distance(point, segment):
    """Distance from a point to the closest point of a finite segment."""
    sx, sy = segment.start.x, segment.start.y
    dx = segment.end.x - sx
    dy = segment.end.y - sy
    length_sq = dx * dx + dy * dy

    if length_sq == 0:
        return math.hypot(point.x - sx, point.y - sy)

    t = ((point.x - sx) * dx + (point.y - sy) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (sx + t * dx), point.y - (sy + t * dy))


def _between(a, b, c, tol):
    return min(a, b) - tol <= c <= max(a, b) + tol


def intersect_segments(s1, s2, mode="line", eps=PARALLEL_EPSILON, tol=BOUNDARY_TOLERANCE):
    """
    Intersect two segments by solving the 2x2 linear system of their lines.

    Args:
        s1, s2: Segment objects
        mode: "line" for the intersection of the infinite lines, "segment"
            to also require the point within both segments' bounding boxes
        eps: relative determinant floor below which lines count as parallel
        tol: slack on the bounding-box test

    Returns:
        Point or None
    """
    d1x = s1.end.x - s1.start.x
    d1y = s1.end.y - s1.start.y
    d2x = s2.end.x - s2.start.x
    d2y = s2.end.y - s2.start.y

    det = d1x * d2y - d1y * d2x
    scale = math.hypot(d1x, d1y) * math.hypot(d2x, d2y)

    if scale == 0 or abs(det) <= eps * scale:
        return None

    ex = s2.start.x - s1.start.x
    ey = s2.start.y - s1.start.y
    t = (ex * d2y - ey * d2x) / det

    point = Point(x=s1.start.x + t * d1x, y=s1.start.y + t * d1y)

    if mode == "segment":
        on_first = (_between(s1.start.x, s1.end.x, point.x, tol)
                    and _between(s1.start.y, s1.end.y, point.y, tol))
        on_second = (_between(s2.start.x, s2.end.x, point.x, tol)
                     and _between(s2.start.y, s2.end.y, point.y, tol))
        if not (on_first and on_second):
            return None

    return point


def convex_hull(points):
    """
    Convex hull by Andrew's monotone chain.

    Collinear points are dropped. Inputs of fewer than three points are
    returned unchanged.

    Returns:
        hull vertices in counter-clockwise order, starting at the
        lexicographically smallest point
    """
    if len(points) <= 2:
        return list(points)

    sorted_points = sorted(points, key=lambda p: (p.x, p.y))

    lower = []
    for p in sorted_points:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper = []
    for p in reversed(sorted_points):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    # Last point of each chain is the first of the other
    return lower[:-1] + upper[:-1]


def points_on_line(start, end, resolution=1.0):
    """
    Sample a straight segment at roughly uniform spacing.

    Both endpoints are included.
    """
    distance = norm(start, end)
    steps = max(1, int(math.ceil(distance / resolution)))

    return [lerp(start, end, i / steps) for i in range(steps + 1)]


def segment(start, end):
    """Build a Segment from two point-likes."""
    return Segment(start=as_point(start), end=as_point(end))
