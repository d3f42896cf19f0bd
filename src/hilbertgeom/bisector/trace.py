"""
Bounded arc tracing.

Turns the part of a conic that lies inside one sector into a dense point
sequence between two known endpoints.
"""

import math

from hilbertgeom.bisector.conic import (
    classify_conic, conic_roots_at_x, ellipse_angle, ellipse_params, ellipse_point,
)
from hilbertgeom.config import ARC_RESOLUTION
from hilbertgeom.errors import DegenerateConicError
from hilbertgeom.geometry.primitives import norm, points_on_line
from hilbertgeom.models import ConicKind, Point


def trace_bounded_arc(equation, start, end, sector, resolution=ARC_RESOLUTION):
    """
    Trace a conic arc by stepping in x.

    Endpoints are swapped so the sweep runs left to right. At each x the
    root inside the sector closest in y to the last accepted point is kept,
    and consecutive accepted points are joined by straight runs so the
    output has no gaps wider than the resolution.

    Raises:
        DegenerateConicError: if the conic has no quadratic terms
    """
    if classify_conic(equation) == ConicKind.DEGENERATE:
        raise DegenerateConicError("cannot trace a degenerate conic")

    if end.x < start.x:
        start, end = end, start

    dx = end.x - start.x
    steps = int(math.ceil(abs(dx) / resolution))

    points = [start]
    last = start

    for i in range(1, steps + 1):
        x = start.x + dx * i / steps
        candidates = [Point(x=x, y=y) for y in conic_roots_at_x(equation, x)]
        candidates = [p for p in candidates if sector.contains(p)]
        if not candidates:
            continue

        closest = min(candidates, key=lambda p: abs(p.y - last.y))
        points.extend(points_on_line(last, closest, resolution)[1:])
        last = closest

    if not last.is_close(end):
        points.extend(points_on_line(last, end, resolution)[1:])

    return points


def trace_ellipse_arc(equation, start, end, sector, resolution=ARC_RESOLUTION):
    """
    Trace an elliptic arc by stepping its parametric angle.

    Of the two arcs joining the endpoints, the one whose midpoint lies in
    the sector is used. Falls back to the x sweep when neither does.
    """
    params = ellipse_params(equation)
    if params.a == 0 or params.b == 0:
        return trace_bounded_arc(equation, start, end, sector, resolution)

    start_angle = ellipse_angle(params, start)
    end_angle = ellipse_angle(params, end)

    sweep = (end_angle - start_angle) % (2 * math.pi)
    for delta in (sweep, sweep - 2 * math.pi):
        if sector.contains(ellipse_point(params, start_angle + delta / 2)):
            break
    else:
        return trace_bounded_arc(equation, start, end, sector, resolution)

    steps = max(1, int(math.ceil(max(params.a, params.b) * abs(delta) / resolution)))
    points = [start]
    for i in range(1, steps):
        points.append(ellipse_point(params, start_angle + delta * i / steps))
    points.append(end)

    return points


def trace_arc(equation, start, end, sector, resolution=ARC_RESOLUTION):
    """Trace with the angle sampler for ellipses and the x sweep otherwise."""
    if classify_conic(equation) == ConicKind.ELLIPSE:
        return trace_ellipse_arc(equation, start, end, sector, resolution)
    return trace_bounded_arc(equation, start, end, sector, resolution)


def polyline_length(points):
    """Euclidean length of an open polyline."""
    return sum(norm(p, q) for p, q in zip(points, points[1:]))
