"""
Conic algebra for Hilbert bisectors.

Within one sector, the set of points at equal Hilbert distance from two
sites is a conic whose coefficients come from the four boundary edges the
chords through the sites hit.
"""

import math

from hilbertgeom.config import PARALLEL_EPSILON
from hilbertgeom.errors import DegenerateConicError
from hilbertgeom.geometry.primitives import line_equation
from hilbertgeom.models import ConicEquation, ConicKind, EllipseParams, Point


# Relative size below which a conic coefficient counts as zero
COEFFICIENT_EPSILON = 1e-12

# Relative residual under which a whole line is taken to lie on a conic
ON_CONIC_EPSILON = 1e-9


def bisector_conic_equation(s, t, e1, e2, e3, e4):
    """
    Conic through the points equidistant from s and t in one sector.

    Args:
        s, t: sites
        e1: edge hit behind s (on the ray from a point p through s)
        e2: edge hit beyond p, seen from s
        e3: edge hit behind t
        e4: edge hit beyond p, seen from t

    Returns:
        ConicEquation
    """
    a1, a2, a3 = line_equation(e1)
    b1, b2, b3 = line_equation(e2)
    c1, c2, c3 = line_equation(e3)
    d1, d2, d3 = line_equation(e4)

    bs = b1 * s.x + b2 * s.y + b3
    ct = c1 * t.x + c2 * t.y + c3
    dt = d1 * t.x + d2 * t.y + d3
    as_ = a1 * s.x + a2 * s.y + a3

    k = (bs * ct) / (dt * as_)

    return ConicEquation(
        A=b1 * c1 - a1 * d1 * k,
        B=b2 * c1 + b1 * c2 - a1 * d2 * k - a2 * d1 * k,
        C=b2 * c2 - a2 * d2 * k,
        D=b3 * c1 + b1 * c3 - a3 * d1 * k - a1 * d3 * k,
        E=b3 * c2 + b2 * c3 - a2 * d3 * k - a3 * d2 * k,
        F=b3 * c3 - a3 * d3 * k,
    )


def _scale(equation):
    return max(abs(equation.A), abs(equation.B), abs(equation.C),
               abs(equation.D), abs(equation.E), abs(equation.F))


def classify_conic(equation, eps=COEFFICIENT_EPSILON):
    """
    Classify a conic by its quadratic coefficients.

    A and C both zero is degenerate; otherwise the sign of B^2 - 4AC picks
    ellipse (< 0), parabola (= 0) or hyperbola (> 0). Zero is judged
    relative to the largest coefficient.
    """
    scale = _scale(equation)
    if scale == 0:
        return ConicKind.DEGENERATE

    if abs(equation.A) <= eps * scale and abs(equation.C) <= eps * scale:
        return ConicKind.DEGENERATE

    discriminant = equation.discriminant
    if abs(discriminant) <= eps * scale * scale:
        return ConicKind.PARABOLA
    if discriminant < 0:
        return ConicKind.ELLIPSE
    return ConicKind.HYPERBOLA


def conic_roots_at_x(equation, x, eps=COEFFICIENT_EPSILON):
    """
    Solve the conic for y at a fixed x.

    C y^2 + (B x + E) y + (A x^2 + D x + F) = 0, falling back to the
    linear solution when C vanishes.

    Returns:
        list of 0, 1 or 2 y values
    """
    a = equation.C
    b = equation.B * x + equation.E
    c = equation.A * x * x + equation.D * x + equation.F

    if abs(a) <= eps * _scale(equation):
        if b == 0:
            return []
        return [-c / b]

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return []
    if discriminant == 0:
        return [-b / (2 * a)]

    root = math.sqrt(discriminant)
    return [(-b + root) / (2 * a), (-b - root) / (2 * a)]


def ellipse_params(equation):
    """
    Center, semi-axes and rotation of an elliptic conic.

    Rotates by theta = atan2(B, A - C) / 2 to remove the cross term, reads
    the center and axes off the rotated equation and rotates the center
    back.

    Raises:
        DegenerateConicError: if A and C both vanish
        ValueError: if the conic is not an ellipse
    """
    kind = classify_conic(equation)
    if kind == ConicKind.DEGENERATE:
        raise DegenerateConicError("cannot parameterize a degenerate conic")
    if kind != ConicKind.ELLIPSE:
        raise ValueError(f"conic is a {kind.value}, not an ellipse")

    A, B, C = equation.A, equation.B, equation.C
    D, E, F = equation.D, equation.E, equation.F

    theta = 0.5 * math.atan2(B, A - C)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)

    a_rot = A * cos_t * cos_t + B * cos_t * sin_t + C * sin_t * sin_t
    c_rot = A * sin_t * sin_t - B * cos_t * sin_t + C * cos_t * cos_t
    d_rot = D * cos_t + E * sin_t
    e_rot = -D * sin_t + E * cos_t

    x0 = -d_rot / (2 * a_rot)
    y0 = -e_rot / (2 * c_rot)

    common = -4 * F * a_rot * c_rot + c_rot * d_rot * d_rot + a_rot * e_rot * e_rot
    a_sq = common / (4 * a_rot * a_rot * c_rot)
    b_sq = common / (4 * a_rot * c_rot * c_rot)

    center = Point(x=x0 * cos_t - y0 * sin_t, y=x0 * sin_t + y0 * cos_t)

    return EllipseParams(
        center=center,
        a=math.sqrt(abs(a_sq)),
        b=math.sqrt(abs(b_sq)),
        rotation=theta,
    )


def ellipse_angle(params, point):
    """Parametric angle of a point on (or near) an ellipse."""
    cos_t = math.cos(params.rotation)
    sin_t = math.sin(params.rotation)
    dx = point.x - params.center.x
    dy = point.y - params.center.y

    x_rot = dx * cos_t + dy * sin_t
    y_rot = -dx * sin_t + dy * cos_t
    return math.atan2(y_rot / params.b, x_rot / params.a)


def ellipse_point(params, angle):
    """Point on an ellipse at a parametric angle."""
    cos_t = math.cos(params.rotation)
    sin_t = math.sin(params.rotation)
    x_rot = params.a * math.cos(angle)
    y_rot = params.b * math.sin(angle)

    return Point(
        x=params.center.x + x_rot * cos_t - y_rot * sin_t,
        y=params.center.y + x_rot * sin_t + y_rot * cos_t,
    )


def hyperbola_center(equation, eps=PARALLEL_EPSILON):
    """
    Center of a central conic, the solution of grad f = 0.

    Raises:
        DegenerateConicError: if B^2 - 4AC vanishes
    """
    den = equation.discriminant
    if abs(den) < eps:
        raise DegenerateConicError("conic has no center")

    A, B, C = equation.A, equation.B, equation.C
    D, E = equation.D, equation.E

    return Point(x=(2 * C * D - B * E) / den, y=(2 * A * E - B * D) / den)


def conic_line_roots(equation, origin, direction):
    """
    Parameters u where the line origin + u * direction meets the conic.

    Returns:
        sorted list of 0, 1 or 2 values; empty when the whole line lies on
        the conic
    """
    x0, y0 = origin.x, origin.y
    dx, dy = direction.x, direction.y
    A, B, C = equation.A, equation.B, equation.C
    D, E = equation.D, equation.E

    alpha = A * dx * dx + B * dx * dy + C * dy * dy
    beta = (2 * A * x0 * dx + B * (x0 * dy + y0 * dx) + 2 * C * y0 * dy
            + D * dx + E * dy)
    gamma = equation.evaluate(x0, y0)

    # Size of the individual terms, to tell cancellation from a true zero
    magnitude = _scale(equation) * (1.0 + abs(x0) + abs(y0) + abs(dx) + abs(dy)) ** 2
    scale = max(abs(alpha), abs(beta), abs(gamma))
    if scale <= ON_CONIC_EPSILON * magnitude:
        return []

    if abs(alpha) <= COEFFICIENT_EPSILON * scale:
        if abs(beta) <= COEFFICIENT_EPSILON * scale:
            return []
        return [-gamma / beta]

    discriminant = beta * beta - 4 * alpha * gamma
    if discriminant < 0:
        return []
    root = math.sqrt(discriminant)
    return sorted({(-beta - root) / (2 * alpha), (-beta + root) / (2 * alpha)})


def conic_segment_crossings(equation, seg, tol=1e-9):
    """
    Points where a conic crosses a finite segment.

    Substitutes p(u) = start + u (end - start) and keeps the roots with u
    in [0, 1]. A segment lying on the conic has no crossings.

    Returns:
        list of 0, 1 or 2 points ordered along the segment
    """
    direction = Point(x=seg.end.x - seg.start.x, y=seg.end.y - seg.start.y)

    points = []
    for u in conic_line_roots(equation, seg.start, direction):
        if -tol <= u <= 1 + tol:
            u = min(1.0, max(0.0, u))
            points.append(Point(x=seg.start.x + u * direction.x, y=seg.start.y + u * direction.y))

    return points
