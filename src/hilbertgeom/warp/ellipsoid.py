"""
Bounding ellipsoid fit and unit-disk normalization.

The ellipsoid is derived from the covariance of the boundary points and
scaled until every point lies on or inside it. It is not the true
minimum-volume (John) ellipsoid, but it is cheap and affine-equivariant.
"""

import math

import numpy as np

from hilbertgeom.config import PARALLEL_EPSILON
from hilbertgeom.errors import DomainError
from hilbertgeom.geometry.primitives import as_point
from hilbertgeom.models import EllipseParams, Ellipsoid, Point


def _as_array(points):
    return np.array([as_point(p).as_tuple() for p in points], dtype=float)


def fit_ellipsoid(points, eps=PARALLEL_EPSILON):
    """
    Fit a bounding ellipse to a point set.

    Center is the centroid; the shape matrix is the inverse covariance
    divided by the largest squared Mahalanobis distance, so the farthest
    point lands on the ellipse.

    Raises:
        DomainError: fewer than three points, or all points collinear
            (covariance determinant within eps of zero, scaled by its trace)
    """
    arr = _as_array(points)
    if len(arr) < 3:
        raise DomainError("need at least three points to fit an ellipsoid")

    center = arr.mean(axis=0)
    diffs = arr - center
    covariance = diffs.T @ diffs / len(arr)

    if abs(np.linalg.det(covariance)) <= eps * max(1.0, np.trace(covariance) ** 2):
        raise DomainError("point set is degenerate (collinear)")

    inverse = np.linalg.inv(covariance)
    scale = np.einsum("ij,jk,ik->i", diffs, inverse, diffs).max()
    matrix = inverse / scale

    return Ellipsoid(
        center=Point(x=float(center[0]), y=float(center[1])),
        matrix=matrix.tolist(),
    )


def cholesky_2x2(matrix):
    """
    Lower-triangular L with L L^T = M for a symmetric positive-definite 2x2 M.

    Raises:
        DomainError: if M is not positive definite
    """
    m = np.asarray(matrix, dtype=float)
    a, c, d = m[0, 0], m[1, 0], m[1, 1]

    if a <= 0:
        raise DomainError("matrix is not positive definite")
    l00 = math.sqrt(a)
    l10 = c / l00
    rest = d - l10 * l10
    if rest <= 0:
        raise DomainError("matrix is not positive definite")

    return np.array([[l00, 0.0], [l10, math.sqrt(rest)]])


def to_unit_disk(point, ellipsoid):
    """Map a point into the ellipsoid's normalized frame: L (p - center)."""
    point = as_point(point)
    L = cholesky_2x2(ellipsoid.matrix)
    diff = np.array([point.x - ellipsoid.center.x, point.y - ellipsoid.center.y])
    y = L @ diff
    return Point(x=float(y[0]), y=float(y[1]))


def from_unit_disk(point, ellipsoid):
    """Inverse of to_unit_disk: L^-1 y + center."""
    point = as_point(point)
    L = cholesky_2x2(ellipsoid.matrix)
    x = np.linalg.solve(L, np.array([point.x, point.y]))
    return Point(x=float(x[0] + ellipsoid.center.x), y=float(x[1] + ellipsoid.center.y))


def bounding_box_ellipse(points):
    """
    Axis-aligned ellipse through the corners of the bounding box.

    Semi-axes are half the box sides scaled by sqrt(2).
    """
    arr = _as_array(points)
    if len(arr) == 0:
        raise DomainError("bounding ellipse of an empty point set")

    lo = arr.min(axis=0)
    hi = arr.max(axis=0)
    center = (lo + hi) / 2.0

    return EllipseParams(
        center=Point(x=float(center[0]), y=float(center[1])),
        a=float((hi[0] - lo[0]) / 2.0 * math.sqrt(2)),
        b=float((hi[1] - lo[1]) / 2.0 * math.sqrt(2)),
        rotation=0.0,
    )
