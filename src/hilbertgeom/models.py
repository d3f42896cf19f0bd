"""
Pydantic data models for the hilbertgeom kernel.

Value types exchanged between the kernel and its callers. All of them are
frozen: derived data is recomputed from inputs rather than updated in place.
"""

import math
from enum import Enum
from typing import List

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class MetricKind(str, Enum):
    """Members of the Hilbert metric family."""
    HILBERT = "hilbert"
    FUNK_FORWARD = "funk_forward"
    FUNK_REVERSE = "funk_reverse"
    THOMPSON = "thompson"


class ConicKind(str, Enum):
    """Classification of an implicit quadratic curve."""
    DEGENERATE = "degenerate"
    ELLIPSE = "ellipse"
    PARABOLA = "parabola"
    HYPERBOLA = "hyperbola"


class Point(BaseModel):
    """A point in the plane."""
    x: float
    y: float

    model_config = ConfigDict(frozen=True)

    def as_tuple(self):
        return (self.x, self.y)

    def is_close(self, other, tol=1e-9):
        """Check if two points coincide within an absolute tolerance."""
        return abs(self.x - other.x) <= tol and abs(self.y - other.y) <= tol


class Segment(BaseModel):
    """A directed segment from start to end."""
    start: Point
    end: Point

    model_config = ConfigDict(frozen=True)

    @property
    def length(self):
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)


class Spoke(BaseModel):
    """
    Spoke through a site.

    a is a region vertex, c the site, d the point where the line a -> c
    leaves the region beyond c.
    """
    a: Point
    c: Point
    d: Point

    model_config = ConfigDict(frozen=True)


class ConicEquation(BaseModel):
    """Coefficients of A x^2 + B xy + C y^2 + D x + E y + F = 0."""
    A: float
    B: float
    C: float
    D: float
    E: float
    F: float

    model_config = ConfigDict(frozen=True)

    def evaluate(self, x, y):
        """Evaluate the left-hand side at (x, y)."""
        return (self.A * x * x + self.B * x * y + self.C * y * y
                + self.D * x + self.E * y + self.F)

    @property
    def discriminant(self):
        return self.B * self.B - 4 * self.A * self.C


class EllipseParams(BaseModel):
    """Center, semi-axes and rotation of an ellipse."""
    center: Point
    a: float
    b: float
    rotation: float

    model_config = ConfigDict(frozen=True)


class Ellipsoid(BaseModel):
    """
    Covariance-derived bounding ellipse.

    The ellipse is {p : (p - center)^T M (p - center) <= 1} with M = matrix.
    """
    center: Point
    matrix: List[List[float]] = Field(..., min_length=2, max_length=2)

    model_config = ConfigDict(frozen=True)

    def as_array(self):
        return np.array(self.matrix, dtype=float)

    def semi_axes(self):
        """Semi-axis lengths, largest first."""
        eigenvalues = np.linalg.eigvalsh(self.as_array())
        return sorted((1.0 / math.sqrt(v) for v in eigenvalues), reverse=True)


class EnclosingBall(BaseModel):
    """A Hilbert ball covering a set of sites."""
    center: Point
    radius: float = Field(default=0.0, ge=0.0)
    defining_sites: List[Point] = Field(default_factory=list)
    boundary: List[Point] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")
