"""
Projective space-warp session.

Each step sends every tracked point through the same chain of maps: into
the unit disk of the current boundary ellipsoid, through the projective map
p -> p / (1 + p . v), back out, and finally re-expressed against the
ellipsoid fixed when the session started. The last stage keeps the shape
from drifting or growing across frames.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from hilbertgeom.config import DENOMINATOR_CLAMP, DENOMINATOR_FLOOR, PARALLEL_EPSILON, VELOCITY_SCALE
from hilbertgeom.errors import DomainError
from hilbertgeom.geometry.primitives import as_point, centroid
from hilbertgeom.geometry.region import ConvexRegion
from hilbertgeom.models import Ellipsoid, Point
from hilbertgeom.tracer import get_tracer, trace
from hilbertgeom.warp.ellipsoid import fit_ellipsoid, from_unit_disk, to_unit_disk


def project_under_velocity(point, velocity, floor=DENOMINATOR_FLOOR, clamp=DENOMINATOR_CLAMP):
    """
    Projective map p / (1 + p . v).

    Denominators within floor of zero are replaced by +/- clamp with the
    sign of the original.
    """
    denom = 1.0 + point.x * velocity.x + point.y * velocity.y
    if abs(denom) < floor:
        denom = clamp if denom >= 0 else -clamp
    return Point(x=point.x / denom, y=point.y / denom)


def accumulate_velocity(previous, displacement):
    """
    Add a displacement to a running velocity.

    Each axis whose direction reverses is reset to zero first, so a change
    of direction takes effect immediately.
    """
    vx, vy = previous.x, previous.y
    if displacement.x * vx < 0:
        vx = 0.0
    if displacement.y * vy < 0:
        vy = 0.0
    return Point(x=vx + displacement.x, y=vy + displacement.y)


@dataclass
class WarpFrame:
    """Output of one warp step."""
    boundary: List[Point]
    tracked: Dict[str, List[Point]] = field(default_factory=dict)
    ellipsoid: Optional[Ellipsoid] = None

    @property
    def region(self):
        return ConvexRegion(self.boundary)

    @property
    def viewpoint(self):
        """Centroid of the warped boundary."""
        return centroid(self.boundary)

    def inside(self, name):
        """Which points of a tracked set are still strictly inside the boundary."""
        region = self.region
        return [region.contains(p) for p in self.tracked.get(name, [])]


class WarpSession:
    """
    Explicit lifecycle around a reference ellipsoid.

    start() fixes the reference from the initial boundary; step() warps;
    reset() drops all state.
    """

    def __init__(self, config=None):
        if config is not None:
            self.velocity_scale = config.warp.velocity_scale
            self.denominator_floor = config.warp.denominator_floor
            self.denominator_clamp = config.warp.denominator_clamp
            self.degeneracy_eps = config.tolerance.parallel
        else:
            self.velocity_scale = VELOCITY_SCALE
            self.denominator_floor = DENOMINATOR_FLOOR
            self.denominator_clamp = DENOMINATOR_CLAMP
            self.degeneracy_eps = PARALLEL_EPSILON

        self.reference = None
        self.current = None

    @property
    def is_active(self):
        return self.reference is not None

    def start(self, boundary):
        """
        Fix the reference ellipsoid.

        Returns:
            perimeter-weighted center of the initial boundary
        """
        points = [as_point(p) for p in boundary]
        self.reference = fit_ellipsoid(points, self.degeneracy_eps)
        self.current = self.reference
        get_tracer().event("Warp session started", center=self.reference.center)
        return ConvexRegion(points).perimeter_center()

    def reset(self):
        self.reference = None
        self.current = None

    def _map(self, points, maps):
        result = []
        for p in points:
            for fn in maps:
                p = fn(p)
            result.append(p)
        return result

    @trace(label="warp_step")
    def step(self, velocity, boundary, tracked=None):
        """
        Warp the boundary and every tracked point set by one frame.

        Args:
            velocity: raw displacement; scaled by velocity_scale
            boundary: current boundary points
            tracked: mapping of name to point list, warped identically

        Returns:
            WarpFrame

        Raises:
            DomainError: if the session has not been started
        """
        if not self.is_active:
            raise DomainError("warp session has not been started")

        velocity = as_point(velocity)
        v = Point(x=velocity.x * self.velocity_scale, y=velocity.y * self.velocity_scale)
        boundary = [as_point(p) for p in boundary]
        tracked = {name: [as_point(p) for p in pts] for name, pts in (tracked or {}).items()}

        current = fit_ellipsoid(boundary, self.degeneracy_eps)

        def warp(p):
            y = project_under_velocity(to_unit_disk(p, current), v,
                                       self.denominator_floor, self.denominator_clamp)
            return from_unit_disk(y, current)

        moved = self._map(boundary, [warp])
        after = fit_ellipsoid(moved, self.degeneracy_eps)

        def normalize(p):
            return from_unit_disk(to_unit_disk(p, after), self.reference)

        new_boundary = self._map(moved, [normalize])
        new_tracked = {name: self._map(pts, [warp, normalize]) for name, pts in tracked.items()}

        self.current = fit_ellipsoid(new_boundary, self.degeneracy_eps)
        return WarpFrame(boundary=new_boundary, tracked=new_tracked, ellipsoid=self.current)
