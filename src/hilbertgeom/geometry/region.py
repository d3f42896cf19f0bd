"""
Convex region: the domain on which the Hilbert metric is defined.

Vertices are expected in counter-clockwise order and the polygon is expected
to be convex with positive area. Neither is checked; violating either gives
meaningless results rather than an error.
"""

import math

from shapely.geometry import Polygon
from shapely.geometry.polygon import orient

from hilbertgeom.config import BOUNDARY_TOLERANCE, PARALLEL_EPSILON
from hilbertgeom.geometry.primitives import (
    as_point, cross, intersect_segments, norm, point_segment_distance,
)
from hilbertgeom.models import Point, Segment


class ConvexRegion:
    """
    Immutable convex polygon with derived edge segments.

    Segment i joins vertex i to vertex i + 1 (wrapping around).
    """

    def __init__(self, vertices):
        self._vertices = tuple(as_point(v) for v in vertices)
        n = len(self._vertices)
        self._segments = tuple(
            Segment(start=self._vertices[i], end=self._vertices[(i + 1) % n])
            for i in range(n)
        )

    @property
    def vertices(self):
        return list(self._vertices)

    @property
    def segments(self):
        return list(self._segments)

    def __len__(self):
        return len(self._vertices)

    def __repr__(self):
        coords = ", ".join(f"({v.x:.3f}, {v.y:.3f})" for v in self._vertices)
        return f"ConvexRegion([{coords}])"

    def __eq__(self, other):
        if not isinstance(other, ConvexRegion):
            return NotImplemented
        return self._vertices == other._vertices

    def __hash__(self):
        return hash(self._vertices)

    def with_vertices(self, vertices):
        """Return a fresh region over new vertices."""
        return ConvexRegion(vertices)

    def contains(self, point):
        """
        Check if a point lies strictly inside the region.

        Every edge must see the point on the same side; a zero cross product
        (point on an edge line) counts as outside.
        """
        point = as_point(point)
        sign = 0

        for seg in self._segments:
            c = cross(seg.start, seg.end, point)
            if c == 0:
                return False
            current = 1 if c > 0 else -1
            if sign == 0:
                sign = current
            elif current != sign:
                return False

        return sign != 0

    def on_boundary(self, point, tol=BOUNDARY_TOLERANCE):
        """Check if a point lies on some edge within tolerance."""
        point = as_point(point)
        return any(point_segment_distance(point, seg) <= tol for seg in self._segments)

    def find_segment(self, point):
        """
        Index of the edge closest to a point.

        Meant for points already known to lie on the boundary; a point at a
        vertex resolves to the first of its two edges.
        """
        best_index = None
        best_distance = math.inf

        for i, seg in enumerate(self._segments):
            d = point_segment_distance(point, seg)
            if d < best_distance:
                best_distance = d
                best_index = i

        return best_index

    def intersect_with_line(self, line, tol=BOUNDARY_TOLERANCE):
        """
        Intersect the infinite line through a segment with the boundary.

        Returns:
            list of 0, 1 or 2 boundary points. A line through a vertex
            yields that vertex once.
        """
        hits = []
        for seg in self._segments:
            point = intersect_segments(line, seg, mode="line")
            if point is None:
                continue
            if point_segment_distance(point, seg) > tol * max(1.0, seg.length):
                continue
            if any(point.is_close(h, tol) for h in hits):
                continue
            hits.append(point)

        if len(hits) > 2:
            # Numerical near-duplicates at a vertex; keep the widest pair
            pairs = [(norm(p, q), p, q) for i, p in enumerate(hits) for q in hits[i + 1:]]
            _, p, q = max(pairs, key=lambda item: item[0])
            hits = [p, q]

        return hits

    def are_segments_parallel(self, i, j, eps=PARALLEL_EPSILON):
        """Check if edges i and j lie on parallel lines."""
        a = self._segments[i]
        b = self._segments[j]
        return intersect_segments(a, b, mode="line", eps=eps) is None

    def are_any_segments_parallel(self, indices=None):
        """Check if any two of the given edges (default: all) are parallel."""
        if indices is None:
            indices = range(len(self._segments))
        indices = sorted(set(indices))

        for k, i in enumerate(indices):
            for j in indices[k + 1:]:
                if self.are_segments_parallel(i, j):
                    return True
        return False

    @property
    def bounds(self):
        """Bounding box as (min_x, min_y, max_x, max_y)."""
        xs = [v.x for v in self._vertices]
        ys = [v.y for v in self._vertices]
        return min(xs), min(ys), max(xs), max(ys)

    @property
    def extent(self):
        """Diagonal of the bounding box."""
        min_x, min_y, max_x, max_y = self.bounds
        return math.hypot(max_x - min_x, max_y - min_y)

    @property
    def area(self):
        """Signed shoelace area; positive for counter-clockwise vertices."""
        total = 0.0
        for seg in self._segments:
            total += seg.start.x * seg.end.y - seg.end.x * seg.start.y
        return total / 2.0

    @property
    def perimeter(self):
        return sum(seg.length for seg in self._segments)

    def perimeter_center(self):
        """
        Edge-length weighted average of the vertices.

        Cheap interior reference point that stays central under the
        space-warp; equals the incenter for regular polygons.
        """
        total = 0.0
        x = 0.0
        y = 0.0
        for seg in self._segments:
            length = seg.length
            total += length
            x += length * seg.start.x
            y += length * seg.start.y

        if total == 0:
            return self._vertices[0]

        return Point(x=x / total, y=y / total)

    def to_shapely(self):
        """Convert to a shapely Polygon."""
        return Polygon([v.as_tuple() for v in self._vertices])

    @classmethod
    def from_shapely(cls, polygon, tol=BOUNDARY_TOLERANCE):
        """
        Build a region from a shapely Polygon.

        Returns None for empty or non-areal geometry. Vertices are
        reoriented counter-clockwise and near-duplicates dropped.
        """
        if polygon.is_empty or polygon.geom_type != "Polygon" or polygon.area <= 0:
            return None

        coords = list(orient(polygon, sign=1.0).exterior.coords)[:-1]
        vertices = []
        for x, y in coords:
            p = Point(x=float(x), y=float(y))
            if vertices and p.is_close(vertices[-1], tol):
                continue
            vertices.append(p)

        if len(vertices) > 1 and vertices[0].is_close(vertices[-1], tol):
            vertices.pop()

        if len(vertices) < 3:
            return None

        return cls(vertices)
