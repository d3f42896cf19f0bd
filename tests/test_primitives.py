"""Tests for geometry primitives and convex regions."""

import math

import pytest

from hilbertgeom.geometry.primitives import (
    centroid, convex_hull, cross, intersect_segments, line_equation, points_on_line, segment,
)
from hilbertgeom.geometry.region import ConvexRegion
from hilbertgeom.models import Point


def P(x, y):
    return Point(x=x, y=y)


class TestIntersectSegments:
    """Tests for the 2x2 line intersection solve."""

    def test_crossing_lines(self):
        """Test two perpendicular segments meet at their crossing."""
        p = intersect_segments(segment((0, 0), (10, 10)), segment((0, 10), (10, 0)))

        assert p.x == pytest.approx(5)
        assert p.y == pytest.approx(5)

    def test_parallel_returns_none(self):
        """Test parallel segments never intersect."""
        assert intersect_segments(segment((0, 0), (10, 0)), segment((0, 1), (10, 1))) is None

    def test_line_mode_extends_segments(self):
        """Test line mode finds intersections outside both segments."""
        s1 = segment((0, 0), (1, 0))
        s2 = segment((5, 1), (5, 2))

        p = intersect_segments(s1, s2, mode="line")
        assert p.x == pytest.approx(5)
        assert p.y == pytest.approx(0)

        assert intersect_segments(s1, s2, mode="segment") is None


class TestConvexHull:
    """Tests for the monotone chain hull."""

    def test_hull_drops_interior_and_collinear(self):
        """Test interior and collinear points are removed."""
        points = [P(0, 0), P(5, 0), P(10, 0), P(10, 10), P(0, 10), P(5, 5), P(3, 7)]

        hull = convex_hull(points)

        assert len(hull) == 4
        assert {p.as_tuple() for p in hull} == {(0, 0), (10, 0), (10, 10), (0, 10)}

    def test_hull_is_counter_clockwise(self):
        """Test every consecutive turn of the hull is a left turn."""
        points = [P(math.cos(k), math.sin(k)) for k in range(12)]

        hull = convex_hull(points)
        n = len(hull)

        assert all(cross(hull[i], hull[(i + 1) % n], hull[(i + 2) % n]) > 0 for i in range(n))

    def test_hull_contains_inputs(self):
        """Test every input point lies inside or on the hull."""
        points = [P(x, (x * 7) % 11) for x in range(15)]

        region = ConvexRegion(convex_hull(points))

        for p in points:
            assert region.contains(p) or region.on_boundary(p)

    def test_small_inputs_unchanged(self):
        """Test inputs of at most two points are returned as given."""
        assert convex_hull([]) == []
        assert convex_hull([P(1, 1)]) == [P(1, 1)]
        assert convex_hull([P(1, 1), P(2, 2)]) == [P(1, 1), P(2, 2)]


class TestHelpers:
    """Tests for small primitive helpers."""

    def test_line_equation_vanishes_on_endpoints(self):
        """Test both endpoints satisfy a x + b y + c = 0."""
        seg = segment((1, 2), (4, 7))
        a, b, c = line_equation(seg)

        assert a * 1 + b * 2 + c == pytest.approx(0)
        assert a * 4 + b * 7 + c == pytest.approx(0)

    def test_points_on_line_spacing(self):
        """Test densification includes both endpoints at uniform spacing."""
        points = points_on_line(P(0, 0), P(10, 0), resolution=2.5)

        assert len(points) == 5
        assert points[0] == P(0, 0)
        assert points[-1].x == pytest.approx(10)

    def test_centroid_empty_raises(self):
        """Test centroid of nothing is an error."""
        with pytest.raises(ValueError):
            centroid([])


class TestConvexRegion:
    """Tests for ConvexRegion predicates and derived data."""

    def test_segments_wrap_around(self, square):
        """Test the last segment closes the polygon."""
        segs = square.segments

        assert len(segs) == 4
        assert segs[-1].start == P(0, 10)
        assert segs[-1].end == P(0, 0)

    def test_contains_is_strict(self, square):
        """Test boundary points are not contained."""
        assert square.contains(P(5, 5))
        assert not square.contains(P(0, 5))
        assert not square.contains(P(11, 5))
        assert square.on_boundary(P(0, 5))

    def test_intersect_with_line(self, square):
        """Test a horizontal line meets the square twice."""
        hits = square.intersect_with_line(segment((2, 3), (4, 3)))

        assert sorted(round(p.x, 9) for p in hits) == [0, 10]
        assert all(p.y == pytest.approx(3) for p in hits)

    def test_intersect_through_vertex_deduplicates(self, square):
        """Test a diagonal through two corners yields each corner once."""
        hits = square.intersect_with_line(segment((1, 1), (2, 2)))

        assert len(hits) == 2
        assert {(round(p.x, 9), round(p.y, 9)) for p in hits} == {(0, 0), (10, 10)}

    def test_find_segment(self, square):
        """Test boundary points resolve to their edge."""
        assert square.find_segment(P(5, 0)) == 0
        assert square.find_segment(P(10, 5)) == 1
        assert square.find_segment(P(5, 10)) == 2
        assert square.find_segment(P(0, 5)) == 3

    def test_parallel_edges(self, square, triangle):
        """Test opposite square edges are parallel and triangle edges are not."""
        assert square.are_segments_parallel(0, 2)
        assert not square.are_segments_parallel(0, 1)
        assert square.are_any_segments_parallel()
        assert not triangle.are_any_segments_parallel()

    def test_area_and_perimeter(self, square):
        """Test shoelace area and perimeter of the square."""
        assert square.area == pytest.approx(100)
        assert square.perimeter == pytest.approx(40)

    def test_perimeter_center_of_square(self, square):
        """Test the perimeter-weighted center of a square is its middle."""
        c = square.perimeter_center()

        assert c.x == pytest.approx(5)
        assert c.y == pytest.approx(5)

    def test_with_vertices_returns_new_region(self, square):
        """Test regions are never mutated in place."""
        moved = square.with_vertices([P(v.x + 1, v.y) for v in square.vertices])

        assert moved is not square
        assert square.vertices[0] == P(0, 0)
        assert moved.vertices[0] == P(1, 0)

    def test_shapely_round_trip(self, hexagon):
        """Test conversion through shapely preserves the vertex set."""
        back = ConvexRegion.from_shapely(hexagon.to_shapely())

        assert len(back) == 6
        assert back.area == pytest.approx(hexagon.area)

    def test_from_shapely_rejects_empty(self, square):
        """Test disjoint intersections give no region."""
        from shapely.geometry import Polygon

        far = Polygon([(20, 20), (30, 20), (30, 30)])
        assert ConvexRegion.from_shapely(square.to_shapely().intersection(far)) is None
