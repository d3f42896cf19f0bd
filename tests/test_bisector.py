"""Tests for sectors, Hilbert and Thompson bisectors and their intersection."""

import pytest

from hilbertgeom.bisector.bisector import (
    Bisector, compute_bisector, intersect_bisectors, intersect_three_bisectors,
    intersect_two_bisectors, thompson_bisector,
)
from hilbertgeom.bisector.sectors import build_sectors, omega_edges, site_wedges
from hilbertgeom.errors import DomainError
from hilbertgeom.geometry.primitives import norm, point_segment_distance
from hilbertgeom.metrics.distance import hilbert_distance, hilbert_midpoint, thompson_distance
from hilbertgeom.models import ConicKind, Point


def P(x, y):
    return Point(x=x, y=y)


def boundary_distance(p, region):
    return min(point_segment_distance(p, seg) for seg in region.segments)


class TestSectors:
    """Tests for the sector arrangement."""

    def test_omega_edges_horizontal_chord(self, square):
        """Test a horizontal chord sees the left edge behind and right edge beyond."""
        behind, beyond = omega_edges(P(3, 5), P(6, 5), square)

        assert behind == 3
        assert beyond == 1

    def test_wedges_cover_region(self, hexagon):
        """Test the wedges around a site tile the region."""
        site = P(190, 210)
        omega = hexagon.to_shapely()
        total = sum(omega.intersection(w).area for w in site_wedges(site, hexagon))

        assert total == pytest.approx(omega.area, rel=1e-9)

    def test_sectors_tile_region(self, large_square):
        """Test sector cells partition the region."""
        sectors = build_sectors(P(150, 170), P(260, 230), large_square)

        assert sum(s.region.area for s in sectors) == pytest.approx(large_square.area, rel=1e-9)

    def test_exactly_one_middle_sector_on_segment(self, large_square):
        """Test the sector containing the midpoint of s and t is the middle sector."""
        s = P(150, 170)
        t = P(260, 230)
        m = P(205, 200)

        holding = [sec for sec in build_sectors(s, t, large_square) if sec.region.contains(m)]

        assert len(holding) == 1
        assert holding[0].is_middle


class TestComputeBisector:
    """Tests for Hilbert bisector tracing."""

    @pytest.fixture
    def sites(self):
        return P(150, 170), P(260, 230)

    def test_bisector_has_pieces(self, large_square, sites):
        """Test a bisector between generic sites is traced."""
        bisector = compute_bisector(*sites, large_square)

        assert isinstance(bisector, Bisector)
        assert len(bisector.pieces) >= 1
        assert len(bisector.points) > 10
        assert bisector.length > 100

    def test_points_inside_region(self, large_square, sites):
        """Test every traced point lies inside or on the region."""
        bisector = compute_bisector(*sites, large_square)

        for p in bisector.points:
            assert large_square.contains(p) or large_square.on_boundary(p, 1e-6)

    def test_points_are_equidistant(self, large_square, sites):
        """Test traced conic points away from the boundary are equidistant from both sites."""
        s, t = sites
        bisector = compute_bisector(s, t, large_square)

        # Degenerate conics are drawn as chords between their sector crossings
        traced = [p for piece in bisector.pieces
                  if not (piece.kind is ConicKind.DEGENERATE and piece.straight)
                  for p in piece.points]
        interior = [p for p in traced if boundary_distance(p, large_square) > 20]
        assert interior

        for p in interior:
            gap = abs(hilbert_distance(s, p, large_square) - hilbert_distance(t, p, large_square))
            assert gap < 1e-2

    def test_degenerate_conic_falls_back_to_line(self, large_square, sites):
        """Test a sector conic without x^2 or y^2 terms is traced as a chord between conic points."""
        bisector = compute_bisector(*sites, large_square)

        degenerate = [piece for piece in bisector.pieces if piece.kind is ConicKind.DEGENERATE]
        assert degenerate

        for piece in degenerate:
            assert piece.straight
            eq = piece.equation
            for p in (piece.start, piece.end):
                terms = [eq.A * p.x * p.x, eq.B * p.x * p.y, eq.C * p.y * p.y, eq.D * p.x, eq.E * p.y, eq.F]
                assert abs(eq.evaluate(p.x, p.y)) <= 1e-6 * sum(abs(v) for v in terms)

            dx = piece.end.x - piece.start.x
            dy = piece.end.y - piece.start.y
            for p in piece.points:
                cross = dx * (p.y - piece.start.y) - dy * (p.x - piece.start.x)
                assert abs(cross) <= 1e-6 * (dx * dx + dy * dy)

    def test_passes_through_midpoint(self, large_square, sites):
        """Test the bisector crosses segment s-t at the Hilbert midpoint."""
        bisector = compute_bisector(*sites, large_square)
        m = hilbert_midpoint(*sites, large_square)

        assert min(norm(p, m) for p in bisector.points) < 1.0

    def test_pieces_are_oriented(self, large_square, sites):
        """Test each piece starts where its points start."""
        bisector = compute_bisector(*sites, large_square)

        for piece in bisector.pieces:
            assert piece.points[0] == piece.start
            assert piece.points[-1].is_close(piece.end, 1e-6)

    def test_coincident_sites_raise(self, large_square):
        """Test the bisector of a site with itself is rejected."""
        with pytest.raises(DomainError):
            compute_bisector(P(100, 100), P(100, 100), large_square)

    def test_site_outside_raises(self, large_square):
        """Test sites outside the region are rejected."""
        with pytest.raises(DomainError):
            compute_bisector(P(100, 100), P(500, 100), large_square)


class TestIntersectBisectors:
    """Tests for the sampled k-way intersection."""

    def test_two_way_first_match(self):
        """Test the first point of the first bisector within tolerance is returned."""
        b1 = [P(0, 0), P(1, 1), P(5, 5), P(6, 6)]
        b2 = [P(10, 0), P(5.5, 5.3), P(6.2, 6.1)]

        p = intersect_two_bisectors(b1, b2)

        assert p == P(5, 5)

    def test_no_match_returns_none(self):
        """Test far-apart bisectors report no intersection."""
        assert intersect_bisectors([[P(0, 0)], [P(10, 10)]]) is None

    def test_empty_bisector_returns_none(self):
        """Test an empty bisector never intersects."""
        assert intersect_bisectors([[], [P(0, 0)]]) is None

    def test_three_way_requires_all(self):
        """Test a three-way match must be close to both other bisectors."""
        b1 = [P(0, 0), P(5, 5)]
        b2 = [P(0.5, 0.5), P(5.2, 5.2)]
        b3 = [P(5.4, 4.8)]

        assert intersect_three_bisectors(b1, b2, b3) == P(5, 5)

    def test_tolerance_is_chebyshev(self):
        """Test the match uses the larger coordinate difference."""
        b1 = [P(0, 0)]
        b2 = [P(0.9, 0.9)]

        assert intersect_bisectors([b1, b2], tolerance=1.0) == P(0, 0)
        assert intersect_bisectors([b1, b2], tolerance=0.5) is None

    def test_wrong_arity_rejected(self):
        """Test only two or three bisectors are accepted."""
        with pytest.raises(ValueError):
            intersect_bisectors([[P(0, 0)]])
        with pytest.raises(ValueError):
            intersect_bisectors([[P(0, 0)]] * 4)

    def test_traced_bisectors_meet(self, large_square):
        """Test two traced bisectors sharing a site intersect near an equidistant point."""
        a = P(150, 150)
        b = P(250, 160)
        c = P(200, 250)

        p = intersect_bisectors([
            compute_bisector(a, b, large_square, resolution=0.5),
            compute_bisector(a, c, large_square, resolution=0.5),
        ])

        assert p is not None
        da = hilbert_distance(a, p, large_square)
        assert hilbert_distance(b, p, large_square) == pytest.approx(da, abs=0.05)
        assert hilbert_distance(c, p, large_square) == pytest.approx(da, abs=0.05)


class TestThompsonBisector:
    """Tests for the sampled Thompson bisector."""

    def test_symmetric_sites(self, square):
        """Test samples agree within epsilon and include the mirror line."""
        s = P(3, 5)
        t = P(7, 5)

        points = thompson_bisector(s, t, square, resolution=0.5)

        assert points
        assert any(p.x == pytest.approx(5) for p in points)
        for p in points:
            assert square.contains(p)
            gap = abs(thompson_distance(s, p, square) - thompson_distance(t, p, square))
            assert gap < 1e-2

    def test_sites_never_sampled(self, square):
        """Test grid points on a site are skipped rather than raising."""
        points = thompson_bisector(P(4, 5), P(6, 5), square, resolution=1.0)

        assert P(4, 5) not in points
        assert P(6, 5) not in points
