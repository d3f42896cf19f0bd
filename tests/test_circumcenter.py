"""Tests for the Hilbert circumcenter and minimum enclosing ball."""

import pytest
from pydantic import ValidationError

from hilbertgeom.circumcenter.enclosing import hilbert_circumcenter, minimum_enclosing_ball
from hilbertgeom.errors import DomainError
from hilbertgeom.metrics.distance import hilbert_distance, hilbert_midpoint
from hilbertgeom.models import EnclosingBall, Point


def P(x, y):
    return Point(x=x, y=y)


class TestHilbertCircumcenter:
    """Tests for the sampled circumcenter of three sites."""

    def test_equidistant_from_three_sites(self, large_square):
        """Test the circumcenter is (nearly) equidistant from all three sites."""
        sites = [P(150, 150), P(250, 160), P(200, 250)]

        center = hilbert_circumcenter(*sites, large_square, resolution=0.5)

        assert center is not None
        d = [hilbert_distance(s, center, large_square) for s in sites]
        assert max(d) - min(d) < 0.05


class TestMinimumEnclosingBall:
    """Tests for minimum_enclosing_ball."""

    def test_empty_raises(self, large_square):
        """Test an empty site set is rejected."""
        with pytest.raises(ValueError):
            minimum_enclosing_ball([], large_square)

    def test_site_outside_raises(self, large_square):
        """Test a site outside the region is rejected."""
        with pytest.raises(DomainError):
            minimum_enclosing_ball([P(100, 100), P(450, 100)], large_square)

    def test_single_site(self, square):
        """Test one site gives a zero-radius ball centered on it."""
        ball = minimum_enclosing_ball([P(4, 6)], square)

        assert isinstance(ball, EnclosingBall)
        assert ball.center == P(4, 6)
        assert ball.radius == 0.0
        assert ball.defining_sites == [P(4, 6)]

    def test_result_is_immutable(self, square):
        """Test a returned ball cannot be modified in place."""
        ball = minimum_enclosing_ball([P(3, 5), P(6, 5)], square)

        with pytest.raises(ValidationError):
            ball.radius = 0.0
        with pytest.raises(ValidationError):
            ball.center = P(5, 5)

    def test_close_distinct_sites(self, square):
        """Test sites a hair apart are kept distinct and enclosed."""
        a = P(5, 5)
        b = P(5.0000001, 5.0000001)

        ball = minimum_enclosing_ball([a, b], square)

        assert ball.radius == pytest.approx(hilbert_distance(a, b, square) / 2, abs=1e-10)
        assert ball.radius > 0

    def test_duplicate_sites_collapse(self, square):
        """Test repeated sites count once."""
        ball = minimum_enclosing_ball([P(4, 6), P(4, 6)], square)

        assert ball.radius == 0.0

    def test_two_sites(self, square):
        """Test two sites give the Hilbert midpoint and half their distance."""
        a = P(3, 5)
        b = P(6, 5)

        ball = minimum_enclosing_ball([a, b], square)

        midpoint = hilbert_midpoint(a, b, square)
        assert ball.center.x == pytest.approx(midpoint.x)
        assert ball.center.y == pytest.approx(midpoint.y)
        assert ball.radius == pytest.approx(hilbert_distance(a, b, square) / 2, abs=1e-9)
        assert len(ball.defining_sites) == 2
        assert len(ball.boundary) >= 4

    def test_inner_site_uses_pair(self, large_square):
        """Test a site deep inside the pair ball leaves the pair optimal."""
        a = P(150, 200)
        b = P(250, 200)
        inner = P(200, 205)

        ball = minimum_enclosing_ball([a, b, inner], large_square)

        assert ball.radius == pytest.approx(hilbert_distance(a, b, large_square) / 2, abs=1e-9)
        assert inner not in ball.defining_sites

    def test_three_sites_are_covered(self, large_square):
        """Test every site lies within the ball and the radius is not below any pair bound."""
        sites = [P(150, 150), P(250, 160), P(200, 250)]

        ball = minimum_enclosing_ball(sites, large_square)

        for s in sites:
            assert hilbert_distance(s, ball.center, large_square) <= ball.radius + 1e-9

        pair_bound = max(
            hilbert_distance(a, b, large_square) / 2
            for i, a in enumerate(sites) for b in sites[i + 1:]
        )
        assert ball.radius >= pair_bound - 1e-2
        assert ball.boundary
