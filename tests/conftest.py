"""Pytest fixtures for hilbertgeom tests."""

import math
import tempfile

import pytest

from hilbertgeom.geometry.region import ConvexRegion
from hilbertgeom.models import Point


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def square():
    """Axis-aligned square [0, 10] x [0, 10], counter-clockwise."""
    return ConvexRegion([Point(x=0, y=0), Point(x=10, y=0), Point(x=10, y=10), Point(x=0, y=10)])


@pytest.fixture
def large_square():
    """Square [0, 400] x [0, 400], sized for traced bisectors at unit resolution."""
    return ConvexRegion([Point(x=0, y=0), Point(x=400, y=0), Point(x=400, y=400), Point(x=0, y=400)])


@pytest.fixture
def hexagon():
    """Regular hexagon of circumradius 100 centered at (200, 200)."""
    return ConvexRegion([
        Point(x=200 + 100 * math.cos(k * math.pi / 3), y=200 + 100 * math.sin(k * math.pi / 3))
        for k in range(6)
    ])


@pytest.fixture
def triangle():
    """Right triangle with legs of length 300."""
    return ConvexRegion([Point(x=0, y=0), Point(x=300, y=0), Point(x=0, y=300)])


@pytest.fixture
def default_config():
    """Create default kernel configuration."""
    from hilbertgeom.config import KernelConfig
    return KernelConfig()
