"""
Typed errors raised by the hilbertgeom kernel.

A missing bisector intersection is not an error; search functions return
None for it.
"""


class HilbertGeomError(Exception):
    """Base error for the kernel."""


class DomainError(HilbertGeomError, ValueError):
    """A metric was requested where it is undefined.

    Raised for coincident sites, sites on or outside the region boundary,
    and chords that do not meet the boundary twice.
    """


class DegenerateConicError(HilbertGeomError, ArithmeticError):
    """Conic coefficients have no quadratic part (A = C = 0).

    Callers are expected to fall back to a straight segment.
    """
