"""Error taxonomy for chart and event computation.

Per-element failures (one body, the house table) are absorbed by the
placement engine and only surface through the tracer. Structural problems
propagate to the caller as one of the exceptions below. "Location unknown"
is a value (:class:`~astrocore.services.placements.UnknownLocation`) and
"no root bracketed" is a ``None`` return, so neither appears here.
"""

from __future__ import annotations

from typing import Optional


class AstroError(Exception):
    """Base class for all astrocore failures."""

    code = "astro_error"


class InvalidBirthInput(AstroError, ValueError):
    """Malformed date/time or an unrecognised IANA timezone."""

    code = "invalid_birth_input"


class ProviderLookupFailed(AstroError):
    """The ephemeris backend could not answer a body or house query."""

    code = "provider_lookup_failed"

    def __init__(self, message: str, *, target: Optional[str] = None, julian_day: Optional[float] = None) -> None:
        super().__init__(message)
        self.target = target
        self.julian_day = julian_day


class ShapeInvariantViolated(AstroError):
    """House data came back with a cusp count other than 12."""

    code = "shape_invariant_violated"


class MissingReferencePoint(AstroError, LookupError):
    """A calculated feature needs a placement that the chart does not have."""

    code = "missing_reference_point"


class ScanDeadlineExceeded(AstroError, TimeoutError):
    """A year scan ran past the caller's deadline."""

    code = "scan_deadline_exceeded"


__all__ = [
    "AstroError",
    "InvalidBirthInput",
    "MissingReferencePoint",
    "ProviderLookupFailed",
    "ScanDeadlineExceeded",
    "ShapeInvariantViolated",
]
