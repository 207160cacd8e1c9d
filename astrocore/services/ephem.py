"""Swiss Ephemeris adapter used by the placement engine and the event solver.

The binding keeps process-wide state (data-file path, open file handles), so
everything goes through a single :class:`EphemerisProvider` built once at
startup and passed by reference into every computation.
"""

from __future__ import annotations

import logging
import os
import threading
from functools import lru_cache
from typing import Dict, Optional

import swisseph as swe

from .errors import ProviderLookupFailed
from .positions import BodyPosition, HouseCusps, PositionSource

logger = logging.getLogger(__name__)


# Engine version for API responses
try:
    ENGINE_VERSION = f"swisseph-{swe.version}"
except AttributeError:
    ENGINE_VERSION = "swisseph-2.10"  # Fallback if version not available

BODIES: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mercury": swe.MERCURY,
    "Venus": swe.VENUS,
    "Mars": swe.MARS,
    "Jupiter": swe.JUPITER,
    "Saturn": swe.SATURN,
    "Uranus": swe.URANUS,
    "Neptune": swe.NEPTUNE,
    "Pluto": swe.PLUTO,
    "North Node": swe.TRUE_NODE,
    "Chiron": swe.CHIRON,
}

HOUSE_CODE_MAP = {
    "placidus": "P",
    "koch": "K",
    "whole_sign": "W",
    "regiomontanus": "R",
    "campanus": "C",
}


_PATH_LOCK = threading.Lock()
_CONFIGURED_PATH: Optional[str] = None


def _backend_flag(backend: Optional[str] = None) -> int:
    """Return the Swiss Ephemeris backend flag based on environment configuration."""

    raw_backend = backend if backend is not None else os.getenv("EPHEMERIS_BACKEND")
    backend = raw_backend.strip().lower() if raw_backend else "swieph"
    return swe.FLG_MOSEPH if backend == "moseph" else swe.FLG_SWIEPH


def backend_name(backend: Optional[str] = None) -> str:
    return "moseph" if _backend_flag(backend) == swe.FLG_MOSEPH else "swieph"


def init_paths(ephe_dir: str | os.PathLike[str] | None) -> None:
    """Set the Swiss Ephemeris file search path once per process.

    Repeated calls with the same directory are no-ops. A missing directory is
    ignored so the built-in Moshier tables remain usable.
    """

    global _CONFIGURED_PATH

    if not ephe_dir:
        return

    path = os.fspath(ephe_dir)
    with _PATH_LOCK:
        if _CONFIGURED_PATH == path:
            return
        if os.path.isdir(path):
            swe.set_ephe_path(path)
            _CONFIGURED_PATH = path
            logger.info("ephemeris_path_configured", extra={"path": path})
        else:
            logger.warning("ephemeris_path_missing", extra={"path": path})


class EphemerisProvider:
    """Thread-safe handle over the Swiss Ephemeris binding.

    ``max_retries`` bounds how often a failed lookup is repeated before it is
    reported as :class:`ProviderLookupFailed`. The default of 0 treats every
    failure as permanent.
    """

    def __init__(
        self,
        ephe_dir: str | os.PathLike[str] | None = None,
        backend: Optional[str] = None,
        max_retries: int = 0,
    ) -> None:
        init_paths(ephe_dir)
        self.backend = backend_name(backend)
        self._flag = _backend_flag(self.backend) | swe.FLG_SPEED
        self.max_retries = max(0, int(max_retries))
        self._lock = threading.Lock()

    def _attempt(self, label: str, jd: float, call):
        last_exc: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                with self._lock:
                    return call()
            except Exception as exc:  # swisseph raises its own Error type or ValueError
                last_exc = exc
                if attempt < self.max_retries:
                    logger.info(
                        "ephemeris_lookup_retry",
                        extra={"target": label, "jd": jd, "attempt": attempt + 1},
                    )
        raise ProviderLookupFailed(
            f"{label} lookup failed at JD {jd}: {last_exc}", target=label, julian_day=jd
        ) from last_exc

    def body_position(self, jd: float, body: str) -> BodyPosition:
        code = BODIES.get(body)
        if code is None:
            raise ProviderLookupFailed(f"Unknown body: {body}", target=body, julian_day=jd)
        values, _ = self._attempt(body, jd, lambda: swe.calc_ut(jd, code, self._flag))
        lon, _lat, _dist, lon_speed = values[0], values[1], values[2], values[3]
        return BodyPosition(longitude=lon % 360.0, speed=lon_speed)

    def houses(self, jd: float, lat: float, lon: float, system: str = "placidus") -> HouseCusps:
        hs = HOUSE_CODE_MAP.get(system.lower(), "P")
        cusps, ascmc = self._attempt(
            "houses", jd, lambda: swe.houses(jd, lat, lon, hs.encode())
        )
        # Older bindings return 13 entries with a dummy at index 0.
        raw = list(cusps)
        if len(raw) == 13:
            raw = raw[1:]
        return HouseCusps(
            cusps=[c % 360.0 for c in raw],
            ascendant=ascmc[0] % 360.0,
            midheaven=ascmc[1] % 360.0,
        )


@lru_cache(maxsize=1)
def get_provider() -> EphemerisProvider:
    """Process-wide provider configured from the environment."""

    return EphemerisProvider(
        ephe_dir=os.getenv("EPHEMERIS_DIR"),
        backend=os.getenv("EPHEMERIS_BACKEND"),
        max_retries=int(os.getenv("EPHEMERIS_MAX_RETRIES", "0")),
    )


__all__ = [
    "BODIES",
    "BodyPosition",
    "ENGINE_VERSION",
    "EphemerisProvider",
    "HOUSE_CODE_MAP",
    "HouseCusps",
    "PositionSource",
    "backend_name",
    "get_provider",
    "init_paths",
]
