from pydantic import BaseModel
from typing import List, Optional, Dict, Any

DEFAULT_ASPECT_TYPES = ["conjunction", "opposition", "square", "trine", "sextile"]

class NatalPointIn(BaseModel):
    name: str
    longitude: Optional[float] = None

class UserTransitsRequest(BaseModel):
    year: int
    natal_points: List[NatalPointIn]
    aspect_types: List[str] = DEFAULT_ASPECT_TYPES

class EventOut(BaseModel):
    jd: float
    timestamp: str  # ISO 8601, UTC
    lon: float
    speed: Optional[float] = None

class SignIngressOut(EventOut):
    body: str
    sign: str
    previous_sign: str

class SeasonIngressOut(EventOut):
    season: str
    sign: str

class StationOut(EventOut):
    body: str
    station_type: str
    sign: str

class ExactAspectOut(EventOut):
    transit_body: str
    natal_body: str
    natal_lon: float
    aspect: str
    aspect_angle: float
    retro: bool
    pass_number: int

class GlobalEventsResponse(BaseModel):
    meta: Dict[str, Any]
    season_ingresses: List[SeasonIngressOut]
    sign_ingresses: List[SignIngressOut]
    stations: List[StationOut]

class UserTransitsResponse(BaseModel):
    meta: Dict[str, Any]
    events: List[ExactAspectOut]
