from pydantic import BaseModel
from typing import Optional, List, Literal, Tuple

HouseSystem = Literal["placidus", "koch", "whole_sign", "regiomontanus", "campanus"]

class ChartInput(BaseModel):
    date: str  # YYYY-MM-DD
    time: str  # HH:MM or HH:MM:SS
    timezone: str  # IANA, e.g. "Europe/London"
    lat: Optional[float] = None
    lon: Optional[float] = None
    house_system: HouseSystem = "placidus"

class ComputeRequest(ChartInput):
    pass

class BodyOut(BaseModel):
    name: str
    sign: str
    lon: float
    house: Optional[int] = None
    retro: bool = False
    speed: Optional[float] = None

class HouseOut(BaseModel):
    num: int
    sign: str
    cusp_lon: float

class AngleOut(BaseModel):
    sign: str
    lon: Optional[float] = None

class AnglesOut(BaseModel):
    ascendant: AngleOut
    midheaven: AngleOut
    descendant: AngleOut
    ic: AngleOut

class AspectOut(BaseModel):
    p1: str
    p2: str
    type: str
    orb: float
    exact_angle: float

class ElementBalanceOut(BaseModel):
    fire: int
    earth: int
    air: int
    water: int

class ModalityBalanceOut(BaseModel):
    cardinal: int
    fixed: int
    mutable: int

class DerivedOut(BaseModel):
    element_balance: ElementBalanceOut
    modality_balance: ModalityBalanceOut
    dominant_signs: List[Tuple[str, float]]
    dominant_bodies: List[Tuple[str, float]]
    chart_ruler: str
    top_aspects: List[AspectOut]

class PointOut(BaseModel):
    lon: float
    sign: str
    house: Optional[int] = None

class StelliumOut(BaseModel):
    type: Literal["sign", "house"]
    name: str
    bodies: List[str]

class PatternOut(BaseModel):
    type: Literal["grand_trine", "t_square"]
    bodies: List[str]

class EmphasisOut(BaseModel):
    house_emphasis: List[Tuple[int, int]]
    sign_emphasis: List[Tuple[str, int]]
    stelliums: List[StelliumOut]

class CalculatedOut(BaseModel):
    south_node: PointOut
    sect: Literal["day", "night"]
    part_of_fortune: Optional[PointOut] = None
    emphasis: EmphasisOut
    patterns: List[PatternOut]

class MetaOut(BaseModel):
    engine: str = "astrocore"
    engine_version: str
    system: str
    zodiac: str = "tropical"
    house_system: str
    backend: Optional[str] = None
    warnings: Optional[List[str]] = None

class ComputeResponse(BaseModel):
    meta: MetaOut
    julian_day: float
    angles: AnglesOut
    houses: List[HouseOut]
    bodies: List[BodyOut]
    aspects: List[AspectOut]
    derived: DerivedOut
    calculated: CalculatedOut
