from .charts import ChartInput, ComputeRequest, ComputeResponse, BodyOut, HouseOut, AnglesOut, AspectOut, MetaOut

from .events import (
    NatalPointIn,
    UserTransitsRequest,
    GlobalEventsResponse,
    UserTransitsResponse,
    SignIngressOut,
    SeasonIngressOut,
    StationOut,
    ExactAspectOut,
)
