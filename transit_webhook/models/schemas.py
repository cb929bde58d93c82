from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

STAY_AT_STOP = "Stay at the same stop"
ROUTE_REQUESTED_CONTEXT = "route_requested"


# --- Dialogflow webhook payloads ---


class ContextKind(str, Enum):
    ROUTE_REQUESTED = "route_requested"
    OTHER = "other"


class Context(BaseModel):
    name: str = ""
    parameters: Optional[Dict[str, Any]] = None

    @property
    def kind(self) -> ContextKind:
        # projects/<p>/agent/sessions/<s>/contexts/<context-id>
        short_name = self.name.rstrip("/").rsplit("/", 1)[-1].lower()
        if short_name == ROUTE_REQUESTED_CONTEXT:
            return ContextKind.ROUTE_REQUESTED
        return ContextKind.OTHER


class IntentRef(BaseModel):
    displayName: Optional[str] = None


class QueryResult(BaseModel):
    intent: IntentRef = Field(default_factory=IntentRef)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    outputContexts: List[Context] = Field(default_factory=list)

    @field_validator("parameters", "outputContexts", mode="before")
    @classmethod
    def _none_as_empty(cls, v, info):
        if v is None:
            return {} if info.field_name == "parameters" else []
        return v


class WebhookRequest(BaseModel):
    queryResult: QueryResult = Field(default_factory=QueryResult)

    @property
    def intent_name(self) -> Optional[str]:
        return self.queryResult.intent.displayName

    def find_context(self, kind: ContextKind) -> Optional[Context]:
        for context in self.queryResult.outputContexts:
            if context.kind is kind and context.parameters is not None:
                return context
        return None


class MessageText(BaseModel):
    text: List[str]


class FulfillmentMessage(BaseModel):
    text: MessageText


class WebhookResponse(BaseModel):
    fulfillmentMessages: List[FulfillmentMessage]

    @classmethod
    def from_text(cls, text: str) -> "WebhookResponse":
        return cls(fulfillmentMessages=[FulfillmentMessage(text=MessageText(text=[text]))])


class ChatRequest(BaseModel):
    text: str
    session_id: str = "default"


class ChatResponse(BaseModel):
    reply: str


# --- Route query ---


class Preference(str, Enum):
    NONE = ""
    FEWER_TRANSFERS = "fewer_transfers"
    LESS_WALKING = "less_walking"


class TimePreference(BaseModel):
    date_time: Optional[str] = None


class RouteParameters(BaseModel):
    """Parsed view of the loosely typed parameter bag sent by Dialogflow."""

    origin: str = ""
    destination: str = ""
    time_preference: Optional[Union[TimePreference, str]] = None

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def _missing_as_blank(cls, v):
        return "" if v is None else v

    @property
    def arrival_time_iso(self) -> Optional[str]:
        """The requested arrival time, or None when the user asked for no particular time."""
        tp = self.time_preference
        if tp is None or tp == "":
            return None
        if isinstance(tp, str):
            return tp
        # a time_preference without date_time is passed on so it fails as an invalid time
        return tp.date_time if tp.date_time is not None else ""


class RouteQuery(BaseModel):
    origin: str
    destination: str
    arrival_time_iso: Optional[str] = None
    preference: Preference = Preference.NONE


# --- Google Directions response ---


class TextValue(BaseModel):
    text: str
    value: Optional[int] = None


class LatLng(BaseModel):
    lat: float
    lng: float


class TransitStop(BaseModel):
    name: str
    location: Optional[LatLng] = None


class TransitTime(BaseModel):
    text: str
    value: Optional[int] = None
    time_zone: Optional[str] = None


class Agency(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    url: Optional[str] = None


class Vehicle(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    icon: Optional[str] = None


class TransitLine(BaseModel):
    short_name: Optional[str] = None
    name: Optional[str] = None
    agencies: List[Agency] = []
    vehicle: Optional[Vehicle] = None

    @property
    def label(self) -> str:
        return self.short_name or self.name or "?"


class TransitDetails(BaseModel):
    departure_stop: TransitStop
    arrival_stop: TransitStop
    departure_time: TransitTime
    arrival_time: TransitTime
    headsign: str = ""
    num_stops: int
    line: TransitLine


class Step(BaseModel):
    travel_mode: str
    duration: TextValue
    html_instructions: Optional[str] = None
    transit_details: Optional[TransitDetails] = None

    @model_validator(mode="after")
    def _transit_needs_details(self):
        if self.travel_mode == "TRANSIT" and self.transit_details is None:
            raise ValueError("TRANSIT step without transit_details")
        return self

    @property
    def is_transit(self) -> bool:
        return self.travel_mode == "TRANSIT"

    @property
    def is_pure_walk(self) -> bool:
        return self.travel_mode == "WALKING" and self.transit_details is None


class RawItinerary(BaseModel):
    steps: List[Step]


class BusSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    bus_number: str
    headsign: str
    departure_stop: str
    departure_time: str
    arrival_stop: str
    arrival_time: str
    duration: str
    num_stops: int
    walk_to_stop: str = STAY_AT_STOP
    walk_from_stop: str = STAY_AT_STOP


Itinerary = List[BusSegment]
