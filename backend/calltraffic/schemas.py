from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from calltraffic.models.enums import Category, CallStatus, EndReason, IntentCode, Period, TransferReason

INTENT_SUM_TOLERANCE = 1e-9


class WeekdayBand(BaseModel):
    min_multiplier: float = Field(gt=0)
    max_multiplier: float = Field(gt=0)

    @model_validator(mode="after")
    def check_order(self) -> "WeekdayBand":
        if self.min_multiplier > self.max_multiplier:
            raise ValueError("min_multiplier must not exceed max_multiplier")
        return self


class IntentShare(BaseModel):
    intent_code: IntentCode
    probability: float = Field(ge=0, le=1)


class DurationRange(BaseModel):
    low: int = Field(ge=0)
    high: int = Field(ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "DurationRange":
        if self.low > self.high:
            raise ValueError("low must not exceed high")
        return self


class TrafficProfile(BaseModel):
    """Statistical shape of a synthetic tenant's call traffic.

    Weekday keys follow the 0=Sunday..6=Saturday convention. Hours missing
    from ``hour_weights`` weigh 0 and never produce events.
    """

    base_min: int = Field(ge=0)
    base_max: int = Field(ge=0)
    weekday_bands: Dict[int, WeekdayBand]
    hour_weights: Dict[int, float]
    intent_distribution: List[IntentShare]
    duration_ranges: Dict[IntentCode, DurationRange] = {}
    steps: Dict[IntentCode, List[str]] = {}
    first_names: List[str] = Field(min_length=1)
    last_names: List[str] = Field(min_length=1)
    birth_year_min: int = 1950
    birth_year_max: int = 2010
    flag_emergencies: bool = True
    rdv_booking_rate: float = Field(default=0.8, ge=0, le=1)

    @field_validator("weekday_bands")
    def check_weekdays(cls, value: Dict[int, WeekdayBand]) -> Dict[int, WeekdayBand]:
        unknown = [day for day in value if day < 0 or day > 6]
        if unknown:
            raise ValueError(f"weekday keys must be within 0..6, got {unknown}")
        return value

    @field_validator("hour_weights")
    def check_hours(cls, value: Dict[int, float]) -> Dict[int, float]:
        for hour, weight in value.items():
            if hour < 0 or hour > 23:
                raise ValueError(f"hour keys must be within 0..23, got {hour}")
            if weight < 0:
                raise ValueError(f"hour {hour} has a negative weight")
        return value

    @field_validator("intent_distribution")
    def check_distribution(cls, value: List[IntentShare]) -> List[IntentShare]:
        if not value:
            return value
        total = sum(share.probability for share in value)
        if abs(total - 1.0) > INTENT_SUM_TOLERANCE:
            raise ValueError(f"intent probabilities must sum to 1, got {total}")
        return value

    @model_validator(mode="after")
    def check_bounds(self) -> "TrafficProfile":
        if self.base_min > self.base_max:
            raise ValueError("base_min must not exceed base_max")
        if self.birth_year_min > self.birth_year_max:
            raise ValueError("birth_year_min must not exceed birth_year_max")
        return self


class CallStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    intents: List[str] = []
    rdv_booked: int = 0
    emergency: bool = False
    end_reason: Optional[EndReason] = None
    transfer_reason: Optional[TransferReason] = Field(default=None, alias="transferReason")
    error_logic: int = Field(default=0, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)

    @field_validator("intents", mode="before")
    def none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("rdv_booked", "error_logic", mode="before")
    def none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @model_validator(mode="after")
    def check_transfer(self) -> "CallStats":
        if self.transfer_reason is not None and self.end_reason != EndReason.TRANSFER:
            raise ValueError("transferReason is only allowed when end_reason is 'transfer'")
        return self

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CallEventOut(BaseModel):
    id: int
    owner_id: int
    caller: Optional[str]
    called: Optional[str]
    intent_code: IntentCode
    status: CallStatus
    duration_seconds: int
    first_name: Optional[str]
    last_name: Optional[str]
    birthdate: Optional[date]
    created_at: datetime
    steps: List[Any]
    stats: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class CallSummaryIn(BaseModel):
    owner_id: int = Field(gt=0)
    caller: Optional[str] = None
    called: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birthdate: Optional[date] = None
    created_at: Optional[datetime] = None
    steps: List[str]
    stats: CallStats


class RegenerateRequest(BaseModel):
    owner_ids: Optional[List[int]] = None
    window_days: Optional[int] = None
    seed: Optional[int] = None


class OwnerRegeneration(BaseModel):
    owner_id: int
    days_seeded: int = 0
    events_inserted: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RegenerationReport(BaseModel):
    window_days: int
    owners: List[OwnerRegeneration]

    @property
    def failed(self) -> List[OwnerRegeneration]:
        return [owner for owner in self.owners if not owner.ok]


class WeekdayBucket(BaseModel):
    weekday: int
    label: str
    day: Optional[date] = None
    handled: float
    redirected: float
    total: float


class HourlyPoint(BaseModel):
    hour: int
    label: str
    value: float


class CategoryDuration(BaseModel):
    category: Category
    label: str
    count: int
    avg_seconds: float
    avg_minutes: float
    duration_label: str


class BreakdownItem(BaseModel):
    key: Optional[str]
    label: str
    value: int
    placeholder: bool = False


class Breakdown(BaseModel):
    items: List[BreakdownItem]
    is_empty: bool


class AggregateResult(BaseModel):
    owner_id: Optional[int] = None
    period: Period
    window_start: datetime
    window_end: datetime
    total: int
    category_counts: Dict[Category, int]
    performance_index: int
    performance_index_defined: bool
    hours_handled: float
    hours_handled_label: str
    weekday_histogram: List[WeekdayBucket]
    hourly_activity: List[HourlyPoint]
    average_durations: List[CategoryDuration]
    transfer_breakdown: Breakdown
    category_breakdown: Breakdown


class CentreCount(BaseModel):
    owner_id: int
    name: str
    count: int


class FanOutResult(BaseModel):
    seq: int
    period: Period
    results: Dict[int, AggregateResult]
    centre_counts: List[CentreCount]
