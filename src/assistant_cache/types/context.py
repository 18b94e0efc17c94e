"""
Assistant context snapshot models.

A ContextSnapshot describes who is asking, from which screen, and about
which entities. The payload is a tagged union discriminated on ``type``;
each variant declares which of its fields affect the correctness of a
cached answer via ``fingerprint_fields()``. Everything else is descriptive
and may change freely without invalidating cached answers.

Both snake_case and the camelCase keys produced by the app are accepted.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ContextModel(BaseModel):
    """Base model: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AppInfo(_ContextModel):
    """Client application info."""

    version: str | None = None
    platform: str | None = None


class UserInfo(_ContextModel):
    """The asking user. An empty id denotes an anonymous caller."""

    id: str = ""
    plan: str | None = None
    timezone: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return not self.id


class ScreenInfo(_ContextModel):
    """Where in the app the question was asked."""

    name: str = ""
    route: str = ""


class Permissions(_ContextModel):
    """What the user may do from the current screen."""

    can_write: bool = False
    can_send_for_e_sign: bool = Field(default=False, alias="canSendForESign")
    can_generate_reports: bool = False


class ContextSummary(_ContextModel):
    """Human-readable summary of the screen. Volatile."""

    one_liner: str = ""
    last_updated: str | None = None


# ---------------------------------------------------------------------------
# deal_cockpit
# ---------------------------------------------------------------------------


class NextAction(_ContextModel):
    label: str
    due_date: str | None = None
    is_overdue: bool = False


class MetricValue(_ContextModel):
    value: float
    confidence: str | None = None
    source_count: int | None = None


class RiskScore(_ContextModel):
    value: float
    band: str | None = None


class DealNumbers(_ContextModel):
    mao: MetricValue | None = None
    profit: MetricValue | None = None
    risk: RiskScore | None = None


class DealProperty(_ContextModel):
    address: str | None = None
    arv: float | None = None
    repair_cost: float | None = None


class DealLead(_ContextModel):
    name: str | None = None
    motivation: str | None = None


class DealInfo(_ContextModel):
    """Deal shown in the cockpit. ``stage`` is its mutable pipeline status."""

    id: str
    stage: str | None = None
    strategy: str | None = None
    next_action: NextAction | None = None
    numbers: DealNumbers = Field(default_factory=DealNumbers)
    property: DealProperty | None = None
    lead: DealLead | None = None


class MissingInfo(_ContextModel):
    key: str
    label: str
    severity: str = "med"


class RecentEvent(_ContextModel):
    event_id: str | None = None
    type: str | None = None
    title: str = ""
    ts: str | None = None


class DealCockpitPayload(_ContextModel):
    """Payload for the deal cockpit screen."""

    type: Literal["deal_cockpit"] = "deal_cockpit"
    deal: DealInfo
    missing_info: list[MissingInfo] = Field(default_factory=list)
    recent_events: list[RecentEvent] = Field(default_factory=list)

    def fingerprint_fields(self) -> dict[str, Any]:
        return {"deal_id": self.deal.id, "stage": self.deal.stage}


# ---------------------------------------------------------------------------
# property_detail
# ---------------------------------------------------------------------------


class PropertyInfo(_ContextModel):
    """Property shown on the detail screen. ``status`` is its mutable status."""

    address: str = "Unknown"
    type: str | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    sqft: float | None = None
    year_built: int | None = None
    arv: float | None = None
    purchase_price: float | None = None
    repair_cost: float | None = None
    status: str | None = None


class AnalysisMetrics(_ContextModel):
    mao: float | None = None
    profit: float | None = None
    roi: float | None = None
    cap_rate: float | None = None
    cash_flow: float | None = None


class PropertyDetailPayload(_ContextModel):
    """Payload for the property detail screen."""

    type: Literal["property_detail"] = "property_detail"
    property_id: str
    property: PropertyInfo = Field(default_factory=PropertyInfo)
    analysis_metrics: AnalysisMetrics | None = None

    def fingerprint_fields(self) -> dict[str, Any]:
        return {"property_id": self.property_id, "status": self.property.status}


# ---------------------------------------------------------------------------
# generic
# ---------------------------------------------------------------------------


class GenericPayload(_ContextModel):
    """Payload for screens without entity-specific context."""

    type: Literal["generic"] = "generic"
    screen_name: str = ""

    def fingerprint_fields(self) -> dict[str, Any]:
        return {"screen_name": self.screen_name}


ContextPayload = Annotated[
    Union[DealCockpitPayload, PropertyDetailPayload, GenericPayload],
    Field(discriminator="type"),
]


class ContextSnapshot(_ContextModel):
    """Structured description of the screen a question was asked from.

    Example:
        >>> ctx = ContextSnapshot(
        ...     user=UserInfo(id="user-a"),
        ...     screen=ScreenInfo(name="DealCockpit", route="/deals/123"),
        ...     selection={"dealId": "deal-123"},
        ...     payload=DealCockpitPayload(deal=DealInfo(id="deal-123", stage="analyzing")),
        ... )
    """

    app: AppInfo = Field(default_factory=AppInfo)
    user: UserInfo = Field(default_factory=UserInfo)
    screen: ScreenInfo = Field(default_factory=ScreenInfo)
    permissions: Permissions = Field(default_factory=Permissions)
    focus_mode: bool = False
    selection: dict[str, str] = Field(default_factory=dict)
    summary: ContextSummary = Field(default_factory=ContextSummary)
    payload: ContextPayload = Field(default_factory=GenericPayload)

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def screen_name(self) -> str:
        return self.screen.name

    @property
    def route(self) -> str:
        return self.screen.route

    @property
    def payload_type(self) -> str:
        return self.payload.type
