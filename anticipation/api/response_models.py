"""
Pydantic response models for the signal endpoints.

These give FastAPI the type information it needs to generate accurate
OpenAPI schemas.
"""

from pydantic import BaseModel, Field

from ..intelligence.models import LifeDomain, Signal, SignalSeverity, SignalType


class SignalModel(BaseModel):
    """Wire shape of one signal."""

    id: str
    type: SignalType
    severity: SignalSeverity
    domain: LifeDomain
    source: str
    title: str
    context: str
    suggested_action: str | None = None
    auto_actionable: bool = False
    is_dismissed: bool = False
    is_acted_on: bool = False
    related_entity_ids: list[str] = Field(default_factory=list)
    created_at: str
    expires_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_signal(cls, signal: Signal) -> "SignalModel":
        return cls(**signal.to_dict())


class SignalListResponse(BaseModel):
    """List of signals with a total."""

    items: list[SignalModel] = Field(default_factory=list, description="Signals, newest last")
    total: int = Field(description="Number of signals returned")


class SignalCountsResponse(BaseModel):
    """Active signal counts. `urgent` includes critical."""

    total: int = 0
    urgent: int = 0
    attention: int = 0
    info: int = 0


class HealthResponse(BaseModel):
    status: str = Field(description="ok")
    signals: int = Field(description="Signals held by the store")
    timestamp: str = Field(description="ISO timestamp")
