# Role: Trip entities. TripProposal is the partially filled trip suggested during a conversation
# (from extraction or a selected card); Trip is what the surrounding application persists once accepted.

from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ecotravel.models.recommendation import Recommendation

UNDECIDED_DATE = "TBD"
UNKNOWN_DESTINATION = "Unbekannt"


class TripStatus(str, Enum):
    PLANNED = "planned"
    BOOKED = "booked"
    COMPLETED = "completed"


class TripProposal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    estimated_cost: Optional[float] = Field(default=None, alias="estimatedCost")
    estimated_co2: Optional[float] = Field(default=None, alias="estimatedCo2")
    transport_mode: Optional[str] = Field(default=None, alias="transportMode")
    notes: Optional[str] = None

    @classmethod
    def from_recommendation(cls, rec: Recommendation) -> "TripProposal":
        return cls(
            destination=rec.destination,
            estimated_cost=rec.total_cost,
            estimated_co2=rec.co2_kg,
            transport_mode=rec.transport_mode,
            notes=rec.description,
        )


class Trip(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    destination: str
    start_date: str = UNDECIDED_DATE
    end_date: str = UNDECIDED_DATE
    estimated_cost: float = 0
    estimated_co2: float = 0
    status: TripStatus = TripStatus.PLANNED
    notes: str = ""
    transport_mode: Optional[str] = None

    @classmethod
    def from_proposal(cls, proposal: TripProposal) -> "Trip":
        # Key line: proposed values are kept as-is; only missing ones get defaults.
        return cls(
            destination=proposal.destination or UNKNOWN_DESTINATION,
            start_date=proposal.start_date or UNDECIDED_DATE,
            end_date=proposal.end_date or UNDECIDED_DATE,
            estimated_cost=proposal.estimated_cost if proposal.estimated_cost is not None else 0,
            estimated_co2=proposal.estimated_co2 if proposal.estimated_co2 is not None else 0,
            notes=proposal.notes or "",
            transport_mode=proposal.transport_mode,
        )
