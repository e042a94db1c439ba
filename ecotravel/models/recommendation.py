# Role: Card-style trip option produced by the model through the displayRecommendations tool.
# Field aliases match the camelCase shape declared in the tool registry.

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    description: str = ""
    total_cost: float = Field(alias="totalCost", ge=0)
    co2_kg: float = Field(alias="co2Kg", ge=0)
    transport_mode: str = Field(alias="transportMode", min_length=1)
    image_keyword: str = Field(alias="imageKeyword", min_length=1)

    flight_price: Optional[float] = Field(default=None, alias="flightPrice", ge=0)
    accommodation_price: Optional[float] = Field(default=None, alias="accommodationPrice", ge=0)
    flight_link: Optional[str] = Field(default=None, alias="flightLink")
    accommodation_link: Optional[str] = Field(default=None, alias="accommodationLink")
    accommodation_type: Optional[str] = Field(default=None, alias="accommodationType")
