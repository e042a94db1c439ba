# Role: User-level configuration (annual limits + SerpApi key). Read-only for the conversation core;
# only the surrounding application changes it.

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class UserSettings(BaseModel):
    annual_budget: float = Field(default=5000, ge=0)
    annual_co2_limit: float = Field(default=2000, ge=0)
    has_onboarded: bool = False
    api_key: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())
