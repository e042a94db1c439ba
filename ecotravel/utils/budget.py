# Role: Annual budget / CO2 bookkeeping over saved trips. Used by the system prompt (so the model knows what is
# left) and by the dashboard endpoint.

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence

from ecotravel.models.settings import UserSettings
from ecotravel.models.trip import Trip


@dataclass(frozen=True)
class BudgetSummary:
    annual_budget: float
    spent: float
    remaining_budget: float
    budget_progress_pct: float
    annual_co2_limit: float
    co2_used: float
    remaining_co2: float
    co2_progress_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(settings: UserSettings, trips: Sequence[Trip]) -> BudgetSummary:
    spent = sum(t.estimated_cost for t in trips)
    co2 = sum(t.estimated_co2 for t in trips)
    return BudgetSummary(
        annual_budget=settings.annual_budget,
        spent=spent,
        remaining_budget=max(0.0, settings.annual_budget - spent),
        budget_progress_pct=_progress(spent, settings.annual_budget),
        annual_co2_limit=settings.annual_co2_limit,
        co2_used=co2,
        remaining_co2=max(0.0, settings.annual_co2_limit - co2),
        co2_progress_pct=_progress(co2, settings.annual_co2_limit),
    )


def _progress(used: float, limit: float) -> float:
    # Key line: a zero limit counts as fully used once anything is spent.
    if limit <= 0:
        return 100.0 if used > 0 else 0.0
    return round(min(100.0, used / limit * 100), 1)
