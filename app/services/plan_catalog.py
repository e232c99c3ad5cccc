"""Static subscription plan catalog."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from app.utils.errors import UnknownPlanError


class PlanDefinition(BaseModel):
    """One purchasable subscription tier."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    monthly_price: int  # cents
    coins: int  # allocation per cycle
    has_unlimited_coin_cap: bool = False
    coin_cap: int | None = None


DEFAULT_PLANS: tuple[PlanDefinition, ...] = (
    PlanDefinition(id="freelancer", name="Freelancer", monthly_price=499, coins=100, coin_cap=100),
    PlanDefinition(
        id="professional", name="Professional", monthly_price=999, coins=400, coin_cap=400
    ),
    PlanDefinition(id="expert", name="Expert", monthly_price=1999, coins=1000, coin_cap=1000),
    PlanDefinition(
        id="elite",
        name="Elite",
        monthly_price=3699,
        coins=5000,
        has_unlimited_coin_cap=True,
    ),
)


class PlanCatalog:
    """Read-only lookup of plan definitions keyed by plan id.

    Plans are kept in ascending tier order. Capped tiers must have distinct
    caps that grow with the tier and sit above the free tier cap.
    """

    def __init__(self, plans: Iterable[PlanDefinition], free_tier_cap: int) -> None:
        ordered = tuple(plans)
        self._plans = {plan.id: plan for plan in ordered}
        self._ordered = ordered
        self.free_tier_cap = free_tier_cap
        self._validate()

    def _validate(self) -> None:
        if len(self._plans) != len(self._ordered):
            raise ValueError("Duplicate plan ids in catalog")

        previous_cap = self.free_tier_cap
        for plan in self._ordered:
            if plan.has_unlimited_coin_cap:
                if plan.coin_cap is not None:
                    raise ValueError(f"Plan {plan.id} is unlimited but declares a cap")
                continue
            if plan.coin_cap is None:
                raise ValueError(f"Plan {plan.id} needs a coin cap")
            if plan.coin_cap <= previous_cap:
                raise ValueError(
                    f"Plan {plan.id} cap {plan.coin_cap} must exceed {previous_cap}"
                )
            previous_cap = plan.coin_cap

    def get(self, plan_id: str) -> PlanDefinition:
        """Return a plan or raise UnknownPlanError."""
        plan = self._plans.get(plan_id)
        if plan is None:
            raise UnknownPlanError(plan_id)
        return plan

    def find(self, plan_id: str | None) -> PlanDefinition | None:
        """Return a plan or None when the id is unknown."""
        if plan_id is None:
            return None
        return self._plans.get(plan_id)

    def plans(self) -> list[PlanDefinition]:
        """Return every plan in ascending tier order."""
        return list(self._ordered)

    def __contains__(self, plan_id: object) -> bool:
        return plan_id in self._plans

    def __iter__(self) -> Iterator[PlanDefinition]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)
