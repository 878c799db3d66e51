# app/services/plan_generator.py

import logging
from typing import Any, Dict, List, Optional, Union
from pydantic import ValidationError
from app.core.exceptions import InvalidInput
from app.models.plan import Goal, Plan, RiskTier
from app.services.risk_profiler import default_allocation
from app.services.time_value import future_value_of_sip, round_half_up

logger = logging.getLogger(__name__)

# Share of net monthly savings directed to investment; the rest stays liquid
INVESTMENT_SHARE = 0.6

# Used to project goals that arrive without a target
GOAL_GROWTH_RATE = 0.12
DEFAULT_GOAL_YEARS = 5


def project_goal_corpus(monthly_investment: float, duration_years: Optional[int]) -> int:
    """Example goal corpus: SIP growth at 12% over the goal's horizon (5 years if unknown)"""
    years = duration_years or DEFAULT_GOAL_YEARS
    contribution = max(monthly_investment or 0, 0)
    return round_half_up(future_value_of_sip(contribution, GOAL_GROWTH_RATE, years))


def resolve_goal(entry: Union[Goal, Dict[str, Any], Any], recommended_investment: float) -> Goal:
    """
    Turn one caller-supplied goal into a complete Goal.

    A missing (or zero) target is projected from the goal's own monthly
    investment, falling back to the plan's recommended investment.
    Raises InvalidInput for entries that aren't goal objects.
    """
    if isinstance(entry, Goal):
        data = entry.model_dump()
    elif isinstance(entry, dict):
        data = dict(entry)
    else:
        raise InvalidInput(f"Goal entry must be an object, got {type(entry).__name__}")

    if not isinstance(data.get("name"), str) or not data["name"].strip():
        raise InvalidInput(f"Goal entry needs a name: {data}")

    if not data.get("duration_years"):
        data["duration_years"] = DEFAULT_GOAL_YEARS

    try:
        goal = Goal(**data)
    except ValidationError as e:
        raise InvalidInput(f"Invalid goal '{data['name']}': {e.errors()[0].get('msg')}") from e

    if not goal.target_amount:
        goal.target_amount = project_goal_corpus(
            goal.monthly_investment or recommended_investment,
            goal.duration_years
        )

    return goal


def build_plan(
    income: float,
    expenses: float,
    goals: Optional[List[Union[Goal, Dict[str, Any]]]] = None,
    risk_tier: RiskTier = RiskTier.MODERATE,
    skip_invalid: bool = False
) -> Plan:
    """
    Simple financial plan generator used when no model draft is available.

    With skip_invalid=False a malformed goal aborts the whole plan (InvalidInput);
    with skip_invalid=True it is logged and left out.
    """
    monthly_savings = income - expenses
    recommended_investment = round_half_up(monthly_savings * INVESTMENT_SHARE)

    structured_goals = []
    for entry in goals or []:
        try:
            structured_goals.append(resolve_goal(entry, recommended_investment))
        except InvalidInput as e:
            if not skip_invalid:
                raise
            logger.warning(f"⚠️ Skipping goal: {e}")

    logger.info(
        f"📐 Fallback plan: savings={monthly_savings:,.0f}, investment={recommended_investment:,.0f}, "
        f"risk={risk_tier.value}, goals={len(structured_goals)}"
    )

    return Plan(
        monthly_savings=monthly_savings,
        monthly_recommended_investment=recommended_investment,
        portfolio_allocation=default_allocation(risk_tier),
        goals=structured_goals
    )
