# app/services/plan_validator.py

import math
import logging
from typing import Any, Dict, List, Optional, Union
from pydantic import ValidationError
from app.core.exceptions import InvalidInput
from app.models.plan import Goal, Plan, PlanResult, PlanWarning, WarningCode
from app.services.plan_generator import DEFAULT_GOAL_YEARS, project_goal_corpus
from app.services.time_value import (
    DEFAULT_MAX_YEARS,
    is_reachable,
    required_years,
    round_half_up,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Rate used to sanity-check the primary goal's duration (generation uses 12%)
DURATION_CHECK_RATE = 0.10

# Retirement corpus below this is assumed to be off by one order of magnitude
RETIREMENT_KEYWORD = "retire"
RETIREMENT_MIN_TARGET = 10_000_000
RETIREMENT_SCALE = 10

EMERGENCY_KEY = "emergency"

MAX_PASSES = 4

DURATION_NOTE = (
    "To reach {name} ({target:,.0f}) with a monthly investment of {investment:,.0f}, "
    "you will need about {years} years instead of {old} years."
)


# ===== Draft coercion =====

def _as_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings pass; anything else is treated as absent"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _as_non_negative(value: Any) -> Optional[float]:
    number = _as_number(value)
    if number is None or number < 0:
        return None
    return number


def _as_years(value: Any) -> Optional[int]:
    number = _as_number(value)
    if number is None or number <= 0:
        return None
    return max(1, round_half_up(number))


def _coerce_goal(raw: Any) -> Optional[Goal]:
    if isinstance(raw, Goal):
        return raw.model_copy()
    if not isinstance(raw, dict):
        logger.warning(f"⚠️ Dropping goal that is not an object: {raw!r}")
        return None

    try:
        return Goal(
            name=raw.get("name") if isinstance(raw.get("name"), str) else "",
            target_amount=_as_non_negative(raw.get("target_amount")),
            duration_years=_as_years(raw.get("duration_years")) or DEFAULT_GOAL_YEARS,
            monthly_investment=_as_non_negative(raw.get("monthly_investment")),
            magnitude_corrected=raw.get("magnitude_corrected") is True
        )
    except ValidationError as e:
        logger.warning(f"⚠️ Dropping malformed goal {raw!r}: {e.errors()[0].get('msg')}")
        return None


def coerce_draft_plan(raw: Union[Plan, Dict[str, Any], None]) -> Plan:
    """
    Build a Plan from an untrusted draft.

    Absent or wrongly typed fields become None (or empty), goals that can't
    be read are dropped, allocation keys are lower-cased.
    """
    if isinstance(raw, Plan):
        return raw.model_copy(deep=True)
    if not isinstance(raw, dict):
        return Plan()

    investment = raw.get("monthly_recommended_investment")
    if investment is None:
        investment = raw.get("recommended_investment")

    allocation = {}
    raw_allocation = raw.get("portfolio_allocation")
    if isinstance(raw_allocation, dict):
        for asset, value in raw_allocation.items():
            number = _as_number(value)
            if number is None:
                logger.warning(f"⚠️ Ignoring non-numeric allocation {asset}={value!r}")
                continue
            allocation[str(asset).strip().lower()] = number

    goals = []
    raw_goals = raw.get("goals")
    if isinstance(raw_goals, list):
        for item in raw_goals:
            goal = _coerce_goal(item)
            if goal is not None:
                goals.append(goal)

    return Plan(
        monthly_savings=_as_number(raw.get("monthly_savings")),
        monthly_recommended_investment=_as_number(investment),
        portfolio_allocation=allocation,
        goals=goals
    )


# ===== Correction rules =====

def _correct_savings(plan: Plan, income: Optional[float], expenses: Optional[float]):
    if income is None or expenses is None:
        return
    expected = income - expenses
    if plan.monthly_savings != expected:
        logger.info(f"🔧 monthly_savings {plan.monthly_savings} -> {expected} (income - expenses)")
        plan.monthly_savings = expected


def _cap_investment(plan: Plan, warnings: List[PlanWarning]):
    savings = plan.monthly_savings
    investment = plan.monthly_recommended_investment
    if savings is not None and investment is not None and investment > savings:
        logger.info(f"🔧 Recommended investment {investment} capped at savings {savings}")
        plan.monthly_recommended_investment = savings

    # Kept negative on purpose so the maths stays 1:1; callers get a warning instead
    if plan.monthly_recommended_investment is not None and plan.monthly_recommended_investment < 0:
        warnings.append(PlanWarning(
            code=WarningCode.INFEASIBLE_PLAN,
            message=(
                f"Expenses exceed income by {abs(plan.monthly_recommended_investment):,.0f} a month, "
                "so there is nothing left to invest."
            )
        ))


def _complete_goals(plan: Plan):
    for goal in plan.goals:
        if goal.target_amount is not None:
            continue
        contribution = goal.monthly_investment or plan.monthly_recommended_investment
        if contribution and contribution > 0:
            goal.target_amount = project_goal_corpus(contribution, goal.duration_years)


def _correct_primary_goal_duration(plan: Plan, warnings: List[PlanWarning]):
    if not plan.goals:
        return
    goal = plan.goals[0]
    investment = plan.monthly_recommended_investment
    if goal.target_amount is None or not goal.duration_years or investment is None:
        return

    try:
        needed = required_years(goal.target_amount, investment, DURATION_CHECK_RATE)
    except InvalidInput:
        warnings.append(PlanWarning(
            code=WarningCode.UNREACHABLE_GOAL,
            message=f"{goal.name} can't be reached without a positive monthly investment.",
            goal=goal.name
        ))
        return

    if not is_reachable(goal.target_amount, investment, DURATION_CHECK_RATE, needed):
        warnings.append(PlanWarning(
            code=WarningCode.UNREACHABLE_GOAL,
            message=(
                f"{goal.name} is not reachable within {DEFAULT_MAX_YEARS} years "
                f"at {investment:,.0f} a month."
            ),
            goal=goal.name
        ))
        return

    if needed > goal.duration_years:
        logger.info(f"🔧 {goal.name}: duration {goal.duration_years} -> {needed} years")
        goal.duration_years = needed


def _correct_retirement_magnitude(plan: Plan):
    # Heuristic for drafts that report the retirement corpus one denomination too small
    for goal in plan.goals:
        if RETIREMENT_KEYWORD not in goal.name.lower():
            continue
        if (
            not goal.magnitude_corrected
            and goal.target_amount is not None
            and goal.target_amount < RETIREMENT_MIN_TARGET
        ):
            logger.info(f"🔧 {goal.name}: target {goal.target_amount:,.0f} scaled x{RETIREMENT_SCALE}")
            goal.target_amount = goal.target_amount * RETIREMENT_SCALE
            goal.magnitude_corrected = True
        break


def _scale_fractional_allocation(plan: Plan):
    # Decided once on the draft as received, never on a partly corrected allocation
    values = list(plan.portfolio_allocation.values())
    if values and all(v <= 1 for v in values) and any(v > 0 for v in values):
        logger.info("🔧 Allocation given as fractions, converting to percentages")
        plan.portfolio_allocation = {asset: v * 100 for asset, v in plan.portfolio_allocation.items()}


def _normalize_allocation(plan: Plan):
    plan.portfolio_allocation = {
        asset: min(max(round_half_up(v), 0), 100) for asset, v in plan.portfolio_allocation.items()
    }


def _exclude_emergency(plan: Plan):
    # Emergency fund is tracked outside the investable portfolio
    if plan.portfolio_allocation.get(EMERGENCY_KEY, 0) > 0:
        plan.portfolio_allocation.pop(EMERGENCY_KEY)


def _duration_notes(plan: Plan, stated_years: Optional[int]) -> List[str]:
    """One note for the primary goal, comparing its final duration with the one it came in with"""
    if not plan.goals or stated_years is None:
        return []
    goal = plan.goals[0]
    if goal.duration_years is None or goal.duration_years <= stated_years:
        return []
    return [DURATION_NOTE.format(
        name=goal.name,
        target=goal.target_amount,
        investment=plan.monthly_recommended_investment,
        years=goal.duration_years,
        old=stated_years
    )]


def _apply_rules(plan: Plan, income, expenses) -> List[PlanWarning]:
    warnings = []
    _correct_savings(plan, income, expenses)
    _cap_investment(plan, warnings)
    _complete_goals(plan)
    _correct_primary_goal_duration(plan, warnings)
    _correct_retirement_magnitude(plan)
    _normalize_allocation(plan)
    _exclude_emergency(plan)
    return warnings


def validate_plan(
    draft: Union[Plan, Dict[str, Any], None],
    income: Optional[float] = None,
    expenses: Optional[float] = None
) -> PlanResult:
    """
    Correct an untrusted plan.

    Rules run in a fixed order (savings, investment cap, goal completion,
    primary-goal duration, retirement magnitude, allocation units, emergency
    exclusion) and are repeated until the plan stops changing, so validating
    the returned plan again is a no-op. Notes and warnings describe the
    final plan only. The draft itself is never mutated.
    """
    plan = coerce_draft_plan(draft)
    stated_years = plan.goals[0].duration_years if plan.goals else None
    _scale_fractional_allocation(plan)
    warnings = []

    for _ in range(MAX_PASSES):
        before = plan.model_dump()
        warnings = _apply_rules(plan, income, expenses)
        if plan.model_dump() == before:
            break
    else:
        logger.warning(f"⚠️ Plan still changing after {MAX_PASSES} validation passes")

    return PlanResult(plan=plan, notes=_duration_notes(plan, stated_years), warnings=warnings)
