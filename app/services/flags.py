# app/services/flags.py

from typing import List, Optional
import logging
from app.models.plan import Plan, PlanWarning

logger = logging.getLogger(__name__)

# Remaining allocation after the emergency bucket is taken out
ALLOCATION_SUM_RANGE = (80, 101)


def extract_flags(plan: Plan, warnings: Optional[List[PlanWarning]] = None) -> List[str]:
    """
    Evaluates a validated plan and generates structured flags
    for downstream use (e.g., UI warnings, quality checks).
    """
    flags = []

    # 1. Cash flow checks
    if plan.monthly_savings is not None and plan.monthly_savings < 0:
        flags.append("negative_savings")

    if plan.monthly_recommended_investment == 0:
        flags.append("zero_investment")

    # 2. Warnings raised during validation
    for warning in warnings or []:
        if warning.code.value not in flags:
            flags.append(warning.code.value)

    # 3. Allocation validation
    allocation = plan.portfolio_allocation
    if allocation:
        total = sum(allocation.values())
        low, high = ALLOCATION_SUM_RANGE
        if not low <= total <= high:
            flags.append("allocation_sum_error")
            logger.warning(f"Allocation sum error: {total}")

    # 4. Goal checks
    if not plan.goals:
        flags.append("no_goals")

    if any(goal.magnitude_corrected for goal in plan.goals):
        flags.append("retirement_target_rescaled")

    logger.info(f"🚩 Plan flags: {flags}")
    return flags
