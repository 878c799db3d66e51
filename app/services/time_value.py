# app/services/time_value.py

import math
import logging
import numpy_financial as npf
from app.core.exceptions import InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_MAX_YEARS = 100


def round_half_up(value: float) -> int:
    """Nearest whole unit, halves rounded up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))


def _check_rate(annual_rate: float):
    if annual_rate < 0:
        raise InvalidInput(f"Annual rate must not be negative, got {annual_rate}")


def future_value_of_sip(monthly_contribution: float, annual_rate: float, years: float) -> float:
    """
    Future value of a monthly SIP paid at the start of each month and
    compounded monthly at annual_rate / 12.

        FV = c * ((1 + r)^n - 1) / r * (1 + r),  r = annual_rate / 12, n = years * 12

    Degrades to c * n when annual_rate is 0.
    """
    if monthly_contribution < 0:
        raise InvalidInput(f"Monthly contribution must not be negative, got {monthly_contribution}")
    if years <= 0:
        raise InvalidInput(f"Years must be positive, got {years}")
    _check_rate(annual_rate)

    r = annual_rate / 12
    n = years * 12
    if r == 0:
        return float(monthly_contribution * n)
    # numpy_financial uses the cash-flow sign convention: money paid in is negative
    return float(npf.fv(r, n, -monthly_contribution, 0, when="begin"))


def required_monthly_investment(target_amount: float, years: float, annual_rate: float) -> int:
    """Closed-form inverse of future_value_of_sip, rounded to the nearest whole unit"""
    if years <= 0:
        raise InvalidInput(f"Years must be positive, got {years}")
    if target_amount < 0:
        raise InvalidInput(f"Target amount must not be negative, got {target_amount}")
    _check_rate(annual_rate)

    r = annual_rate / 12
    n = years * 12
    if r == 0:
        return round_half_up(target_amount / n)
    sip = -npf.pmt(r, n, 0, target_amount, when="begin")
    return round_half_up(float(sip))


def required_years(
    target_amount: float,
    monthly_contribution: float,
    annual_rate: float,
    max_years: int = DEFAULT_MAX_YEARS
) -> int:
    """
    Smallest whole number of years (>= 1) after which the SIP reaches target_amount.

    Linear scan upward from 1, which is safe because the future value grows
    monotonically with the horizon. Returns max_years when the target is
    not reached inside the cap, so callers should check is_reachable()
    before treating the result as a real answer.
    """
    if target_amount <= 0:
        return 1
    if monthly_contribution <= 0:
        raise InvalidInput(
            f"Monthly contribution must be positive to reach {target_amount:,.0f}, got {monthly_contribution}"
        )
    _check_rate(annual_rate)

    for years in range(1, max_years + 1):
        if future_value_of_sip(monthly_contribution, annual_rate, years) >= target_amount:
            return years

    logger.info(f"Target {target_amount:,.0f} not reachable within {max_years} years at {monthly_contribution:,.0f}/month")
    return max_years


def is_reachable(target_amount: float, monthly_contribution: float, annual_rate: float, years: int) -> bool:
    if target_amount <= 0:
        return True
    if monthly_contribution <= 0:
        return False
    return future_value_of_sip(monthly_contribution, annual_rate, years) >= target_amount
