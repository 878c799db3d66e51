"""
Shared fixtures for the plan service tests.
"""
import pytest


@pytest.fixture
def messy_draft():
    """A model draft with the usual mistakes: over-committed SIP, fractional allocation, retirement corpus too small."""
    return {
        "monthly_savings": 10000,
        "monthly_recommended_investment": 20000,
        "portfolio_allocation": {"equity": 0.5, "debt": 0.3, "gold": 0.1, "emergency": 0.1},
        "goals": [
            {"name": "Retirement Fund", "target_amount": 500000, "duration_years": 5}
        ]
    }


@pytest.fixture
def model_reply():
    """A typical model reply: summary followed by a fenced JSON plan."""
    return (
        "You can save 50,000 a month and should invest about 30,000 of it.\n"
        "```json\n"
        "{\n"
        '  "monthly_savings": 50000,\n'
        '  "monthly_recommended_investment": 30000,\n'
        '  "portfolio_allocation": {"equity": 50, "debt": 30, "gold": 10, "emergency": 10},\n'
        '  "goals": [{"name": "House Down Payment", "target_amount": 1500000, "duration_years": 5}]\n'
        "}\n"
        "```"
    )
