# app/services/prompts.py

from app.core.exceptions import InvalidInput

PLAN_JSON_FORMAT = """
{
  "monthly_savings": 0,
  "monthly_recommended_investment": 0,
  "portfolio_allocation": {
    "equity": 0,
    "debt": 0,
    "gold": 0,
    "emergency": 0
  },
  "goals": [
    {
      "name": "Goal Name",
      "target_amount": 0,
      "duration_years": 0
    }
  ]
}
"""

SYSTEM_PROMPTS = {
    # Summary first, then the plan
    "summary_json": f"""
You are an intelligent financial planning assistant.

First, provide a brief, user-friendly summary of the financial plan in plain English, highlighting key recommendations (monthly savings, investment, portfolio allocation, and goals). Then, return ONLY a valid JSON object in this format (no markdown):
{PLAN_JSON_FORMAT}
If any field is missing or approximate, use reasonable estimates based on typical financial logic.
""",
    # Plan only, for clients that render their own summary
    "json_only": f"""
You are an intelligent financial planning assistant.

Return ONLY a valid JSON object in this format (no markdown, no explanation):
{PLAN_JSON_FORMAT}
All amounts are monthly figures in the user's currency except target_amount, which is the total corpus. Allocation values are percentages that add up to 100.
If any field is missing or approximate, use reasonable estimates based on typical financial logic.
""",
}

DEFAULT_PROMPT_VERSION = "summary_json"


def get_system_prompt(version: str = DEFAULT_PROMPT_VERSION) -> str:
    try:
        return SYSTEM_PROMPTS[version].strip()
    except KeyError:
        raise InvalidInput(f"Unknown prompt version '{version}', expected one of {sorted(SYSTEM_PROMPTS)}")
