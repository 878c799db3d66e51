# app/services/planning_pipeline.py

import logging
from typing import Any, Dict, List, Optional, Union
from openai import OpenAIError
from app.core.config import settings
from app.core.exceptions import PlanParseError
from app.models.plan import ChatResponse, Plan, PlanResult, RiskTier
from app.services.fact_extractor import FactExtractor, get_fact_extractor
from app.services.flags import extract_flags
from app.services.llm_wrapper import call_chat_model
from app.services.plan_generator import build_plan
from app.services.plan_parser import split_model_reply
from app.services.plan_validator import coerce_draft_plan, validate_plan
from app.services.prompts import get_system_prompt
from app.services.risk_profiler import classify_risk, risk_tier_from_level

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def is_usable_draft(draft: Any) -> bool:
    """A draft is usable if savings, investment or an allocation survives coercion"""
    plan = coerce_draft_plan(draft)
    return (
        plan.monthly_savings is not None
        or plan.monthly_recommended_investment is not None
        or bool(plan.portfolio_allocation)
    )


def plan_from_message(
    free_text: Optional[str],
    draft_plan: Union[Plan, Dict[str, Any], None] = None,
    income: Optional[float] = None,
    expenses: Optional[float] = None,
    extractor: Optional[FactExtractor] = None
) -> PlanResult:
    """
    Core entry point: turn a message and an optional model draft into a corrected plan.

    Income/expenses not passed in are extracted from the text. Without a
    usable draft a fallback plan is generated (risk tier from the text);
    either way the plan goes through the validator.
    """
    if income is None or expenses is None:
        facts = (extractor or get_fact_extractor()).extract(free_text)
        income = facts.income if income is None else income
        expenses = facts.expenses if expenses is None else expenses

    if is_usable_draft(draft_plan):
        return validate_plan(draft_plan, income, expenses)

    logger.info("📝 No usable draft plan, generating fallback plan")
    fallback = build_plan(
        settings.FALLBACK_INCOME if income is None else income,
        settings.FALLBACK_EXPENSES if expenses is None else expenses,
        [],
        classify_risk(free_text)
    )
    return validate_plan(fallback, income, expenses)


def build_explicit_plan(
    income: float,
    expenses: float,
    goals: Optional[List[Dict[str, Any]]] = None,
    risk_tier: Union[RiskTier, str, int, None] = None,
    message: Optional[str] = None,
    skip_invalid: bool = False
) -> PlanResult:
    """Generator + validator for callers that already have the numbers"""
    tier = risk_tier_from_level(risk_tier) if risk_tier is not None else classify_risk(message)
    plan = build_plan(income, expenses, goals or [], tier, skip_invalid=skip_invalid)
    return validate_plan(plan, income, expenses)


class PlanningPipeline:
    """
    Message -> model draft -> corrected plan, for one configured prompt version.
    """

    def __init__(
        self,
        prompt_version: Optional[str] = None,
        extractor: Optional[FactExtractor] = None,
        fallback_on_model_error: Optional[bool] = None
    ):
        self.prompt_version = prompt_version or settings.PLAN_PROMPT_VERSION
        self.system_prompt = get_system_prompt(self.prompt_version)
        self.extractor = extractor or get_fact_extractor()
        self.fallback_on_model_error = (
            settings.FALLBACK_ON_MODEL_ERROR if fallback_on_model_error is None else fallback_on_model_error
        )

    def _draft_from_model(self, message: str):
        """Returns (summary, draft); draft is None when the model gave nothing usable"""
        try:
            reply = call_chat_model(self.system_prompt, message)
        except OpenAIError as e:
            if not self.fallback_on_model_error:
                raise
            logger.error(f"❌ Model unavailable, using fallback plan: {e}")
            return "", None

        try:
            parsed = split_model_reply(reply)
        except PlanParseError as e:
            if not self.fallback_on_model_error:
                raise
            logger.warning("⚠️ Model reply had no valid plan, using fallback plan")
            return e.summary, None

        return parsed.summary, parsed.plan_json

    def run(self, message: str) -> ChatResponse:
        logger.info(f"🔍 Planning for message ({len(message)} chars, prompt={self.prompt_version})")

        summary, draft = self._draft_from_model(message)
        source = "model" if is_usable_draft(draft) else "fallback"

        result = plan_from_message(message, draft, extractor=self.extractor)
        flags = extract_flags(result.plan, result.warnings)

        logger.info(f"✅ Plan ready (source={source}, notes={len(result.notes)}, warnings={len(result.warnings)})")
        return ChatResponse(
            summary=summary,
            plan=result.plan,
            notes=result.notes,
            warnings=result.warnings,
            flags=flags,
            source=source
        )
