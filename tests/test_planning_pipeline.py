"""
Tests for the planning pipeline: core entry point and model orchestration.
"""
import pytest
from unittest.mock import patch
from openai import OpenAIError

from app.core.exceptions import InvalidInput, PlanParseError
from app.models.plan import ExtractedFacts, Plan
from app.services.planning_pipeline import (
    PlanningPipeline,
    build_explicit_plan,
    is_usable_draft,
    plan_from_message,
)


class TestPlanFromMessage:

    def test_draft_validated_with_extracted_facts(self, messy_draft):
        result = plan_from_message(
            "My income is 7,20,000 per annum and expenses are 6,00,000 per annum",
            messy_draft
        )
        assert result.plan.monthly_savings == 10000
        assert result.plan.monthly_recommended_investment == 10000
        assert result.plan.portfolio_allocation == {"equity": 50, "debt": 30, "gold": 10}

    def test_explicit_figures_win(self, messy_draft):
        result = plan_from_message("income 12 lpa", messy_draft, income=60000, expenses=50000)
        assert result.plan.monthly_savings == 10000

    def test_fallback_from_text(self):
        result = plan_from_message(
            "I want a safe plan. Salary 12,00,000 per annum, expenses 6,00,000 per annum.",
            None
        )
        assert result.plan.monthly_savings == 50000
        assert result.plan.monthly_recommended_investment == 30000
        assert result.plan.portfolio_allocation == {"equity": 20, "debt": 60, "gold": 10}

    def test_fallback_defaults(self):
        result = plan_from_message("Help me plan", {"unrelated": True})
        assert result.plan.monthly_savings == 50000
        assert result.plan.monthly_recommended_investment == 30000
        assert result.plan.portfolio_allocation == {"equity": 50, "debt": 30, "gold": 10}

    def test_draft_without_readable_fields_falls_back(self):
        result = plan_from_message(
            "I want a safe plan",
            {"monthly_savings": "n/a", "portfolio_allocation": None, "goals": None}
        )
        assert result.plan.monthly_savings == 50000
        assert result.plan.monthly_recommended_investment == 30000
        assert result.plan.portfolio_allocation == {"equity": 20, "debt": 60, "gold": 10}

    def test_custom_extractor(self, messy_draft):
        class FixedExtractor:
            def extract(self, text):
                return ExtractedFacts(income=90000, expenses=40000)

        result = plan_from_message("anything", messy_draft, extractor=FixedExtractor())
        assert result.plan.monthly_savings == 50000
        assert result.plan.monthly_recommended_investment == 20000


class TestBuildExplicitPlan:

    def test_numeric_risk_level(self):
        result = build_explicit_plan(100000, 50000, [], risk_tier=3)
        assert result.plan.portfolio_allocation == {"equity": 70, "debt": 15, "gold": 10}

    def test_risk_from_message(self):
        result = build_explicit_plan(100000, 50000, [], message="keep it conservative")
        assert result.plan.portfolio_allocation == {"equity": 20, "debt": 60, "gold": 10}

    def test_invalid_goal_raises(self):
        with pytest.raises(InvalidInput):
            build_explicit_plan(100000, 50000, [{"target_amount": 5}])

    def test_invalid_goal_skipped(self):
        result = build_explicit_plan(100000, 50000, [{"target_amount": 5}, {"name": "Car"}], skip_invalid=True)
        assert [g.name for g in result.plan.goals] == ["Car"]


def test_is_usable_draft():
    assert is_usable_draft({"monthly_savings": "10,000"})
    assert is_usable_draft({"portfolio_allocation": {"equity": 60}})
    assert is_usable_draft(Plan(monthly_recommended_investment=5000))
    assert not is_usable_draft({"goals": []})
    assert not is_usable_draft(Plan())
    assert not is_usable_draft({"monthly_savings": "n/a", "portfolio_allocation": None, "goals": None})
    assert not is_usable_draft({"answer": 42})
    assert not is_usable_draft(None)
    assert not is_usable_draft(["goals"])


class TestPlanningPipeline:

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_model_plan(self, mock_call, model_reply):
        mock_call.return_value = model_reply
        pipeline = PlanningPipeline(prompt_version="summary_json")

        response = pipeline.run("I earn 12 lpa and spend 6 lakh a year, saving for a house")

        assert response.source == "model"
        assert response.summary.startswith("You can save 50,000")
        assert response.plan.monthly_savings == 50000
        assert response.plan.monthly_recommended_investment == 30000
        assert response.plan.portfolio_allocation == {"equity": 50, "debt": 30, "gold": 10}
        assert response.plan.goals[0].name == "House Down Payment"

        system_prompt, user_prompt = mock_call.call_args[0]
        assert "JSON" in system_prompt
        assert user_prompt.startswith("I earn 12 lpa")

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_model_error_falls_back(self, mock_call):
        mock_call.side_effect = OpenAIError("rate limited")
        pipeline = PlanningPipeline(fallback_on_model_error=True)

        response = pipeline.run("aggressive growth please")

        assert response.source == "fallback"
        assert response.summary == ""
        assert response.plan.portfolio_allocation == {"equity": 70, "debt": 15, "gold": 10}

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_model_error_propagates_when_fallback_disabled(self, mock_call):
        mock_call.side_effect = OpenAIError("down")
        pipeline = PlanningPipeline(fallback_on_model_error=False)

        with pytest.raises(OpenAIError):
            pipeline.run("plan my savings")

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_unparseable_reply_falls_back_with_summary(self, mock_call):
        mock_call.return_value = "Here you go!\n{not json}"
        pipeline = PlanningPipeline(fallback_on_model_error=True)

        response = pipeline.run("plan my savings")

        assert response.source == "fallback"
        assert response.summary == "Here you go!"
        assert response.plan.monthly_savings == 50000

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_unparseable_reply_raises_when_fallback_disabled(self, mock_call):
        mock_call.return_value = "Here you go!\n{not json}"
        pipeline = PlanningPipeline(fallback_on_model_error=False)

        with pytest.raises(PlanParseError):
            pipeline.run("plan my savings")

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_unreadable_draft_is_labelled_fallback(self, mock_call):
        mock_call.return_value = (
            "Here is your plan.\n"
            '{"monthly_savings": "n/a", "portfolio_allocation": null, "goals": null}'
        )
        pipeline = PlanningPipeline(fallback_on_model_error=True)

        response = pipeline.run("I want a safe plan")

        assert response.source == "fallback"
        assert response.summary == "Here is your plan."
        assert response.plan.monthly_recommended_investment == 30000
        assert response.plan.portfolio_allocation == {"equity": 20, "debt": 60, "gold": 10}

    @patch("app.services.planning_pipeline.call_chat_model")
    def test_flags_attached(self, mock_call):
        mock_call.return_value = (
            '{"monthly_savings": 10000, "monthly_recommended_investment": 20000, '
            '"portfolio_allocation": {"equity": 0.5, "debt": 0.3, "gold": 0.1, "emergency": 0.1}, '
            '"goals": [{"name": "Retirement Fund", "target_amount": 500000, "duration_years": 5}]}'
        )
        pipeline = PlanningPipeline(prompt_version="json_only")

        response = pipeline.run("income 7,20,000 per annum, expenses 6,00,000 per annum")

        assert response.summary == ""
        assert response.flags == ["retirement_target_rescaled"]
        assert response.notes and "17 years" in response.notes[0]

    def test_unknown_prompt_version(self):
        with pytest.raises(InvalidInput):
            PlanningPipeline(prompt_version="v0")
