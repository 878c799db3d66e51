from pydantic import AliasChoices, BaseModel, Field, validator
from typing import Any, Dict, List, Literal, Optional
from enum import Enum


class RiskTier(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class WarningCode(str, Enum):
    INFEASIBLE_PLAN = "infeasible_plan"
    UNREACHABLE_GOAL = "unreachable_goal"


class Goal(BaseModel):
    name: str = Field(..., min_length=1, description="Goal label, e.g. 'Retirement Fund'")
    target_amount: Optional[float] = Field(None, ge=0, description="Corpus needed at the end of the goal")
    duration_years: Optional[int] = Field(None, gt=0, description="Years until the goal")
    monthly_investment: Optional[float] = Field(None, ge=0, description="Planned monthly SIP for this goal")

    # Set once the retirement magnitude heuristic has scaled this goal
    magnitude_corrected: bool = False

    @validator('name')
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Goal name must not be blank')
        return v


class Plan(BaseModel):
    monthly_savings: Optional[float] = Field(None, description="Income minus expenses; negative means overspending")
    monthly_recommended_investment: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("monthly_recommended_investment", "recommended_investment"),
        description="Suggested monthly SIP"
    )
    portfolio_allocation: Dict[str, float] = Field(default_factory=dict, description="Asset class -> percent")
    goals: List[Goal] = Field(default_factory=list)

    @property
    def recommended_investment(self) -> Optional[float]:
        return self.monthly_recommended_investment


class ExtractedFacts(BaseModel):
    """Monthly figures pulled out of free text"""
    income: Optional[int] = None
    expenses: Optional[int] = None


class PlanWarning(BaseModel):
    code: WarningCode
    message: str
    goal: Optional[str] = None


class PlanResult(BaseModel):
    plan: Plan
    notes: List[str] = Field(default_factory=list)
    warnings: List[PlanWarning] = Field(default_factory=list)


# ===== API payloads =====

class ChatRequest(BaseModel):
    message: Optional[str] = None


class PlanRequest(BaseModel):
    income: float = Field(..., description="Monthly income")
    expenses: float = Field(..., description="Monthly expenses")
    goals: List[Any] = Field(default_factory=list)
    risk_tier: Optional[Any] = Field(None, description="conservative/moderate/aggressive or 1/2/3")
    message: Optional[str] = Field(None, description="Free text used to classify risk when risk_tier is absent")
    skip_invalid_goals: bool = False


class ChatResponse(BaseModel):
    summary: str = ""
    plan: Plan
    notes: List[str] = Field(default_factory=list)
    warnings: List[PlanWarning] = Field(default_factory=list)
    flags: List[str] = Field(default_factory=list)
    source: Literal["model", "fallback"] = "model"
