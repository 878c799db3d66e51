from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
import logging
from app.core.config import settings
from app.core.exceptions import InvalidInput, PlanParseError
from app.models.plan import ChatRequest, ChatResponse, PlanRequest, PlanResult
from app.services.planning_pipeline import PlanningPipeline, build_explicit_plan

router = APIRouter()
logger = logging.getLogger(__name__)


def get_pipeline() -> PlanningPipeline:
    return PlanningPipeline()


# 🔹 Chat endpoint: free text in, corrected plan out
@router.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, pipeline: PlanningPipeline = Depends(get_pipeline)):
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required.")

    try:
        return pipeline.run(request.message)
    except PlanParseError as e:
        logger.warning(f"⚠️ {e}")
        return JSONResponse(status_code=500, content={"detail": str(e), "summary": e.summary})
    except Exception:
        logger.exception("❌ Failed to process chat request.")
        raise HTTPException(status_code=500, detail="Failed to process request.")


# 🔹 Plan from explicit numbers (no model call)
@router.post("/plan", response_model=PlanResult)
def plan(request: PlanRequest):
    try:
        return build_explicit_plan(
            income=request.income,
            expenses=request.expenses,
            goals=request.goals,
            risk_tier=request.risk_tier,
            message=request.message,
            skip_invalid=request.skip_invalid_goals
        )
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/health")
def health_check():
    """Simple health check endpoint"""
    return {
        "status": "healthy",
        "service": "financial_plan_service",
        "version": settings.APP_VERSION
    }
