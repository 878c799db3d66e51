# app/services/plan_parser.py

import re
import json
import logging
from typing import Any, Dict, Optional
from pydantic import BaseModel
from app.core.exceptions import PlanParseError

logger = logging.getLogger(__name__)


class ModelReply(BaseModel):
    summary: str = ""
    plan_json: Optional[Dict[str, Any]] = None


def _strip_fences(text: str) -> str:
    cleaned = re.sub(r"```[a-zA-Z]*\n?", "", text)
    return cleaned.strip()


def split_model_reply(reply: str) -> ModelReply:
    """
    Split a model reply into the plain-English summary and the JSON plan.

    Everything before the first '{' is the summary. A reply without any
    JSON is all summary; JSON that doesn't parse raises PlanParseError.
    """
    reply = reply or ""
    json_start = reply.find("{")
    if json_start == -1:
        return ModelReply(summary=reply.strip())

    # Leading fence belongs to the JSON block, not the summary
    summary = _strip_fences(reply[:json_start])
    json_string = _strip_fences(reply[json_start:])

    try:
        plan_json = json.loads(json_string)
    except json.JSONDecodeError:
        # Trailing prose after the object is common; retry on the outermost braces
        json_end = json_string.rfind("}")
        try:
            plan_json = json.loads(json_string[:json_end + 1])
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Model reply is not valid JSON: {e}")
            raise PlanParseError("AI did not return a valid structured plan.", summary=summary) from e

    if not isinstance(plan_json, dict):
        raise PlanParseError("AI did not return a valid structured plan.", summary=summary)

    return ModelReply(summary=summary, plan_json=plan_json)
