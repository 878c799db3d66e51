import logging
from functools import lru_cache
from typing import Optional
from openai import OpenAI, OpenAIError
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type
from app.core.config import settings

# Logger setup
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@lru_cache()
def get_client() -> OpenAI:
    """OpenAI v1 client pointed at the configured OpenAI-compatible endpoint (OpenRouter by default)"""
    return OpenAI(api_key=settings.OPENROUTER_API_KEY, base_url=settings.LLM_BASE_URL)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type(OpenAIError),
    reraise=True
)
def call_chat_model(
    system_prompt: str,
    user_prompt: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None
) -> str:
    """
    Wrapper for chat completions using the v1+ SDK.
    Includes retry logic, structured logging, and usage tracking.
    """
    model = model or settings.LLM_MODEL
    logger.info(f"🤖 Sending prompt to model [{model}]...")

    try:
        response = get_client().chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
            max_tokens=max_tokens or settings.LLM_MAX_TOKENS
        )

        content = (response.choices[0].message.content or "").strip()

        # Token usage logging (API cost tracking)
        usage = response.usage
        if usage:
            logger.info(f"🧾 Token usage: Total={usage.total_tokens}, Prompt={usage.prompt_tokens}, Completion={usage.completion_tokens}")

        return content

    except OpenAIError as e:
        logger.error(f"❌ Model API call failed: {e}")
        raise
