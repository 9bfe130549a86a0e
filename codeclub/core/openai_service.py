import logging
from functools import lru_cache
from typing import Optional

from openai import OpenAI, OpenAIError

from codeclub.core.config import settings

logger = logging.getLogger(__name__)


class OpenAINotConfigured(OpenAIError):
    """Raised when a completion is requested without an API key."""


@lru_cache(maxsize=1)
def get_openai_client() -> Optional[OpenAI]:
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; AI features are disabled.")
        return None
    client = OpenAI(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.OPENAI_TIMEOUT_SECONDS,
    )
    logger.info("OpenAI client configured (model=%s).", settings.OPENAI_MODEL)
    return client


def chat_completion(
    system_prompt: str,
    user_prompt: str,
    *,
    temperature: float = 0.3,
    max_tokens: int = 2000,
    model: Optional[str] = None,
) -> str:
    """Send one system + user exchange and return the assistant's text.

    Raises ``openai.OpenAIError`` (or ``OpenAINotConfigured``) on failure.
    """
    client = get_openai_client()
    if client is None:
        raise OpenAINotConfigured("OpenAI client is not configured")

    model = model or settings.OPENAI_MODEL
    logger.info("Calling OpenAI chat completion with model %s", model)
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
    )
    content = response.choices[0].message.content or ""
    logger.info("OpenAI response received (%s characters).", len(content))
    return content
