# services/menu_review.py
import base64
import logging
import os
import time

from openai import OpenAI

from prompts import SYSTEM_PROMPT
from services.errors import CollaboratorCallFailed

logger = logging.getLogger(__name__)

REVIEW_MODEL = os.getenv("REVIEW_MODEL", "gpt-4o")
FALLBACK_MODEL = os.getenv("REVIEW_FALLBACK_MODEL", "gpt-4o-mini")
COLLABORATOR_TIMEOUT_S = float(os.getenv("COLLABORATOR_TIMEOUT_S", "60"))
MAX_TOKENS = int(os.getenv("REVIEW_MAX_TOKENS", "2048"))


def to_data_url(image_bytes: bytes, media_type: str) -> str:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{media_type};base64,{b64}"


def _client() -> OpenAI:
    key = os.getenv("OPENAI_API_KEY", "")
    if not key:
        raise CollaboratorCallFailed("OPENAI_API_KEY not set")
    return OpenAI(api_key=key, timeout=COLLABORATOR_TIMEOUT_S, max_retries=0)


def _call_openai(client: OpenAI, model: str, data_url: str, prompt: str) -> str:
    resp = client.chat.completions.create(
        model=model,
        temperature=0,
        max_tokens=MAX_TOKENS,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT.strip()},
            {"role": "user", "content": [
                {"type": "image_url", "image_url": {"url": data_url}},
                {"type": "text", "text": prompt},
            ]},
        ],
    )
    return (resp.choices[0].message.content or "").strip()


def analyze_menu_image(image_bytes: bytes, media_type: str, prompt: str) -> str:
    """Send the menu photo and prompt to the vision model, return its raw text."""
    client = _client()
    data_url = to_data_url(image_bytes, media_type)
    last_err = None
    for model in dict.fromkeys((REVIEW_MODEL, FALLBACK_MODEL)):
        start = time.perf_counter()
        try:
            txt = _call_openai(client, model, data_url, prompt)
        except Exception as e:
            logger.warning("Vision call failed", extra={"model": model, "error": str(e)})
            last_err = e
            continue
        logger.info(
            "Vision call complete",
            extra={
                "model": model,
                "image_bytes": len(image_bytes),
                "elapsed_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return txt
    raise CollaboratorCallFailed(f"Menu review failed: {last_err}")
