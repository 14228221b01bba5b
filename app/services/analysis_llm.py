from __future__ import annotations

import json
import logging
import os
import time
import uuid
from functools import lru_cache
from typing import Any

from openai import OpenAI

logger = logging.getLogger(__name__)


class AnalysisLLMError(RuntimeError):
    status_code = 503

    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def analysis_llm_enabled() -> bool:
    if not _env_bool("ANALYSIS_LLM_ENABLED", True):
        return False
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if not api_key or _looks_like_placeholder(api_key):
        return False
    return True


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_BASE_URL") or None),
        timeout=float(os.getenv("ANALYSIS_LLM_TIMEOUT_S", "45")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def _model() -> str:
    return (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.7,
    max_output_tokens: int = 3072,
) -> dict[str, Any] | None:
    """Run one JSON-mode chat completion; returns None on any failure."""
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    if not analysis_llm_enabled():
        logger.info("analysis_llm_skipped run_id=%s reason=llm_disabled", run_id)
        return None

    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
        content = response.choices[0].message.content if response.choices else ""
        latency_ms = int((time.perf_counter() - started) * 1000)
        if not content:
            logger.warning("analysis_llm_empty run_id=%s latency_ms=%s", run_id, latency_ms)
            return None
        parsed = json.loads(content)
        if not isinstance(parsed, dict):
            logger.warning("analysis_llm_invalid_schema run_id=%s latency_ms=%s", run_id, latency_ms)
            return None
        logger.info("analysis_llm_success run_id=%s model=%s latency_ms=%s", run_id, _model(), latency_ms)
        return parsed
    except Exception as exc:  # noqa: BLE001 - the caller maps None to a typed error
        logger.warning("analysis_llm_json_failed model=%s prompt_len=%s: %s", _model(), len(user_prompt), exc)
        return None


def json_completion_required(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.7,
    max_output_tokens: int = 3072,
) -> dict[str, Any]:
    if not analysis_llm_enabled():
        raise AnalysisLLMError(
            "Resume analysis requires OpenAI. Set OPENAI_API_KEY and keep ANALYSIS_LLM_ENABLED=true.",
            code="llm_disabled",
        )

    payload = json_completion(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )
    if not payload:
        raise AnalysisLLMError("The analysis model did not return a valid response. Try again.", code="llm_invalid")
    return payload
