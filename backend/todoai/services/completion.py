"""OpenAI-backed completion service returning JSON objects of a declared shape."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Type

import openai
from pydantic import BaseModel

from todoai.core.config import settings
from todoai.core.errors import ServiceAuthError, ServiceError, ServiceRateLimited, ServiceUnavailable
from todoai.observability.tracing import trace

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a precise assistant for a personal to-do app."


class CompletionService:
    """Thin wrapper over chat completions in JSON mode.

    The returned object is whatever the model produced; callers must treat it
    as untrusted. Failures are translated into the ServiceError family and are
    never retried here.
    """

    def __init__(self, api_key: str, model: str, client: Any = None) -> None:
        self.model = model
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self._api_key, max_retries=0)
        return self._client

    def generate_object(
        self,
        prompt: str,
        shape: Type[BaseModel],
        *,
        temperature: float,
        system: Optional[str] = None,
    ) -> Dict[str, Any]:
        schema_json = json.dumps(shape.model_json_schema(), ensure_ascii=False)
        system_prompt = (
            f"{system or DEFAULT_SYSTEM_PROMPT}\n"
            "Respond with one JSON object that validates against this JSON schema:\n"
            f"{schema_json}"
        )

        with trace(
            "completion.generate_object",
            metadata={"model": self.model, "shape": shape.__name__, "prompt_length": len(prompt)},
        ):
            try:
                completion = self.client.chat.completions.create(
                    model=self.model,
                    response_format={"type": "json_object"},
                    temperature=temperature,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                )
            except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
                raise ServiceAuthError(detail=str(exc)) from exc
            except openai.RateLimitError as exc:
                raise ServiceRateLimited(detail=str(exc)) from exc
            except (openai.APITimeoutError, openai.APIConnectionError) as exc:
                raise ServiceUnavailable(detail=str(exc)) from exc
            except openai.APIError as exc:
                raise ServiceError(detail=str(exc)) from exc

            content = completion.choices[0].message.content or ""
            return _decode_object(content)


def _decode_object(content: str) -> Dict[str, Any]:
    text = content.strip()
    # Some models still wrap JSON mode output in a fenced block.
    if text.startswith("```"):
        lines = text.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Completion reply was not JSON (%d chars)", len(text))
        raise ServiceError(detail=f"unparseable completion: {exc}") from exc
    if not isinstance(payload, dict):
        raise ServiceError(detail=f"expected a JSON object, got {type(payload).__name__}")
    return payload


def get_completion_service() -> Optional[CompletionService]:
    """Return the configured service, or None when no API key is set."""
    if not settings.openai_api_key:
        return None
    return CompletionService(settings.openai_api_key, settings.openai_model)
