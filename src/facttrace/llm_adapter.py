"""
Chat-completions adapter for the claim scoring model.

Speaks the OpenAI-compatible ``/chat/completions`` protocol over httpx and
returns the raw message content. Missing credentials raise
ConfigurationError; transport and HTTP failures raise UpstreamError.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

import httpx

from .config import Settings, get_settings
from .errors import ConfigurationError, UpstreamError
from .models import ModelRequest

logger = logging.getLogger(__name__)


class LLMAdapter:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._timeout = self._settings.llm_timeout
        self._transport = transport

    async def complete(self, request: ModelRequest) -> str:
        api_key = self._settings.llm_api_key
        if not api_key:
            raise ConfigurationError("Language model API key is not configured.")
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        body = request.model_dump()
        self._log_event("request", {"model": request.model, "messages": len(request.messages)})

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(self._settings.llm_api_url, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as exc:
                message = self._upstream_message(exc.response)
                logger.error("Model API returned %s: %s", exc.response.status_code, message)
                raise UpstreamError(f"Model request failed: {message}") from exc
            except httpx.HTTPError as exc:
                logger.error("Model API unreachable: %s", exc)
                raise UpstreamError(f"Model request failed: {exc}") from exc
            except ValueError as exc:
                raise UpstreamError("Model API returned invalid JSON.") from exc

        content = self._message_content(payload)
        self._log_event("response", {"output": content})
        return content

    @staticmethod
    def _message_content(payload: Any) -> str:
        # {"choices": [{"message": {"role": "assistant", "content": "..."}}]}
        if isinstance(payload, dict):
            choices = payload.get("choices") or []
            if choices and isinstance(choices[0], dict):
                message = choices[0].get("message") or {}
                content = message.get("content") if isinstance(message, dict) else None
                if isinstance(content, str) and content.strip():
                    return content.strip()
        raise UpstreamError("Model response did not include message content.")

    @staticmethod
    def _upstream_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        return f"HTTP {response.status_code}"

    def _log_event(self, event: str, payload: Dict[str, Any]) -> None:
        short_payload = payload.copy()
        if "output" in short_payload and isinstance(short_payload["output"], str):
            short_payload["output"] = short_payload["output"][:200]
        short_payload["event"] = event
        logger.debug("LLM event: %s", json.dumps(short_payload, ensure_ascii=False))
