from __future__ import annotations

import json
from typing import Any

from openai import OpenAI

from booking_assistant.application.exceptions import LLMContractError, LLMUpstreamError
from booking_assistant.application.ports.extraction import ExtractionPort


class OpenAIExtractor(ExtractionPort):
    """
    OpenAI-backed adapter implementing ExtractionPort.

    Contract guarantees:
    - extract returns the decoded JSON object
    - Raises:
        LLMUpstreamError: networking/provider failures and timeouts
        LLMContractError: empty output, invalid JSON or a non-object payload
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout_seconds: float = 15.0,
        client: OpenAI | None = None,
    ) -> None:
        self.client = client or OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=1)
        self._model = model
        self._temperature = temperature

    def extract(self, system_prompt: str, message: str) -> dict[str, Any]:
        text = self._call_text(system_prompt, message)
        data = _parse_json(text)
        if not isinstance(data, dict):
            raise LLMContractError("Extract: expected a JSON object.")
        return data

    def _call_text(self, system_prompt: str, message: str) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": message},
                ],
                temperature=self._temperature,
                max_tokens=800,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMContractError("LLM returned empty response text.")

        return content


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except Exception:
        snippet = text[:200].replace("\n", " ")
        raise LLMContractError(f"Extract: invalid JSON. Snippet: {snippet!r}")
