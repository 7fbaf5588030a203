from __future__ import annotations

import os
from typing import Optional

from openai import OpenAI
from openai import RateLimitError

from .llm_base import LLMAdapter, LLMResponse


class OpenAIAdapter(LLMAdapter):
    def __init__(self) -> None:
        self.api_key = os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is not set.")
        self.client = OpenAI(api_key=self.api_key)
        self.model = os.getenv("QSE_OPENAI_MODEL", "gpt-4o-mini")

    def complete(
        self,
        prompt: str,
        *,
        expect_json: bool = False,
        thinking_budget: Optional[int] = None,
    ) -> LLMResponse:
        max_tokens = int(os.getenv("QSE_MAX_OUTPUT_TOKENS", "4096"))
        temperature = float(os.getenv("QSE_TEMPERATURE", "0.2"))
        request = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if expect_json:
            request["response_format"] = {"type": "json_object"}
        try:
            response = self.client.chat.completions.create(**request)
        except RateLimitError as exc:
            error = getattr(exc, "error", None)
            code = getattr(error, "code", None)
            if code == "insufficient_quota":
                raise RuntimeError(
                    "OpenAI API quota exceeded. Please enable billing in your OpenAI account."
                ) from exc
            raise
        content = response.choices[0].message.content
        if not content:
            raise RuntimeError("OpenAI returned empty content.")
        usage = getattr(response, "usage", None)
        if usage:
            usage_payload = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }
            print(
                f"[openai] model={self.model} "
                f"prompt_tokens={usage_payload['prompt_tokens']} "
                f"completion_tokens={usage_payload['completion_tokens']} "
                f"total_tokens={usage_payload['total_tokens']}"
            )
        else:
            usage_payload = None
            print("[openai] usage not provided by SDK")
        return LLMResponse(raw_text=content, usage=usage_payload)
