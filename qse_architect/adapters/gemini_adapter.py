from __future__ import annotations

import os
import random
import time
from typing import Optional

from google import genai
from google.genai import types

from .llm_base import LLMAdapter, LLMResponse


class GeminiAdapter(LLMAdapter):
    def __init__(self) -> None:
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set.")

        self.client = genai.Client(api_key=api_key)
        self.model = os.getenv("QSE_GEMINI_MODEL", "gemini-3-pro-preview")
        self.temperature = float(os.getenv("QSE_TEMPERATURE", "0.2"))

        # One attempt unless configured otherwise; retrying is the user's call.
        self.max_attempts = max(1, int(os.getenv("QSE_GEMINI_MAX_ATTEMPTS", "1")))
        self.base_delay = float(os.getenv("QSE_GEMINI_BASE_DELAY_SECONDS", "1.0"))

    def _is_transient(self, err: Exception) -> bool:
        msg = str(err).lower()
        return any(s in msg for s in ["503", "unavailable", "429", "too many", "timeout", "temporarily"])

    def _config(self, expect_json: bool, thinking_budget: Optional[int]) -> types.GenerateContentConfig:
        kwargs = {"temperature": self.temperature}
        if expect_json:
            kwargs["response_mime_type"] = "application/json"
        if thinking_budget:
            kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=thinking_budget)
        return types.GenerateContentConfig(**kwargs)

    def complete(
        self,
        prompt: str,
        *,
        expect_json: bool = False,
        thinking_budget: Optional[int] = None,
    ) -> LLMResponse:
        config = self._config(expect_json, thinking_budget)
        last_err: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                print(f"[gemini] model={self.model} attempt={attempt}/{self.max_attempts} json={expect_json}")
                response = self.client.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=config,
                )
                text = getattr(response, "text", None)
                if not text:
                    raise RuntimeError("Gemini returned empty content.")
                usage = getattr(response, "usage_metadata", None)
                usage_payload = None
                if usage:
                    usage_payload = {
                        "prompt_tokens": getattr(usage, "prompt_token_count", None),
                        "completion_tokens": getattr(usage, "candidates_token_count", None),
                        "total_tokens": getattr(usage, "total_token_count", None),
                    }
                return LLMResponse(raw_text=text, usage=usage_payload)

            except Exception as e:
                last_err = e
                if attempt >= self.max_attempts or not self._is_transient(e):
                    break

                delay = self.base_delay * (2 ** (attempt - 1)) + random.random() * 0.5
                print(f"[gemini] transient error: {e} -> sleeping {delay:.2f}s")
                time.sleep(delay)

        raise RuntimeError(
            f"Gemini generate_content failed for model {self.model}. "
            f"Last error: {last_err}"
        ) from last_err
