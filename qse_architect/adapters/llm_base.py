from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Protocol


@dataclass
class LLMResponse:
    raw_text: str
    usage: Optional[Dict] = None


class LLMAdapter(Protocol):
    def complete(
        self,
        prompt: str,
        *,
        expect_json: bool = False,
        thinking_budget: Optional[int] = None,
    ) -> LLMResponse:
        raise NotImplementedError
