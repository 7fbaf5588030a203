from __future__ import annotations

import json
import re
from typing import Any, Iterator

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", flags=re.DOTALL | re.IGNORECASE)


def _candidates(raw_text: str) -> Iterator[str]:
    yield raw_text
    for block in _FENCE.findall(raw_text):
        yield block
    for match in re.finditer(r"\{", raw_text):
        yield raw_text[match.start():]


def extract_json(raw_text: str) -> Any:
    """Pull the first JSON document out of a model response.

    Models wrap JSON in code fences or lead with prose even when asked not
    to; the first candidate that decodes wins.
    """
    decoder = json.JSONDecoder()
    for candidate in _candidates(raw_text or ""):
        stripped = candidate.strip()
        if not stripped:
            continue
        try:
            parsed, _ = decoder.raw_decode(stripped)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, (dict, list)):
            return parsed

    snippet = (raw_text or "").strip().replace("\n", " ")
    snippet = (snippet[:200] + "...") if len(snippet) > 200 else snippet
    raise ValueError(f"No JSON object found in response. Snippet: {snippet}")
