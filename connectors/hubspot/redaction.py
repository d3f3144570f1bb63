from __future__ import annotations

import re
from typing import List, Tuple

_REDACT_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r'("access_?token"\s*:\s*")[^"]+(")', re.IGNORECASE), r"\1[REDACTED]\2"),
    (re.compile(r'("refresh_?token"\s*:\s*")[^"]+(")', re.IGNORECASE), r"\1[REDACTED]\2"),
    (re.compile(r'("api_?key"\s*:\s*")[^"]+(")', re.IGNORECASE), r"\1[REDACTED]\2"),
    (re.compile(r'("authorization"\s*:\s*")[^"]+(")', re.IGNORECASE), r"\1[REDACTED]\2"),
    (re.compile(r"(authorization\s*:\s*bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # API keys travel in the query string on the legacy endpoints.
    (re.compile(r"([?&]hapikey=)[^&\s\"]+", re.IGNORECASE), r"\1[REDACTED]"),
]


def redact_text(text: str, max_len: int = 1200) -> str:
    if not text:
        return ""
    out = text
    for pat, repl in _REDACT_PATTERNS:
        out = pat.sub(repl, out)
    return out[:max_len]


def redact_url(url: str) -> str:
    return redact_text(url, max_len=2000)
