"""
Claim text helpers: URL detection and question-to-statement rewriting.
"""

import re

URL_PATTERN = re.compile(r"https?://", re.IGNORECASE)

LEAD_IN_PATTERNS = [
    r"^(?:is|was)\s+it\s+(?:true|a\s+fact|correct|real)\s+that\s+",
    r"^(?:fact[\s-]?check|true\s+or\s+false|claim|verify|check)(?:\s+this)?(?:\s*:\s*|\s+-\s+)",
    r"^did\s+you\s+(?:know|hear)\s+that\s+",
    r"^(?:i\s+heard|someone\s+said|they\s+say)\s+(?:that\s+)?",
]


def contains_url(text: str | None) -> bool:
    return bool(text and URL_PATTERN.search(text))


def normalize_claim(query: str) -> str:
    """
    Rephrase a user question as a statement suitable for news search.

    "Is it true that the moon is hollow?" -> "The moon is hollow."
    """
    claim = re.sub(r"\s+", " ", query or "").strip()
    if not claim:
        return ""

    for pattern in LEAD_IN_PATTERNS:
        stripped = re.sub(pattern, "", claim, flags=re.IGNORECASE)
        if stripped != claim:
            claim = stripped.strip()
            break

    if claim.endswith("?"):
        claim = claim.rstrip("?").rstrip() + "."

    claim = claim.strip(" \"'")
    if not claim or claim == ".":
        return re.sub(r"\s+", " ", query).strip()
    return claim[0].upper() + claim[1:]
