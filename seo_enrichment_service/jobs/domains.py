"""Domain name normalization."""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

_SCHEME_RE = re.compile(r"^https?://")
_DOMAIN_RE = re.compile(
    r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*\.[a-z]{2,}$",
    re.IGNORECASE,
)


def clean_domain(raw: str) -> str:
    """Lowercase and strip scheme, ``www.``, path and port."""

    cleaned = raw.strip().lower()
    cleaned = _SCHEME_RE.sub("", cleaned)
    if cleaned.startswith("www."):
        cleaned = cleaned[4:]
    cleaned = cleaned.split("/")[0]
    cleaned = cleaned.split(":")[0]
    return cleaned


def is_valid_domain(domain: str) -> bool:
    return bool(_DOMAIN_RE.match(domain))


def normalize_domains(raw_domains: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Return ``(valid, rejected)``, keeping input order and dropping duplicates."""

    valid: List[str] = []
    rejected: List[str] = []
    seen = set()
    for raw in raw_domains:
        if not raw or not raw.strip():
            continue
        domain = clean_domain(raw)
        if not is_valid_domain(domain):
            rejected.append(raw)
            continue
        if domain in seen:
            continue
        seen.add(domain)
        valid.append(domain)
    return valid, rejected


__all__ = ["clean_domain", "is_valid_domain", "normalize_domains"]
