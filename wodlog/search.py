import re
from difflib import SequenceMatcher
from typing import Any

from wodlog.movements import normalize_movement_name

FUZZY_CUTOFF = 0.8
SEARCH_FIELDS = ("wod_name", "description", "tags", "movements")


def create_search_pattern(search_terms: str | list[str], use_word_boundaries: bool = False) -> str:
    if isinstance(search_terms, str):
        stripped = search_terms.strip()
        if len(stripped) > 1 and stripped.startswith('"') and stripped.endswith('"'):
            phrase = re.escape(stripped[1:-1])
            return rf"\b{phrase}\b" if use_word_boundaries else phrase
        terms = stripped.split()
    else:
        terms = [t for t in search_terms if t]

    if not terms:
        return ""
    escaped = [re.escape(term) for term in terms]
    if use_word_boundaries:
        return "|".join(rf"\b{term}\b" for term in escaped)
    return "|".join(escaped)


def _field_values(wod: dict[str, Any], field: str) -> list[str]:
    value = wod.get(field)
    if isinstance(value, list):
        return [str(v).lower() for v in value]
    return [str(value).lower()] if value else []


def wod_matches_all_terms(wod: dict[str, Any], search_terms: list[str]) -> bool:
    if not search_terms:
        return False
    return all(
        any(term in text for field in SEARCH_FIELDS for text in _field_values(wod, field))
        for term in search_terms
    )


def _fuzzy_hit(term: str, text: str) -> bool:
    if term in text:
        return True
    for word in re.split(r"[^a-z0-9&+-]+", text):
        if word and SequenceMatcher(None, term, word).ratio() >= FUZZY_CUTOFF:
            return True
    return False


def _prepare(wod: dict[str, Any]) -> dict[str, Any]:
    movements = [normalize_movement_name(m) or m for m in wod.get("movements") or []]
    return {**wod, "movements": movements}


def fuzzy_search_wods(wods: list[dict[str, Any]], query: str) -> list[dict[str, Any]]:
    trimmed = (query or "").strip()
    if not trimmed:
        return []

    if len(trimmed) > 1 and trimmed.startswith('"') and trimmed.endswith('"'):
        exact = trimmed[1:-1].strip().lower()
        if not exact:
            return []
        out = []
        for wod in wods:
            matched = [
                field
                for field in ("wod_name", "description", "movements")
                if any(exact in text for text in _field_values(_prepare(wod), field))
            ]
            if matched:
                out.append({**wod, "matches": matched})
        return out

    terms = [t.lower() for t in trimmed.split()]
    out = []
    for wod in wods:
        prepared = _prepare(wod)
        matched: list[str] = []
        for term in terms:
            fields = [
                field
                for field in SEARCH_FIELDS
                if any(_fuzzy_hit(term, text) for text in _field_values(prepared, field))
            ]
            if not fields:
                break
            matched.extend(f for f in fields if f not in matched)
        else:
            out.append({**wod, "matches": matched})
    return out
