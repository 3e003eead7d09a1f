import json
import logging
from datetime import date, datetime
from functools import cmp_to_key
from typing import Any

from wodlog.constants import (
    ALLOWED_TAGS,
    BENCHMARK_TYPES,
    DESIRED_TAG_ORDER,
    DIFFICULTY_VALUES,
    LEVEL_ORDER,
    PERFORMANCE_LEVEL_COLORS,
    PERFORMANCE_LEVEL_VALUES,
    WOD_CATEGORIES,
)
from wodlog.search import fuzzy_search_wods

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("time_seconds", "reps", "load", "rounds_completed")
DIFFICULTIES = {"Easy", "Medium", "Hard", "Very Hard", "Extremely Hard"}

# Latest-score ranks used when sorting by level.
SORT_LEVEL_VALUES = {**PERFORMANCE_LEVEL_VALUES, "rx": 0, "scaled": -1, "no_score": -2}


def has_score(score: dict[str, Any]) -> bool:
    return any(score.get(field) is not None for field in SCORE_FIELDS)


def parse_benchmarks(raw: Any) -> dict[str, Any] | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Failed to parse benchmarks JSON: %s", raw)
            return None
    return raw if isinstance(raw, dict) else None


def get_numeric_score(wod: dict[str, Any] | None, score: dict[str, Any]) -> float | None:
    benchmarks = parse_benchmarks(wod.get("benchmarks")) if wod else None
    if not benchmarks or not has_score(score):
        return None

    kind = benchmarks.get("type")
    if kind == "time" and score.get("time_seconds") is not None:
        return score["time_seconds"]
    if kind == "reps" and score.get("reps") is not None:
        return score["reps"]
    if kind == "load" and score.get("load") is not None:
        return score["load"]
    if kind == "rounds" and score.get("rounds_completed") is not None:
        partial = score.get("partial_reps") or 0
        return score["rounds_completed"] + min(partial, 99) / 100
    return None


def get_performance_level(wod: dict[str, Any] | None, score: dict[str, Any]) -> str | None:
    benchmarks = parse_benchmarks(wod.get("benchmarks")) if wod else None
    if not benchmarks:
        return None
    numeric = get_numeric_score(wod, score)
    if numeric is None:
        return None
    levels = benchmarks.get("levels")
    if not isinstance(levels, dict) or not levels:
        return None

    if benchmarks.get("type") == "time":
        for name in ("elite", "advanced", "intermediate"):
            bound = (levels.get(name) or {}).get("max")
            if bound is not None and numeric <= bound:
                return name
        return "beginner"

    for name in ("elite", "advanced", "intermediate"):
        bound = (levels.get(name) or {}).get("min")
        if bound is not None and numeric >= bound:
            return name
    return "beginner"


def is_wod_done(wod: dict[str, Any], scores: list[dict[str, Any]] | None) -> bool:
    return bool(scores)


def format_seconds_to_mmss(seconds: Any) -> str:
    if not isinstance(seconds, (int, float)) or seconds != seconds or seconds < 0:
        return "0:00"
    minutes = int(seconds // 60)
    rest = int(seconds % 60)
    return f"{minutes}:{rest:02d}"


def format_seconds_to_min_sec(seconds: Any) -> str:
    if not isinstance(seconds, (int, float)) or seconds != seconds or seconds < 0:
        return "0sec"
    minutes = int(seconds // 60)
    rest = int(seconds % 60)
    if minutes > 0:
        return f"{minutes}min {rest}sec"
    return f"{rest}sec"


def format_short_date(value: date | datetime | str) -> str:
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return "Invalid Date"
    if not isinstance(value, date):
        return "Invalid Date"
    return f"{value.strftime('%b')} {value.day}, '{value.year % 100:02d}"


def get_performance_badge_details(wod: dict[str, Any], score: dict[str, Any]) -> dict[str, str]:
    if not score.get("is_rx"):
        return {"display_level": "Scaled", "color": "gray"}
    level = get_performance_level(wod, score)
    if level:
        return {"display_level": level.capitalize(), "color": PERFORMANCE_LEVEL_COLORS.get(level, "gray")}
    return {"display_level": "Rx", "color": "green"}


def format_score(score: dict[str, Any], suffix: str | None = None) -> str:
    value = "-"
    if score.get("time_seconds") is not None:
        value = format_seconds_to_mmss(score["time_seconds"])
    elif score.get("reps") is not None:
        value = f"{score['reps']} reps"
    elif score.get("load") is not None:
        value = f"{score['load']} lbs"
    elif score.get("rounds_completed") is not None:
        partial = score.get("partial_reps")
        if partial:
            value = f"{score['rounds_completed']}+{partial}"
        else:
            value = f"{score['rounds_completed']} rounds"
    if suffix:
        return f"{value} {suffix}"
    return value


def _num(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_performance_level_tooltip(wod: dict[str, Any] | None) -> list[dict[str, str]]:
    benchmarks = parse_benchmarks(wod.get("benchmarks")) if wod else None
    if not benchmarks:
        return []
    levels = benchmarks.get("levels")
    kind = benchmarks.get("type")
    if not isinstance(levels, dict) or not levels:
        return []

    out: list[dict[str, str]] = []
    for name in LEVEL_ORDER:
        data = levels.get(name)
        color = PERFORMANCE_LEVEL_COLORS.get(name, "gray")
        if not data:
            out.append({"level_name": name.capitalize(), "color": color, "formatted_range": "N/A"})
            continue

        low, high = data.get("min"), data.get("max")
        if kind == "time":
            lo = format_seconds_to_mmss(low) if low is not None else "0:00"
            hi = format_seconds_to_mmss(high) if high is not None else "∞"
            if name == "elite":
                formatted = f"0:00 - {hi}"
            elif name == "beginner" and high is None:
                formatted = f"{lo} - ∞"
            elif name == "beginner" and low is None:
                formatted = f"0:00 - {hi}"
            else:
                formatted = f"{lo} - {hi}"
        else:
            lo = _num(low) if low is not None else "0"
            hi = _num(high) if high is not None else "∞"
            unit = " lbs" if kind == "load" else ""
            if name == "elite" and high is None:
                formatted = f"> {lo}{unit}"
            elif name == "beginner" and low is None:
                formatted = f"0 - {hi}{unit}"
            else:
                formatted = f"{lo} - {hi}{unit}"
        out.append({"level_name": name.capitalize(), "color": color, "formatted_range": formatted})
    return out


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _name_key(wod: dict[str, Any]) -> tuple[str, str]:
    name = str(wod.get("wod_name") or "")
    return (name.casefold(), name)


def latest_score(scores: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    if not scores:
        return None
    return max(scores, key=lambda s: (str(s.get("score_date", "")), str(s.get("created_at", ""))))


def _level_value(wod: dict[str, Any], scores: list[dict[str, Any]] | None) -> int:
    latest = latest_score(scores)
    if latest is None:
        return SORT_LEVEL_VALUES["no_score"]
    if not latest.get("is_rx"):
        return SORT_LEVEL_VALUES["scaled"]
    level = get_performance_level(wod, latest)
    return SORT_LEVEL_VALUES.get(level or "rx", SORT_LEVEL_VALUES["rx"])


def sort_wods(
    wods: list[dict[str, Any]],
    sort_by: str = "wod_name",
    sort_direction: str = "asc",
    scores_by_wod_id: dict[str, list[dict[str, Any]]] | None = None,
) -> list[dict[str, Any]]:
    by_wod = scores_by_wod_id or {}
    direction = 1 if sort_direction == "asc" else -1

    def by_name(a: dict[str, Any], b: dict[str, Any]) -> int:
        return _cmp(_name_key(a), _name_key(b))

    def value(wod: dict[str, Any]) -> Any:
        scores = by_wod.get(str(wod.get("id")))
        if sort_by == "level":
            return _level_value(wod, scores)
        if sort_by == "attempts":
            return len(scores or [])
        if sort_by == "difficulty":
            return DIFFICULTY_VALUES.get(str(wod.get("difficulty") or "").lower(), 0)
        if sort_by == "count_likes":
            return wod.get("count_likes") or 0
        return 0

    def compare(a: dict[str, Any], b: dict[str, Any]) -> int:
        if sort_by == "wod_name":
            return by_name(a, b) * direction
        if sort_by == "date":
            latest_a = latest_score(by_wod.get(str(a.get("id"))))
            latest_b = latest_score(by_wod.get(str(b.get("id"))))
            if latest_a is None and latest_b is None:
                return by_name(a, b)
            if latest_a is None:
                return direction
            if latest_b is None:
                return -direction
            diff = _cmp(str(latest_a.get("score_date")), str(latest_b.get("score_date")))
            if diff:
                return diff * direction
            return by_name(a, b)
        va, vb = value(a), value(b)
        if va != vb:
            return _cmp(va, vb) * direction
        return by_name(a, b)

    return sorted(wods, key=cmp_to_key(compare))


def calculate_category_counts(wods: list[dict[str, Any]]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for wod in wods:
        category = wod.get("category")
        if category:
            counts[category] = counts.get(category, 0) + 1
    return counts


def parse_tags(tags: Any) -> list[str]:
    if isinstance(tags, list):
        return [str(t) for t in tags]
    if isinstance(tags, str):
        try:
            parsed = json.loads(tags)
        except json.JSONDecodeError:
            logger.error("Failed to parse tags JSON string: %s", tags)
            return []
        if isinstance(parsed, list):
            return [str(t) for t in parsed]
        logger.warning("Parsed tags JSON was not an array: %s", tags)
    return []


def order_tags(tags: list[str]) -> list[str]:
    allowed = [t for t in tags if t in ALLOWED_TAGS]
    return sorted(set(allowed), key=DESIRED_TAG_ORDER.index)


def group_scores_by_wod(scores: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    out: dict[str, list[dict[str, Any]]] = {}
    for score in scores:
        wod_id = score.get("wod_id")
        if wod_id:
            out.setdefault(str(wod_id), []).append(score)
    return out


def filter_wods(
    wods: list[dict[str, Any]],
    category: str | None = None,
    tags: list[str] | None = None,
    completion: str = "all",
    search: str | None = None,
    scores_by_wod_id: dict[str, list[dict[str, Any]]] | None = None,
) -> list[dict[str, Any]]:
    by_wod = scores_by_wod_id or {}
    out = list(wods)
    if category:
        out = [w for w in out if w.get("category") == category]
    if tags:
        out = [w for w in out if all(t in parse_tags(w.get("tags")) for t in tags)]
    if completion == "done":
        out = [w for w in out if is_wod_done(w, by_wod.get(str(w.get("id"))))]
    elif completion == "todo":
        out = [w for w in out if not is_wod_done(w, by_wod.get(str(w.get("id"))))]
    if search and search.strip():
        out = fuzzy_search_wods(out, search)
    return out


def score_with_display(wod: dict[str, Any] | None, score: dict[str, Any]) -> dict[str, Any]:
    suffix = "Rx" if score.get("is_rx") else "Scaled"
    return {
        **score,
        "display_score": format_score(score, suffix),
        "display_date": format_short_date(str(score.get("score_date") or "")),
        "level": get_performance_level(wod, score),
        "badge": get_performance_badge_details(wod or {}, score),
    }


def _validate_level(name: str, raw: Any) -> dict[str, float | int | None]:
    if not isinstance(raw, dict):
        raise ValueError(f"benchmarks.levels.{name} must be an object")
    out: dict[str, float | int | None] = {}
    for bound in ("min", "max"):
        v = raw.get(bound)
        if v is not None and (isinstance(v, bool) or not isinstance(v, (int, float))):
            raise ValueError(f"benchmarks.levels.{name}.{bound} must be a number or null")
        out[bound] = v
    return out


def validate_benchmarks(raw: Any) -> dict[str, Any] | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as err:
            raise ValueError("benchmarks must be valid JSON") from err
    if not isinstance(raw, dict):
        raise ValueError("benchmarks must be an object")
    kind = raw.get("type")
    if kind not in BENCHMARK_TYPES:
        raise ValueError(f"benchmarks.type must be one of {sorted(BENCHMARK_TYPES)}")
    levels = raw.get("levels")
    if not isinstance(levels, dict):
        raise ValueError("benchmarks.levels must be an object")
    return {"type": kind, "levels": {name: _validate_level(name, levels.get(name)) for name in LEVEL_ORDER}}


def _opt_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _opt_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"{field} must be an integer") from err


def validate_wod(row: dict[str, Any], movements: list[str] | None = None) -> dict[str, Any]:
    wod_id = row.get("id")
    name = row.get("wod_name")
    if not isinstance(wod_id, str) or not wod_id:
        raise ValueError("id is required")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("wod_name is required")
    category = _opt_text(row.get("category"))
    if category is not None and category not in WOD_CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    return {
        "id": wod_id,
        "wod_url": _opt_text(row.get("wod_url")),
        "wod_name": name,
        "description": row.get("description"),
        "benchmarks": validate_benchmarks(row.get("benchmarks")),
        "category": category,
        "tags": parse_tags(row.get("tags")),
        "difficulty": _opt_text(row.get("difficulty")),
        "difficulty_explanation": _opt_text(row.get("difficulty_explanation")),
        "count_likes": _opt_int(row.get("count_likes"), "count_likes") or 0,
        "timecap": _opt_int(row.get("timecap"), "timecap"),
        "movements": list(movements or []),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


def validate_wods(rows: list[dict[str, Any]], movements_by_wod: dict[str, list[str]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for row in rows:
        try:
            out.append(validate_wod(row, movements_by_wod.get(str(row.get("id")), [])))
        except ValueError as err:
            logger.error("Validation failed for WOD %s (ID: %s). Skipping: %s", row.get("wod_name"), row.get("id"), err)
    return out


def normalize_wod(payload: dict[str, Any]) -> dict[str, Any]:
    name = str(payload.get("wod_name") or "").strip()
    if not name:
        raise ValueError("wod_name is required")
    category = _opt_text(payload.get("category")) or "Other"
    if category not in WOD_CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    difficulty = _opt_text(payload.get("difficulty"))
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    timecap = _opt_int(payload.get("timecap"), "timecap")
    likes = _opt_int(payload.get("count_likes"), "count_likes") or 0
    return {
        "wod_url": _opt_text(payload.get("wod_url")),
        "wod_name": name,
        "description": _opt_text(payload.get("description")),
        "benchmarks": validate_benchmarks(payload.get("benchmarks")),
        "category": category,
        "tags": order_tags(parse_tags(payload.get("tags"))),
        "difficulty": difficulty,
        "difficulty_explanation": _opt_text(payload.get("difficulty_explanation")),
        "count_likes": max(0, likes),
        "timecap": timecap if timecap and timecap > 0 else None,
    }
