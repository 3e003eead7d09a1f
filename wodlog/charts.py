import logging
from typing import Any

from wodlog import store
from wodlog.constants import DEFAULT_MULTIPLIER, DIFFICULTY_MULTIPLIERS, PERFORMANCE_LEVEL_VALUES, WOD_CATEGORIES
from wodlog.wod_utils import (
    get_performance_level,
    group_scores_by_wod,
    is_wod_done,
    parse_benchmarks,
    parse_tags,
    validate_wods,
)

logger = logging.getLogger(__name__)


def get_movements_for_wods(wod_ids: list[str]) -> dict[str, dict[str, Any]]:
    if not wod_ids:
        return {}
    wanted = set(wod_ids)
    names = {w.get("id"): w.get("wod_name") for w in store.load_wods()}
    movement_names = {m.get("id"): m.get("name") for m in store.load_movements()}

    counts: dict[str, dict[str, Any]] = {}
    for link in store.load_table(store.WOD_MOVEMENTS):
        wod_id = link.get("wod_id")
        if wod_id not in wanted:
            continue
        movement = movement_names.get(link.get("movement_id"))
        wod_name = names.get(wod_id)
        if not movement or not wod_name:
            continue
        entry = counts.setdefault(movement, {"count": 0, "wod_names": []})
        entry["count"] += 1
        entry["wod_names"].append(wod_name)
    return counts


def get_movement_counts_by_category(wods: list[dict[str, Any]]) -> dict[str, dict[str, dict[str, Any]]]:
    ids_by_category: dict[str, list[str]] = {}
    for wod in wods:
        category = wod.get("category")
        if category in WOD_CATEGORIES:
            ids_by_category.setdefault(category, []).append(str(wod.get("id")))
    return {category: get_movements_for_wods(ids) for category, ids in ids_by_category.items()}


def process_tag_and_category_counts(
    wods: list[dict[str, Any]],
    scores_by_wod_id: dict[str, list[dict[str, Any]]],
) -> dict[str, dict[str, int]]:
    tag_counts: dict[str, int] = {}
    category_counts: dict[str, int] = {}
    for wod in wods:
        if not is_wod_done(wod, scores_by_wod_id.get(str(wod.get("id")))):
            continue
        category = wod.get("category")
        if category in WOD_CATEGORIES:
            category_counts[category] = category_counts.get(category, 0) + 1
        for tag in parse_tags(wod.get("tags")):
            tag_counts[tag] = tag_counts.get(tag, 0) + 1
    return {"tag_counts": tag_counts, "category_counts": category_counts}


def difficulty_multiplier(difficulty: str | None) -> float:
    if not difficulty:
        return DEFAULT_MULTIPLIER
    return DIFFICULTY_MULTIPLIERS.get(difficulty, DEFAULT_MULTIPLIER)


def calculate_monthly_data(rows: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Group joined score+wod rows by month with difficulty-adjusted levels."""
    monthly: dict[str, dict[str, Any]] = {}
    for row in rows:
        benchmarks = parse_benchmarks(row.get("benchmarks"))
        if not row.get("wod_name") or not benchmarks:
            logger.warning("Skipping score ID %s due to missing WOD name or benchmarks.", row.get("score_id"))
            continue

        month = str(row.get("score_date") or "")[:7]
        bucket = monthly.setdefault(month, {"count": 0, "total_adjusted_level_score": 0.0, "scores": []})
        bucket["count"] += 1

        level = get_performance_level({"benchmarks": benchmarks}, row)
        level_score = PERFORMANCE_LEVEL_VALUES.get(level or "", 1)
        multiplier = difficulty_multiplier(row.get("difficulty"))
        adjusted = level_score * multiplier

        bucket["total_adjusted_level_score"] += adjusted
        bucket["scores"].append(
            {
                "wod_name": row.get("wod_name"),
                "level": level_score,
                "difficulty": row.get("difficulty"),
                "difficulty_multiplier": multiplier,
                "adjusted_level": adjusted,
                "time_seconds": row.get("time_seconds"),
                "reps": row.get("reps"),
                "load": row.get("load"),
                "rounds_completed": row.get("rounds_completed"),
                "partial_reps": row.get("partial_reps"),
                "is_rx": row.get("is_rx"),
            }
        )
    return monthly


def build_timeline(monthly: dict[str, dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    frequency: list[dict[str, Any]] = []
    performance: list[dict[str, Any]] = []
    for month in sorted(monthly):
        data = monthly[month]
        count = data.get("count", 0)
        frequency.append({"month": month, "count": count})
        average = data.get("total_adjusted_level_score", 0) / count if count else 0
        performance.append({"month": month, "average_level": round(average, 2)})
    return {"frequency_data": frequency, "performance_data": performance}


def join_scores_with_wods(scores: list[dict[str, Any]], wods: list[dict[str, Any]]) -> list[dict[str, Any]]:
    by_id = {str(w.get("id")): w for w in wods}
    rows: list[dict[str, Any]] = []
    for score in scores:
        wod = by_id.get(str(score.get("wod_id")), {})
        rows.append(
            {
                **score,
                "score_id": score.get("id"),
                "wod_name": wod.get("wod_name"),
                "difficulty": wod.get("difficulty"),
                "benchmarks": wod.get("benchmarks"),
            }
        )
    return rows


def get_chart_data(user_id: str) -> dict[str, Any]:
    raw_wods = sorted(store.load_wods(), key=lambda w: str(w.get("wod_name", "")))
    wods = validate_wods(raw_wods, store.movements_by_wod())
    scores = store.scores_for_user(user_id)
    scores_by_wod = group_scores_by_wod(scores)

    counts = process_tag_and_category_counts(wods, scores_by_wod)
    monthly = calculate_monthly_data(join_scores_with_wods(scores, raw_wods))

    return {
        **counts,
        "monthly_data": monthly,
        "your_movement_counts": get_movements_for_wods(list(scores_by_wod)),
        "all_movement_counts": get_movements_for_wods([str(w["id"]) for w in wods]),
        "movement_counts_by_category": get_movement_counts_by_category(wods),
        **build_timeline(monthly),
    }
