import csv
import io
import json
import logging
import re
from datetime import date
from typing import Any

from fastapi import HTTPException

from wodlog import store
from wodlog.scoring import normalize_score, parse_iso_date
from wodlog.wod_utils import SCORE_FIELDS, parse_tags

logger = logging.getLogger(__name__)

IMPORT_FORMATS = {"przilla", "sugarwod"}

PRZILLA_COLUMNS = [
    "WOD Name",
    "Date",
    "Score (time)",
    "Score (reps)",
    "Score (rounds)",
    "Score (partial reps)",
    "Score (load)",
    "Rx",
    "Notes",
]
EXPORT_COLUMNS = [*PRZILLA_COLUMNS, "Category", "Tags", "Difficulty", "Description"]

SUGARWOD_REQUIRED = ("date", "title", "rx_or_scaled")
SUGARWOD_TEXT = ("description", "best_result_raw", "best_result_display")

# SugarWOD workout titles that differ from the catalogue's names.
SUGARWOD_ALIASES = {
    "1 mile Run": "Run 1600m",
    "2 mile Run": "Run 3200m",
    "5k Run": "Run 5000m",
    "10k Run": "Run 10000m",
    "1k Row": "Row 1000m",
    "2k Row": "Row 2000m",
    "5k Row": "Row 5000m",
    "10k Row": "Row 10000m",
    "Fibonacci": "Fibonacci Final",
    "2007 Reload": "Games: 2007 RELOAD",
    "Atalanta": "Games: Atalanta",
    "Awful Annie": "Games: Awful Annie",
    "Bike Repeater": "Games: Bike Repeater",
    "Complex Fran": "Games: Complex Fran",
    "Corn Sack Sprint": "Games: Corn Sack Sprint",
    "Damn Diane": "Games: Damn Diane",
    "Doubles and Oly": "Games: Doubles and Oly",
    "First Cut": "Games: First Cut",
    "Friendly Fran": "Games: Friendly Fran",
    "Handstand Hold": "Games: Handstand Hold",
    "Handstand Sprint": "Games: Handstand Sprint",
    "Happy Star": "Games: Happy Star",
    "Marathon Row": "Games: Marathon Row",
    "Nasty Nancy": "Games: Nasty Nancy",
    "Ranch Loop": "Games: Ranch Loop",
    "Ringer 1 & Ringer 2": "Games: Ringer 1 & Ringer 2",
    "Ruck": "Games: Ruck",
    "Run Swim Run": "Games: Run Swim Run",
    "Second Cut": "Games: Second Cut",
    "Snatch Speed Triple": "Games: Snatch Speed Triple",
    "Sprint Couplet": "Games: Sprint Couplet",
    "Sprint Sled Sprint": "Games: Sprint Sled Sprint",
    "Sprint Triplet": "Games: Sprint Triplet",
    "Swim 'N' Stuff": "Games: Swim 'N' Stuff",
    "Swim Paddle": "Games: Swim Paddle",
    "The Standard": "Games: The Standard",
    "Triple-G Chipper": "Games: Triple-G Chipper",
    "Heavy DT": "Individual 15.5: Heavy DT",
    "Double DT": "Individual 16.7: Double DT",
    "The Separator": "Individual 16.9: The Seperator",
    "Triple 3": "Regional: Triple 3",
}

LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?\d+(\.\d+)?")


class CsvImportError(ValueError):
    pass


def parse_csv(text: str) -> list[dict[str, str]]:
    if not text or not text.strip():
        raise CsvImportError("Error parsing CSV: file is empty")
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise CsvImportError("Error parsing CSV: missing header row")
    rows: list[dict[str, str]] = []
    try:
        for raw in reader:
            row = {str(k).strip(): (v or "") for k, v in raw.items() if k is not None}
            if not any(str(v).strip() for v in row.values()):
                continue
            rows.append(row)
    except csv.Error as err:
        raise CsvImportError(f"Error parsing CSV: {err}") from err
    return rows


def safe_parse_float(value: Any) -> float | None:
    match = LEADING_NUMBER_RE.match(str(value or ""))
    return float(match.group(0)) if match else None


def safe_parse_int(value: Any) -> int | None:
    number = safe_parse_float(value)
    return int(number) if number is not None else None


def _seconds(value: Any) -> int | None:
    number = safe_parse_float(value)
    return int(round(number)) if number is not None else None


def _wod_summary(wod: dict[str, Any] | None) -> dict[str, Any] | None:
    if wod is None:
        return None
    return {"id": wod.get("id"), "wod_name": wod.get("wod_name"), "category": wod.get("category")}


def _has_value(score: dict[str, Any]) -> bool:
    return any(score.get(field) is not None for field in SCORE_FIELDS)


def _processed(
    index: int,
    row: dict[str, str],
    wod: dict[str, Any] | None,
    errors: list[str],
    proposed: dict[str, Any] | None,
) -> dict[str, Any]:
    if wod is None:
        errors = [*errors, "No matching WOD found"]
    elif proposed is not None:
        try:
            proposed = normalize_score(proposed, wod)
        except HTTPException as err:
            errors = [*errors, str(err.detail)]
    proposed = proposed if wod is not None else None
    is_valid = not errors and wod is not None
    return {
        "id": f"row-{index}",
        "csv_row": row,
        "matched_wod": _wod_summary(wod),
        "validation": {"is_valid": is_valid, "errors": errors},
        "proposed_score": proposed,
        "selected": is_valid and proposed is not None,
    }


def process_przilla_rows(rows: list[dict[str, str]], wods_by_name: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for index, row in enumerate(rows):
        wod = wods_by_name.get(str(row.get("WOD Name") or "").strip())
        errors: list[str] = []
        score_date: str | None = None
        raw_date = str(row.get("Date") or "").strip()
        if raw_date:
            try:
                score_date = parse_iso_date(raw_date).isoformat()
            except ValueError:
                errors.append("Invalid date format")
        else:
            errors.append("Missing date")

        proposed: dict[str, Any] | None = None
        if wod is not None and score_date:
            values = {
                "time_seconds": _seconds(row.get("Score (time)")),
                "reps": safe_parse_int(row.get("Score (reps)")),
                "rounds_completed": safe_parse_int(row.get("Score (rounds)")),
                "partial_reps": safe_parse_int(row.get("Score (partial reps)")),
                "load": safe_parse_int(row.get("Score (load)")),
            }
            if not _has_value(values):
                errors.append("No valid score value found")
            else:
                notes = str(row.get("Notes") or "").strip()
                proposed = {
                    "wod_id": wod["id"],
                    "score_date": score_date,
                    "is_rx": str(row.get("Rx") or "").strip().lower() == "yes",
                    "notes": notes or None,
                    **values,
                }
        out.append(_processed(index, row, wod, errors, proposed))
    return out


def is_sugarwod_row(row: dict[str, Any]) -> bool:
    if not all(isinstance(row.get(k), str) and row.get(k) for k in SUGARWOD_REQUIRED):
        return False
    return all(isinstance(row.get(k), str) for k in SUGARWOD_TEXT)


def parse_sugarwod_date(value: str) -> str | None:
    parts = value.strip().split("/")
    if len(parts) != 3 or not all(p.strip().isdigit() for p in parts):
        return None
    month, day, year = (int(p) for p in parts)
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def process_sugarwod_rows(rows: list[dict[str, str]], wods_by_name: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for index, row in enumerate(rows):
        if not is_sugarwod_row(row):
            logger.warning("Skipping SugarWOD row %d: missing required fields", index)
            continue
        title = row["title"].strip()
        wod = wods_by_name.get(SUGARWOD_ALIASES.get(title, title))
        errors: list[str] = []
        score_date = parse_sugarwod_date(row["date"])
        if score_date is None:
            errors.append("Invalid date format")

        proposed: dict[str, Any] | None = None
        if wod is not None and score_date:
            score_type = (row.get("score_type") or "time").lower()
            raw = row.get("best_result_raw") or ""
            is_rounds = "rounds" in score_type
            rounds_parts = raw.split("+") if is_rounds else []
            values = {
                "time_seconds": _seconds(raw) if "time" in score_type else None,
                "reps": safe_parse_int(raw) if "reps" in score_type and not is_rounds else None,
                "load": safe_parse_int(raw) if "load" in score_type else None,
                "rounds_completed": safe_parse_int(rounds_parts[0]) if rounds_parts else None,
                "partial_reps": safe_parse_int(rounds_parts[1]) if len(rounds_parts) > 1 else None,
            }
            if not _has_value(values):
                errors.append("No valid score value found based on score_type")
            else:
                notes = str(row.get("notes") or "").strip()
                proposed = {
                    "wod_id": wod["id"],
                    "score_date": score_date,
                    "is_rx": row["rx_or_scaled"].strip().upper() == "RX",
                    "notes": notes or None,
                    **values,
                }
        out.append(_processed(index, row, wod, errors, proposed))
    return out


def process_import(text: str, import_format: str, wods_by_name: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    if import_format not in IMPORT_FORMATS:
        raise CsvImportError(f"Unknown import format: {import_format}")
    rows = parse_csv(text)
    if not wods_by_name:
        raise CsvImportError("WOD data not available for matching. Please try again.")
    if import_format == "przilla":
        return process_przilla_rows(rows, wods_by_name)
    return process_sugarwod_rows(rows, wods_by_name)


def import_scores(user_id: str, items: list[dict[str, Any]]) -> dict[str, int]:
    if not items:
        raise HTTPException(status_code=400, detail="No valid scores were selected for import.")
    wods = {str(w.get("id")): w for w in store.load_wods()}
    rows: list[dict[str, Any]] = []
    for i, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise HTTPException(status_code=400, detail=f"Row {i}: score must be an object.")
        wod = wods.get(str(item.get("wod_id")))
        if wod is None:
            raise HTTPException(status_code=400, detail=f"Row {i}: WOD not found.")
        try:
            normalized = normalize_score(item, wod)
        except HTTPException as err:
            raise HTTPException(status_code=400, detail=f"Row {i}: {err.detail}") from err
        rows.append({**normalized, "user_id": user_id})
    created = store.insert_scores(rows)
    logger.info("Imported %d scores for user %s", len(created), user_id)
    return {"count": len(created)}


def _blank(value: Any) -> Any:
    return "" if value is None else value


def export_rows(scores: list[dict[str, Any]], wods: list[dict[str, Any]]) -> list[dict[str, Any]]:
    wod_map = {str(w.get("id")): w for w in wods if w.get("id")}
    out: list[dict[str, Any]] = []
    for score in scores:
        wod = wod_map.get(str(score.get("wod_id")), {})
        out.append(
            {
                "WOD Name": wod.get("wod_name") or "",
                "Date": str(score.get("score_date") or "")[:10],
                "Score (time)": _blank(score.get("time_seconds")),
                "Score (reps)": _blank(score.get("reps")),
                "Score (rounds)": _blank(score.get("rounds_completed")),
                "Score (partial reps)": _blank(score.get("partial_reps")),
                "Score (load)": _blank(score.get("load")),
                "Rx": "Yes" if score.get("is_rx") else "No",
                "Notes": score.get("notes") or "",
                "Category": wod.get("category") or "",
                "Tags": ", ".join(parse_tags(wod.get("tags"))),
                "Difficulty": wod.get("difficulty") or "",
                "Description": wod.get("description") or "",
            }
        )
    return out


def to_csv(rows: list[dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def to_json(rows: list[dict[str, Any]]) -> str:
    return json.dumps(rows, indent=2)


def export_filename(export_format: str, today: date | None = None) -> str:
    stamp = (today or date.today()).strftime("%Y%m%d")
    return f"wodlog-scores-{stamp}.{export_format}"
