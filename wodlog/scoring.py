from datetime import date, datetime
from typing import Any

from fastapi import HTTPException

from wodlog.wod_utils import SCORE_FIELDS, format_seconds_to_mmss

INT_FIELDS = (*SCORE_FIELDS, "partial_reps")


def parse_iso_date(text: str) -> date:
    if text[10:11] in ("T", " "):
        text = text[:10]
    return date.fromisoformat(text)


def parse_score_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="score_date is required (YYYY-MM-DD).")
    try:
        return parse_iso_date(text).isoformat()
    except ValueError as err:
        raise HTTPException(status_code=400, detail="Invalid score_date format, use YYYY-MM-DD.") from err


def _score_int(payload: dict[str, Any], field: str) -> int | None:
    value = payload.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number.")
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number.") from err
    if not number.is_integer():
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number.")
    if number < 0:
        raise HTTPException(status_code=400, detail=f"{field} must be 0 or more.")
    return int(number)


def normalize_score(payload: dict[str, Any], wod: dict[str, Any]) -> dict[str, Any]:
    values = {field: _score_int(payload, field) for field in INT_FIELDS}

    if all(values[field] is None for field in SCORE_FIELDS):
        raise HTTPException(status_code=400, detail="Please enter a score (time, reps, rounds, or load).")
    if values["partial_reps"] is not None and values["rounds_completed"] is None:
        raise HTTPException(status_code=400, detail="partial_reps requires rounds_completed.")

    timecap = wod.get("timecap")
    time_seconds = values["time_seconds"]
    if timecap and time_seconds is not None:
        if time_seconds > timecap:
            raise HTTPException(
                status_code=400,
                detail=f"Time must not exceed the time cap ({format_seconds_to_mmss(timecap)}).",
            )
        capped_without_work = all(values[f] is None for f in ("reps", "rounds_completed", "load"))
        if time_seconds == timecap and capped_without_work:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Time must be less than the time cap ({format_seconds_to_mmss(timecap)}). "
                    "If you reached the cap, log your score as reps/rounds+reps instead."
                ),
            )

    notes = payload.get("notes")
    notes_text = str(notes).strip() if notes is not None else ""

    return {
        "wod_id": wod["id"],
        "score_date": parse_score_date(payload.get("score_date")),
        "is_rx": bool(payload.get("is_rx", False)),
        "notes": notes_text or None,
        **values,
    }
