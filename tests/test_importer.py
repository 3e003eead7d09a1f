import csv
import io
import json
from datetime import date

import pytest
from fastapi import HTTPException

from wodlog import store
from wodlog.importer import (
    EXPORT_COLUMNS,
    CsvImportError,
    export_filename,
    export_rows,
    import_scores,
    parse_csv,
    parse_sugarwod_date,
    process_import,
    safe_parse_int,
    to_csv,
    to_json,
)

FRAN = {"id": "fran", "wod_name": "Fran", "category": "Girl", "timecap": 600}
CINDY = {"id": "cindy", "wod_name": "Cindy", "category": "Girl", "timecap": None}
RUN = {"id": "run", "wod_name": "Run 1600m", "category": "Benchmark", "timecap": None}
WODS_BY_NAME = {w["wod_name"]: w for w in (FRAN, CINDY, RUN)}

PRZILLA_CSV = """WOD Name,Date,Score (time),Score (reps),Score (rounds),Score (partial reps),Score (load),Rx,Notes
Fran,2024-01-15,185,,,,,Yes,felt good
Cindy,2024-02-01,,,22,5,,No,
Unknown WOD,2024-02-02,100,,,,,Yes,
Fran,,185,,,,,Yes,
Fran,2024-13-40,185,,,,,Yes,
Cindy,2024-02-03,,,,,,Yes,
"""

SUGARWOD_CSV = """date,title,description,best_result_raw,best_result_display,score_type,barbell_lift,set_details,notes,rx_or_scaled,pr
03/15/2024,1 mile Run,Run a mile,420,7:00,Time,,,,RX,
03/16/2024,Cindy,AMRAP,22+5,22+5,Rounds + Reps,,,tough,SCALED,
03/17/2024,Back Squat,5x5,225,225,Load,Back Squat,,,RX,
13/45/2024,Fran,Fran,200,3:20,Time,,,,RX,
,Fran,Fran,200,3:20,Time,,,,RX,
"""


def test_parse_csv_errors():
    with pytest.raises(CsvImportError):
        parse_csv("")
    with pytest.raises(CsvImportError):
        parse_csv("   \n")


def test_parse_csv_skips_blank_rows_and_strips_bom():
    rows = parse_csv("\ufeffa,b\n1,2\n,\n3,4\n")
    assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]


def test_safe_parse_int_reads_leading_number():
    assert safe_parse_int("22 rounds") == 22
    assert safe_parse_int("3.9") == 3
    assert safe_parse_int("abc") is None
    assert safe_parse_int(None) is None


def test_przilla_rows():
    rows = process_import(PRZILLA_CSV, "przilla", WODS_BY_NAME)
    assert [r["id"] for r in rows] == [f"row-{i}" for i in range(6)]

    fran = rows[0]
    assert fran["validation"] == {"is_valid": True, "errors": []}
    assert fran["selected"] is True
    assert fran["matched_wod"] == {"id": "fran", "wod_name": "Fran", "category": "Girl"}
    assert fran["proposed_score"]["time_seconds"] == 185
    assert fran["proposed_score"]["is_rx"] is True
    assert fran["proposed_score"]["notes"] == "felt good"
    assert fran["csv_row"]["WOD Name"] == "Fran"

    cindy = rows[1]
    assert cindy["proposed_score"]["rounds_completed"] == 22
    assert cindy["proposed_score"]["partial_reps"] == 5
    assert cindy["proposed_score"]["is_rx"] is False
    assert cindy["proposed_score"]["notes"] is None

    unknown = rows[2]
    assert unknown["matched_wod"] is None
    assert unknown["proposed_score"] is None
    assert unknown["selected"] is False
    assert unknown["validation"]["errors"] == ["No matching WOD found"]

    assert rows[3]["validation"]["errors"] == ["Missing date"]
    assert rows[4]["validation"]["errors"] == ["Invalid date format"]
    assert rows[5]["validation"]["errors"] == ["No valid score value found"]
    assert not any(r["selected"] for r in rows[3:])


def test_sugarwod_rows():
    rows = process_import(SUGARWOD_CSV, "sugarwod", WODS_BY_NAME)
    # the row with an empty date is dropped entirely
    assert len(rows) == 4

    run = rows[0]
    assert run["matched_wod"]["wod_name"] == "Run 1600m"
    assert run["proposed_score"]["time_seconds"] == 420
    assert run["proposed_score"]["score_date"] == "2024-03-15"
    assert run["proposed_score"]["is_rx"] is True

    cindy = rows[1]
    assert cindy["proposed_score"]["rounds_completed"] == 22
    assert cindy["proposed_score"]["partial_reps"] == 5
    assert cindy["proposed_score"]["reps"] is None
    assert cindy["proposed_score"]["is_rx"] is False
    assert cindy["proposed_score"]["notes"] == "tough"

    assert rows[2]["validation"]["errors"] == ["No matching WOD found"]
    assert rows[3]["validation"]["errors"] == ["Invalid date format"]


def test_preview_flags_rows_the_import_would_reject():
    text = (
        "WOD Name,Date,Score (time),Score (reps),Score (rounds),Score (partial reps),Score (load),Rx,Notes\n"
        "Fran,2024-01-15,185,,,,,Yes,\n"
        "Fran,2024-01-16,9999,,,,,Yes,\n"
        "Fran,2024-01-17,600,,,,,Yes,\n"
        "Cindy,2024-01-18,,10,,5,,Yes,\n"
    )
    rows = process_import(text, "przilla", WODS_BY_NAME)
    assert [r["selected"] for r in rows] == [True, False, False, False]
    assert rows[1]["validation"] == {"is_valid": False, "errors": ["Time must not exceed the time cap (10:00)."]}
    assert rows[2]["validation"]["errors"][0].startswith("Time must be less than the time cap (10:00).")
    assert rows[3]["validation"]["errors"] == ["partial_reps requires rounds_completed."]


def test_parse_sugarwod_date():
    assert parse_sugarwod_date("3/5/2024") == "2024-03-05"
    assert parse_sugarwod_date("2024-03-05") is None
    assert parse_sugarwod_date("02/30/2024") is None


def test_process_import_requires_catalog_and_known_format():
    with pytest.raises(CsvImportError, match="WOD data not available"):
        process_import(PRZILLA_CSV, "przilla", {})
    with pytest.raises(CsvImportError, match="Unknown import format"):
        process_import(PRZILLA_CSV, "excel", WODS_BY_NAME)


def test_import_scores_is_all_or_nothing(catalog, user):
    fran = catalog["Fran"]
    good = {"wod_id": fran["id"], "score_date": "2024-01-01", "time_seconds": 200, "is_rx": True}
    bad = {"wod_id": fran["id"], "score_date": "2024-01-02", "time_seconds": 9999}

    with pytest.raises(HTTPException) as err:
        import_scores(user["id"], [good, bad])
    assert err.value.detail.startswith("Row 2:")
    assert store.scores_for_user(user["id"]) == []

    assert import_scores(user["id"], [good, {**good, "score_date": "2024-01-05"}]) == {"count": 2}
    assert len(store.scores_for_user(user["id"])) == 2


def test_import_scores_rejects_empty_and_unknown_wod(catalog, user):
    with pytest.raises(HTTPException) as err:
        import_scores(user["id"], [])
    assert "No valid scores" in err.value.detail
    with pytest.raises(HTTPException) as err:
        import_scores(user["id"], [{"wod_id": "missing", "score_date": "2024-01-01", "reps": 1}])
    assert err.value.detail == "Row 1: WOD not found."


def test_export_rows_and_csv():
    wods = [{**FRAN, "tags": ["For Time", "Couplet"], "difficulty": "Hard", "description": "21-15-9"}]
    scores = [
        {"wod_id": "fran", "score_date": "2024-01-15", "time_seconds": 185, "is_rx": True, "notes": "pr"},
        {"wod_id": "gone", "score_date": "2024-01-16", "reps": 10, "is_rx": False, "notes": None},
    ]
    rows = export_rows(scores, wods)
    assert rows[0]["WOD Name"] == "Fran"
    assert rows[0]["Score (time)"] == 185
    assert rows[0]["Score (reps)"] == ""
    assert rows[0]["Rx"] == "Yes"
    assert rows[0]["Tags"] == "For Time, Couplet"
    assert rows[1]["WOD Name"] == ""
    assert rows[1]["Rx"] == "No"

    text = to_csv(rows)
    assert text.splitlines()[0] == ",".join(f'"{c}"' for c in EXPORT_COLUMNS)
    parsed = list(csv.DictReader(io.StringIO(text)))
    assert parsed[0]["Score (time)"] == "185"

    assert json.loads(to_json(rows))[0]["Notes"] == "pr"


def test_exported_csv_imports_back(catalog, user):
    fran = catalog["Fran"]
    store.insert_score(
        {"wod_id": fran["id"], "user_id": user["id"], "score_date": "2024-01-15", "time_seconds": 185, "is_rx": True}
    )
    text = to_csv(export_rows(store.scores_for_user(user["id"]), store.load_wods()))
    rows = process_import(text, "przilla", catalog)
    assert rows[0]["selected"] is True
    assert rows[0]["proposed_score"]["time_seconds"] == 185


def test_export_filename():
    assert export_filename("csv", date(2024, 3, 9)) == "wodlog-scores-20240309.csv"
