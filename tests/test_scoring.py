from datetime import date

import pytest
from fastapi import HTTPException

from wodlog.scoring import normalize_score, parse_score_date

FRAN = {"id": "fran", "wod_name": "Fran", "timecap": 600}
CINDY = {"id": "cindy", "wod_name": "Cindy", "timecap": None}


def test_valid_time_score():
    score = normalize_score({"score_date": "2024-01-02", "time_seconds": 200, "is_rx": True, "notes": " pr "}, FRAN)
    assert score == {
        "wod_id": "fran",
        "score_date": "2024-01-02",
        "is_rx": True,
        "notes": "pr",
        "time_seconds": 200,
        "reps": None,
        "load": None,
        "rounds_completed": None,
        "partial_reps": None,
    }


def test_string_numbers_are_accepted():
    score = normalize_score({"score_date": "2024-01-02", "rounds_completed": "12", "partial_reps": "7"}, CINDY)
    assert score["rounds_completed"] == 12
    assert score["partial_reps"] == 7
    assert score["is_rx"] is False
    assert score["notes"] is None


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"score_date": "2024-01-02"}, "Please enter a score"),
        ({"score_date": "2024-01-02", "reps": -1}, "0 or more"),
        ({"score_date": "2024-01-02", "reps": 1.5}, "whole number"),
        ({"score_date": "2024-01-02", "reps": "ten"}, "whole number"),
        ({"score_date": "2024-01-02", "reps": True}, "whole number"),
        ({"score_date": "2024-01-02", "partial_reps": 5}, "partial_reps requires"),
        ({"score_date": "01/02/2024", "reps": 5}, "Invalid score_date"),
        ({"reps": 5}, "score_date is required"),
    ],
)
def test_invalid_scores(payload, message):
    with pytest.raises(HTTPException) as err:
        normalize_score(payload, CINDY)
    assert err.value.status_code == 400
    assert message in err.value.detail


def test_time_over_cap_is_rejected():
    with pytest.raises(HTTPException) as err:
        normalize_score({"score_date": "2024-01-02", "time_seconds": 601}, FRAN)
    assert "10:00" in err.value.detail


def test_time_at_cap_needs_work_value():
    with pytest.raises(HTTPException) as err:
        normalize_score({"score_date": "2024-01-02", "time_seconds": 600}, FRAN)
    assert "log your score as reps/rounds+reps" in err.value.detail

    score = normalize_score({"score_date": "2024-01-02", "time_seconds": 600, "reps": 80}, FRAN)
    assert score["reps"] == 80


def test_no_timecap_allows_any_time():
    assert normalize_score({"score_date": "2024-01-02", "time_seconds": 99999}, CINDY)["time_seconds"] == 99999


def test_parse_score_date_accepts_dates_and_timestamps():
    assert parse_score_date(date(2024, 5, 6)) == "2024-05-06"
    assert parse_score_date("2024-05-06T10:00:00Z") == "2024-05-06"
    assert parse_score_date("2024-05-06 10:00") == "2024-05-06"


@pytest.mark.parametrize("value", ["2024-01-15garbage", "2024-01-150", "15/01/2024"])
def test_parse_score_date_rejects_trailing_junk(value):
    with pytest.raises(HTTPException) as err:
        parse_score_date(value)
    assert err.value.status_code == 400
