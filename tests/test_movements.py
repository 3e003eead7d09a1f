from wodlog.classifier import classify_category, classify_tags, classify_wod, count_movements
from wodlog.movements import analyze_movement_frequency, normalize_movement_name, parse_movements_from_wod

FRAN = {
    "wod_name": "Fran",
    "category": "Girl",
    "description": "21-15-9 reps for time of:\nThrusters (95/65 lb)\nPull-ups",
}


def test_normalize_movement_name():
    assert normalize_movement_name("Thrusters") == "Thruster"
    assert normalize_movement_name("  Power Cleans ") == "Clean"
    assert normalize_movement_name("Rope Climbs") == "Rope Climb"
    assert normalize_movement_name("box jump") == "Box Jump"
    assert normalize_movement_name("ab") is None
    assert normalize_movement_name(None) is None


def test_parse_movements_from_description():
    assert parse_movements_from_wod(FRAN) == ["Thruster", "Pull-ups"]


def test_parse_movements_dedupes_and_strips_units():
    wod = {
        "wod_name": "Snatch Ladder",
        "category": "Other",
        "description": "For time:\nPower Snatches (95 lb)\nSnatches\n400 meter Run",
    }
    assert parse_movements_from_wod(wod) == ["Snatch", "Run"]


def test_parse_movements_requires_name_category_and_description():
    assert parse_movements_from_wod({**FRAN, "category": None}) == []
    assert parse_movements_from_wod({**FRAN, "description": ""}) == []


def test_analyze_movement_frequency_groups_by_category():
    grace = {"wod_name": "Grace", "category": "Girl", "description": "For time:\nThrusters"}
    result = analyze_movement_frequency([FRAN, grace])
    assert result["Girl"]["Thruster"] == {"count": 2, "wod_names": ["Fran", "Grace"]}


def test_classify_category():
    assert classify_category("Fran") == "Girl"
    assert classify_category("Murph") == "Hero"
    assert classify_category("Open 21.1") == "Open"
    assert classify_category("Games: Ruck") == "Games"
    assert classify_category("Something New") == "Other"


def test_count_movements_after_rep_scheme():
    assert count_movements(FRAN["description"]) == 2
    assert count_movements("AMRAP in 20 minutes:\n5 Pull-ups\n10 Push-ups\n15 Air Squats") == 3


def test_classify_tags():
    assert classify_tags(FRAN["description"]) == ["For Time", "Couplet", "Ladder"]
    assert classify_tags("AMRAP in 20 minutes:\n5 Pull-ups\n10 Push-ups\n15 Air Squats") == ["AMRAP", "Triplet"]
    assert classify_tags("EMOM 10:\nA\nB\nC\nD") == ["Chipper", "EMOM"]


def test_classify_wod_keeps_other_fields():
    result = classify_wod({"id": "x", **FRAN})
    assert result["id"] == "x"
    assert result["category"] == "Girl"
    assert "Couplet" in result["tags"]
