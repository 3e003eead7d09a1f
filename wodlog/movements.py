import re
from typing import Any

# Raw variation (lowercase) -> canonical movement name. Dumbbell variants of the
# olympic lifts stay distinct from their barbell forms.
MOVEMENT_NORMALIZATION_MAP = {
    "snatches": "Snatch",
    "squat snatches": "Snatch",
    "power snatches": "Snatch",
    "hang power snatches": "Snatch",
    "hang squat snatches": "Snatch",
    "dumbbell snatches": "Dumbbell Snatch",
    "dumbbell snatch": "Dumbbell Snatch",
    "hang dumbbell snatch": "Dumbbell Snatch",
    "cleans": "Clean",
    "squat cleans": "Clean",
    "power cleans": "Clean",
    "hang power cleans": "Clean",
    "hang squat cleans": "Clean",
    "dumbbell cleans": "Dumbbell Clean",
    "jerks": "Jerk",
    "push jerk": "Jerk",
    "split jerk": "Jerk",
    "clean-and-jerks": "Clean & Jerk",
    "clean & jerk": "Clean & Jerk",
    "dumbbell clean and jerk": "Dumbbell Clean & Jerk",
    "thruster": "Thruster",
    "thrusters": "Thruster",
    "dumbbell thrusters": "Thruster",
    "dumbbell thruster": "Thruster",
    "pull-ups": "Pull-Up",
    "pull up": "Pull-Up",
    "kipping pull-ups": "Pull-Up",
    "strict pull-ups": "Pull-Up",
    "chest-to-bar pull-ups": "Pull-Up",
    "push-ups": "Push-Up",
    "push up": "Push-Up",
    "handstand push-ups": "Handstand Push-Up",
    "hspu": "Handstand Push-Up",
    "strict handstand push-ups": "Handstand Push-Up",
    "kipping handstand push-ups": "Handstand Push-Up",
    "squat": "Squat",
    "squats": "Squat",
    "air squats": "Air Squat",
    "air squat": "Air Squat",
    "front squats": "Front Squat",
    "back squats": "Back Squat",
    "overhead squats": "Overhead Squat",
    "overhead squat": "Overhead Squat",
    "pistols": "Pistol",
    "deadlift": "Deadlift",
    "deadlifts": "Deadlift",
    "sumo deadlift high-pulls": "Sumo Deadlift High-Pull",
    "sumo deadlift high pull": "Sumo Deadlift High-Pull",
    "sdhp": "Sumo Deadlift High-Pull",
    "lunge": "Lunge",
    "lunges": "Lunge",
    "walking lunges": "Lunge",
    "overhead lunges": "Lunge",
    "burpee": "Burpee",
    "burpees": "Burpee",
    "burpees over the bar": "Burpee",
    "bar facing burpees": "Burpee",
    "box jumps": "Box Jump",
    "box jump": "Box Jump",
    "box jump overs": "Box Jump Over",
    "double-unders": "Double-Under",
    "double unders": "Double-Under",
    "dubs": "Double-Under",
    "wall ball shots": "Wall Ball Shot",
    "wall balls": "Wall Ball Shot",
    "wall ball": "Wall Ball Shot",
    "kettlebell swings": "Kettlebell Swing",
    "kb swings": "Kettlebell Swing",
    "american kettlebell swings": "Kettlebell Swing",
    "russian kettlebell swings": "Kettlebell Swing",
    "row": "Row",
    "run": "Run",
    "bike": "Bike",
    "sit-ups": "Sit-Up",
    "sit up": "Sit-Up",
    "ring dips": "Ring Dip",
    "muscle-ups": "Muscle-Up",
    "bar muscle-ups": "Bar Muscle-Up",
    "ring muscle-ups": "Muscle-Up",
    "bench press": "Bench Press",
    "wall walk": "Wall Walk",
    "rope climb": "Rope Climb",
    "toes-to-bar": "Toes-to-Bar",
    "ghd sit-ups": "GHD Sit-Up",
}

COMMON_WORDS = {
    "for", "time", "reps", "rounds", "of", "min", "rest", "between", "then", "amrap",
    "emom", "in", "minutes", "seconds", "with", "meter", "meters", "lb", "kg", "pood",
    "bodyweight", "alternating", "legs", "unbroken", "max", "needed", "set", "score",
    "is", "load", "the", "a", "and", "or", "each", "total", "cap", "as", "many",
    "possible", "on", "every", "minute", "from", "if", "completed", "before",
    "rounds for time", "reps for time", "rep for time", "for time", "amrap in",
    "emom in", "time cap", "with a", "minute rest", "rest between rounds",
    "alternating legs", "over the bar", "bar facing", "dumbbell", "kettlebell",
    "barbell", "assault bike", "echo bike", "cals", "calories", "men", "women",
    "men use", "women use", "amanda", "doubles and oly", "ringer", "if you complete",
    "complete", "perform", "then rest", "each round", "round", "part",
}

INTRODUCTORY_WORDS = {"if", "for", "then", "rest", "each", "complete", "perform", "round", "rounds"}

PHRASE_RE = re.compile(r"([A-Z][a-zA-Z\s-]+)")
PAREN_RE = re.compile(r"\s+\(.*?\)")
UNIT_RE = re.compile(r"(\d+(\.\d+)?/?\d*(\.\d+)?)\s*(lb|kg|pood|in|meter|meters)", re.IGNORECASE)
TRAILING_RE = re.compile(r"[:\-.,]$")


def normalize_movement_name(raw_name: Any) -> str | None:
    if not raw_name or not isinstance(raw_name, str):
        return None
    cleaned = raw_name.strip().lower()
    if cleaned in MOVEMENT_NORMALIZATION_MAP:
        return MOVEMENT_NORMALIZATION_MAP[cleaned]
    if cleaned.endswith("s") and cleaned[:-1] in MOVEMENT_NORMALIZATION_MAP:
        return MOVEMENT_NORMALIZATION_MAP[cleaned[:-1]]
    if len(cleaned) > 2:
        return " ".join(word[:1].upper() + word[1:] for word in cleaned.split(" "))
    return None


def _phrase_is_movement(phrase: str) -> bool:
    lower = phrase.lower()
    words = lower.split()
    if len(phrase) <= 2 or lower in COMMON_WORDS or not words:
        return False
    if all(w in COMMON_WORDS or len(w) <= 1 for w in words):
        return False
    return words[0] not in INTRODUCTORY_WORDS


def parse_movements_from_wod(wod: dict[str, Any]) -> list[str]:
    description = wod.get("description")
    if not wod.get("category") or not description or not wod.get("wod_name"):
        return []

    found: list[str] = []
    for line in str(description).split("\n"):
        for match in PHRASE_RE.finditer(line):
            phrase = PAREN_RE.sub("", match.group(1))
            phrase = UNIT_RE.sub("", phrase)
            phrase = TRAILING_RE.sub("", phrase).strip()
            if not _phrase_is_movement(phrase):
                continue
            normalized = normalize_movement_name(phrase)
            if normalized and normalized not in found:
                found.append(normalized)
    return found


def analyze_movement_frequency(wods: list[dict[str, Any]]) -> dict[str, dict[str, dict[str, Any]]]:
    by_category: dict[str, dict[str, dict[str, Any]]] = {}
    for wod in wods:
        category = str(wod.get("category") or "Other")
        bucket = by_category.setdefault(category, {})
        for movement in parse_movements_from_wod(wod):
            entry = bucket.setdefault(movement, {"count": 0, "wod_names": []})
            entry["count"] += 1
            entry["wod_names"].append(wod.get("wod_name"))
    return by_category
