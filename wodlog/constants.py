DESIRED_TAG_ORDER = [
    "For Time",
    "AMRAP",
    "Couplet",
    "Triplet",
    "Chipper",
    "Ladder",
    "EMOM",
]
ALLOWED_TAGS = set(DESIRED_TAG_ORDER)

DESIRED_CATEGORY_ORDER = [
    "Girl",
    "Benchmark",
    "Hero",
    "Open",
    "Quarterfinals",
    "Games",
    "Other",
]
WOD_CATEGORIES = {*DESIRED_CATEGORY_ORDER, "Skill"}

BENCHMARK_TYPES = {"time", "rounds", "reps", "load"}
LEVEL_ORDER = ["elite", "advanced", "intermediate", "beginner"]

PERFORMANCE_LEVEL_VALUES = {
    "elite": 4,
    "advanced": 3,
    "intermediate": 2,
    "beginner": 1,
}

PERFORMANCE_LEVEL_COLORS = {
    "elite": "purple",
    "advanced": "green",
    "intermediate": "yellow",
    "beginner": "gray",
}

DIFFICULTY_VALUES = {
    "easy": 1,
    "medium": 2,
    "hard": 3,
    "very hard": 4,
    "extremely hard": 5,
}

DIFFICULTY_MULTIPLIERS = {
    "Easy": 0.8,
    "Medium": 1.0,
    "Hard": 1.2,
    "Very Hard": 1.5,
    "Extremely Hard": 2.0,
}
DEFAULT_MULTIPLIER = 1.0

SORT_FIELDS = {"wod_name", "date", "level", "attempts", "difficulty", "count_likes"}
