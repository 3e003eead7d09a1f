import re
from typing import Any

from wodlog.wod_utils import order_tags

GIRL_WODS = {
    "Angie", "Annie", "Barbara", "Chelsea", "Cindy", "Diane", "Elizabeth", "Fran",
    "Grace", "Helen", "Isabel", "Jackie", "Karen", "Linda", "Mary", "Nancy", "Nicole",
    "Amanda", "Christine", "Grettel", "Ingrid", "Lynne",
}

HERO_WODS = {
    "Murph", "DT", "Abbate", "Holleyman", "JT", "McGhee", "Nate", "Randy", "Ryan",
    "Whitten", "Hidalgo", "Gallant", "Bowen", "Rene", "Riley", "Marston",
    "Mogadishu Mile", "Peyton", "Omar", "Maxton", "Schmalls",
}

REP_SCHEME_RE = re.compile(r"\d+-\d+-\d+")
SKIP_LINE_MARKERS = ("AMRAP", "EMOM", "For Time", "Rounds", "Rest")
MAX_MOVEMENT_ESTIMATE = 10


def classify_category(name: str) -> str:
    if name in GIRL_WODS:
        return "Girl"
    if name in HERO_WODS:
        return "Hero"
    if "Open" in name:
        return "Open"
    if "Games" in name:
        return "Games"
    if "Benchmark" in name:
        return "Benchmark"
    return "Other"


def count_movements(description: str) -> int:
    parts = description.split("\n")
    scheme_idx = next((i for i, line in enumerate(parts) if REP_SCHEME_RE.search(line)), -1)
    if scheme_idx >= 0:
        return len([line for line in parts[scheme_idx + 1:] if line.strip()])

    lines = [
        line
        for line in parts
        if line.strip()
        and not any(marker in line for marker in SKIP_LINE_MARKERS)
        and not re.fullmatch(r"\d+", line.strip())
    ]
    return min(len(lines), MAX_MOVEMENT_ESTIMATE)


def classify_tags(description: str) -> list[str]:
    tags: list[str] = []
    if "AMRAP" in description:
        tags.append("AMRAP")
    if "EMOM" in description:
        tags.append("EMOM")
    if "For Time" in description or not tags:
        tags.append("For Time")
    if REP_SCHEME_RE.search(description) or "ladder" in description.lower():
        tags.append("Ladder")

    movements = count_movements(description)
    if movements == 2:
        tags.append("Couplet")
    elif movements == 3:
        tags.append("Triplet")
    elif movements > 3:
        tags.append("Chipper")
    return order_tags(tags)


def classify_wod(wod: dict[str, Any]) -> dict[str, Any]:
    return {
        **wod,
        "category": classify_category(str(wod.get("wod_name") or "")),
        "tags": classify_tags(str(wod.get("description") or "")),
    }
