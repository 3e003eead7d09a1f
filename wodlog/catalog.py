import json
import logging
from pathlib import Path
from typing import Any

import requests

from wodlog import config, store
from wodlog.classifier import classify_wod
from wodlog.movements import parse_movements_from_wod
from wodlog.wod_utils import normalize_wod

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    pass


def load_catalog(path: Path | None = None) -> list[dict[str, Any]]:
    source = path or config.CATALOG_FILE
    try:
        raw = json.loads(Path(source).read_text())
    except (OSError, json.JSONDecodeError) as err:
        raise CatalogError(f"Failed to read WOD catalog {source}: {err}") from err
    if not isinstance(raw, list):
        raise CatalogError("WOD catalog must be a JSON array.")
    return raw


def fetch_catalog(url: str) -> list[dict[str, Any]]:
    resp = requests.get(url, headers={"Accept": "application/json"}, timeout=30)
    if resp.status_code != 200:
        raise CatalogError(f"Catalog request failed ({resp.status_code}): {resp.text[:200]}")
    try:
        data = resp.json()
    except ValueError as err:
        raise CatalogError("Catalog response was not valid JSON.") from err
    if not isinstance(data, list):
        raise CatalogError("WOD catalog must be a JSON array.")
    return data


def sync_catalog(entries: list[dict[str, Any]], update_existing: bool = True, dry_run: bool = False) -> dict[str, int]:
    stats = {"inserted": 0, "updated": 0, "unchanged": 0, "invalid": 0}
    existing = store.wods_by_name()
    for entry in entries:
        try:
            wod = normalize_wod(entry)
        except ValueError as err:
            logger.error("Skipping catalog entry %r: %s", entry.get("wod_name") if isinstance(entry, dict) else entry, err)
            stats["invalid"] += 1
            continue

        current = existing.get(wod["wod_name"])
        if current is None:
            stats["inserted"] += 1
            if not dry_run:
                created = store.insert_wod(wod)
                existing[wod["wod_name"]] = created
                store.set_wod_movements(created["id"], parse_movements_from_wod(created))
            continue

        changes = {k: v for k, v in wod.items() if current.get(k) != v}
        if not changes or not update_existing:
            stats["unchanged"] += 1
            continue
        stats["updated"] += 1
        if not dry_run:
            updated = store.update_wod(current["id"], changes)
            store.set_wod_movements(updated["id"], parse_movements_from_wod(updated))
    return stats


def ensure_seed_wods() -> int:
    if store.load_wods():
        return 0
    stats = sync_catalog(load_catalog(), update_existing=False)
    logger.info("Seeded %d WODs from bundled catalog", stats["inserted"])
    return stats["inserted"]


def populate_movements() -> int:
    count = 0
    for wod in store.load_wods():
        names = parse_movements_from_wod(wod)
        store.set_wod_movements(str(wod["id"]), names)
        count += len(names)
    return count


def classify_missing(dry_run: bool = False) -> list[dict[str, Any]]:
    changed: list[dict[str, Any]] = []
    for wod in store.load_wods():
        if wod.get("category") and wod.get("tags"):
            continue
        classified = classify_wod(wod)
        changes: dict[str, Any] = {}
        if not wod.get("category"):
            changes["category"] = classified["category"]
        if not wod.get("tags"):
            changes["tags"] = classified["tags"]
        changed.append({"id": wod["id"], "wod_name": wod.get("wod_name"), **changes})
        if not dry_run:
            store.update_wod(str(wod["id"]), changes)
    return changed


def find_duplicate_names() -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for wod in store.load_wods():
        name = str(wod.get("wod_name") or "")
        groups.setdefault(name.strip().casefold(), []).append(name)
    return {key: names for key, names in groups.items() if len(names) > 1}
