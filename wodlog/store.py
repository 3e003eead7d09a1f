import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from wodlog import config

FILE_LOCK = threading.RLock()

WODS = "wods"
SCORES = "scores"
MOVEMENTS = "movements"
WOD_MOVEMENTS = "wod_movements"
FAVORITES = "favorites"
USERS = "users"
SESSIONS = "sessions"


class IntegrityError(Exception):
    pass


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid4())


def read_json_file(path: Path, default: Any) -> Any:
    with FILE_LOCK:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError:
            return default


def write_json_file(path: Path, payload: Any) -> None:
    with FILE_LOCK:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2))


def table_path(name: str) -> Path:
    return Path(config.DATA_DIR) / f"{name}.json"


def load_table(name: str) -> list[dict[str, Any]]:
    raw = read_json_file(table_path(name), [])
    if isinstance(raw, list):
        return [row for row in raw if isinstance(row, dict)]
    return []


def save_table(name: str, rows: list[dict[str, Any]]) -> None:
    write_json_file(table_path(name), rows)


def row_index(rows: list[dict[str, Any]], row_id: str, key: str = "id") -> int:
    return next((i for i, row in enumerate(rows) if str(row.get(key)) == row_id), -1)


# --- wods ---


def load_wods() -> list[dict[str, Any]]:
    return load_table(WODS)


def get_wod(wod_id: str) -> dict[str, Any] | None:
    return next((w for w in load_wods() if w.get("id") == wod_id), None)


def wods_by_name() -> dict[str, dict[str, Any]]:
    return {str(w.get("wod_name")): w for w in load_wods() if w.get("wod_name")}


def _check_wod_unique(rows: list[dict[str, Any]], wod: dict[str, Any], skip_id: str | None = None) -> None:
    for row in rows:
        if skip_id and row.get("id") == skip_id:
            continue
        if row.get("wod_name") == wod.get("wod_name"):
            raise IntegrityError(f"WOD name already exists: {wod.get('wod_name')}")
        if wod.get("wod_url") and row.get("wod_url") == wod.get("wod_url"):
            raise IntegrityError(f"WOD url already exists: {wod.get('wod_url')}")


def insert_wod(wod: dict[str, Any]) -> dict[str, Any]:
    with FILE_LOCK:
        rows = load_wods()
        _check_wod_unique(rows, wod)
        now = utc_now()
        item = {
            "count_likes": 0,
            "tags": [],
            **wod,
            "id": wod.get("id") or new_id(),
            "created_at": wod.get("created_at") or now,
            "updated_at": None,
        }
        rows.append(item)
        save_table(WODS, rows)
        return item


def update_wod(wod_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    with FILE_LOCK:
        rows = load_wods()
        idx = row_index(rows, wod_id)
        if idx < 0:
            raise KeyError(wod_id)
        merged = {**rows[idx], **changes, "id": rows[idx]["id"], "created_at": rows[idx].get("created_at")}
        _check_wod_unique(rows, merged, skip_id=wod_id)
        merged["updated_at"] = utc_now()
        rows[idx] = merged
        save_table(WODS, rows)
        return merged


def delete_wod(wod_id: str) -> bool:
    with FILE_LOCK:
        rows = load_wods()
        kept = [w for w in rows if w.get("id") != wod_id]
        if len(kept) == len(rows):
            return False
        save_table(WODS, kept)
        save_table(SCORES, [s for s in load_table(SCORES) if s.get("wod_id") != wod_id])
        save_table(WOD_MOVEMENTS, [m for m in load_table(WOD_MOVEMENTS) if m.get("wod_id") != wod_id])
        save_table(FAVORITES, [f for f in load_table(FAVORITES) if f.get("wod_id") != wod_id])
        return True


# --- scores ---


def load_scores() -> list[dict[str, Any]]:
    return load_table(SCORES)


def scores_for_user(user_id: str) -> list[dict[str, Any]]:
    rows = [s for s in load_scores() if s.get("user_id") == user_id]
    return sorted(
        rows,
        key=lambda s: (str(s.get("score_date", "")), str(s.get("created_at", ""))),
        reverse=True,
    )


def get_score(score_id: str) -> dict[str, Any] | None:
    return next((s for s in load_scores() if s.get("id") == score_id), None)


def insert_scores(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    with FILE_LOCK:
        wod_ids = {w.get("id") for w in load_wods()}
        user_ids = {u.get("id") for u in load_table(USERS)}
        for item in items:
            if item.get("wod_id") not in wod_ids:
                raise IntegrityError(f"Unknown wod_id: {item.get('wod_id')}")
            if item.get("user_id") not in user_ids:
                raise IntegrityError(f"Unknown user_id: {item.get('user_id')}")
        now = utc_now()
        created = [{**item, "id": new_id(), "created_at": now, "updated_at": None} for item in items]
        rows = load_scores()
        rows.extend(created)
        save_table(SCORES, rows)
        return created


def insert_score(item: dict[str, Any]) -> dict[str, Any]:
    return insert_scores([item])[0]


def update_score(score_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    with FILE_LOCK:
        rows = load_scores()
        idx = row_index(rows, score_id)
        if idx < 0:
            raise KeyError(score_id)
        existing = rows[idx]
        merged = {
            **existing,
            **changes,
            "id": existing["id"],
            "user_id": existing["user_id"],
            "created_at": existing.get("created_at"),
            "updated_at": utc_now(),
        }
        if merged.get("wod_id") != existing.get("wod_id") and get_wod(str(merged.get("wod_id"))) is None:
            raise IntegrityError(f"Unknown wod_id: {merged.get('wod_id')}")
        rows[idx] = merged
        save_table(SCORES, rows)
        return merged


def delete_score(score_id: str) -> bool:
    with FILE_LOCK:
        rows = load_scores()
        kept = [s for s in rows if s.get("id") != score_id]
        if len(kept) == len(rows):
            return False
        save_table(SCORES, kept)
        return True


# --- movements ---


def load_movements() -> list[dict[str, Any]]:
    return load_table(MOVEMENTS)


def set_wod_movements(wod_id: str, names: list[str]) -> None:
    with FILE_LOCK:
        movements = load_movements()
        by_name = {str(m.get("name")): m for m in movements}
        for name in names:
            if name not in by_name:
                row = {"id": new_id(), "name": name}
                movements.append(row)
                by_name[name] = row
        save_table(MOVEMENTS, movements)
        links = [link for link in load_table(WOD_MOVEMENTS) if link.get("wod_id") != wod_id]
        seen: set[str] = set()
        for name in names:
            movement_id = by_name[name]["id"]
            if movement_id in seen:
                continue
            seen.add(movement_id)
            links.append({"wod_id": wod_id, "movement_id": movement_id})
        save_table(WOD_MOVEMENTS, links)


def movements_by_wod() -> dict[str, list[str]]:
    names = {m.get("id"): str(m.get("name")) for m in load_movements()}
    out: dict[str, list[str]] = {}
    for link in load_table(WOD_MOVEMENTS):
        name = names.get(link.get("movement_id"))
        if not name:
            continue
        out.setdefault(str(link.get("wod_id")), []).append(name)
    return out


# --- favorites ---


def favorite_wod_ids(user_id: str) -> list[str]:
    return [str(f.get("wod_id")) for f in load_table(FAVORITES) if f.get("user_id") == user_id]


def add_favorite(user_id: str, wod_id: str) -> bool:
    with FILE_LOCK:
        rows = load_table(FAVORITES)
        if any(f.get("user_id") == user_id and f.get("wod_id") == wod_id for f in rows):
            return False
        if get_wod(wod_id) is None:
            raise IntegrityError(f"Unknown wod_id: {wod_id}")
        if get_user(user_id) is None:
            raise IntegrityError(f"Unknown user_id: {user_id}")
        rows.append({"user_id": user_id, "wod_id": wod_id, "created_at": utc_now()})
        save_table(FAVORITES, rows)
        return True


def remove_favorite(user_id: str, wod_id: str) -> bool:
    with FILE_LOCK:
        rows = load_table(FAVORITES)
        kept = [f for f in rows if not (f.get("user_id") == user_id and f.get("wod_id") == wod_id)]
        if len(kept) == len(rows):
            return False
        save_table(FAVORITES, kept)
        return True


# --- users and sessions ---


def get_user(user_id: str) -> dict[str, Any] | None:
    return next((u for u in load_table(USERS) if u.get("id") == user_id), None)


def get_user_by_email(email: str) -> dict[str, Any] | None:
    needle = email.strip().lower()
    return next((u for u in load_table(USERS) if u.get("email") == needle), None)


def insert_user(user: dict[str, Any]) -> dict[str, Any]:
    with FILE_LOCK:
        rows = load_table(USERS)
        email = str(user.get("email", "")).strip().lower()
        if any(u.get("email") == email for u in rows):
            raise IntegrityError("Email already registered.")
        item = {**user, "id": new_id(), "email": email, "created_at": utc_now()}
        rows.append(item)
        save_table(USERS, rows)
        return item


def delete_user(user_id: str) -> bool:
    with FILE_LOCK:
        rows = load_table(USERS)
        kept = [u for u in rows if u.get("id") != user_id]
        if len(kept) == len(rows):
            return False
        save_table(USERS, kept)
        save_table(SCORES, [s for s in load_scores() if s.get("user_id") != user_id])
        save_table(FAVORITES, [f for f in load_table(FAVORITES) if f.get("user_id") != user_id])
        save_table(SESSIONS, [s for s in load_table(SESSIONS) if s.get("user_id") != user_id])
        return True


def insert_session(session: dict[str, Any]) -> dict[str, Any]:
    with FILE_LOCK:
        now = utc_now()
        rows = [s for s in load_table(SESSIONS) if str(s.get("expires", "")) > now]
        rows.append(session)
        save_table(SESSIONS, rows)
        return session


def get_session(token: str) -> dict[str, Any] | None:
    return next((s for s in load_table(SESSIONS) if s.get("token") == token), None)


def delete_session(token: str) -> None:
    with FILE_LOCK:
        rows = load_table(SESSIONS)
        kept = [s for s in rows if s.get("token") != token]
        if len(kept) != len(rows):
            save_table(SESSIONS, kept)
