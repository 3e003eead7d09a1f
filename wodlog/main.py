import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from wodlog import auth, config, pages, store
from wodlog.catalog import ensure_seed_wods
from wodlog.charts import get_chart_data
from wodlog.constants import SORT_FIELDS
from wodlog.importer import (
    CsvImportError,
    export_filename,
    export_rows,
    import_scores,
    process_import,
    to_csv,
    to_json,
)
from wodlog.scoring import normalize_score
from wodlog.wod_utils import (
    filter_wods,
    get_performance_level_tooltip,
    group_scores_by_wod,
    score_with_display,
    sort_wods,
    validate_wods,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    config.configure_logging()
    if config.AUTO_SEED:
        ensure_seed_wods()
    yield


app = FastAPI(title="wodlog", lifespan=lifespan)
api = APIRouter(prefix="/api")


@app.exception_handler(store.IntegrityError)
async def integrity_error_handler(_: Request, err: store.IntegrityError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(err)})


@app.exception_handler(CsvImportError)
async def csv_import_error_handler(_: Request, err: CsvImportError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(err)})


def load_validated_wods() -> list[dict[str, Any]]:
    rows = sorted(store.load_wods(), key=lambda w: str(w.get("wod_name", "")))
    return validate_wods(rows, store.movements_by_wod())


def find_wod(wod_id: str) -> dict[str, Any]:
    wod = next((w for w in load_validated_wods() if w["id"] == wod_id), None)
    if wod is None:
        raise HTTPException(status_code=404, detail="WOD not found.")
    return wod


def owned_score(score_id: str, user: dict[str, Any]) -> dict[str, Any]:
    score = store.get_score(score_id)
    if score is None or score.get("user_id") != user["id"]:
        raise HTTPException(status_code=404, detail="Score not found.")
    return score


# --- pages ---


@app.get("/", response_class=HTMLResponse)
def wods_page() -> str:
    return pages.wods_page()


@app.get("/favorites", response_class=HTMLResponse)
def favorites_page() -> str:
    return pages.favorites_page()


@app.get("/charts", response_class=HTMLResponse)
def charts_page() -> str:
    return pages.charts_page()


@app.get("/import", response_class=HTMLResponse)
def import_page() -> str:
    return pages.import_page()


@app.get("/login", response_class=HTMLResponse)
def login_page() -> str:
    return pages.auth_page("login")


@app.get("/signup", response_class=HTMLResponse)
def signup_page() -> str:
    return pages.auth_page("signup")


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


# --- auth ---


@api.post("/auth/signup")
def signup(response: Response, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    user = auth.register_user(payload)
    auth.start_session(response, user)
    return {"user": auth.public_user(user)}


@api.post("/auth/login")
def login(response: Response, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    user = auth.authenticate(payload)
    auth.start_session(response, user)
    return {"user": auth.public_user(user)}


@api.post("/auth/logout")
def logout(request: Request, response: Response) -> dict[str, bool]:
    auth.end_session(request, response)
    return {"ok": True}


@api.get("/auth/logout")
def logout_redirect(request: Request) -> RedirectResponse:
    response = RedirectResponse(url="/")
    auth.end_session(request, response)
    return response


@api.get("/auth/session")
def session(request: Request) -> dict[str, Any]:
    user = auth.optional_user(request)
    return {"user": auth.public_user(user) if user else None}


# --- wods ---


@api.get("/wods")
def list_wods(
    request: Request,
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    tags: list[str] = Query(default=[]),
    completion: str = Query(default="all"),
    sort_by: str = Query(default="wod_name"),
    sort_direction: str = Query(default="asc"),
) -> list[dict[str, Any]]:
    if sort_by not in SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"sort_by must be one of {sorted(SORT_FIELDS)}.")
    if sort_direction not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="sort_direction must be asc or desc.")
    if completion not in {"all", "done", "todo"}:
        raise HTTPException(status_code=400, detail="completion must be all, done or todo.")

    user = auth.optional_user(request)
    if user is None and completion != "all":
        raise HTTPException(status_code=401, detail="UNAUTHORIZED")
    scores_by_wod = group_scores_by_wod(store.scores_for_user(user["id"])) if user else {}

    wods = filter_wods(
        load_validated_wods(),
        category=category,
        tags=tags,
        completion=completion,
        search=search,
        scores_by_wod_id=scores_by_wod,
    )
    return sort_wods(wods, sort_by, sort_direction, scores_by_wod)


@api.get("/wods/favorites")
def favorite_wods(user: dict[str, Any] = Depends(auth.require_user)) -> list[dict[str, Any]]:
    ids = set(store.favorite_wod_ids(user["id"]))
    return [w for w in load_validated_wods() if w["id"] in ids]


@api.get("/wods/{wod_id}")
def get_wod(wod_id: str, request: Request) -> dict[str, Any]:
    wod = find_wod(wod_id)
    detail: dict[str, Any] = {**wod, "benchmark_ranges": get_performance_level_tooltip(wod)}
    user = auth.optional_user(request)
    if user:
        detail["scores"] = [
            score_with_display(wod, s) for s in store.scores_for_user(user["id"]) if s.get("wod_id") == wod_id
        ]
    return detail


# --- scores ---


@api.get("/scores")
def list_scores(user: dict[str, Any] = Depends(auth.require_user)) -> list[dict[str, Any]]:
    wods = {str(w.get("id")): w for w in store.load_wods()}
    return [score_with_display(wods.get(str(s.get("wod_id"))), s) for s in store.scores_for_user(user["id"])]


@api.post("/scores")
def log_score(
    payload: dict[str, Any] = Body(...),
    user: dict[str, Any] = Depends(auth.require_user),
) -> dict[str, Any]:
    wod_id = str(payload.get("wod_id", "")).strip()
    if not wod_id:
        raise HTTPException(status_code=400, detail="wod_id is required.")
    wod = find_wod(wod_id)
    created = store.insert_score({**normalize_score(payload, wod), "user_id": user["id"]})
    return score_with_display(wod, created)


@api.put("/scores/{score_id}")
def update_score(
    score_id: str,
    payload: dict[str, Any] = Body(...),
    user: dict[str, Any] = Depends(auth.require_user),
) -> dict[str, Any]:
    existing = owned_score(score_id, user)
    merged = {**existing, **payload}
    wod = find_wod(str(merged.get("wod_id", "")))
    updated = store.update_score(score_id, normalize_score(merged, wod))
    return score_with_display(wod, updated)


@api.delete("/scores/{score_id}")
def delete_score(score_id: str, user: dict[str, Any] = Depends(auth.require_user)) -> dict[str, bool]:
    owned_score(score_id, user)
    store.delete_score(score_id)
    return {"success": True}


@api.post("/scores/import")
def import_score_rows(
    payload: list[dict[str, Any]] = Body(...),
    user: dict[str, Any] = Depends(auth.require_user),
) -> dict[str, int]:
    return import_scores(user["id"], payload)


# --- favorites ---


@api.get("/favorites")
def favorite_ids(user: dict[str, Any] = Depends(auth.require_user)) -> list[str]:
    return store.favorite_wod_ids(user["id"])


@api.post("/favorites")
def add_favorite(
    payload: dict[str, Any] = Body(...),
    user: dict[str, Any] = Depends(auth.require_user),
) -> dict[str, Any]:
    wod_id = str(payload.get("wod_id", "")).strip()
    if not wod_id:
        raise HTTPException(status_code=400, detail="wod_id is required.")
    if store.get_wod(wod_id) is None:
        raise HTTPException(status_code=404, detail="WOD not found.")
    if not store.add_favorite(user["id"], wod_id):
        return {"success": True, "message": "WOD already favorited."}
    return {"success": True}


@api.delete("/favorites/{wod_id}")
def remove_favorite(wod_id: str, user: dict[str, Any] = Depends(auth.require_user)) -> dict[str, bool]:
    store.remove_favorite(user["id"], wod_id)
    return {"success": True}


# --- charts, import, export ---


@api.get("/charts")
def charts(user: dict[str, Any] = Depends(auth.require_user)) -> dict[str, Any]:
    return get_chart_data(user["id"])


@api.post("/import/preview")
async def import_preview(
    request: Request,
    format: str = Query(default="przilla"),
    user: dict[str, Any] = Depends(auth.require_user),
) -> dict[str, Any]:
    content = await request.body()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file.")
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as err:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded.") from err
    wods_by_name = {w["wod_name"]: w for w in load_validated_wods()}
    rows = process_import(text, format, wods_by_name)
    logger.info("Processed %d %s rows for user %s", len(rows), format, user["id"])
    return {"rows": rows, "selected": [r["id"] for r in rows if r["selected"]]}


@api.get("/export")
def export_scores(
    format: str = Query(default="csv"),
    user: dict[str, Any] = Depends(auth.require_user),
) -> Response:
    if format not in {"csv", "json"}:
        raise HTTPException(status_code=400, detail="format must be csv or json.")
    rows = export_rows(store.scores_for_user(user["id"]), store.load_wods())
    body = to_csv(rows) if format == "csv" else to_json(rows)
    media = "text/csv" if format == "csv" else "application/json"
    return Response(
        content=body,
        media_type=media,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(format)}"'},
    )


app.include_router(api)
