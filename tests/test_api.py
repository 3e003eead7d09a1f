from fastapi.testclient import TestClient

from wodlog import store
from wodlog.main import app


def wod_id(catalog, name):
    return catalog[name]["id"]


def post_score(client, wod, **values):
    payload = {"wod_id": wod, "score_date": "2024-01-15", "is_rx": True, **values}
    return client.post("/api/scores", json=payload)


def test_health_and_pages(client):
    assert client.get("/health").json() == {"ok": True}
    for path in ("/", "/favorites", "/charts", "/import", "/login", "/signup"):
        resp = client.get(path)
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
    home = client.get("/").text
    assert 'data-sort="level"' in home
    assert 'data-sort="attempts"' in home


def test_signup_login_logout(client):
    resp = client.post("/api/auth/signup", json={"email": "A@B.com", "password": "longenough"})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "a@b.com"
    assert client.get("/api/auth/session").json()["user"]["email"] == "a@b.com"

    assert client.post("/api/auth/logout").json() == {"ok": True}
    assert client.get("/api/auth/session").json() == {"user": None}

    bad = client.post("/api/auth/login", json={"email": "a@b.com", "password": "wrong-password"})
    assert bad.status_code == 401
    good = client.post("/api/auth/login", json={"email": "a@b.com", "password": "longenough"})
    assert good.status_code == 200
    assert client.get("/api/scores").status_code == 200


def test_signup_validation(client):
    assert client.post("/api/auth/signup", json={"email": "nope", "password": "longenough"}).status_code == 400
    assert client.post("/api/auth/signup", json={"email": "a@b.com", "password": "short"}).status_code == 400
    assert client.post("/api/auth/signup", json={"email": "a@b.com", "password": "longenough"}).status_code == 200
    dup = TestClient(app).post("/api/auth/signup", json={"email": "a@b.com", "password": "longenough"})
    assert dup.status_code == 409


def test_protected_routes_require_login(client, catalog):
    assert client.get("/api/scores").status_code == 401
    assert post_score(client, wod_id(catalog, "Fran"), time_seconds=200).status_code == 401
    assert client.get("/api/favorites").status_code == 401
    assert client.get("/api/charts").status_code == 401
    assert client.get("/api/export").status_code == 401
    assert client.get("/api/wods?completion=done").status_code == 401


def test_list_wods_anonymous(client, catalog):
    wods = client.get("/api/wods").json()
    names = [w["wod_name"] for w in wods]
    assert names == sorted(names, key=str.casefold)
    fran = next(w for w in wods if w["wod_name"] == "Fran")
    assert fran["movements"] == ["Thruster", "Pull-ups"]
    assert fran["tags"] == ["For Time", "Couplet"]


def test_list_wods_filters(client, catalog):
    girls = client.get("/api/wods", params={"category": "Girl"}).json()
    assert girls and all(w["category"] == "Girl" for w in girls)

    amraps = client.get("/api/wods", params={"tags": "AMRAP"}).json()
    assert [w["wod_name"] for w in amraps] == ["Cindy"]

    found = client.get("/api/wods", params={"search": "thrusters"}).json()
    assert [w["wod_name"] for w in found] == ["Fran"]

    by_likes = client.get("/api/wods", params={"sort_by": "count_likes", "sort_direction": "desc"}).json()
    assert by_likes[0]["wod_name"] == "Murph"


def test_list_wods_rejects_bad_params(client, catalog):
    assert client.get("/api/wods", params={"sort_by": "nope"}).status_code == 400
    assert client.get("/api/wods", params={"sort_direction": "up"}).status_code == 400
    assert client.get("/api/wods", params={"completion": "maybe"}).status_code == 400


def test_wod_detail(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    post_score(user_client, fran, time_seconds=170)
    detail = user_client.get(f"/api/wods/{fran}").json()
    assert detail["benchmark_ranges"][0] == {"level_name": "Elite", "color": "purple", "formatted_range": "0:00 - 3:00"}
    assert detail["scores"][0]["level"] == "elite"
    assert user_client.get("/api/wods/missing").status_code == 404


def test_score_lifecycle(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    created = post_score(user_client, fran, time_seconds=185, notes="  ok  ")
    assert created.status_code == 200
    score = created.json()
    assert score["display_score"] == "3:05 Rx"
    assert score["display_date"] == "Jan 15, '24"
    assert score["level"] == "advanced"
    assert score["badge"] == {"display_level": "Advanced", "color": "green"}
    assert score["notes"] == "ok"

    updated = user_client.put(f"/api/scores/{score['id']}", json={"time_seconds": 175})
    assert updated.status_code == 200
    assert updated.json()["level"] == "elite"
    assert updated.json()["score_date"] == "2024-01-15"

    assert user_client.delete(f"/api/scores/{score['id']}").json() == {"success": True}
    assert user_client.get("/api/scores").json() == []
    assert user_client.delete(f"/api/scores/{score['id']}").status_code == 404


def test_score_validation_errors(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    assert post_score(user_client, fran).status_code == 400
    assert post_score(user_client, fran, time_seconds=601).status_code == 400
    assert post_score(user_client, fran, time_seconds=600).status_code == 400
    assert post_score(user_client, fran, time_seconds=600, reps=120).status_code == 200
    assert post_score(user_client, "missing", reps=1).status_code == 404
    assert user_client.post("/api/scores", json={"score_date": "2024-01-01", "reps": 1}).status_code == 400


def test_scores_are_private(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    score = post_score(user_client, fran, time_seconds=200).json()

    other = TestClient(app)
    other.post("/api/auth/signup", json={"email": "other@example.com", "password": "longenough"})
    assert other.get("/api/scores").json() == []
    assert other.put(f"/api/scores/{score['id']}", json={"reps": 1}).status_code == 404
    assert other.delete(f"/api/scores/{score['id']}").status_code == 404


def test_completion_filter_and_date_sort(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    cindy = wod_id(catalog, "Cindy")
    post_score(user_client, fran, time_seconds=200, score_date="2024-02-01")
    post_score(user_client, cindy, rounds_completed=20, score_date="2024-01-01")

    done = user_client.get("/api/wods", params={"completion": "done", "sort_by": "date"}).json()
    assert [w["wod_name"] for w in done] == ["Cindy", "Fran"]
    todo = user_client.get("/api/wods", params={"completion": "todo"}).json()
    assert "Fran" not in [w["wod_name"] for w in todo]


def test_favorites(user_client, catalog):
    fran = wod_id(catalog, "Fran")
    assert user_client.post("/api/favorites", json={"wod_id": fran}).json() == {"success": True}
    again = user_client.post("/api/favorites", json={"wod_id": fran}).json()
    assert again["message"] == "WOD already favorited."
    assert user_client.get("/api/favorites").json() == [fran]
    assert [w["wod_name"] for w in user_client.get("/api/wods/favorites").json()] == ["Fran"]
    assert user_client.post("/api/favorites", json={"wod_id": "missing"}).status_code == 404
    assert user_client.delete(f"/api/favorites/{fran}").json() == {"success": True}
    assert user_client.get("/api/favorites").json() == []


def test_import_preview_and_commit(user_client, catalog):
    csv_text = (
        "WOD Name,Date,Score (time),Score (reps),Score (rounds),Score (partial reps),Score (load),Rx,Notes\n"
        "Fran,2024-01-15,185,,,,,Yes,\n"
        "Nobody,2024-01-16,100,,,,,Yes,\n"
    )
    resp = user_client.post(
        "/api/import/preview?format=przilla",
        content=csv_text.encode("utf-8"),
        headers={"Content-Type": "text/csv"},
    )
    assert resp.status_code == 200
    preview = resp.json()
    assert preview["selected"] == ["row-0"]
    assert preview["rows"][1]["validation"]["errors"] == ["No matching WOD found"]

    scores = [r["proposed_score"] for r in preview["rows"] if r["id"] in preview["selected"]]
    assert user_client.post("/api/scores/import", json=scores).json() == {"count": 1}
    assert len(user_client.get("/api/scores").json()) == 1


def test_import_preview_only_selects_importable_rows(user_client, catalog):
    csv_text = (
        "WOD Name,Date,Score (time),Score (reps),Score (rounds),Score (partial reps),Score (load),Rx,Notes\n"
        "Fran,2024-01-15,185,,,,,Yes,\n"
        "Fran,2024-01-16,9999,,,,,Yes,\n"
    )
    preview = user_client.post(
        "/api/import/preview?format=przilla",
        content=csv_text.encode("utf-8"),
        headers={"Content-Type": "text/csv"},
    ).json()
    assert preview["selected"] == ["row-0"]
    assert preview["rows"][1]["validation"]["is_valid"] is False

    scores = [r["proposed_score"] for r in preview["rows"] if r["id"] in preview["selected"]]
    assert user_client.post("/api/scores/import", json=scores).json() == {"count": 1}


def test_import_preview_errors(user_client, catalog):
    empty = user_client.post("/api/import/preview", content=b"", headers={"Content-Type": "text/csv"})
    assert empty.status_code == 400
    bad_format = user_client.post(
        "/api/import/preview?format=excel", content=b"a,b\n1,2\n", headers={"Content-Type": "text/csv"}
    )
    assert bad_format.status_code == 400
    assert user_client.post("/api/scores/import", json=[]).status_code == 400


def test_import_preview_without_catalog(user_client):
    resp = user_client.post(
        "/api/import/preview", content=b"WOD Name,Date\nFran,2024-01-01\n", headers={"Content-Type": "text/csv"}
    )
    assert resp.status_code == 400
    assert "WOD data not available" in resp.json()["detail"]


def test_export(user_client, catalog):
    post_score(user_client, wod_id(catalog, "Fran"), time_seconds=185, notes="pr")

    resp = user_client.get("/api/export", params={"format": "csv"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "wodlog-scores-" in resp.headers["content-disposition"]
    assert '"Fran","2024-01-15","185"' in resp.text

    data = user_client.get("/api/export", params={"format": "json"}).json()
    assert data[0]["WOD Name"] == "Fran"
    assert data[0]["Notes"] == "pr"
    assert user_client.get("/api/export", params={"format": "xml"}).status_code == 400


def test_charts_endpoint(user_client, catalog):
    post_score(user_client, wod_id(catalog, "Fran"), time_seconds=150)
    data = user_client.get("/api/charts").json()
    assert data["frequency_data"] == [{"month": "2024-01", "count": 1}]
    assert data["category_counts"] == {"Girl": 1}


def test_deleted_user_session_is_ignored(user_client):
    user = store.get_user_by_email("athlete@example.com")
    store.delete_user(user["id"])
    assert user_client.get("/api/auth/session").json() == {"user": None}
