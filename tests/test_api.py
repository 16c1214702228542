MASTER = "master-secret"


def create(client, quiz):
    response = client.post("/api/quizzes/", json=quiz)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["store"] == "memory"


def test_create_and_get_quiz(client, make_quiz):
    created = create(client, make_quiz(id=None, version=None))

    assert created["version"] == 1
    fetched = client.get(f"/api/quizzes/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Capitals"
    assert len(fetched.json()["questions"]) == 2


def test_create_duplicate_id_conflicts(client, make_quiz):
    create(client, make_quiz(id="x"))

    response = client.post("/api/quizzes/", json=make_quiz(id="x"))

    assert response.status_code == 409


def test_create_rejects_quiz_without_questions(client, make_quiz):
    quiz = make_quiz()
    del quiz["questions"]

    assert client.post("/api/quizzes/", json=quiz).status_code == 422


def test_missing_quiz_uses_error_format(client):
    response = client.get("/api/quizzes/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "error": "http_error",
        "message": "Quiz not found",
        "status_code": 404,
    }


def test_list_shows_public_quizzes_with_filters(client, make_quiz):
    create(client, make_quiz(id="a", title="Algebra", category="Mathematics"))
    create(client, make_quiz(id="b", title="Biology", category="Science"))
    create(client, make_quiz(id="c", title="Secret", is_public=False))

    listed = client.get("/api/quizzes/").json()
    assert [quiz["id"] for quiz in listed] == ["a", "b"]

    by_category = client.get("/api/quizzes/", params={"category": "Science"}).json()
    assert [quiz["id"] for quiz in by_category] == ["b"]

    by_query = client.get("/api/quizzes/", params={"q": "algebra"}).json()
    assert [quiz["id"] for quiz in by_query] == ["a"]


def test_update_protected_quiz_needs_password(client, make_quiz):
    create(client, make_quiz(id="x", password="pw"))

    denied = client.put("/api/quizzes/x", json={"title": "Hijacked"})
    assert denied.status_code == 403

    allowed = client.put("/api/quizzes/x", json={"title": "Renamed"}, headers={"X-Quiz-Password": "pw"})
    assert allowed.status_code == 200
    assert allowed.json()["title"] == "Renamed"
    assert allowed.json()["version"] == 2

    master = client.put("/api/quizzes/x", json={"timer": 30}, headers={"X-Quiz-Password": MASTER})
    assert master.json()["version"] == 3


def test_update_without_changes_is_rejected(client, make_quiz):
    create(client, make_quiz(id="x"))
    assert client.put("/api/quizzes/x", json={}).status_code == 400


def test_delete_requires_master_secret(client, make_quiz):
    create(client, make_quiz(id="x", password="pw"))

    assert client.delete("/api/quizzes/x", headers={"X-Quiz-Password": "pw"}).status_code == 403
    assert client.delete("/api/quizzes/x", headers={"X-Quiz-Password": MASTER}).status_code == 204
    assert client.get("/api/quizzes/x").status_code == 404
    assert client.delete("/api/quizzes/x", headers={"X-Quiz-Password": MASTER}).status_code == 404


def test_sync_reports_each_record(client, make_quiz):
    create(client, make_quiz(id="a", title="A1"))
    broken = make_quiz(id="broken")
    del broken["title"]

    response = client.post("/api/quizzes/sync", json={"quizzes": [
        make_quiz(id="a", version=2, title="A2"),
        broken,
        make_quiz(id="n", title="New"),
    ]})

    assert response.status_code == 200
    body = response.json()
    assert body["updated"] == ["a"]
    assert body["created"] == ["n"]
    assert body["skipped"] == []
    assert len(body["errors"]) == 1
    assert body["errors"][0]["position"] == 1
    assert body["errors"][0]["record_id"] == "broken"
    assert {quiz["id"]: quiz["title"] for quiz in body["quizzes"]} == {"a": "A2", "n": "New"}


def test_sync_keeps_newer_server_copy(client, make_quiz):
    client.post("/api/quizzes/sync", json={"quizzes": [make_quiz(id="a", version=4, title="Server")]})

    body = client.post("/api/quizzes/sync", json={"quizzes": [make_quiz(id="a", version=2, title="Stale")]}).json()

    assert body["skipped"] == ["a"]
    assert body["quizzes"][0]["title"] == "Server"
    assert body["quizzes"][0]["version"] == 4


def test_submit_attempt_records_history(client, make_quiz):
    create(client, make_quiz(id="x"))

    response = client.post("/api/quizzes/x/attempts", json={"answers": ["Paris", None], "time_spent": 999})

    assert response.status_code == 201
    attempt = response.json()
    assert attempt["score"] == 1
    assert attempt["time_spent"] == 120

    quiz = client.get("/api/quizzes/x").json()
    assert len(quiz["history"]) == 1
    assert quiz["last_taken"] is not None
    assert quiz["version"] == 2


def test_merge_creates_private_quiz(client, make_quiz):
    create(client, make_quiz(id="a", timer=30))
    create(client, make_quiz(id="b", timer=200))

    response = client.post("/api/quizzes/merge", json={"quiz_ids": ["a", "b"], "title": "Combined"})

    assert response.status_code == 201
    merged = response.json()
    assert len(merged["questions"]) == 4
    assert merged["timer"] == 115
    assert merged["is_public"] is False
    assert client.get(f"/api/quizzes/{merged['id']}").status_code == 200


def test_merge_unknown_quiz(client, make_quiz):
    create(client, make_quiz(id="a"))

    response = client.post("/api/quizzes/merge", json={"quiz_ids": ["a", "zzz"], "title": "Combined"})

    assert response.status_code == 404


def test_export_then_import_into_empty_store(client, make_quiz, memory_store):
    create(client, make_quiz(id="a"))
    create(client, make_quiz(id="b", title="Second"))

    exported = client.get("/api/quizzes/export", params={"ids": ["b"]}).json()
    assert exported["count"] == 1
    assert exported["encoded"] is True

    memory_store.delete_quiz("b")
    response = client.post("/api/quizzes/import", json={"text": exported["content"]})

    assert response.status_code == 200
    assert response.json()["created"] == ["b"]
    assert client.get("/api/quizzes/b").json()["title"] == "Second"


def test_export_unknown_ids(client, make_quiz):
    create(client, make_quiz(id="a"))
    assert client.get("/api/quizzes/export", params={"ids": ["a", "nope"]}).status_code == 404


def test_import_rejects_garbage(client):
    response = client.post("/api/quizzes/import", json={"text": "definitely not a quiz"})

    assert response.status_code == 400
    assert response.json()["error"] == "http_error"


def test_import_file_upload(client, make_quiz):
    payload = '[{"id": "f1", "title": "From file", "questions": [{"question": "1+1?", "options": ["2"], "correctAnswer": "2"}]}]'

    response = client.post(
        "/api/quizzes/import/file",
        files={"file": ("quizzes.json", payload.encode("utf-8"), "application/json")},
    )

    assert response.status_code == 200
    assert response.json()["created"] == ["f1"]
    # imports are private unless the file says otherwise
    assert client.get("/api/quizzes/").json() == []
    assert client.get("/api/quizzes/f1").json()["is_public"] is False


def test_attempts_and_merges_clear_cached_listings(client, make_quiz, monkeypatch):
    from unittest.mock import MagicMock

    from quizsync.api import quizzes

    cache = MagicMock()
    cache.get.return_value = None
    monkeypatch.setattr(quizzes, "cache_service", cache)
    create(client, make_quiz(id="a"))
    create(client, make_quiz(id="b"))
    cache.invalidate_listings.reset_mock()

    client.post("/api/quizzes/a/attempts", json={"answers": ["Paris"], "time_spent": 10})
    assert cache.invalidate_listings.call_count == 1

    client.post("/api/quizzes/merge", json={"quiz_ids": ["a", "b"], "title": "Combined"})
    assert cache.invalidate_listings.call_count == 2
