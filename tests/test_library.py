import json

import pytest

from quizsync.errors import AuthorizationError, QuizNotFoundError, RecordValidationError, StorageCapacityError
from quizsync.persistence import ChunkedStore, MemoryStoragePort
from quizsync.services.authorization_service import AuthorizationPolicy
from quizsync.services.library_service import QuizLibrary
from quizsync.storage import MemoryQuizStore

MASTER = "master-secret"


@pytest.fixture
def port():
    return MemoryStoragePort()


@pytest.fixture
def library(port):
    store = ChunkedStore(port, threshold=2_000, chunk_size=1_000)
    return QuizLibrary(store, key="quizzes", policy=AuthorizationPolicy(MASTER))


@pytest.fixture
def events(library):
    seen = []
    library.subscribe(lambda event, details: seen.append((event, details)))
    return seen


def test_load_without_stored_data_starts_empty(library, events):
    result = library.load()

    assert result.ok and not result.found
    assert library.quizzes == []
    assert events[0][0] == "loaded"


def test_added_quizzes_survive_reload(library, port, make_quiz):
    added = library.add_quiz(make_quiz(id=None, version=None))

    assert added["version"] == 1
    assert added["is_public"] is True

    reloaded = QuizLibrary(ChunkedStore(port, threshold=2_000, chunk_size=1_000), key="quizzes")
    reloaded.load()
    assert [quiz["id"] for quiz in reloaded.quizzes] == [added["id"]]


def test_large_library_is_stored_in_chunks(library, port, make_quiz):
    for index in range(10):
        library.add_quiz(make_quiz(id=f"q{index}"))

    assert port.get("quizzes").startswith("__CHUNKED__")

    reloaded = QuizLibrary(ChunkedStore(port, threshold=2_000, chunk_size=1_000), key="quizzes")
    reloaded.load()
    assert len(reloaded.quizzes) == 10


def test_add_defaults_to_private(library, make_quiz):
    quiz = make_quiz()
    del quiz["is_public"]

    assert library.add_quiz(quiz)["is_public"] is False


def test_add_rejects_invalid_quiz(library, make_quiz):
    with pytest.raises(RecordValidationError):
        library.add_quiz(make_quiz(title="  "))


def test_failed_save_keeps_memory_and_emits_event(make_quiz):
    library = QuizLibrary(ChunkedStore(MemoryStoragePort(quota=100), threshold=2_000, chunk_size=1_000))
    seen = []
    library.subscribe(lambda event, details: seen.append((event, details)))

    library.add_quiz(make_quiz(id="x"))

    assert [quiz["id"] for quiz in library.quizzes] == ["x"]
    event, details = seen[-1]
    assert event == "save_failed"
    assert isinstance(details["error"], StorageCapacityError)


def test_corrupt_storage_loads_as_empty(library, port):
    port.set("quizzes", json.dumps({"not": "a list"}))

    result = library.load()

    assert not result.ok
    assert library.quizzes == []


def test_update_checks_password_and_bumps_version(library, make_quiz):
    library.add_quiz(make_quiz(id="x", password="pw"))

    with pytest.raises(AuthorizationError):
        library.update_quiz("x", {"title": "Nope"}, password="wrong")

    updated = library.update_quiz("x", {"title": "Renamed"}, password="pw")
    assert updated["title"] == "Renamed"
    assert updated["version"] == 2


def test_delete_needs_master_secret(library, make_quiz):
    library.add_quiz(make_quiz(id="x"))

    with pytest.raises(AuthorizationError):
        library.delete_quiz("x", password="guess")
    library.delete_quiz("x", password=MASTER)

    with pytest.raises(QuizNotFoundError):
        library.get("x")


def test_record_attempt_updates_history(library, make_quiz):
    library.add_quiz(make_quiz(id="x"))

    attempt = library.record_attempt("x", ["Paris", "Rome"], 30)

    quiz = library.get("x")
    assert attempt["score"] == 2
    assert quiz["history"] == [attempt]
    assert quiz["last_taken"] == attempt["date"]
    assert quiz["version"] == 2


def test_merge_adds_new_quiz(library, make_quiz):
    library.add_quiz(make_quiz(id="a"))
    library.add_quiz(make_quiz(id="b"))

    merged = library.merge(["a", "b"], "Both", category="Custom")

    assert library.quizzes[-1] is merged
    assert merged["category"] == "Custom"
    assert len(merged["questions"]) == 4


def test_import_reconciles_and_emits(library, events, make_quiz):
    library.add_quiz(make_quiz(id="a", title="Local"))

    text = json.dumps([make_quiz(id="a", version=3, title="Imported"), make_quiz(id="b")])
    result = library.import_text(text)

    assert result.updated == ["a"] and result.created == ["b"]
    assert library.get("a")["title"] == "Imported"
    assert "imported" in [event for event, _ in events]


def test_export_round_trips_through_restore(library, make_quiz):
    library.add_quiz(make_quiz(id="a"))
    library.add_quiz(make_quiz(id="b"))
    backup = library.export_text()

    library.delete_quiz("a", password=MASTER)
    result = library.restore_backup(backup)

    assert result.created == ["a", "b"]
    assert [quiz["id"] for quiz in library.quizzes] == ["a", "b"]


def test_sync_pulls_newer_and_pushes_missing(library, make_quiz):
    remote = MemoryQuizStore()
    remote.put_quiz(make_quiz(id="shared", version=5, title="Remote"))
    remote.put_quiz(make_quiz(id="remote-only", version=1))

    library.add_quiz(make_quiz(id="shared", title="Local"))
    library.add_quiz(make_quiz(id="local-only"))

    result = library.sync(remote)

    assert library.get("shared")["title"] == "Remote"
    assert library.get("remote-only")
    assert result.pushed == ["local-only"]
    assert remote.get_quiz("local-only")["version"] == 1
    assert result.saved.ok


def test_sync_pushes_locally_newer_versions(library, make_quiz):
    remote = MemoryQuizStore()
    remote.put_quiz(make_quiz(id="x", version=1, title="Old"))
    library.add_quiz(make_quiz(id="x"))
    library.update_quiz("x", {"title": "Edited"})

    result = library.sync(remote)

    assert result.pushed == ["x"]
    assert remote.get_quiz("x")["title"] == "Edited"
    assert remote.get_quiz("x")["version"] == 2


def test_unsubscribe_and_failing_listener(library, make_quiz):
    calls = []

    def broken(event, details):
        raise RuntimeError("listener blew up")

    library.subscribe(broken)
    unsubscribe = library.subscribe(lambda event, details: calls.append(event))

    library.add_quiz(make_quiz(id="a"))
    unsubscribe()
    library.add_quiz(make_quiz(id="b"))

    assert calls == ["saved"]


def test_default_policy_uses_configured_master_secret(port, make_quiz, monkeypatch):
    from quizsync.services import authorization_service

    monkeypatch.setattr(authorization_service.authorization_policy, "master_secret", "configured")
    library = QuizLibrary(ChunkedStore(port, threshold=2_000, chunk_size=1_000))
    library.add_quiz(make_quiz(id="x"))

    library.delete_quiz("x", password="configured")

    assert library.quizzes == []
