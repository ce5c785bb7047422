"""Tests for JobStore."""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from appforge.core.errors import DuplicateJobError, InvalidTransitionError, JobNotFoundError, StaleJobError
from appforge.core.workflow import JobStatus, JobType
from appforge.db.session import make_engine
from appforge.db.store import JobStore


def test_create_and_read(store):
    created = store.create("job-1", {"type": "generate", "description": "A todo app", "platforms": ["web"]})

    assert created.id == "job-1"
    assert created.type == JobType.GENERATE
    assert created.status == JobStatus.CREATED
    assert created.progress == 0
    assert created.result is None and created.error is None
    assert created.payload == {"description": "A todo app", "platforms": ["web"]}

    assert store.read("job-1") == created


def test_create_duplicate_raises(store):
    store.create("job-1", {"type": "analyze"})
    with pytest.raises(DuplicateJobError):
        store.create("job-1", {"type": "analyze"})


def test_read_missing_returns_none(store):
    assert store.read("nope") is None
    with pytest.raises(JobNotFoundError):
        store.get("nope")


def test_update_missing_raises(store):
    with pytest.raises(JobNotFoundError):
        store.update("nope", {"status": JobStatus.EXTRACTING})


def test_update_merges_columns_and_payload(store):
    store.create("job-1", {"type": "generate", "description": "desc"})
    updated = store.update("job-1", {"status": JobStatus.ANALYZING, "progress": 30, "planning_data": {"a": 1}})

    assert updated.status == JobStatus.ANALYZING
    assert updated.progress == 30
    assert updated.payload == {"description": "desc", "planning_data": {"a": 1}}
    assert updated.updated_at >= updated.created_at


def test_update_rejects_immutable_fields_and_bad_progress(store):
    store.create("job-1", {"type": "generate"})
    with pytest.raises(ValueError):
        store.update("job-1", {"type": "analyze"})
    with pytest.raises(ValueError):
        store.update("job-1", {"progress": 101})
    assert store.get("job-1").type == JobType.GENERATE


def test_update_with_expected_status(store):
    store.create("job-1", {"type": "generate"})
    store.update("job-1", {"status": JobStatus.EXTRACTING}, expected_status=JobStatus.CREATED)

    with pytest.raises(StaleJobError) as exc_info:
        store.update("job-1", {"status": JobStatus.ANALYZING}, expected_status=JobStatus.CREATED)
    assert exc_info.value.actual == "extracting"
    assert store.get("job-1").status == JobStatus.EXTRACTING


def test_list_newest_first_with_paging(store):
    base = datetime(2026, 1, 1, 12, 0, 0)
    for i in range(5):
        store.create(f"job-{i}", {"type": "generate", "created_at": base + timedelta(minutes=i)})

    assert [j.id for j in store.list()] == ["job-4", "job-3", "job-2", "job-1", "job-0"]
    assert [j.id for j in store.list(limit=2, offset=1)] == ["job-3", "job-2"]
    assert store.count() == 5


def test_delete(store):
    store.create("job-1", {"type": "generate"})
    assert store.delete("job-1") is True
    assert store.read("job-1") is None
    assert store.delete("job-1") is False


def test_purge_older_than_only_matching_statuses(store):
    now = datetime(2026, 6, 1)
    old = now - timedelta(days=10)
    store.create("old-done", {"type": "generate", "created_at": old})
    store.update("old-done", {"status": JobStatus.COMPLETED})
    store.create("old-failed", {"type": "generate", "created_at": old})
    store.update("old-failed", {"status": JobStatus.FAILED})
    store.create("old-running", {"type": "generate", "created_at": old})
    store.update("old-running", {"status": JobStatus.GENERATING})
    store.create("new-done", {"type": "generate", "created_at": now - timedelta(days=1)})
    store.update("new-done", {"status": JobStatus.COMPLETED})

    purged = store.purge_older_than(timedelta(days=7), now=now)

    assert sorted(purged) == ["old-done", "old-failed"]
    assert {j.id for j in store.list()} == {"old-running", "new-done"}


@pytest.fixture
def second_store(tmp_path, session_factory):
    """A JobStore on its own engine over the same database file, like another process."""
    engine = make_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    yield JobStore(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))
    engine.dispose()


def test_concurrent_updates_same_job_do_not_lose_fields(store):
    """Every concurrent read-merge-write must survive; none may overwrite another's payload key."""
    store.create("job-1", {"type": "generate"})

    def write(i):
        return store.update("job-1", {f"key_{i}": i})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, range(24)))

    job = store.get("job-1")
    assert all(job.payload[f"key_{i}"] == i for i in range(24))


def test_concurrent_updates_from_two_stores_do_not_lose_fields(store, second_store):
    store.create("job-1", {"type": "generate"})
    stores = [store, second_store]

    def write(i):
        return stores[i % 2].update("job-1", {f"key_{i}": i})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, range(40)))

    payload = store.get("job-1").payload
    missing = [i for i in range(40) if payload.get(f"key_{i}") != i]
    assert missing == []


def test_guarded_updates_from_two_stores_have_exactly_one_winner(store, second_store):
    """A cancel racing a stage transition: one write lands, the other sees StaleJobError."""
    for trial in range(15):
        job_id = f"job-{trial}"
        store.create(job_id, {"type": "generate"})
        store.update(job_id, {"status": JobStatus.EXTRACTING, "progress": 10})
        barrier = threading.Barrier(2)

        def attempt(target_store, fields):
            barrier.wait()
            try:
                target_store.update(job_id, fields, expected_status=JobStatus.EXTRACTING)
                return fields["status"]
            except StaleJobError:
                return None

        with ThreadPoolExecutor(max_workers=2) as pool:
            cancel = pool.submit(attempt, store, {"status": JobStatus.CANCELLED})
            advance = pool.submit(attempt, second_store, {"status": JobStatus.ANALYZING, "progress": 30})
            outcomes = [cancel.result(), advance.result()]

        winners = [o for o in outcomes if o is not None]
        assert len(winners) == 1, (job_id, outcomes)
        assert store.get(job_id).status == winners[0]


def test_store_keeps_no_per_job_state(store):
    for i in range(50):
        store.create(f"job-{i}", {"type": "generate"})
        store.update(f"job-{i}", {"progress": 5})
    assert not any(isinstance(v, dict) and len(v) >= 50 for v in vars(store).values())


def test_status_never_moves_backwards(store):
    store.create("job-1", {"type": "generate"})
    store.update("job-1", {"status": JobStatus.ANALYZING, "progress": 30})

    with pytest.raises(InvalidTransitionError):
        store.update("job-1", {"status": JobStatus.EXTRACTING})

    store.update("job-1", {"status": JobStatus.COMPLETED, "progress": 100})
    for target in (JobStatus.EXTRACTING, JobStatus.FAILED, JobStatus.CANCELLED):
        with pytest.raises(InvalidTransitionError):
            store.update("job-1", {"status": target})
    assert store.get("job-1").status == JobStatus.COMPLETED


def test_progress_never_decreases(store):
    store.create("job-1", {"type": "generate"})
    store.update("job-1", {"status": JobStatus.ANALYZING, "progress": 30})

    with pytest.raises(ValueError):
        store.update("job-1", {"progress": 10})

    job = store.update("job-1", {"progress": 30, "note": "same progress is fine"})
    assert job.progress == 30
    assert job.payload["note"] == "same progress is fine"
