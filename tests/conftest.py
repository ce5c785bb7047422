"""Shared fixtures: a throwaway SQLite job store and per-test workspaces."""
from pathlib import Path
from typing import Callable

import pytest
from sqlalchemy.orm import sessionmaker

from appforge.db.session import Base, make_engine
from appforge.db.store import JobStore
from appforge.workspace.manager import WorkspaceManager


@pytest.fixture
def session_factory(tmp_path: Path) -> sessionmaker:
    engine = make_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> JobStore:
    return JobStore(session_factory)


@pytest.fixture
def workspace_factory(tmp_path: Path) -> Callable[[str], WorkspaceManager]:
    base = tmp_path / "workspaces"
    return lambda job_id: WorkspaceManager(job_id, base_dir=base)
