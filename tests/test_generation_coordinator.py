"""Tests for the multi-platform fan-out."""
import asyncio
import time

import pytest

from appforge.core.errors import GenerationError
from appforge.generators.coordinator import UNSUPPORTED_PLATFORM, GenerationCoordinator
from appforge.generators.registry import PlatformRegistry
from appforge.generators.types import PlatformOutput
from tests.helpers import PLANNING


class FakeGenerator:
    def __init__(self, platform, delay=0.0, files=None, error=None):
        self.platform = platform
        self.delay = delay
        self.files = files or [f"{platform}/main.txt"]
        self.error = error
        self.calls = 0
        self.finished = False

    async def generate(self, spec, out_dir):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.finished = True
        return PlatformOutput(files=list(self.files), summary={"platform": self.platform})


def _coordinator(*generators):
    return GenerationCoordinator(PlatformRegistry(mapping={g.platform: g for g in generators}))


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_the_others(tmp_path):
    ios = FakeGenerator("ios", files=["App.swift", "ContentView.swift"])
    web = FakeGenerator("web", error=GenerationError("web", "web generation failed: bad json"))

    results = await _coordinator(ios, web).generate_all(PLANNING, ["ios", "web"], tmp_path)

    assert list(results) == ["ios", "web"]
    assert results["ios"].success and results["ios"].files == ["App.swift", "ContentView.swift"]
    assert not results["web"].success
    assert "bad json" in results["web"].error
    assert results["ios"].to_dict() == {
        "success": True, "files": ["App.swift", "ContentView.swift"], "structure": {"platform": "ios"},
    }


@pytest.mark.asyncio
async def test_unexpected_exception_is_captured_per_platform(tmp_path):
    backend = FakeGenerator("backend", error=RuntimeError("disk on fire"))
    results = await _coordinator(backend).generate_all(PLANNING, ["backend"], tmp_path)
    assert not results["backend"].success
    assert "disk on fire" in results["backend"].error


@pytest.mark.asyncio
async def test_unsupported_platform_is_reported_without_invoking_anything(tmp_path):
    ios = FakeGenerator("ios")
    results = await _coordinator(ios).generate_all(PLANNING, ["ios", "windows"], tmp_path)
    assert results["windows"].success is False
    assert results["windows"].error == UNSUPPORTED_PLATFORM
    assert ios.calls == 1


@pytest.mark.asyncio
async def test_platforms_run_concurrently(tmp_path):
    generators = [FakeGenerator(p, delay=0.3) for p in ("ios", "android", "web", "backend")]
    started = time.monotonic()
    results = await _coordinator(*generators).generate_all(PLANNING, [g.platform for g in generators], tmp_path)
    elapsed = time.monotonic() - started

    assert all(r.success for r in results.values())
    assert elapsed < 0.9


@pytest.mark.asyncio
async def test_fast_failure_does_not_cancel_slow_sibling(tmp_path):
    slow = FakeGenerator("ios", delay=0.2)
    fast_fail = FakeGenerator("web", error=GenerationError("web", "boom"))

    results = await _coordinator(slow, fast_fail).generate_all(PLANNING, ["ios", "web"], tmp_path)

    assert slow.finished
    assert results["ios"].success


@pytest.mark.asyncio
async def test_duplicate_platforms_are_generated_once(tmp_path):
    ios = FakeGenerator("ios")
    results = await _coordinator(ios).generate_all(PLANNING, ["ios", "ios"], tmp_path)
    assert list(results) == ["ios"]
    assert ios.calls == 1


@pytest.mark.asyncio
async def test_readme_is_written_after_all_platforms_settle(tmp_path):
    ios = FakeGenerator("ios")
    web = FakeGenerator("web", error=GenerationError("web", "web generation failed"))

    await _coordinator(ios, web).generate_all(PLANNING, ["ios", "web"], tmp_path)

    readme = (tmp_path / "README.md").read_text(encoding="utf-8")
    assert readme.startswith("# recipe-box")
    assert "Meal planner" in readme
    assert "`GET /recipes` - List recipes" in readme
    assert "**ios**: 1 files" in readme
    assert "**web**: failed" in readme
    assert "### iOS" in readme
    assert "### Web" not in readme
