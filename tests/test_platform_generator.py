"""Tests for PlatformGenerator and the platform registry."""
import json

import pytest

from appforge.core.errors import GenerationError, ModelUnavailable
from appforge.generators.platforms import (
    ANDROID,
    BACKEND,
    IOS,
    PlatformGenerator,
    build_platform_prompt,
    to_generated_files,
)
from appforge.generators.registry import PlatformRegistry
from tests.helpers import PLANNING, ScriptedModel, fenced


@pytest.mark.asyncio
async def test_generate_writes_files_and_returns_paths(tmp_path):
    response = {
        "files": {"MainActivity.kt": "class MainActivity", "ui/screens/LoginScreen.kt": "@Composable fun Login()"},
        "structure": {"architecture": "MVVM"},
    }
    model = ScriptedModel({"Android developer": fenced(response)})
    generator = PlatformGenerator(ANDROID, model)

    output = await generator.generate(PLANNING, tmp_path / "android")

    assert output.files == ["MainActivity.kt", "ui/screens/LoginScreen.kt"]
    assert output.summary == {"architecture": "MVVM"}
    assert (tmp_path / "android" / "ui" / "screens" / "LoginScreen.kt").read_text() == "@Composable fun Login()"

    prompt, options = model.calls[0]
    assert '"app_name": "recipe-box"' in prompt
    assert "Jetpack Compose" in prompt
    assert options.temperature == 0.2


@pytest.mark.asyncio
async def test_model_error_becomes_generation_error(tmp_path):
    model = ScriptedModel({"iOS developer": ModelUnavailable("provider down")})
    with pytest.raises(GenerationError) as exc_info:
        await PlatformGenerator(IOS, model).generate(PLANNING, tmp_path / "ios")
    assert exc_info.value.platform == "ios"
    assert "provider down" in str(exc_info.value)
    assert not (tmp_path / "ios").exists()


@pytest.mark.asyncio
async def test_response_without_files_is_rejected(tmp_path):
    model = ScriptedModel({"backend developer": fenced({"structure": {}})})
    with pytest.raises(GenerationError):
        await PlatformGenerator(BACKEND, model).generate(PLANNING, tmp_path / "backend")


@pytest.mark.asyncio
async def test_path_escaping_output_dir_is_rejected(tmp_path):
    model = ScriptedModel({"backend developer": fenced({"files": {"../../evil.js": "boom"}})})
    with pytest.raises(GenerationError):
        await PlatformGenerator(BACKEND, model).generate(PLANNING, tmp_path / "out" / "backend")
    assert not (tmp_path / "evil.js").exists()


def test_to_generated_files_serializes_inline_json():
    files = to_generated_files({"package.json": {"name": "api"}, "server.js": "app.listen()"})
    assert files[0].path == "package.json"
    assert json.loads(files[0].content) == {"name": "api"}
    assert files[1].content == "app.listen()"

    with pytest.raises(ValueError):
        to_generated_files({})
    with pytest.raises(ValueError):
        to_generated_files(["server.js"])


def test_platform_prompt_embeds_file_template():
    prompt = build_platform_prompt(IOS, {"app_name": "demo"})
    assert "Services/NetworkManager.swift" in prompt
    assert "JSON format ONLY" in prompt


def test_default_registry_covers_all_platforms():
    registry = PlatformRegistry.default(ScriptedModel({}))
    assert registry.supported() == ["ios", "android", "web", "backend"]
    assert registry.get("web").platform == "web"
    assert registry.get("windows") is None
