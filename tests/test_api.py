"""Tests for smarttitle.api — setup, status and file-based title runs."""

import json

import pytest
import yaml

from smarttitle import api, cli
from smarttitle.core.models import ProviderInfo
from smarttitle.summarize.providers import PROVIDERS
from smarttitle.summarize.selector import NoUsableModelError


class StubRegistry:
    """Stands in for ProviderRegistry; only openai is authenticated."""

    prompts = []

    def __init__(self, api_keys=None, timeout=60.0):
        self.api_keys = api_keys

    def list_authenticated(self):
        return {"openai": ProviderInfo(id="openai", name="OpenAI", source="env")}

    def resolve(self, provider_id, model_id):
        if provider_id != "openai":
            raise RuntimeError("not authenticated")
        return model_id

    def generate(self, handle, prompt):
        StubRegistry.prompts.append(prompt)
        return "<think>x</think>Implementing rate limiting"


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Isolated config, home and provider environment."""
    config_path = tmp_path / "conf" / "config.yaml"
    monkeypatch.setenv("SMART_TITLE_CONFIG", str(config_path))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("SMART_TITLE_MODEL", "SMART_TITLE_THRESHOLD", "SMART_TITLE_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    for spec in PROVIDERS.values():
        for var in spec.env_keys:
            monkeypatch.delenv(var, raising=False)
    StubRegistry.prompts = []
    return tmp_path, config_path


@pytest.fixture
def stub_registry(monkeypatch):
    monkeypatch.setattr("smarttitle.summarize.providers.ProviderRegistry", StubRegistry)


def _session_file(dirpath, session_id="ses-1", title=None):
    data = {
        "info": {"id": session_id, "title": title},
        "messages": [
            {"info": {"id": "u1", "role": "user", "time": {"created": 1}},
             "parts": [{"type": "text", "text": "Add rate limiting to the API"}]},
            {"info": {"id": "a1", "role": "assistant", "time": {"created": 2}},
             "parts": [{"type": "text", "text": "Added a token bucket"}]},
        ],
    }
    dirpath.mkdir(parents=True, exist_ok=True)
    path = dirpath / f"{session_id}.json"
    path.write_text(json.dumps(data))
    return path


class TestInit:
    def test_creates_files(self, env):
        tmp_path, config_path = env
        result = api.init()
        assert str(config_path) in result["created"]
        assert config_path.exists()
        data = yaml.safe_load(config_path.read_text())
        assert data["update_threshold"] == 1
        assert (tmp_path / "home" / ".smart-title" / "sessions").is_dir()

    def test_second_run_reports_existing(self, env):
        _, config_path = env
        api.init()
        result = api.init()
        assert result["created"] == []
        assert str(config_path) in result["existing"]


class TestStatus:
    def test_reports_providers(self, env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        result = api.status()
        assert result["config_exists"] is False
        assert result["providers"] == ["openai"]
        assert result["model"] is None

    def test_providers_list(self, env, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        assert api.providers() == [{"id": "anthropic", "name": "Anthropic", "source": "env"}]


class TestSelect:
    def test_select_fallback(self, env, stub_registry):
        result = api.select()
        assert result == {
            "model": "openai/gpt-5-mini",
            "source": "fallback",
            "reason": "Using openai/gpt-5-mini",
            "failed_model": None,
        }

    def test_select_reports_failed_model(self, env, stub_registry):
        result = api.select(model="anthropic/claude-haiku-4-5")
        assert result["failed_model"] == "anthropic/claude-haiku-4-5"

    def test_no_providers(self, env):
        with pytest.raises(NoUsableModelError):
            api.select()


class TestContextAndTitle:
    def test_context(self, env, tmp_path):
        path = _session_file(tmp_path / "sessions")
        result = api.context(str(path), max_chars=10)
        assert result["turns"] == 1
        assert result["context"].startswith("User: Add rate l...")

    def test_title_without_apply(self, env, stub_registry, tmp_path):
        path = _session_file(tmp_path / "sessions", title="Old")
        result = api.title(str(path))
        assert result["title"] == "Implementing rate limiting"
        assert result["applied"] is False
        assert json.loads(path.read_text())["info"]["title"] == "Old"

    def test_title_apply(self, env, stub_registry, tmp_path):
        path = _session_file(tmp_path / "sessions")
        api.title(str(path), apply=True)
        assert json.loads(path.read_text())["info"]["title"] == "Implementing rate limiting"

    def test_context_missing_file(self, env, tmp_path):
        result = api.context(str(tmp_path / "nope.json"))
        assert result == {"error": f"File not found: {tmp_path / 'nope.json'}"}

    def test_title_missing_file(self, env, tmp_path):
        assert "error" in api.title(str(tmp_path / "nope.json"))

    def test_cli_context_missing_file(self, env, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["smart-title", "context", str(tmp_path / "nope.json")])
        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == 1
        assert "File not found" in capsys.readouterr().err


class TestIdle:
    def test_threshold_respected(self, env, stub_registry, tmp_path):
        sessions = tmp_path / "sessions"
        path = _session_file(sessions)
        api_config = env[1]
        api_config.parent.mkdir(parents=True, exist_ok=True)
        api_config.write_text(yaml.dump({"update_threshold": 2}))

        result = api.idle("ses-1", times=3, sessions_dir=str(sessions))
        assert result["idle_count"] == 3
        assert result["updates"] == 1
        assert result["title"] == "Implementing rate limiting"
        assert json.loads(path.read_text())["info"]["title"] == "Implementing rate limiting"
        assert len(StubRegistry.prompts) == 1
