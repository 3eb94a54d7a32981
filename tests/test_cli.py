import io
import json

import pytest

from toolbridge import cli


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    for var in (
        "LANGFUSE_SECRET_KEY",
        "LANGFUSE_PUBLIC_KEY",
        "TOOLBRIDGE_MODEL",
        "TOOLBRIDGE_MAX_TOKENS",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


def use_config(monkeypatch, path, servers):
    path.write_text(json.dumps({"servers": servers}), encoding="utf-8")
    monkeypatch.setenv("TOOLBRIDGE_CONFIG_PATH", str(path))


def test_missing_api_key_exits_with_error(env, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY")
    assert cli.main() == 1


def test_missing_config_exits_with_error(env, monkeypatch):
    monkeypatch.setenv("TOOLBRIDGE_CONFIG_PATH", str(env / "absent.json"))
    assert cli.main() == 1


def test_bad_server_script_exits_with_error(env, monkeypatch):
    use_config(monkeypatch, env / "mcp-server.json", [{"name": "demo", "path": "demo.rb"}])
    assert cli.main() == 1


def test_quit_exits_cleanly(env, monkeypatch, capsys):
    use_config(monkeypatch, env / "mcp-server.json", [])
    monkeypatch.setattr("sys.stdin", io.StringIO("QUIT\n"))

    assert cli.main() == 0
    assert "MCP Client Started!" in capsys.readouterr().out
