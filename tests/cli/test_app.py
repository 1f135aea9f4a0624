import json
import subprocess
import textwrap
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from cloudbot.cli.app import app
from cloudbot.config.models import PlatformSecrets


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


@pytest.fixture
def env(tmp_path: Path, monkeypatch):
    for names in PlatformSecrets.ENV_KEYS.values():
        for n in names:
            monkeypatch.delenv(n, raising=False)
    monkeypatch.delenv("CLOUDBOT_SECRETS_FILE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    tpl = tmp_path / "tpl"
    tpl.mkdir()
    (tpl / "package.json").write_text(json.dumps({"name": "bot-template"}))

    cfg = tmp_path / "platform.yaml"
    cfg.write_text(textwrap.dedent(f"""
        namespace: bots
        template_dir: {tpl}
        work_root: {tmp_path / "generated-bots"}
        secrets:
          weather_api_key: w-key
    """))
    return tmp_path, cfg


def test_render_env(env):
    _, cfg = env
    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "render-env", "--name", "funbot", "--token", "1:abc",
         "-c", "clima", "-c", "ia", "--id", "3"],
    )
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[:4] == ["BOT_NAME=funbot", "BOT_TOKEN=1:abc", "SERVICES=clima,ia", "PORT=3000"]
    assert "WEATHER_API_KEY=w-key" in lines
    assert "NEWS_API_KEY=" in lines
    assert lines[-1].startswith("CREATED_AT=")


def test_render_manifest(env):
    _, cfg = env
    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "render-manifest", "--name", "FunBot", "--token", "1:abc", "-c", "ia", "--id", "9"],
    )
    assert result.exit_code == 0, result.output
    dep, svc = list(yaml.safe_load_all(result.output))
    assert dep["metadata"]["name"] == "bot-funbot-9"
    assert dep["metadata"]["namespace"] == "bots"
    assert dep["spec"]["template"]["spec"]["containers"][0]["image"] == "funbot-9:latest"
    assert svc["metadata"]["name"] == "funbot-service"


def test_render_rejects_unsafe_name(env):
    _, cfg = env
    result = CliRunner().invoke(
        app, ["--config", str(cfg), "render-manifest", "--name", "fun bot", "--token", "t", "-c", "ia"]
    )
    assert result.exit_code != 0


def test_create_runs_full_pipeline(env, monkeypatch):
    tmp_path, cfg = env
    calls = []

    def fake_run(argv, **kwargs):
        calls.append(argv)
        return DummyCP(0, out="ok\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "create", "--owner", "1", "--name", "funbot", "--token", "1:abc",
         "-c", "clima", "-c", "ia"],
    )
    assert result.exit_code == 0, result.output
    assert "status=active" in result.output
    assert "url=https://t.me/funbot" in result.output
    assert "internal=http://funbot-service.bots.svc.cluster.local" in result.output

    assert calls[0][:3] == ["docker", "build", "-t"]
    assert calls[0][3] == "funbot-1:latest"
    assert ["apply", "-f", "-"] == calls[1][-3:]
    assert "wait" in calls[2]

    workdir = tmp_path / "generated-bots" / "1"
    assert json.loads((workdir / "package.json").read_text())["name"] == "bot-funbot"
    assert (workdir / ".env").is_file()
    assert (workdir / "k8s-deployment.yaml").is_file()


def test_create_build_failure_exits_nonzero(env, monkeypatch):
    _, cfg = env

    def fake_run(argv, **kwargs):
        return DummyCP(1, err="no space left on device")

    monkeypatch.setattr(subprocess, "run", fake_run)

    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "create", "--owner", "1", "--name", "funbot", "--token", "1:abc", "-c", "ia"],
    )
    assert result.exit_code == 1
    assert "status=error" in result.output


def test_create_rejects_bad_name(env, monkeypatch):
    _, cfg = env
    monkeypatch.setattr(subprocess, "run", lambda argv, **kw: pytest.fail("nothing should run"))

    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "create", "--owner", "1", "--name", "fun_bot", "--token", "1:abc", "-c", "ia"],
    )
    assert result.exit_code == 2
    assert "Rejected" in result.output


def test_create_rejects_malformed_token(env, monkeypatch):
    _, cfg = env
    monkeypatch.setattr(subprocess, "run", lambda argv, **kw: pytest.fail("nothing should run"))

    result = CliRunner().invoke(
        app,
        ["--config", str(cfg), "create", "--owner", "1", "--name", "funbot", "--token", "1:abc\nPORT=9999", "-c", "ia"],
    )
    assert result.exit_code == 2
    assert "token" in result.output


def test_render_manifest_rejects_trailing_newline(env):
    _, cfg = env
    result = CliRunner().invoke(
        app, ["--config", str(cfg), "render-manifest", "--name", "funbot\n", "--token", "1:abc", "-c", "ia"]
    )
    assert result.exit_code != 0
    assert "bot-funbot\n" not in result.output
