import subprocess
from pathlib import Path

import pytest

from cloudbot.build.docker import DockerCliBuilder
from cloudbot.errors import BuildError


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def test_build_invokes_docker_with_tag(monkeypatch, tmp_path: Path):
    calls = []

    def fake_run(argv, **kwargs):
        calls.append(argv)
        return DummyCP(0, out="Successfully tagged funbot-7:latest\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    out = DockerCliBuilder().build(tmp_path, "funbot-7:latest")

    assert calls == [["docker", "build", "-t", "funbot-7:latest", str(tmp_path)]]
    assert out.image_tag == "funbot-7:latest"
    assert "Successfully tagged" in out.log


def test_build_failure_carries_tool_output(monkeypatch, tmp_path: Path):
    def fake_run(argv, **kwargs):
        return DummyCP(1, err="failed to solve: npm ERR! missing script")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(BuildError) as ei:
        DockerCliBuilder().build(tmp_path, "funbot-7:latest")
    assert "npm ERR!" in str(ei.value)
    assert "npm ERR!" in ei.value.output
    assert ei.value.step == "build"


def test_missing_docker_binary_is_a_build_error(monkeypatch, tmp_path: Path):
    def fake_run(argv, **kwargs):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(BuildError):
        DockerCliBuilder().build(tmp_path, "funbot-7:latest")


@pytest.mark.parametrize("tag", ["funbot:latest", "FunBot-7:latest", "x;rm -rf /-1:latest", "funbot-7", "funbot-7:latest\n"])
def test_unsafe_tags_never_reach_docker(monkeypatch, tmp_path: Path, tag):
    def fake_run(argv, **kwargs):
        raise AssertionError("docker must not be called")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(BuildError):
        DockerCliBuilder().build(tmp_path, tag)


def test_missing_build_context(tmp_path: Path):
    with pytest.raises(BuildError):
        DockerCliBuilder().build(tmp_path / "absent", "funbot-7:latest")
