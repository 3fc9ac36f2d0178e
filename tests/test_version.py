from types import SimpleNamespace
from unittest import mock

import pytest

from goveemqtt import version
from goveemqtt.version import govee_version, resolve_ci_tag


@pytest.fixture(autouse=True)
def _clear(monkeypatch):
    monkeypatch.delenv("GOVEE_CI_TAG", raising=False)
    govee_version.cache_clear()
    yield
    govee_version.cache_clear()


def test_env_var_wins_and_is_trimmed(monkeypatch, tmp_path):
    (tmp_path / ".tag").write_text("from-file")
    monkeypatch.setenv("GOVEE_CI_TAG", "  v1.2.3\n")
    assert resolve_ci_tag(tmp_path) == "v1.2.3"


def test_tag_file_used_without_env(tmp_path):
    (tmp_path / ".tag").write_text("  release-7 \n")
    assert resolve_ci_tag(tmp_path) == "release-7"


def test_invalid_utf8_tag_file_gives_empty(tmp_path):
    (tmp_path / ".tag").write_bytes(b"\xff\xfe\xfa")
    with mock.patch.object(version.subprocess, "run") as run:
        assert resolve_ci_tag(tmp_path) == ""
        run.assert_not_called()


def test_falls_back_to_git(tmp_path):
    fake = SimpleNamespace(stdout=b"2024.01.02-abcdef12\n")
    with mock.patch.object(version.subprocess, "run", return_value=fake) as run:
        assert resolve_ci_tag(tmp_path) == "2024.01.02-abcdef12"
    args = run.call_args.args[0]
    assert args[0] == "git"
    assert "--format=%cd-%h" in args
    assert run.call_args.kwargs["cwd"] == tmp_path


def test_missing_git_gives_empty(tmp_path):
    with mock.patch.object(version.subprocess, "run", side_effect=FileNotFoundError):
        assert resolve_ci_tag(tmp_path) == ""


def test_govee_version_uses_env_and_caches(monkeypatch):
    monkeypatch.setenv("GOVEE_CI_TAG", "ci-build")
    assert govee_version() == "ci-build"
    monkeypatch.setenv("GOVEE_CI_TAG", "other")
    assert govee_version() == "ci-build"