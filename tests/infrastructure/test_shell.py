"""Tests for CommandRunner, retry and secret masking."""

from __future__ import annotations

import subprocess

import pytest

from bluegreen.domain.exceptions import CommandError, CommandTimeout
from bluegreen.infrastructure.shell import CommandRunner, mask_sensitive, retry


class TestMaskSensitive:

    def test_masks_key_value(self) -> None:
        assert mask_sensitive("helm --set db.password=hunter2") == "helm --set db.password=****"

    def test_masks_token_flag(self) -> None:
        assert mask_sensitive("kubectl --token abc.def get pods") == "kubectl --token **** get pods"

    def test_case_insensitive(self) -> None:
        assert mask_sensitive("API_KEY=xyz") == "API_KEY=****"

    def test_leaves_plain_text(self) -> None:
        text = "kubectl get service checkout -n shop"
        assert mask_sensitive(text) == text


class TestCommandRunner:

    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: dict = {}

        def fake_run(argv, **kwargs):
            seen["argv"] = argv
            seen.update(kwargs)
            return subprocess.CompletedProcess(argv, 0, stdout="ok\n", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = CommandRunner(default_timeout=42).run(["kubectl", "version"], input="x")
        assert result.ok
        assert result.stdout == "ok\n"
        assert seen["argv"] == ("kubectl", "version")
        assert seen["timeout"] == 42
        assert seen["input"] == "x"
        assert seen["capture_output"] is True

    def test_non_zero_raises_when_checked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda argv, **kw: subprocess.CompletedProcess(argv, 3, stdout="", stderr="boom"),
        )
        with pytest.raises(CommandError) as excinfo:
            CommandRunner().run(["helm", "list"])
        assert excinfo.value.returncode == 3
        assert excinfo.value.stderr == "boom"
        assert excinfo.value.command == ("helm", "list")

    def test_non_zero_returned_when_unchecked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda argv, **kw: subprocess.CompletedProcess(argv, 1, stdout="", stderr="NotFound"),
        )
        result = CommandRunner().run(["kubectl", "scale"], check=False)
        assert not result.ok
        assert result.stderr == "NotFound"

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(argv, **kwargs):
            raise subprocess.TimeoutExpired(argv, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(CommandTimeout) as excinfo:
            CommandRunner().run(["kubectl", "rollout", "status"], timeout=5)
        assert excinfo.value.timeout == 5
        assert excinfo.value.returncode == -1

    def test_missing_executable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(argv, **kwargs):
            raise FileNotFoundError(argv[0])

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(CommandError) as excinfo:
            CommandRunner().run(["helm"])
        assert excinfo.value.returncode == 127

    def test_error_message_is_masked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda argv, **kw: subprocess.CompletedProcess(
                argv, 1, stdout="", stderr="bad token=s3cr3t"
            ),
        )
        with pytest.raises(CommandError) as excinfo:
            CommandRunner().run(["helm"])
        assert "s3cr3t" not in str(excinfo.value)


class TestRetry:

    def test_returns_first_success(self) -> None:
        assert retry(lambda: 7, sleep_fn=lambda s: None) == 7

    def test_exponential_backoff(self) -> None:
        delays: list[float] = []
        calls = {"n": 0}

        def flaky() -> str:
            calls["n"] += 1
            if calls["n"] < 3:
                raise CommandError("transient")
            return "done"

        assert retry(flaky, attempts=3, initial_delay=0.5, sleep_fn=delays.append) == "done"
        assert delays == [0.5, 1.0]

    def test_reraises_after_exhaustion(self) -> None:
        delays: list[float] = []

        def always_fails() -> None:
            raise CommandError("down")

        with pytest.raises(CommandError, match="down"):
            retry(always_fails, attempts=3, initial_delay=1.0, sleep_fn=delays.append)
        assert delays == [1.0, 2.0]

    def test_other_errors_not_retried(self) -> None:
        delays: list[float] = []

        def broken() -> None:
            raise KeyError("x")

        with pytest.raises(KeyError):
            retry(broken, sleep_fn=delays.append)
        assert delays == []

    def test_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            retry(lambda: None, attempts=0)
