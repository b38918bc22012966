"""Tests for prompt.py — masked line reader, raw mode guard, secret resolution."""

from __future__ import annotations

import contextlib
import termios
from collections.abc import Callable, Iterator
from unittest.mock import MagicMock, patch

import click
import pytest

from mcpreg import prompt as prompt_mod
from mcpreg.errors import SecretInputError
from mcpreg.models import ServerSpec
from mcpreg.prompt import prompt_secret, raw_input_mode, read_masked_line, resolve_secrets
from tests._fakes import scripted_prompter


def _bytes_from(data: bytes) -> Callable[[], bytes]:
    chunks = iter([data[i : i + 1] for i in range(len(data))])
    return lambda: next(chunks, b"")


def _read(data: bytes) -> tuple[str, str]:
    echoed: list[str] = []
    value = read_masked_line(_bytes_from(data), echo=echoed.append)
    return value, "".join(echoed)


class TestReadMaskedLine:
    def test_enter_commits_and_masks(self) -> None:
        value, echoed = _read(b"abc\r")
        assert value == "abc"
        assert echoed == "***\r\n"

    def test_newline_commits(self) -> None:
        value, _ = _read(b"xyz\nignored")
        assert value == "xyz"

    def test_backspace_erases(self) -> None:
        value, echoed = _read(b"abx\x7fc\n")
        assert value == "abc"
        assert "\b \b" in echoed
        assert echoed.count("*") == 4

    def test_ctrl_h_erases(self) -> None:
        value, _ = _read(b"ab\x08\n")
        assert value == "a"

    def test_backspace_on_empty_buffer_is_noop(self) -> None:
        value, echoed = _read(b"\x7f\x08a\n")
        assert value == "a"
        assert "\b" not in echoed

    def test_ctrl_c_interrupts(self) -> None:
        with pytest.raises(SecretInputError, match="interrupted"):
            _read(b"sec\x03ret\n")

    def test_ctrl_d_commits_partial(self) -> None:
        value, _ = _read(b"ab\x04zzz")
        assert value == "ab"

    def test_eof_commits_partial(self) -> None:
        value, echoed = _read(b"partial")
        assert value == "partial"
        assert echoed.endswith("\r\n")

    def test_non_printable_dropped(self) -> None:
        value, echoed = _read(b"a\x1bb\tc\x00\n")
        assert value == "abc"
        assert echoed == "***\r\n"

    def test_result_is_trimmed(self) -> None:
        value, _ = _read(b"  tok  \n")
        assert value == "tok"

    def test_empty_line(self) -> None:
        value, _ = _read(b"\n")
        assert value == ""

    def test_read_error_wrapped(self) -> None:
        def broken() -> bytes:
            raise OSError("device gone")

        with pytest.raises(SecretInputError, match="reading secret: device gone"):
            read_masked_line(broken, echo=lambda _s: None)

    def test_secret_never_echoed(self) -> None:
        _, echoed = _read(b"hunter2\n")
        assert "hunter2" not in echoed


class TestRawInputMode:
    def test_restores_on_success(self) -> None:
        with (
            patch.object(termios, "tcgetattr", return_value=["saved"]) as getattr_mock,
            patch.object(termios, "tcsetattr") as setattr_mock,
            patch("mcpreg.prompt.tty.setraw") as setraw_mock,
        ):
            with raw_input_mode(5):
                setraw_mock.assert_called_once_with(5)
                setattr_mock.assert_not_called()
        getattr_mock.assert_called_once_with(5)
        setattr_mock.assert_called_once_with(5, termios.TCSADRAIN, ["saved"])

    def test_restores_on_error(self) -> None:
        with (
            patch.object(termios, "tcgetattr", return_value=["saved"]),
            patch.object(termios, "tcsetattr") as setattr_mock,
            patch("mcpreg.prompt.tty.setraw"),
        ):
            with pytest.raises(SecretInputError), raw_input_mode(5):
                raise SecretInputError("interrupted")
        setattr_mock.assert_called_once_with(5, termios.TCSADRAIN, ["saved"])

    def test_not_a_terminal_raises_before_entering(self) -> None:
        with (
            patch.object(termios, "tcgetattr", side_effect=termios.error(25, "Inappropriate ioctl")),
            patch.object(termios, "tcsetattr") as setattr_mock,
            patch("mcpreg.prompt.tty.setraw") as setraw_mock,
        ):
            with pytest.raises(termios.error), raw_input_mode(5):
                pass
        setraw_mock.assert_not_called()
        setattr_mock.assert_not_called()


class _GuardRecorder:
    def __init__(self) -> None:
        self.entered = 0
        self.exited = 0

    @contextlib.contextmanager
    def __call__(self, fd: int) -> Iterator[None]:
        self.entered += 1
        try:
            yield
        finally:
            self.exited += 1


class TestPromptSecret:
    def test_raw_path_reads_from_fd(self, capsys: pytest.CaptureFixture[str]) -> None:
        guard = _GuardRecorder()
        reads = iter([b"s", b"3", b"c", b"\r"])
        with (
            patch("mcpreg.prompt._stdin_tty_fd", return_value=9),
            patch("mcpreg.prompt.raw_input_mode", guard),
            patch("mcpreg.prompt.os.read", side_effect=lambda fd, n: next(reads)) as read_mock,
        ):
            value = prompt_secret("Enter token: ")
        assert value == "s3c"
        assert guard.entered == guard.exited == 1
        read_mock.assert_called_with(9, 1)
        out = capsys.readouterr().out
        assert out.startswith("Enter token: ***")
        assert "s3c" not in out

    def test_raw_mode_released_on_interrupt(self) -> None:
        guard = _GuardRecorder()
        with (
            patch("mcpreg.prompt._stdin_tty_fd", return_value=9),
            patch("mcpreg.prompt.raw_input_mode", guard),
            patch("mcpreg.prompt.os.read", return_value=b"\x03"),
        ):
            with pytest.raises(SecretInputError, match="interrupted"):
                prompt_secret("Enter token: ")
        assert guard.entered == guard.exited == 1

    def test_fallback_when_not_a_tty(self) -> None:
        with (
            patch("mcpreg.prompt._stdin_tty_fd", return_value=None),
            patch("mcpreg.prompt.click.prompt", return_value="  typed  ") as prompt_mock,
        ):
            assert prompt_secret("Enter: ") == "typed"
        assert prompt_mock.call_args.kwargs["hide_input"] is True

    def test_fallback_when_raw_mode_unavailable(self) -> None:
        with (
            patch("mcpreg.prompt._stdin_tty_fd", return_value=9),
            patch.object(termios, "tcgetattr", side_effect=termios.error(25, "Inappropriate ioctl")),
            patch("mcpreg.prompt.click.prompt", return_value="fallback") as prompt_mock,
        ):
            assert prompt_secret("Enter: ") == "fallback"
        prompt_mock.assert_called_once()

    def test_fallback_abort_is_interrupt(self) -> None:
        with (
            patch("mcpreg.prompt._stdin_tty_fd", return_value=None),
            patch("mcpreg.prompt.click.prompt", side_effect=click.Abort()),
        ):
            with pytest.raises(SecretInputError, match="interrupted"):
                prompt_secret("Enter: ")

    def test_stdin_without_fileno_is_not_a_tty(self) -> None:
        fake_stdin = MagicMock()
        fake_stdin.fileno.side_effect = ValueError("no fileno")
        with patch.object(prompt_mod.sys, "stdin", fake_stdin):
            assert prompt_mod._stdin_tty_fd() is None


class TestResolveSecrets:
    def test_no_secrets_needed_never_prompts(self) -> None:
        prompter = scripted_prompter()
        spec = resolve_secrets(ServerSpec(name="s"), prompter)
        assert prompter.labels == []  # type: ignore[attr-defined]
        assert spec.env_vars == []

    def test_all_slots_in_order(self, capsys: pytest.CaptureFixture[str]) -> None:
        spec = ServerSpec(name="svc", api_key_env="SVC_KEY", prompt_bearer=True, prompt_client_secret=True)
        prompter = scripted_prompter("key-1", " tok-2 ", "cs-3")
        resolve_secrets(spec, prompter)
        assert prompter.labels == [  # type: ignore[attr-defined]
            "Enter SVC_KEY: ",
            "Enter Bearer token: ",
            "Enter OAuth client secret: ",
        ]
        assert spec.env_vars == [("SVC_KEY", "key-1")]
        assert spec.headers == ["Authorization: Bearer tok-2"]
        assert spec.client_secret == "cs-3"
        assert spec.resolved_secrets == {}
        out = capsys.readouterr().out
        assert "API key required for 'svc' server." in out
        assert "NOT in project files" in out

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"api_key_env": "K"}, "no API key provided"),
            ({"prompt_bearer": True}, "no token provided"),
            ({"prompt_client_secret": True}, "no client secret provided"),
        ],
    )
    def test_empty_secret_rejected(self, kwargs: dict[str, object], message: str) -> None:
        spec = ServerSpec(name="s", **kwargs)  # type: ignore[arg-type]
        with pytest.raises(SecretInputError, match=message):
            resolve_secrets(spec, scripted_prompter("   "))

    def test_failure_applies_nothing(self) -> None:
        spec = ServerSpec(name="s", api_key_env="K", prompt_bearer=True)
        with pytest.raises(SecretInputError, match="no token provided"):
            resolve_secrets(spec, scripted_prompter("good-key", ""))
        assert spec.env_vars == []
        assert spec.headers == []
        assert spec.resolved_secrets == {}

    def test_interrupt_propagates(self) -> None:
        def interrupted(_label: str) -> str:
            raise SecretInputError("interrupted")

        spec = ServerSpec(name="s", prompt_bearer=True)
        with pytest.raises(SecretInputError, match="interrupted"):
            resolve_secrets(spec, interrupted)
        assert spec.headers == []
