"""Unit tests for __main__.py entry point."""

import asyncio
import io
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from unique_timed_queue.__main__ import (
    drain,
    main,
    main_async,
    parse_args,
    resolve_config_path,
    run_main_loop,
)
from unique_timed_queue.infrastructure import DelayedUniqueQueue


class TestParseArgs:
    """Test cases for parse_args function."""

    def test_defaults(self) -> None:
        """Config and delay override default to None."""
        args = parse_args([])

        assert args.config is None
        assert args.delay_ms is None

    def test_config_path_with_short_option(self) -> None:
        """Config can be specified with -c option."""
        args = parse_args(["-c", "custom.yaml"])

        assert args.config == Path("custom.yaml")

    def test_delay_override(self) -> None:
        """Delay can be overridden with --delay-ms."""
        args = parse_args(["--delay-ms", "250"])

        assert args.delay_ms == 250


class TestResolveConfigPath:
    """Test cases for resolve_config_path function."""

    def test_explicit_path_is_kept(self) -> None:
        """An explicit path is returned even if it does not exist."""
        assert resolve_config_path(Path("missing.yaml")) == Path("missing.yaml")

    def test_default_file_used_when_present(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """config.yaml in the working directory is picked up."""
        (tmp_path / "config.yaml").write_text("")
        monkeypatch.chdir(tmp_path)

        assert resolve_config_path(None) == Path("config.yaml")

    def test_defaults_when_absent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without config.yaml the built-in defaults are used."""
        monkeypatch.chdir(tmp_path)

        assert resolve_config_path(None) is None


class TestDrain:
    """Test cases for drain function."""

    def test_writes_admitted_entries(self) -> None:
        """Every admitted entry is written on its own line."""
        queue: DelayedUniqueQueue[str] = DelayedUniqueQueue()
        queue.submit_all(["a", "b"], 0)
        output = io.StringIO()

        assert drain(queue, output) == 2
        assert output.getvalue() == "a\nb\n"
        assert queue.is_empty()
        queue.close()


class TestRunMainLoop:
    """Test cases for run_main_loop function."""

    async def test_timer_admissions_are_drained(self) -> None:
        """Entries admitted by timers are written before EOF."""
        queue: DelayedUniqueQueue[str] = DelayedUniqueQueue(50)
        admitted = asyncio.Event()
        queue.add_event_listener("enqueue", lambda entry: admitted.set())
        reader = asyncio.StreamReader()
        output = io.StringIO()

        loop_task = asyncio.create_task(
            run_main_loop(
                queue=queue,
                reader=reader,
                admitted=admitted,
                shutdown_event=asyncio.Event(),
                output=output,
                logger=MagicMock(),
            )
        )
        reader.feed_data(b"a\na\nb\n")
        await asyncio.sleep(0.1)
        assert output.getvalue() == "a\nb\n"

        reader.feed_eof()
        await asyncio.wait_for(loop_task, timeout=1)
        queue.close()

    async def test_shutdown_drops_pending(self) -> None:
        """Shutdown cancels pending entries instead of admitting them."""
        queue: DelayedUniqueQueue[str] = DelayedUniqueQueue(10_000)
        reader = asyncio.StreamReader()
        shutdown_event = asyncio.Event()
        output = io.StringIO()

        loop_task = asyncio.create_task(
            run_main_loop(
                queue=queue,
                reader=reader,
                admitted=asyncio.Event(),
                shutdown_event=shutdown_event,
                output=output,
                logger=MagicMock(),
            )
        )
        reader.feed_data(b"a\n")
        await asyncio.sleep(0.05)
        assert queue.has_pending_entry("a")

        shutdown_event.set()
        await asyncio.wait_for(loop_task, timeout=1)

        assert queue.pending_size() == 0
        assert output.getvalue() == ""
        queue.close()

    async def test_invalid_utf8_line_is_replaced(self) -> None:
        """Undecodable bytes are replaced and later lines still go through."""
        queue: DelayedUniqueQueue[str] = DelayedUniqueQueue(0)
        reader = asyncio.StreamReader()
        reader.feed_data(b"ok\n\xff\xfe\nnext\n")
        reader.feed_eof()
        output = io.StringIO()
        logger = MagicMock()

        await asyncio.wait_for(
            run_main_loop(
                queue=queue,
                reader=reader,
                admitted=asyncio.Event(),
                shutdown_event=asyncio.Event(),
                output=output,
                logger=logger,
            ),
            timeout=1,
        )

        assert output.getvalue().splitlines() == ["ok", "\ufffd\ufffd", "next"]
        logger.warning.assert_called_once()
        queue.close()

    async def test_overlong_line_is_skipped(self) -> None:
        """A line over the reader limit is dropped without ending the loop."""
        queue: DelayedUniqueQueue[str] = DelayedUniqueQueue(0)
        reader = asyncio.StreamReader(limit=16)
        reader.feed_data(b"ok\n" + b"x" * 40 + b"\nnext\n")
        reader.feed_eof()
        output = io.StringIO()
        logger = MagicMock()

        await asyncio.wait_for(
            run_main_loop(
                queue=queue,
                reader=reader,
                admitted=asyncio.Event(),
                shutdown_event=asyncio.Event(),
                output=output,
                logger=logger,
            ),
            timeout=1,
        )

        assert output.getvalue() == "ok\nnext\n"
        logger.warning.assert_called_once()
        queue.close()


class TestMainAsync:
    """Test cases for main_async function."""

    async def test_eof_flushes_pending(self, tmp_path: Path) -> None:
        """Duplicates collapse and EOF admits what is still pending."""
        input_file = tmp_path / "input.txt"
        input_file.write_text("entry1\nentry2\n\nentry1\n")
        output = io.StringIO()

        with open(input_file, "rb") as stdin:
            exit_code = await main_async(None, stdin=stdin, stdout=output)

        assert exit_code == 0
        assert output.getvalue() == "entry2\nentry1\n"

    async def test_zero_delay_override(self, tmp_path: Path) -> None:
        """With a zero delay every line is passed through."""
        input_file = tmp_path / "input.txt"
        input_file.write_text("a\na\nb\n")
        output = io.StringIO()

        with open(input_file, "rb") as stdin:
            await main_async(None, delay_ms=0, stdin=stdin, stdout=output)

        assert output.getvalue() == "a\na\nb\n"

    async def test_config_file(self, tmp_path: Path) -> None:
        """Queue settings are read from the configuration file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
queue:
  enqueue_delay_ms: 0
  suppress_admitted_duplicates: true
logging:
  level: WARNING
""")
        input_file = tmp_path / "input.txt"
        input_file.write_text("a\na\nb\n")
        output = io.StringIO()

        with open(input_file, "rb") as stdin:
            await main_async(config_file, stdin=stdin, stdout=output)

        assert output.getvalue() == "a\nb\n"


class TestMain:
    """Test cases for main function with configuration errors."""

    def test_config_file_not_found(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Non-existent config file exits with an error."""
        argv = ["unique-timed-queue", "-c", "nonexistent.yaml"]
        with patch.object(sys, "argv", argv):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "nonexistent.yaml" in captured.err
        assert "not found" in captured.err

    def test_invalid_config_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Invalid YAML exits with an error."""
        invalid_config = tmp_path / "invalid.yaml"
        invalid_config.write_text("invalid: yaml: content:")

        argv = ["unique-timed-queue", "-c", str(invalid_config)]
        with patch.object(sys, "argv", argv):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_negative_delay_override(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A negative --delay-ms exits with an error."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with patch.object(
            sys, "argv", ["unique-timed-queue", "-c", str(config_file), "-d", "-5"]
        ):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "non-negative" in capsys.readouterr().err
