"""Command-line runner that debounces lines read from stdin."""

import argparse
import asyncio
import os
import signal
import stat
import sys
from pathlib import Path
from typing import Any, BinaryIO, TextIO

from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from unique_timed_queue.application.listeners import EventType
from unique_timed_queue.config import (
    ConfigError,
    ConfigFileNotFoundError,
    load_config,
)
from unique_timed_queue.domain.errors import QueueError
from unique_timed_queue.infrastructure import DelayedUniqueQueue
from unique_timed_queue.infrastructure.logging import get_logger, setup_logging

DEFAULT_CONFIG_PATH = Path("config.yaml")


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description=(
            "Read entries from stdin, one per line, and print each unique "
            "entry once it has been quiet for the configured delay"
        )
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=(
            f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} "
            "if present, otherwise built-in defaults)"
        ),
    )
    parser.add_argument(
        "-d",
        "--delay-ms",
        type=int,
        default=None,
        help="Override queue.enqueue_delay_ms from the configuration",
    )
    return parser.parse_args(args)


def resolve_config_path(path: Path | None) -> Path | None:
    """Return the configuration file to load, or None for defaults."""
    if path is not None:
        return path
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


async def open_line_reader(stream: BinaryIO) -> asyncio.StreamReader:
    """Wrap a binary input stream in an asyncio StreamReader.

    Pipes and terminals are read through the event loop. Regular files never
    block, so their content is fed to the reader up front.
    """
    reader = asyncio.StreamReader()
    if stat.S_ISREG(os.fstat(stream.fileno()).st_mode):
        reader.feed_data(stream.read())
        reader.feed_eof()
        return reader

    loop = asyncio.get_running_loop()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), stream
    )
    return reader


def drain(queue: DelayedUniqueQueue[str], output: TextIO) -> int:
    """Write every admitted entry to ``output``.

    Returns:
        The number of entries written.
    """
    count = 0
    while (entry := queue.dequeue()) is not None:
        output.write(f"{entry}\n")
        count += 1
    output.flush()
    return count


def decode_line(line: bytes, logger: BoundLogger) -> str:
    """Decode an input line as UTF-8, replacing undecodable bytes."""
    try:
        text = line.decode()
    except UnicodeDecodeError as e:
        logger.warning("Input line is not valid UTF-8", error=str(e))
        text = line.decode(errors="replace")
    return text.strip()


async def _cancel_task(task: asyncio.Task[Any]) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def run_main_loop(
    queue: DelayedUniqueQueue[str],
    reader: asyncio.StreamReader,
    admitted: asyncio.Event,
    shutdown_event: asyncio.Event,
    output: TextIO,
    logger: BoundLogger,
) -> None:
    """Submit input lines and drain admissions until EOF or shutdown.

    Args:
        queue: Queue receiving the input entries.
        reader: Source of newline separated entries.
        admitted: Set by the queue's enqueue listener on every admission.
        shutdown_event: Event that signals shutdown.
        output: Stream receiving admitted entries.
        logger: Logger instance.
    """
    read_task: asyncio.Task[bytes] | None = None
    try:
        while not shutdown_event.is_set():
            if read_task is None:
                read_task = asyncio.create_task(reader.readline())
            admitted_task = asyncio.create_task(admitted.wait())
            shutdown_task = asyncio.create_task(shutdown_event.wait())

            done, _ = await asyncio.wait(
                [read_task, admitted_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in (admitted_task, shutdown_task):
                if task not in done:
                    await _cancel_task(task)

            if admitted.is_set():
                admitted.clear()
                drain(queue, output)

            if read_task in done:
                finished, read_task = read_task, None
                try:
                    line = finished.result()
                except ValueError:
                    # StreamReader drops the buffered part of the line first
                    logger.warning("Skipping line over the read limit")
                    continue
                if not line:
                    logger.info("End of input", pending=queue.pending_size())
                    queue.force_admit_pending()
                    break
                entry = decode_line(line, logger)
                if entry:
                    queue.submit(entry)
    finally:
        if read_task is not None:
            await _cancel_task(read_task)

    if queue.has_pending():
        logger.info("Dropping pending entries", pending=queue.pending_size())
        queue.cancel_all_pending()
    drain(queue, output)


async def main_async(
    config_path: Path | None,
    delay_ms: int | None = None,
    stdin: BinaryIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file, or None for defaults.
        delay_ms: Optional override of the configured default delay.
        stdin: Input stream. Defaults to sys.stdin.buffer.
        stdout: Output stream. Defaults to sys.stdout.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    # 1. Load configuration
    config = load_config(config_path)
    if delay_ms is not None:
        config.queue = config.queue.model_copy(update={"enqueue_delay_ms": delay_ms})

    # 2. Initialize logging
    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info(
        "Starting unique-timed-queue",
        config_path=str(config_path) if config_path else None,
        enqueue_delay_ms=config.queue.enqueue_delay_ms,
    )

    # 3. Initialize components
    queue: DelayedUniqueQueue[str] = DelayedUniqueQueue.from_config(
        config.queue, logger=get_logger("queue")
    )
    output = stdout if stdout is not None else sys.stdout
    reader = await open_line_reader(stdin if stdin is not None else sys.stdin.buffer)
    admitted = asyncio.Event()

    def on_enqueue(entry: str) -> None:
        logger.info("Entry admitted", entry=entry)
        admitted.set()

    queue.add_event_listener(EventType.ENQUEUE, on_enqueue)

    # 4. Setup shutdown handling
    shutdown_event = asyncio.Event()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    with queue:
        try:
            await run_main_loop(
                queue=queue,
                reader=reader,
                admitted=admitted,
                shutdown_event=shutdown_event,
                output=output,
                logger=logger,
            )
        except asyncio.CancelledError:
            logger.info("Main loop cancelled")
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    logger.info("unique-timed-queue stopped")
    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = resolve_config_path(args.config)

    try:
        exit_code = asyncio.run(main_async(config_path, delay_ms=args.delay_ms))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except QueueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
