"""Debounce demo script.

Submits bursts of entries to a DelayedUniqueQueue and prints when each one
is admitted, to eyeball the delay reset behavior by hand.
"""

import argparse
import asyncio
import time

from unique_timed_queue import DelayedUniqueQueue


def create_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Submit bursts of entries and print admission times",
    )
    parser.add_argument(
        "-d",
        "--delay-ms",
        type=int,
        default=1000,
        help="Queue delay in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "-i",
        "--interval-ms",
        type=int,
        default=400,
        help="Pause between submissions in milliseconds (default: 400)",
    )
    parser.add_argument(
        "entries",
        nargs="*",
        default=["entry1", "entry2", "entry1"],
        help="Entries to submit in order (default: entry1 entry2 entry1)",
    )
    return parser


async def run(delay_ms: int, interval_ms: int, entries: list[str]) -> None:
    """Submit entries one by one and wait until all are admitted."""
    start = time.monotonic()

    def elapsed() -> str:
        return f"{(time.monotonic() - start) * 1000:7.0f}ms"

    with DelayedUniqueQueue[str](delay_ms) as queue:
        queue.add_event_listener(
            "enqueue", lambda entry: print(f"{elapsed()}  admitted {entry}")
        )
        for entry in entries:
            print(f"{elapsed()}  submit   {entry}")
            queue.submit(entry)
            await asyncio.sleep(interval_ms / 1000)

        while queue.has_pending():
            await asyncio.sleep(0.05)

        print(f"{elapsed()}  queue    {queue.to_list()}")


def main() -> None:
    """Main entry point."""
    args = create_parser().parse_args()
    asyncio.run(run(args.delay_ms, args.interval_ms, args.entries))


if __name__ == "__main__":
    main()
