"""
Tool timing instrumentation

Measures tool execution time with an I/O breakdown (network/disk vs
compute). Results go to the log at DEBUG; stdout carries the MCP protocol
and is never written to.

Usage:
    timer = ToolTimer("get_image_metadata")

    # I/O operations - wrap with measure_io_async
    response = await measure_io_async(lambda: client.get(url))

    timer.finish()
"""

import contextvars
import logging
import time
from typing import Awaitable, Callable, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)

# Per-task I/O time accumulator (tool calls interleave on one event loop)
_io_ms: contextvars.ContextVar[float] = contextvars.ContextVar("io_ms", default=0.0)


def _get_io_accumulator() -> float:
    return _io_ms.get()


def _reset_io_accumulator() -> None:
    _io_ms.set(0.0)


def _add_io_time(ms: float) -> None:
    _io_ms.set(_io_ms.get() + ms)


async def measure_io_async(func: Callable[[], Awaitable[T]]) -> T:
    """
    Await an I/O operation and add its duration to the current tool's I/O time.

    Args:
        func: A callable returning an awaitable that performs I/O

    Returns:
        The result of the I/O operation
    """
    start = time.perf_counter()
    try:
        return await func()
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        _add_io_time(elapsed_ms)


class ToolTimer:
    """
    Timer for measuring MCP tool execution with I/O breakdown.

    Logged as:
        tool timing {"tool": "list_categories", "fn_total_ms": 150.5, "io_ms": 120.3, "compute_ms": 30.2}
    """

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        self.start_time = time.perf_counter()
        _reset_io_accumulator()

    def finish(self) -> dict:
        """
        Finish timing and log results.

        Returns:
            Dictionary with timing data
        """
        elapsed = time.perf_counter() - self.start_time
        io_ms = _get_io_accumulator()

        fn_total_ms = elapsed * 1000
        compute_ms = max(0.0, fn_total_ms - io_ms)

        timing = {
            "tool": self.tool_name,
            "fn_total_ms": round(fn_total_ms, 3),
            "io_ms": round(io_ms, 3),
            "compute_ms": round(compute_ms, 3),
        }
        logger.debug("tool timing %s", timing)
        return timing
