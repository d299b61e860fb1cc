"""
Performance timing utilities for matching runs.

Provides a decorator and context managers for measuring execution time of
index construction and matching loops with hierarchical output. Timing is
off unless enabled globally (enable_performance_logging) or per block.
"""

import functools
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)

_enabled = False


def enable_performance_logging(enabled: bool = True) -> None:
    """Switch timing on or off for all subsequent blocks."""
    global _enabled
    _enabled = enabled


def is_performance_logging_enabled() -> bool:
    return _enabled


class PerformanceTimer:
    """Thread-safe performance timer with hierarchical timing support."""

    def __init__(self):
        self._local = threading.local()

    def _get_stack(self) -> List[Dict[str, Any]]:
        """Get the current thread's timing stack."""
        if not hasattr(self._local, 'stack'):
            self._local.stack = []
        return self._local.stack

    def _get_results(self) -> List[Dict[str, Any]]:
        """Get the current thread's finished top-level timings."""
        if not hasattr(self._local, 'results'):
            self._local.results = []
        return self._local.results

    def clear(self):
        self._local.results = []

    @contextmanager
    def time_block(self, name: str, enabled: Optional[bool] = None):
        """Context manager for timing a code block.

        Args:
            name: Name of the code block being timed
            enabled: Overrides the global switch for this block
        """
        if not (_enabled if enabled is None else enabled):
            yield
            return

        stack = self._get_stack()
        timing_info = {
            'name': name,
            'start': time.perf_counter(),
            'depth': len(stack),
            'children': []
        }
        stack.append(timing_info)

        try:
            yield
        finally:
            timing_info['elapsed'] = time.perf_counter() - timing_info['start']
            stack.pop()

            if stack:
                stack[-1]['children'].append(timing_info)
            else:
                self._get_results().append(timing_info)

    def results(self) -> List[Dict[str, Any]]:
        """Finished top-level timings of the current thread (children nested)."""
        return list(self._get_results())

    def report(self) -> str:
        """Format timing results with hierarchy and clear them."""
        results = self._get_results()
        if not results:
            return ""

        total_time = sum(r['elapsed'] for r in results)
        lines = ["PERFORMANCE TIMING REPORT"]

        def format_timing(timing: Dict[str, Any], parent_time: Optional[float]):
            elapsed = timing['elapsed']
            indent = "  " * timing['depth']
            if parent_time:
                lines.append(f"{indent}{timing['name']}: {elapsed:.3f}s ({elapsed / parent_time * 100:.1f}%)")
            else:
                lines.append(f"{indent}{timing['name']}: {elapsed:.3f}s")
            for child in timing['children']:
                format_timing(child, elapsed)

        for result in results:
            format_timing(result, total_time)
        lines.append(f"TOTAL: {total_time:.3f}s")

        self.clear()
        return "\n".join(lines)


# Global timer instance
_timer = PerformanceTimer()


def timed(func):
    """Decorator to time function execution when timing is enabled."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not _enabled:
            return func(*args, **kwargs)

        with _timer.time_block(f"{func.__module__}.{func.__name__}"):
            return func(*args, **kwargs)

    return wrapper


@contextmanager
def time_block(name: str, enabled: Optional[bool] = None):
    """Context manager for timing arbitrary code blocks.

    Example:
        with time_block("Build index", enabled=True):
            index = create_index("delaunay", points)
    """
    with _timer.time_block(name, enabled):
        yield


def timing_results() -> List[Dict[str, Any]]:
    return _timer.results()


def log_performance_report(level: int = logging.INFO) -> None:
    """Log and clear the accumulated timing report."""
    report = _timer.report()
    if report:
        logger.log(level, "\n%s", report)
