# utils.py
# Utility functions for the phoneme normalizer server.

import logging
import time
from typing import Optional, Tuple, List

logger = logging.getLogger(__name__)


def preview_text(text: str, limit: int = 100) -> str:
    """Shortens text for log lines, marking the cut with an ellipsis."""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


# --- Performance Monitoring Utility ---
class PerformanceMonitor:
    """
    A simple helper class for recording and reporting elapsed time for different
    stages of an operation. Useful for debugging performance bottlenecks.
    """

    def __init__(
        self, enabled: bool = True, logger_instance: Optional[logging.Logger] = None
    ):
        self.enabled: bool = enabled
        self.logger = (
            logger_instance
            if logger_instance is not None
            else logging.getLogger(__name__)
        )
        self.start_time: float = 0.0
        self.events: List[Tuple[str, float]] = []
        if self.enabled:
            self.start_time = time.monotonic()
            self.events.append(("Monitoring Started", self.start_time))

    def record(self, event_name: str):
        if not self.enabled:
            return
        self.events.append((event_name, time.monotonic()))

    def report(self, log_level: int = logging.DEBUG) -> str:
        if not self.enabled or not self.events:
            return "Performance monitoring was disabled or no events recorded."

        report_lines = ["Performance Report:"]
        last_event_time = self.events[0][1]

        for i in range(1, len(self.events)):
            event_name, timestamp = self.events[i]
            prev_event_name, _ = self.events[i - 1]
            step = timestamp - last_event_time
            elapsed = timestamp - self.start_time
            report_lines.append(
                f"  - '{event_name}' after '{prev_event_name}': "
                f"{step * 1000:.3f}ms (elapsed {elapsed * 1000:.3f}ms)"
            )
            last_event_time = timestamp

        total_duration = self.events[-1][1] - self.start_time
        report_lines.append(f"Total: {total_duration * 1000:.3f}ms")
        full_report_str = "\n".join(report_lines)

        if self.logger:
            self.logger.log(log_level, full_report_str)
        return full_report_str
