r"""
Logging setup for tokenrelay.

Console output goes through ``colorlog.ColoredFormatter``. Failures are
logged as one structured line each and counted per category by the
process-wide ``error_aggregator`` so a host application can report how
often renewals or transports failed.
"""

import functools
import logging
import os
import re
import sys
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

import colorlog

_CREDENTIAL_CHARS = r"[A-Za-z0-9._~+/=-]+"
# Value of an Authorization header rendered as text or as a dict/repr entry
_AUTHORIZATION_RE = re.compile(
    r"""(Authorization['"]?\s*[:=]\s*['"]?)([A-Za-z][\w-]*\s+)?([^\s'",;}]+)""",
    re.IGNORECASE,
)

# Schemes whose credentials are masked wherever they appear
_redacted_schemes: set[str] = {"Bearer"}

# Per-category history kept by the aggregator
MAX_ENTRIES_PER_CATEGORY = 1000
RECENT_WINDOW_SECONDS = 3600

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


def register_auth_scheme(scheme: str) -> None:
    """Mask credentials sent with ``scheme`` in every later log message."""
    if scheme and scheme.strip():
        _redacted_schemes.add(scheme.strip())


@functools.lru_cache(maxsize=16)
def _scheme_pattern(schemes: frozenset[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(s) for s in sorted(schemes))
    return re.compile(rf"\b({alternatives})(\s+){_CREDENTIAL_CHARS}")


class CredentialRedactionFilter(logging.Filter):
    """Masks credentials that end up in a rendered log message.

    Two shapes are caught: ``<scheme> <credential>`` for every registered
    scheme (``Bearer`` by default), and any ``Authorization`` header value.
    """

    def __init__(self, schemes=None):
        super().__init__()
        self.schemes = frozenset(schemes) if schemes else None

    def filter(self, record):
        rendered = record.getMessage()
        schemes = self.schemes or frozenset(_redacted_schemes)
        redacted = _scheme_pattern(schemes).sub(r"\1\2***", rendered)
        redacted = _AUTHORIZATION_RE.sub(
            lambda m: f"{m.group(1)}{m.group(2) or ''}***", redacted
        )
        if redacted != rendered:
            record.msg = redacted
            record.args = None
        return True


@dataclass
class ErrorEntry:
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class ErrorAggregator:
    """Counts structured errors per category.

    Each category keeps its latest ``MAX_ENTRIES_PER_CATEGORY`` entries.
    Rates are expressed per hour of runtime, with a one hour floor so a
    burst right after startup does not look like a storm.
    """

    def __init__(self):
        self.errors: dict[str, deque[ErrorEntry]] = defaultdict(
            lambda: deque(maxlen=MAX_ENTRIES_PER_CATEGORY)
        )
        self.lock = threading.Lock()
        self.start_time = time.time()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] | None = None) -> None:
        with self.lock:
            self.errors[error_type].append(ErrorEntry(message, dict(context or {})))

    def _stats(self, entries: deque[ErrorEntry], now: float) -> dict[str, Any]:
        hours = max((now - self.start_time) / 3600, 1)
        last = entries[-1] if entries else None
        return {
            "total_count": len(entries),
            "recent_count": sum(1 for e in entries if now - e.timestamp < RECENT_WINDOW_SECONDS),
            "rate_per_hour": len(entries) / hours,
            "last_occurrence": (
                {"timestamp": last.timestamp, "message": last.message, "context": last.context}
                if last
                else None
            ),
        }

    def get_error_summary(self) -> dict[str, Any]:
        """Return ``{category: stats}`` for every category seen so far."""
        now = time.time()
        with self.lock:
            return {kind: self._stats(entries, now) for kind, entries in self.errors.items()}

    def should_alert(self, error_type: str, threshold_rate: float = 10.0) -> bool:
        stats = self.get_error_summary().get(error_type)
        return stats is not None and stats["rate_per_hour"] > threshold_rate

    def reset(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return

        logging.warning("📊 Error summary")
        for kind, stats in sorted(summary.items()):
            logging.warning(
                f"  {kind}: {stats['total_count']} total, {stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )
            if stats["last_occurrence"]:
                logging.warning(f"    Last: {stats['last_occurrence']['message']}")


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log one structured error line and count it.

    The line reads ``[TYPE] message | Exception: Name: text | Context: k=v | ...``;
    the exception and context parts are omitted when empty.

    Args:
        error_type: Category such as ``network``, ``auth`` or ``config``.
        message: Human readable description.
        exception: Exception being reported, if any.
        context: Extra key/value pairs, rendered in insertion order.
        level: Logging level (default: ERROR).
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, message, context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        logging.critical(f"🚨 High error rate: {error_type} at {rate:.1f}/hour")


class LoggerConfigurator:
    """Configures root logging with colored console output.

    The level comes from the ``DEBUG`` environment variable: ``true``, ``1``
    or ``yes`` select DEBUG, anything else INFO.
    """

    def __init__(self, config=None):
        """
        Args:
            config: Optional dict; ``quiet_loggers`` names loggers held at
                INFO even in debug mode (default: ``aiohttp``).
        """
        self.config = config or {}

    @staticmethod
    def level_from_env() -> int:
        flag = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if flag in ("true", "1", "yes") else logging.INFO

    @staticmethod
    def build_formatter() -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self):
        level = self.level_from_env()
        formatter = self.build_formatter()
        redaction = CredentialRedactionFilter()

        root = logging.getLogger()
        if not root.handlers:
            root.addHandler(logging.StreamHandler(sys.stderr))
        for handler in root.handlers:
            handler.setFormatter(formatter)
            handler.addFilter(redaction)
        root.setLevel(level)

        for name in self.config.get("quiet_loggers", ("aiohttp",)):
            logging.getLogger(name).setLevel(logging.INFO)
