"""Structured logging: console plus a JSON-lines event log."""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from metasearch.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        if s < 0.05:
            return f"{m}m"
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m {s:.1f}s"
    if seconds >= 1:
        return f"{seconds:.1f}s"
    if seconds >= 0.001:
        return f"{seconds * 1000:.0f}ms"
    if seconds > 0:
        return "<1ms"
    return "0s"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed provider)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


_SEARCH_SEP = "  " + "─" * 42 + "  "


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    # 38;5;N = foreground 256-color
    codes = {
        "dim": "\033[38;5;239m",
        "provider": "\033[38;5;81m",
        "ok": "\033[38;5;78m",
        "fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
        "quota": "\033[38;5;245m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class MetaSearchLogger:
    def __init__(self):
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = config.logs_dir / "metasearch.log"
        self._file_lock = threading.Lock()
        self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("metasearch")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(logging.INFO)
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)
        self.console.propagate = False

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        self.log_event(LogEvent(event_type=event_type, timestamp=self._timestamp(), data=data))

    def search_started(self, query: str, use_ai: bool, providers: list[str]):
        self._emit(
            "SEARCH_STARTED",
            {"query": query[:500], "use_ai": use_ai, "providers": providers},
        )
        self.console.info(
            f"Search: {query[:100]}{'...' if len(query) > 100 else ''}  "
            f"{_c('dim')}[{', '.join(providers)}]{_reset()}"
        )

    def provider_result(
        self,
        provider: str,
        count: int,
        success: bool,
        *,
        duration_seconds: float,
        error: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "provider": provider,
            "count": count,
            "success": success,
            "duration_seconds": round(duration_seconds, 3),
        }
        if error:
            data["error"] = error[:500]
        self._emit("PROVIDER_RESULT", data)
        dur_colored = f"{_c('duration')}{_format_duration(duration_seconds)}{_reset()}"
        if success:
            status_str = f"{_c('ok')}[ok]{_reset()}"
        else:
            status_str = f"{_c('fail')}[failed: {_short_reason(error)}]{_reset()}"
        self.console.info(
            f"  │ {_c('provider')}{provider}{_reset()}  {count} results  in {dur_colored}  {status_str}"
        )

    def quota_consumed(self, provider: str, used: int, remaining: int | None):
        data: dict[str, Any] = {"provider": provider, "used": used}
        if remaining is not None:
            data["remaining"] = remaining
        self._emit("QUOTA_CONSUMED", data)
        if remaining is not None:
            self.console.debug(f"  │ {_c('quota')}{provider} quota: {used} used, {remaining} left{_reset()}")

    def quota_rollover(self, provider: str, reset_date: str):
        self._emit("QUOTA_ROLLOVER", {"provider": provider, "reset_date": reset_date})
        self.console.info(f"Quota window rolled over for {provider} (reset date {reset_date})")

    def rerank_skipped(self, reason: str):
        self._emit("RERANK_SKIPPED", {"reason": reason[:500]})
        self.console.warning(f"⚠️ Semantic ranking skipped: {_short_reason(reason)}")

    def search_finished(self, query: str, total_results: int, ai_enhanced: bool, duration_seconds: float):
        self._emit(
            "SEARCH_FINISHED",
            {
                "query": query[:500],
                "total_results": total_results,
                "ai_enhanced": ai_enhanced,
                "duration_seconds": round(duration_seconds, 3),
            },
        )
        dur_colored = f"{_c('duration')}{_format_duration(duration_seconds)}{_reset()}"
        ranked = " (semantic)" if ai_enhanced else ""
        self.console.info(f"  │ {_c('ok')}✓ Done{_reset()}  {total_results} results{ranked}  total {dur_colored}")
        self.console.info(_SEARCH_SEP)

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        self._emit(
            "ERROR",
            {"message": message, "exception": str(exception) if exception else None},
        )

        # Filter kwargs for standard logger
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception

        self.console.error(f"❌ Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.info(message, *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._emit("WARNING", {"message": message[:500]})

        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.warning(f"⚠️ {message}", *args, **log_kwargs)


logger = MetaSearchLogger()
