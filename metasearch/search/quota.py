"""Per-provider usage ledger with a monthly quota for gated providers.

State is persisted as JSON ({provider: {used, limit?, resetDate?, remaining?}})
so counts survive restarts. A single process is assumed to own the file.
"""

import json
import os
import tempfile
import threading
from collections.abc import Callable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from metasearch.contracts.meta_search_v1 import ProviderId, ProviderUsage
from metasearch.core.logger import logger


def first_of_month(moment: datetime | date) -> date:
    return date(moment.year, moment.month, 1)


class QuotaLedger:
    """Tracks usage for every provider and enforces monthly limits on gated ones.

    Every read of a gated provider first runs the rollover check: when the
    current (year, month) differs from the stored reset date's, usage drops
    to 0 and the reset date moves to the first of the current month, no
    matter how many months have passed. Check-and-reset and consume() run
    under one lock so concurrent searches cannot lose updates or reset twice.
    """

    def __init__(
        self,
        path: Path | None = None,
        limits: Mapping[ProviderId, int] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._path = path
        self._limits = dict(limits if limits is not None else {ProviderId.GOOGLE: 100})
        self._clock = clock
        self._lock = threading.Lock()
        self._state: dict[ProviderId, ProviderUsage] = self._load()

    # -- persistence -------------------------------------------------------

    def _default_usage(self, provider: ProviderId) -> ProviderUsage:
        limit = self._limits.get(provider)
        if limit is None:
            return ProviderUsage(used=0)
        return ProviderUsage(
            used=0,
            limit=limit,
            reset_date=first_of_month(self._clock()),
            remaining=limit,
        )

    def _load(self) -> dict[ProviderId, ProviderUsage]:
        state = {p: self._default_usage(p) for p in ProviderId}
        if self._path is None or not self._path.exists():
            return state
        try:
            with open(self._path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read usage stats from {self._path}: {e}; starting fresh")
            return state
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed usage stats in {self._path}")
            return state

        for provider in ProviderId:
            entry = raw.get(provider.value)
            if not isinstance(entry, dict):
                continue
            try:
                stored = ProviderUsage.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Ignoring invalid usage entry for {provider.value}: {e}")
                continue
            usage = state[provider]
            usage.used = stored.used
            if usage.gated:
                if stored.reset_date is not None:
                    usage.reset_date = stored.reset_date
                usage.remaining = max(0, usage.limit - usage.used)
        return state

    def _save_locked(self) -> None:
        if self._path is None:
            return
        data = self._to_json_locked()
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to save usage stats to {self._path}", exception=e)
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def _to_json_locked(self) -> dict[str, Any]:
        return {
            provider.value: usage.model_dump(mode="json", by_alias=True, exclude_none=True)
            for provider, usage in self._state.items()
        }

    # -- window maintenance ------------------------------------------------

    def _rollover_locked(self, provider: ProviderId) -> bool:
        usage = self._state[provider]
        if not usage.gated:
            return False
        now = self._clock()
        reset = usage.reset_date
        if reset is not None and (reset.year, reset.month) == (now.year, now.month):
            usage.remaining = max(0, usage.limit - usage.used)
            return False
        usage.used = 0
        usage.remaining = usage.limit
        usage.reset_date = first_of_month(now)
        logger.quota_rollover(provider.value, usage.reset_date.isoformat())
        return True

    def _refresh_locked(self, provider: ProviderId) -> ProviderUsage:
        if self._rollover_locked(provider):
            self._save_locked()
        return self._state[provider]

    def _consume_locked(self, provider: ProviderId) -> ProviderUsage:
        usage = self._state[provider]
        usage.used += 1
        if usage.gated:
            usage.remaining = max(0, usage.limit - usage.used)
        self._save_locked()
        return usage.model_copy()

    # -- public API --------------------------------------------------------

    def is_gated(self, provider: ProviderId) -> bool:
        return provider in self._limits

    def consume(self, provider: ProviderId) -> ProviderUsage:
        """Count one invocation of provider; returns a copy of its usage afterwards."""
        with self._lock:
            self._rollover_locked(provider)
            snapshot = self._consume_locked(provider)
        logger.quota_consumed(provider.value, snapshot.used, snapshot.remaining)
        return snapshot

    def try_consume(self, provider: ProviderId) -> bool:
        """Count one invocation only if quota is left; False leaves usage untouched.

        The check and the increment happen under one lock, so concurrent
        callers can never take a gated provider past its limit.
        """
        with self._lock:
            rolled = self._rollover_locked(provider)
            usage = self._state[provider]
            if usage.gated and usage.remaining <= 0:
                if rolled:
                    self._save_locked()
                return False
            snapshot = self._consume_locked(provider)
        logger.quota_consumed(provider.value, snapshot.used, snapshot.remaining)
        return True

    def remaining(self, provider: ProviderId) -> int:
        if not self.is_gated(provider):
            raise ValueError(f"{provider.value} has no quota")
        with self._lock:
            return self._refresh_locked(provider).remaining

    def can_use(self, provider: ProviderId) -> bool:
        if not self.is_gated(provider):
            return True
        return self.remaining(provider) > 0

    def reset(self, provider: ProviderId) -> None:
        """Force-reset usage for provider and start a fresh window this month."""
        with self._lock:
            usage = self._state[provider]
            usage.used = 0
            if usage.gated:
                usage.remaining = usage.limit
                usage.reset_date = first_of_month(self._clock())
            self._save_locked()

    def snapshot(self) -> dict[ProviderId, ProviderUsage]:
        with self._lock:
            changed = False
            for provider in ProviderId:
                changed = self._rollover_locked(provider) or changed
            if changed:
                self._save_locked()
            return {p: u.model_copy() for p, u in self._state.items()}

    def to_json_dict(self) -> dict[str, Any]:
        self.snapshot()
        with self._lock:
            return self._to_json_locked()
