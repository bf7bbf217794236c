"""Transient, dismissible notices shown to the operator."""

from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

NoticeLevel = Literal["success", "info", "error"]

_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class Notice:
    level: NoticeLevel
    message: str
    id: int = field(default_factory=lambda: next(_ids))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeBoard:
    """Bounded queue of notices; the oldest are dropped first."""

    def __init__(self, max_notices: int = 20) -> None:
        self._notices: deque[Notice] = deque(maxlen=max_notices)

    def push(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.push("success", message)

    def info(self, message: str) -> Notice:
        return self.push("info", message)

    def error(self, message: str) -> Notice:
        return self.push("error", message)

    def dismiss(self, notice_id: int) -> None:
        self._notices = deque(
            (notice for notice in self._notices if notice.id != notice_id),
            maxlen=self._notices.maxlen,
        )

    def active(self) -> list[Notice]:
        return list(self._notices)

    def latest(self) -> Notice | None:
        return self._notices[-1] if self._notices else None

    def __len__(self) -> int:
        return len(self._notices)
