"""Progress events emitted by the geocoding procedures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

ProgressSink = Callable[[str], None]


@dataclass(frozen=True)
class ProgressEvent:
    kind: str
    message: str
    summary: Any = None


def drain(events: Iterable[ProgressEvent], on_progress: ProgressSink | None = None) -> ProgressEvent | None:
    last = None
    for event in events:
        if on_progress is not None:
            on_progress(event.message)
        last = event
    return last
