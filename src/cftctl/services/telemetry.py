"""Verbose-mode timing for service operations.

``@traced`` wraps a service method and ``trace_span`` marks a named stage
inside it. Both are pass-throughs unless ``-v`` switched telemetry on, in
which case the finished tree is attached to the result as
``meta["telemetry"]`` and logged as a ``span.complete`` debug event.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Concatenate

import structlog

from cftctl.services.result import ServiceResult

log = structlog.get_logger("cftctl.telemetry")

_enabled: ContextVar[bool] = ContextVar("cftctl_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("cftctl_active_span", default=None)


@dataclass
class Span:
    """One timed stage; children are the stages opened while it ran."""

    name: str
    started: float = field(default_factory=time.perf_counter)
    elapsed_ms: float = 0.0
    annotations: dict[str, Any] = field(default_factory=dict)
    children: list[Span] = field(default_factory=list)

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.elapsed_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


def set_telemetry(enabled: bool) -> None:
    """Switch span collection on or off for the current context."""
    _enabled.set(enabled)


def telemetry_enabled() -> bool:
    return _enabled.get()


@contextmanager
def _open(name: str) -> Iterator[Span]:
    span = Span(name)
    parent = _active.get()
    if parent is not None:
        parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.elapsed_ms = (time.perf_counter() - span.started) * 1000
        _active.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a stage of the enclosing traced call.

    Yields None when telemetry is off or no traced call is running, so
    callers guard annotations with ``if span:``.
    """
    if not _enabled.get() or _active.get() is None:
        yield None
        return
    with _open(name) as span:
        yield span


def traced[S, **P](
    method: Callable[Concatenate[S, P], ServiceResult],
) -> Callable[Concatenate[S, P], ServiceResult]:
    """Record a span tree for a service method returning ServiceResult."""

    @functools.wraps(method)
    def wrapper(self: S, *args: P.args, **kwargs: P.kwargs) -> ServiceResult:
        if not _enabled.get():
            return method(self, *args, **kwargs)
        with _open(method.__qualname__) as span:
            result = method(self, *args, **kwargs)
        log.debug(
            "span.complete",
            span_name=span.name,
            duration_ms=round(span.elapsed_ms, 2),
            ok=result.ok,
            stages=len(span.children),
        )
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        return result.model_copy(update={"meta": meta})

    return wrapper
