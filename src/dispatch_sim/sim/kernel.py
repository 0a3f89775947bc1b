# sim/kernel.py

import heapq
import time
from collections.abc import Callable, Hashable, Iterable

from .event import BaseEvent
from .hooks import KernelHooks, NoopHooks

Handler = Callable[[BaseEvent], Iterable[BaseEvent] | None]

_REMOVED = None  # placeholder for a cancelled heap entry


class Kernel:
    """
    Discrete-event scheduler.

    Events are ordered by (t, seq); seq is assigned at schedule time so equal-time
    events fire in FIFO order. An event whose owner() is not None becomes that
    owner's pending event and can be withdrawn with cancel(owner). Scheduling
    another event for the same owner withdraws the earlier one.
    """

    def __init__(self, hooks: KernelHooks | None = None):
        self._t = 0.0
        self._q: list[list] = []  # [t, seq, ev | _REMOVED]
        self._seq = 0
        self._live = 0
        self._pending: dict[Hashable, list] = {}
        self._subs: dict[type[BaseEvent], list[Handler]] = {}
        self._hooks = hooks or NoopHooks()

    @property
    def now(self) -> float:
        return self._t

    def __len__(self) -> int:
        return self._live

    def on(self, etype: type[BaseEvent], handler: Handler) -> None:
        self._subs.setdefault(etype, []).append(handler)

    def schedule(self, ev: BaseEvent) -> None:
        self._seq += 1
        entry = [ev.t, self._seq, ev]
        key = ev.owner()
        if key is not None:
            self.cancel(key)
            self._pending[key] = entry
        heapq.heappush(self._q, entry)
        self._live += 1
        self._hooks.schedule(ev, now=self._t, qsize=self._live)

    def pending(self, owner: Hashable) -> BaseEvent | None:
        entry = self._pending.get(owner)
        return entry[2] if entry is not None else None

    def cancel(self, owner: Hashable) -> BaseEvent | None:
        entry = self._pending.pop(owner, None)
        if entry is None or entry[2] is _REMOVED:
            return None
        ev = entry[2]
        entry[2] = _REMOVED
        self._live -= 1
        self._hooks.cancel(ev, now=self._t, qsize=self._live)
        return ev

    def _drop_removed(self) -> None:
        while self._q and self._q[0][2] is _REMOVED:
            heapq.heappop(self._q)

    def peek_time(self) -> float | None:
        self._drop_removed()
        return self._q[0][0] if self._q else None

    def _pop(self) -> tuple[float, int, BaseEvent]:
        self._drop_removed()
        entry = heapq.heappop(self._q)
        self._live -= 1
        t, seq, ev = entry
        key = ev.owner()
        if key is not None and self._pending.get(key) is entry:
            del self._pending[key]
        return t, seq, ev

    def run(self, until: float | None = None, max_events: int | None = None) -> int:
        t0 = time.perf_counter()
        self._hooks.run_start(until=until, max_events=max_events, qsize=self._live)
        processed = 0
        while True:
            nxt_t = self.peek_time()
            if nxt_t is None or (until is not None and nxt_t > until):
                break
            t, seq, ev = self._pop()
            if t < self._t - 1e-9:
                self._hooks.error(ev, reason="time_backwards", prev_t=self._t, t=t)
                raise RuntimeError(f"time went backwards: {t} < {self._t}")
            self._t = t
            handlers = self._subs.get(type(ev), ())
            t1 = time.perf_counter()
            self._hooks.dispatch_start(ev, seq=seq, qsize=self._live, handlers=len(handlers))
            total_out = 0
            for h in handlers:
                try:
                    out = h(ev) or ()
                except Exception as exc:
                    self._hooks.error(ev, reason="handler_failed", exc=exc)
                    raise
                for nxt in out:
                    if nxt.t + 1e-12 < self._t:
                        self._hooks.error(
                            ev,
                            reason="scheduled_past",
                            scheduled_t=nxt.t,
                            nxt_type=type(nxt).__name__,
                        )
                        raise RuntimeError(
                            f"handler scheduled past event at {nxt.t} < now {self._t}"
                        )
                    self.schedule(nxt)
                    total_out += 1
            ms = (time.perf_counter() - t1) * 1000
            self._hooks.dispatch_end(ev, out_events=total_out, ms=ms)
            processed += 1
            if max_events and processed >= max_events:
                break
        self._hooks.run_end(
            processed=processed,
            last_t=self._t,
            qsize=self._live,
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return processed
