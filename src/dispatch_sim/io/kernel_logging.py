# io/kernel_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from datetime import UTC, datetime

from dispatch_sim.sim.hooks import NoopHooks


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_json_logging(name="dispatch_sim", level="INFO") -> logging.Logger:
    """Attach one JSON stdout handler to the package logger (idempotent)."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class KernelLogging(NoopHooks):
    """
    Structured logs for engine lifecycle and dispatched events.
    Simulation time is Unix seconds, so every record also carries its wall time.
    """

    BUSINESS = {
        "ResourceAvailable",
        "ResourceExpired",
        "AgentDropoff",
    }

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1000,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.log = logger or configure_json_logging(level=level).getChild("kernel")
        self._processed = 0

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        t = extra.get("t")
        if isinstance(t, (int, float)):
            payload["wall"] = datetime.fromtimestamp(t, UTC).isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _shape_event(self, ev):
        name = type(ev).__name__
        base = {"t": getattr(ev, "t", None)}
        if is_dataclass(ev):
            for k, v in asdict(ev).items():
                if k != "t" and v is not None:
                    base[k] = v
        return name, base

    # --------------------------------------------------------

    def run_start(self, *, until, max_events, qsize):
        self._emit("INFO", "run_start", until=until, max_events=max_events, qsize=qsize)

    def run_end(self, *, processed, last_t, qsize, wall_ms):
        self._emit(
            "INFO", "run_end", processed=processed, last_t=last_t, qsize=qsize, wall_ms=wall_ms
        )

    def schedule(self, ev, *, now, qsize):
        if self.debug and (qsize % self.sample_every) == 0:
            name, extra = self._shape_event(ev)
            self._emit("DEBUG", "schedule", event=name, now=now, qsize=qsize, **extra)

    def cancel(self, ev, *, now, qsize):
        if self.debug:
            name, extra = self._shape_event(ev)
            self._emit("DEBUG", "cancel", event=name, now=now, qsize=qsize, **extra)

    def dispatch_start(self, ev, *, seq, qsize, handlers):
        self._processed += 1
        name, extra = self._shape_event(ev)
        if name in self.BUSINESS:
            level = "INFO"
        elif self.debug and (self._processed % self.sample_every) == 0:
            level = "DEBUG"
        else:
            return
        self._emit(level, name, **extra, seq=seq, qsize=qsize, handlers=handlers)

    def dispatch_end(self, ev, *, out_events, ms):
        if self.debug and (self._processed % self.sample_every) == 0:
            self._emit("DEBUG", "dispatch_done", out_events=out_events, ms=ms)

    def error(self, ev, *, reason: str, **kw):
        name, extra = self._shape_event(ev)
        exc = kw.pop("exc", None)
        if exc is not None:
            kw["error"] = str(exc)
        self._emit("ERROR", "kernel_error", **{**extra, **kw, "event": name, "reason": reason})
