"""
Runtime tracing for hilbertgeom.

Bisector tracing, enclosing-ball search and pi sampling run as nested
spans. Each span logs its start, its events and its elapsed time; the
decorator also records the region it ran on and a summary of what it
returned. Lines go to stderr and optionally to a file, as text or JSON.
"""

import functools
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime

import numpy as np
from pydantic import BaseModel
from shapely.geometry.base import BaseGeometry


class TracerConfig:
    """Output settings for the tracer."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        self.enabled = enabled
        self.level = level.upper()
        self.file_path = file_path
        self.json_output = json_output

        self.close()
        if file_path and enabled:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def close(self):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """
    Nested span logger for kernel computations.

    Output is indented by span depth. With json_output each text line is
    followed by a JSON record carrying the depth, span and metadata.
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._depth = 0
        self._span_stack = []

    def _should_log(self, level):
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _emit(self, line):
        print(line, file=sys.stderr)
        if self.config._file_handle:
            self.config._file_handle.write(line + "\n")
            self.config._file_handle.flush()

    def _write(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        now = datetime.now()
        timestamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        location = f"{module}:{func}" if func else module

        self._emit(f"{timestamp} {level:<5} {'  ' * self._depth}{location}  {message}")

        if self.config.json_output:
            self._emit(json.dumps({
                "timestamp": timestamp,
                "level": level,
                "depth": self._depth,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }))

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block of work.

        Yields a dict; a "result" stored in it is summarized on the end
        line. Exceptions are logged at ERROR and re-raised.
        """
        outcome = {}
        if not self.config.enabled:
            yield outcome
            return

        start_time = time.perf_counter()
        self._write("INFO", module, name, _format_meta("start", meta), meta)
        self._depth += 1
        self._span_stack.append((name, module))

        try:
            yield outcome
        except Exception as e:
            self._leave()
            elapsed = (time.perf_counter() - start_time) * 1000
            self._write("ERROR", module, name, f"failed dt={elapsed:.0f}ms {type(e).__name__}: {str(e)[:100]}")
            raise

        self._leave()
        elapsed = (time.perf_counter() - start_time) * 1000
        if "result" in outcome:
            message = f"end ok dt={elapsed:.0f}ms result={summarize(outcome['result'])}"
        else:
            message = f"end ok dt={elapsed:.0f}ms"
        self._write("INFO", module, name, message)

    def _leave(self):
        self._depth -= 1
        self._span_stack.pop()

    def event(self, message, level="INFO", **meta):
        """Log a message inside the innermost open span."""
        if not self._should_log(level):
            return

        func, module = self._span_stack[-1] if self._span_stack else ("", "")
        self._write(level, module, func, _format_meta(message, meta), meta)


def _format_meta(message, meta):
    return " ".join([message] + [f"{k}={summarize(v)}" for k, v in meta.items()]).strip()


def summarize(obj, max_len=200):
    """
    One-line description of a kernel value for log output.

    Points print their coordinates, regions their vertex count, bisectors
    their piece and point counts, arrays their shape and finite range.
    Never longer than max_len.
    """
    try:
        result = _summarize_impl(obj)
    except Exception:
        return f"<{type(obj).__name__}>"
    if len(result) > max_len:
        return result[:max_len - 3] + "..."
    return result


def _summarize_impl(obj):
    if obj is None:
        return "None"

    type_name = type(obj).__name__

    if isinstance(obj, np.ndarray):
        shape = "x".join(str(s) for s in obj.shape)
        if obj.dtype.kind == "f" and obj.size:
            finite = obj[np.isfinite(obj)]
            if finite.size:
                return (f"ndarray({obj.dtype},{shape},finite={finite.size},"
                        f"range=[{finite.min():.4g},{finite.max():.4g}])")
            return f"ndarray({obj.dtype},{shape},finite=0)"
        return f"ndarray({obj.dtype},{shape})"

    # ConvexRegion
    vertices = getattr(obj, "vertices", None)
    if isinstance(vertices, (list, tuple)) and hasattr(obj, "segments"):
        return f"{type_name}(n={len(vertices)})"

    # Bisector
    pieces = getattr(obj, "pieces", None)
    if isinstance(pieces, tuple):
        return f"{type_name}(pieces={len(pieces)},points={len(obj.points)})"

    if isinstance(obj, BaseGeometry):
        bounds = ",".join(f"{b:.1f}" for b in obj.bounds)
        return f"{type_name}(bounds=[{bounds}])"

    if isinstance(obj, BaseModel):
        fields = type(obj).model_fields
        if set(fields) == {"x", "y"}:
            return f"{type_name}({obj.x:.3f},{obj.y:.3f})"
        if "radius" in fields:
            return f"{type_name}(radius={obj.radius:.4g})"
        return f"{type_name}(fields={list(fields)[:3]}...)"

    if isinstance(obj, str):
        return repr(obj) if len(obj) <= 50 else f"str(len={len(obj)})"

    if isinstance(obj, (list, tuple)):
        if not obj:
            return f"{type_name}(len=0)"
        return f"{type_name}(len={len(obj)},first={type(obj[0]).__name__})"

    if isinstance(obj, dict):
        keys = ",".join(str(k) for k in list(obj)[:5])
        return f"dict(len={len(obj)},keys=[{keys}])"

    if isinstance(obj, (int, float)):
        return str(obj)

    return f"<{type_name}>"


def _region_argument(args, kwargs):
    for value in list(args) + list(kwargs.values()):
        if hasattr(value, "vertices") and hasattr(value, "segments"):
            return value
    return None


def trace(label=None):
    """
    Run the decorated kernel function inside a span.

    The span is named label (default: the function name) and records the
    first region argument and the returned value.
    """
    def decorator(func):
        module = func.__module__.split(".")[-1] if func.__module__ else ""
        name = label or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)

            region = _region_argument(args, kwargs)
            meta = {"region": region} if region is not None else {}
            with _tracer.span(name, module=module, **meta) as outcome:
                outcome["result"] = func(*args, **kwargs)
            return outcome["result"]

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the shared tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )


def configure_from(config):
    """Configure the shared tracer from the tracing section of a KernelConfig."""
    tracing = config.tracing
    configure_tracer(
        enabled=tracing.enabled,
        level=tracing.level,
        file_path=tracing.file_path,
        json_output=tracing.json_output,
    )
