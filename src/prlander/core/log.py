"""Logging for prlander, built on logfire.

Every message is a logfire span. The console shows them through
logfire's own console exporter; the optional run log and OTLP sinks
get them through extra span processors, each filtered by its own
level.

Components take a ``log`` argument and default to the module-level
``logger`` proxy, so tests can hand in their own recorder while the
CLI shares one configured instance.
"""

from __future__ import annotations

import contextlib
from abc import abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from prlander.core.base import BaseConfig

# Level names to OpenTelemetry severity numbers, most verbose first.
# spew is for raw command output and HTTP payloads.
LEVELS = {
    'spew': logs_pb2.SEVERITY_NUMBER_TRACE,
    'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,
    'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
    'info': logs_pb2.SEVERITY_NUMBER_INFO,
    'warn': logs_pb2.SEVERITY_NUMBER_WARN,
    'error': logs_pb2.SEVERITY_NUMBER_ERROR,
    'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
}

# Span attributes that logfire and OpenTelemetry add on their own
_INTERNAL_ATTRS = frozenset({
    'code.filepath', 'code.lineno', 'code.function',
    'logfire.msg', 'logfire.msg_template', 'logfire.level_num',
    'logfire.span_type', 'logfire.json_schema', 'logfire.tags',
})

_current_logger: Logger | None = None


def level_number(name: str | None) -> int:
    """Severity number of a level name; unknown names count as info."""
    return LEVELS.get((name or 'info').lower(), LEVELS['info'])


def level_name(number: int) -> str:
    """Most severe level name whose threshold number reaches."""
    for name in reversed(LEVELS):
        if number >= LEVELS[name]:
            return name
    return 'spew'


def _span_level(span: ReadableSpan) -> int:
    return (span.attributes or {}).get('logfire.level_num', LEVELS['info'])


class _LoggerProxy:
    """Forwards attribute access to the configured logger.

    Before setup_logger() runs every method is a no-op, which keeps
    module import and config bootstrap silent.
    """

    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


logger = _LoggerProxy()


class LevelFilteringExporter(SpanExporter):
    """Forwards only the spans at or above a minimum level."""

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = level_number(min_level)

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [s for s in spans if _span_level(s) >= self._min_severity]
        if not kept:
            return SpanExportResult.SUCCESS
        return self._exporter.export(kept)

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """One log destination with its own level."""

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Level for this sink; None inherits Logger.level. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        ),
    )

    _processor: Any = PrivateAttr(default=None)

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Span processor feeding this sink, or None."""

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Terminal output through logfire's console exporter."""

    verbose: bool = Field(default=False, description="Show span details")
    colors: str = Field(
        default="auto", description="Color mode: auto, always, never",
    )

    def create_processor(self, log_root: Path, run_name: str):
        return None

    def options(self):
        """logfire ConsoleOptions for this sink, or False when disabled."""
        if not self.enabled:
            return False

        from logfire import ConsoleOptions

        return ConsoleOptions(
            # logfire has no spew level
            min_log_level={'spew': 'trace'}.get(self.level, self.level or 'info'),
            verbose=self.verbose,
            colors=self.colors,
            include_timestamps=True,
        )


class FileSink(Sink):
    """Plain-text run log, one line per message.

    Lines read ``<time> <level> <message> | key=value ...``; the
    continuation lines of a multi-line message (a reproducible curl
    command, say) are indented.
    """

    enabled: bool = Field(default=False, description="Write a run log")
    path: str = Field(
        default="{log_root}/{run_name}/prlander.log",
        description="Run log path ({log_root} and {run_name} are filled in)",
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(self.path.format(log_root=log_root, run_name=run_name))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Line-buffered and open until close()
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(out=self._file, formatter=self.format_line)
        return BatchSpanProcessor(LevelFilteringExporter(exporter, self.level))

    @staticmethod
    def format_line(span: ReadableSpan) -> str:
        attrs = span.attributes or {}
        stamp = datetime.fromtimestamp(span.start_time / 1e9, tz=timezone.utc)
        message = str(attrs.get('logfire.msg', span.name)).replace("\n", "\n    ")
        line = (
            f"{stamp:%Y-%m-%d %H:%M:%S} "
            f"{level_name(_span_level(span)).upper():<5} "
            f"{message}"
        )
        extra = sorted(
            (key, value) for key, value in attrs.items()
            if key not in _INTERNAL_ATTRS
        )
        if extra:
            line += " | " + " ".join(f"{k}={v!r}" for k, v in extra)
        return line + "\n"

    def close(self):
        """Flush pending lines, then close the file."""
        super().close()
        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.flush()
                self._file.close()


class OTLPSink(Sink):
    """Export to an OpenTelemetry collector (Jaeger, SigNoz, ...)."""

    enabled: bool = Field(default=False, description="Enable OTLP export")
    endpoint: str = Field(
        default="http://localhost:4317", description="OTLP gRPC endpoint",
    )
    insecure: bool = Field(default=True, description="Connect without TLS")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers, e.g. for auth",
    )

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(
            endpoint=self.endpoint,
            insecure=self.insecure,
            headers=self.headers or None,
        )
        return BatchSpanProcessor(LevelFilteringExporter(exporter, self.level))


class Logger(BaseConfig):
    """Configured sinks plus the logging methods the code calls."""

    level: str = Field(
        default="info",
        description=(
            "Default level for every sink without its own. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        ),
    )
    console: ConsoleSink = Field(default_factory=ConsoleSink)
    file: FileSink = Field(default_factory=FileSink)
    otlp: OTLPSink = Field(default_factory=OTLPSink)

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in (self.console, self.file, self.otlp):
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Start the enabled sinks and configure logfire.

        Args:
            log_root: Directory the run log path is relative to
            run_name: Name of this run, used in the run log path
        """
        processors = []
        for sink in (self.file, self.otlp):
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)
                processors.append(sink._processor)

        import logfire

        logfire.configure(
            service_name="prlander",
            send_to_logfire=False,
            console=self.console.options(),
            additional_span_processors=processors or None,
        )

    def spew(self, msg: str, **kwargs):
        self._log('spew', msg, kwargs)

    def trace(self, msg: str, **kwargs):
        self._log('trace', msg, kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Context manager grouping everything logged inside it.

        Usage:
            with logger.span("sync branch", branch=name):
                ...
        """
        import logfire
        return logfire.span(msg, **kwargs)

    def _log(self, level: str, msg: str, attributes: dict):
        import logfire
        logfire.log(
            level=LEVELS[level], msg_template=msg, attributes=attributes or None,
        )


def setup_logger(
    log_root: Path,
    run_name: str,
    level: str = "info",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    otlp: OTLPSink | None = None,
) -> Logger:
    """Install a new global logger, closing the previous one.

    Called by Config once it has loaded, and directly by tests.
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
        otlp=otlp or OTLPSink(),
    )
    _current_logger.setup(log_root, run_name)
    return _current_logger
