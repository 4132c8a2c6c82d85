"""Request-scoped logging context and stage timing."""

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class LogContext:
    """Context information carried through one derivative request."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        """Create new context with operation set."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=operation,
            component=self.component,
            metadata=self.metadata.copy(),
        )

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        """Create new context with additional metadata."""
        new_metadata = self.metadata.copy()
        new_metadata.update(kwargs)
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata=new_metadata,
        )


class StructuredLogger:
    """Adapter that renders a LogContext into a plain logging record."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs: Any,
    ) -> None:
        if context is not None:
            formatted = f"[{context.correlation_id}] {message}"
            if context.operation:
                formatted = f"[{context.operation}] {formatted}"
            fields = {**context.metadata, **kwargs}
        else:
            formatted = message
            fields = kwargs

        if fields:
            formatted = f"{formatted} ({', '.join(f'{k}={v}' for k, v in fields.items())})"

        self._logger.log(getattr(logging, level.value), formatted)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Timing of one pipeline stage."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000


class MetricsCollector:
    """In-process collector for stage timings."""

    def __init__(self) -> None:
        self._metrics: List[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics) -> None:
        self._metrics.append(metric)

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        """Get recorded metrics, optionally filtered by operation."""
        if operation:
            return [m for m in self._metrics if m.operation == operation]
        return self._metrics.copy()

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        metrics = self.get_metrics(operation)
        if not metrics:
            return {}

        durations = [m.duration_ms for m in metrics]
        successful = sum(1 for m in metrics if m.success)
        return {
            "total_operations": len(metrics),
            "successful_operations": successful,
            "failed_operations": len(metrics) - successful,
            "avg_duration_ms": sum(durations) / len(durations),
            "max_duration_ms": max(durations),
        }

    def clear_metrics(self) -> None:
        self._metrics.clear()


@contextmanager
def stage_timer(
    operation: str,
    logger: Any,
    context: LogContext,
    metrics_collector: Optional[MetricsCollector] = None,
) -> Iterator[LogContext]:
    """Time one pipeline stage, logging its outcome and recording a metric."""
    stage_context = context.with_operation(operation)
    start_time = time.perf_counter()
    error_message: Optional[str] = None
    try:
        yield stage_context
    except Exception as exc:
        error_message = str(exc)
        raise
    finally:
        end_time = time.perf_counter()
        duration_ms = (end_time - start_time) * 1000
        if error_message is None:
            logger.debug(f"Completed {operation}", stage_context, duration_ms=round(duration_ms, 2))
        else:
            logger.warning(
                f"Failed {operation}: {error_message}",
                stage_context,
                duration_ms=round(duration_ms, 2),
            )
        if metrics_collector is not None:
            metrics_collector.record_metric(
                PerformanceMetrics(
                    operation=operation,
                    start_time=start_time,
                    end_time=end_time,
                    success=error_message is None,
                    error_message=error_message,
                )
            )
