# 📄 File: gardenbeds/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# Sets up the app's diary: every query, outside call and cache decision is written down in a
# structured way so we can see what the garden backend is doing and how fast it is.

# 🧪 Purpose (Technical Summary):
# Structured logging with JSON formatting (python-json-logger), request context propagation
# through contextvars, performance event helpers and per-operation query timing statistics.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# Used by: repositories (query timing), request executor (external API events),
# cache layer (cache events), application startup, error handling middleware

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional
from uuid import uuid4

from pythonjsonlogger import jsonlogger

# Request id of the HTTP request being served, bound by the error handling middleware
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

SERVICE_NAME = 'gardenbeds-api'
LOG_KWARGS = ('exc_info', 'stack_info', 'stacklevel')

_logging_configured = False
_loggers_cache: Dict[str, "StructuredLogger"] = {}


class ContextualFormatter(logging.Formatter):
    """
    Text formatter that stamps the request id and service name on every record.
    """

    def format(self, record):
        record.request_id = request_id_var.get('')
        record.service = SERVICE_NAME
        record.timestamp = datetime.now(timezone.utc).isoformat()

        if hasattr(record, 'extra_fields') and record.extra_fields:
            for key, value in record.extra_fields.items():
                setattr(record, key, value)

        return super().format(record)


class ContextualJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for log aggregation.

    Flattens ``extra_fields`` into the top-level JSON object and adds
    the request context.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = SERVICE_NAME

        if request_id_var.get():
            log_record['request_id'] = request_id_var.get()

        extra_fields = log_record.pop('extra_fields', None)
        if extra_fields:
            log_record.update(extra_fields)


class PerformanceLogger:
    """
    Logger for tracking performance metrics and timing information.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_database_query(
        self,
        operation: str,
        duration_ms: float,
        slow: bool = False,
        extra: Dict = None
    ):
        """Log store query performance."""
        extra_fields = {
            'event_type': 'database_query',
            'operation': operation,
            'duration_ms': round(duration_ms, 2),
            **(extra or {})
        }

        if slow:
            self.logger.warning(
                f"Slow query detected: {operation} took {duration_ms:.2f}ms",
                extra={'extra_fields': extra_fields}
            )
        else:
            self.logger.debug(
                f"DB {operation} - {duration_ms:.2f}ms",
                extra={'extra_fields': extra_fields}
            )

    def log_external_api_call(
        self,
        method: str,
        url: str,
        status_code: Optional[int],
        duration_ms: float,
        success: bool,
        attempt: int = 1,
        extra: Dict = None
    ):
        """Log external API call performance."""
        extra_fields = {
            'event_type': 'external_api_call',
            'method': method,
            'url': url,
            'status_code': status_code,
            'duration_ms': round(duration_ms, 2),
            'success': success,
            'attempt': attempt,
            **(extra or {})
        }

        level = logging.INFO if success else logging.WARNING
        self.logger.log(
            level,
            f"API {method} {url} - {status_code} - {duration_ms:.2f}ms",
            extra={'extra_fields': extra_fields}
        )

    def log_cache_operation(
        self,
        operation: str,
        namespace: str,
        key: str,
        hit: bool = None,
        extra: Dict = None
    ):
        """Log cache operation."""
        extra_fields = {
            'event_type': 'cache_operation',
            'operation': operation,
            'cache_namespace': namespace,
            'cache_key': key,
            **(extra or {})
        }

        if hit is not None:
            extra_fields['cache_hit'] = hit

        self.logger.debug(
            f"Cache {operation} {namespace} - {key}",
            extra={'extra_fields': extra_fields}
        )


class StructuredLogger:
    """
    Logger wrapper: keyword arguments and ``extra`` end up as flat fields
    of the emitted record.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.performance = PerformanceLogger(self.logger)

    def debug(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: Dict = None, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, extra, exc_info=exc_info, **kwargs)

    def critical(self, message: str, extra: Dict = None, exc_info: bool = False, **kwargs):
        self._log(logging.CRITICAL, message, extra, exc_info=exc_info, **kwargs)

    def _log(self, level: int, message: str, extra: Dict = None, **kwargs):
        log_kwargs = {key: kwargs.pop(key) for key in LOG_KWARGS if key in kwargs}
        fields = {**(extra or {}), **kwargs}
        if fields:
            log_kwargs['extra'] = {'extra_fields': fields}
        self.logger.log(level, message, **log_kwargs)


class QueryPerformanceTracker:
    """
    Per-operation timing statistics for store queries.

    ``start_timer(name)`` returns a stop callable; ``track(name)`` is the
    context manager form. Operations slower than the threshold are logged
    as warnings.
    """

    def __init__(
        self,
        slow_threshold_ms: float = 1000.0,
        clock: Callable[[], float] = time.perf_counter
    ):
        self.slow_threshold_ms = slow_threshold_ms
        self._clock = clock
        self._queries: Dict[str, Dict[str, float]] = {}
        self._logger = get_logger(__name__)

    def start_timer(self, name: str) -> Callable[[], float]:
        start = self._clock()

        def stop() -> float:
            duration_ms = (self._clock() - start) * 1000
            self.record(name, duration_ms)
            return duration_ms

        return stop

    @contextmanager
    def track(self, name: str) -> Iterator[None]:
        stop = self.start_timer(name)
        try:
            yield
        finally:
            stop()

    def record(self, name: str, duration_ms: float) -> None:
        stats = self._queries.setdefault(name, {'count': 0, 'total_time_ms': 0.0})
        stats['count'] += 1
        stats['total_time_ms'] += duration_ms

        self._logger.performance.log_database_query(
            name, duration_ms, slow=duration_ms > self.slow_threshold_ms
        )

    def get_stats(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {
                'count': int(stats['count']),
                'avg_time_ms': stats['total_time_ms'] / stats['count'],
            }
            for name, stats in self._queries.items()
        }

    def reset(self) -> None:
        self._queries.clear()


def setup_logging(
    log_level: str = 'INFO',
    log_format: str = 'json',
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger once per process.

    Args:
        log_level: Minimum level name
        log_format: 'json' or 'text'
        log_file: Optional file to log to in addition to stdout
    """
    global _logging_configured

    if _logging_configured:
        return logging.getLogger("startup")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == 'json':
        formatter = ContextualJsonFormatter('%(message)s %(module)s %(funcName)s %(lineno)d')
    else:
        formatter = ContextualFormatter('%(timestamp)s - %(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    _logging_configured = True
    return logging.getLogger("startup")


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = StructuredLogger(name)
    _loggers_cache[name] = logger

    return logger


@contextmanager
def log_context(request_id: Optional[str] = None) -> Iterator[Dict[str, str]]:
    """Bind a request id (generated when omitted) to every record logged inside the block."""
    request_id = request_id or str(uuid4())
    token = request_id_var.set(request_id)
    try:
        yield {'request_id': request_id}
    finally:
        request_id_var.reset(token)


def log_startup_event(service_name: str, version: str, extra: Dict[str, Any] = None):
    """Log application startup event."""
    get_logger('startup').info(
        f"Service {service_name} starting up",
        extra={
            'event_type': 'service_startup',
            'service_name': service_name,
            'version': version,
            **(extra or {})
        }
    )


def log_shutdown_event(service_name: str, extra: Dict[str, Any] = None):
    """Log application shutdown event."""
    get_logger('shutdown').info(
        f"Service {service_name} shutting down",
        extra={
            'event_type': 'service_shutdown',
            'service_name': service_name,
            **(extra or {})
        }
    )
