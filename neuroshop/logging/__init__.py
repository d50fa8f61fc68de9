"""Structured logging for the aggregation engine.

Every event carries a ``kind`` field (search, provider, cache, api, error)
so log pipelines can route them, plus the current request id when one is
bound. Console output is colored text in development and JSON in
production; rotating files are opt-in with LOG_TO_FILE.
"""

import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

import structlog

from neuroshop.config.settings import Settings, settings

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = structlog.get_logger(__name__)


def _file_handler(config: Settings, filename: str, level: int) -> logging.Handler:
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=config.log_file_max_bytes,
        backupCount=config.log_file_backup_count,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def configure_logging(config: Optional[Settings] = None) -> None:
    """Route structlog through stdlib logging with the configured renderer."""
    config = config or settings
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_to_file:
        handlers.append(_file_handler(config, "neuroshop.log", level))
        handlers.append(_file_handler(config, "errors.log", logging.ERROR))

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_request_context,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger.info(
        "logging_configured",
        environment=config.environment,
        level=config.log_level,
        json=config.json_logs,
        to_file=config.log_to_file,
    )


def add_request_context(logger, method_name, event_dict):
    """structlog processor: attach the bound request id and environment."""
    request_id = _request_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    event_dict.setdefault("env", settings.environment)
    return event_dict


def set_request_context(request_id: Optional[str] = None) -> None:
    if request_id:
        _request_id.set(request_id)


def clear_request_context() -> None:
    _request_id.set(None)


def _emit(level: str, event: str, kind: str, **fields: Any) -> None:
    getattr(logger, level)(event, kind=kind, **fields)


def log_search(
    query: str,
    search_term: str,
    category: str,
    results_count: int,
    sources: list[str],
    duration_ms: float,
    cached: bool = False,
) -> None:
    """Log one finished aggregation request.

    Args:
        query: Query as the user typed it
        search_term: Term sent to the providers
        category: Resolved category value
        results_count: Ranked offers returned
        sources: Sources that contributed at least one offer
        duration_ms: End-to-end latency
        cached: True when served from the search cache
    """
    _emit(
        "info",
        "search_completed",
        "search",
        query=query,
        search_term=search_term,
        product_category=category,
        results_count=results_count,
        sources=sources,
        duration_ms=round(duration_ms, 1),
        cached=cached,
    )


def log_provider_outcome(
    provider: str,
    status: str,
    offer_count: int,
    duration_ms: float,
    error: Optional[str] = None,
) -> None:
    """Log a provider call. Anything but success is a warning."""
    _emit(
        "info" if status == "success" else "warning",
        "provider_call",
        "provider",
        provider=provider,
        status=status,
        offer_count=offer_count,
        duration_ms=round(duration_ms, 1),
        error=error,
    )


def log_cache_operation(operation: str, key: str, cache_name: str) -> None:
    # operation: hit, miss, set, evict
    _emit("debug", "cache_" + operation, "cache", key=key[:80], cache=cache_name)


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_agent: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Log an HTTP request; 4xx are warnings and 5xx errors."""
    if status_code >= 500:
        level = "error"
    elif status_code >= 400:
        level = "warning"
    else:
        level = "info"
    _emit(
        level,
        "api_request",
        "api",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration_ms, 1),
        user_agent=(user_agent or "")[:100] or None,
        error=error,
    )


def log_error(error_type: str, message: str, context: Optional[dict] = None) -> None:
    """Log an unexpected error, with the active traceback if any."""
    _emit(
        "error",
        "unexpected_error",
        "error",
        error_type=error_type,
        message=message,
        context=context or {},
        exc_info=True,
    )
