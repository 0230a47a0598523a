"""OpenTelemetry tracing decorators."""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])

# Identifier arguments copied onto spans, e.g. restaurant_id -> catalog.restaurant_id
ID_SUFFIX = "_id"
ATTRIBUTE_PREFIX = "catalog."


def traced(span_name: str | None = None, service_name: str = "menu-svc") -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a catalog operation.

    Creates a span around each call. String arguments named ``*_id``
    (restaurant, item, group, option, photo) become ``catalog.*`` span
    attributes, so traces can be filtered by tenant and entity. Exceptions
    are recorded on the span and re-raised unchanged, so catalog errors keep
    their type for the caller.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("items.create")
        async def create(self, restaurant_id: str, request: CreateMenuItemRequest) -> MenuItemView:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)
        signature = inspect.signature(func)
        id_params = [p for p in signature.parameters if p.endswith(ID_SUFFIX)]

        def _start(span: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)
            if not id_params:
                return
            try:
                bound = signature.bind_partial(*args, **kwargs).arguments
            except TypeError:
                return
            for param in id_params:
                value = bound.get(param)
                if isinstance(value, str):
                    span.set_attribute(f"{ATTRIBUTE_PREFIX}{param}", value)

        def _record_failure(span: Any, error: Exception) -> None:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(error).__name__)
            span.set_attribute("error.message", str(error))
            span.record_exception(error)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                _start(span, args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                    span.set_attribute("success", True)
                    return result
                except Exception as e:
                    _record_failure(span, e)
                    raise

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                _start(span, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                    span.set_attribute("success", True)
                    return result
                except Exception as e:
                    _record_failure(span, e)
                    raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
