"""
Shared logging configuration for the Realty Access Layer.
"""

import sys
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

import structlog

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar('tenant_id', default=None)
subject_role_var: ContextVar[Optional[str]] = ContextVar('subject_role', default=None)
staff_id_var: ContextVar[Optional[str]] = ContextVar('staff_id', default=None)


def configure_logging(service_name: str, log_level: str = "info", json_logs: bool = True) -> None:
    """Configure structured logging for a service."""
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request and acting-subject context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    for key, var in (
        ("tenant_id", tenant_id_var),
        ("subject_role", subject_role_var),
        ("staff_id", staff_id_var),
    ):
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_subject_context(tenant_id: Optional[str] = None, role: Optional[str] = None,
                        staff_id: Optional[str] = None):
    """Bind the acting subject to the logging context."""
    if tenant_id:
        tenant_id_var.set(tenant_id)
    if role:
        subject_role_var.set(role)
    if staff_id:
        staff_id_var.set(staff_id)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    tenant_id_var.set(None)
    subject_role_var.set(None)
    staff_id_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
