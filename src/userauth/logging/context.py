"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_operation: ContextVar[str] = ContextVar("operation", default="")
_flow: ContextVar[str] = ContextVar("flow", default="")
_client_id: ContextVar[str] = ContextVar("client_id", default="")


def set_log_context(
    operation: Optional[str] = None,
    flow: Optional[str] = None,
    client_id: Optional[str] = None,
) -> None:
    if operation is not None:
        _operation.set(operation)
    if flow is not None:
        _flow.set(flow)
    if client_id is not None:
        _client_id.set(client_id)


def get_log_context() -> Dict[str, str]:
    return {
        "operation": _operation.get(),
        "flow": _flow.get(),
        "client_id": _client_id.get(),
    }


def clear_log_context() -> None:
    _operation.set("")
    _flow.set("")
    _client_id.set("")
