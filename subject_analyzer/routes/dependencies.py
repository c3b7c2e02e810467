"""FastAPI dependencies resolving components from application state."""

from fastapi import Request

from subject_analyzer.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """Service container built at application startup."""
    return request.app.state.container


def get_client_key(request: Request) -> str:
    """Rate limiting identity of the caller: its network address."""
    return request.client.host if request.client else "unknown"
