"""Request context dependencies shared by the v1 routes."""

from typing import Annotated

from fastapi import Depends, Header, Request


def get_actor(x_actor: Annotated[str, Header(max_length=256)] = "anonymous") -> str:
    """Identifier of the caller, recorded on audit events and audit columns."""
    return x_actor


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or ""


Actor = Annotated[str, Depends(get_actor)]
CorrelationId = Annotated[str, Depends(get_correlation_id)]
