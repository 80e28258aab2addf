"""Dependency injection for API routes."""

from typing import Annotated

from fastapi import Depends, Request

from parentgate.services.context import GateContext


def get_gate_context(request: Request) -> GateContext:
    """FastAPI dependency for the application's GateContext.

    The context is built once in the lifespan handler and stored on
    app.state; tests install their own before issuing requests.
    """
    return request.app.state.context


# Type aliases for dependency injection
ContextDep = Annotated[GateContext, Depends(get_gate_context)]
