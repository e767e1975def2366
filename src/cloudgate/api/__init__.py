"""CloudGate REST API."""

from cloudgate.api.router import router

__all__ = ["router"]
