"""FastAPI dependency injection container.

Shared state (settings, token manager, cache, visitor service) is built once
in the application lifespan and stored on ``app.state``. The functions here
hand it to routes through ``Depends()`` so tests can swap any of it with
``app.dependency_overrides``.
"""

from collections.abc import Mapping
from typing import Annotated

from fastapi import Depends, Request

from statsproxy.config import Settings
from statsproxy.services.auth import TokenManager
from statsproxy.services.visitors import VisitorService


# ========================================
# Settings Dependencies
# ========================================
def get_settings_from_request(request: Request) -> Settings:
    """Get settings from request state (set during app creation).

    Args:
        request: The current request

    Returns:
        Settings: Application settings
    """
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings_from_request)]


def get_alias_table(settings: SettingsDep) -> Mapping[str, str]:
    """Get the alias to website id table of this deployment."""
    return settings.alias_table


# ========================================
# Service Dependencies
# ========================================
def get_visitor_service(request: Request) -> VisitorService:
    """Get the process-wide visitor service.

    Raises:
        RuntimeError: If called before the lifespan has started
    """
    service = getattr(request.app.state, "visitor_service", None)
    if service is None:
        raise RuntimeError("Visitor service not initialized. Is the lifespan running?")
    return service


def get_token_manager(request: Request) -> TokenManager | None:
    """Get the token manager, or None before the lifespan has started."""
    return getattr(request.app.state, "token_manager", None)
