"""Compiled-in website alias tables for each deployment.

Callers select a site by a short alias; the upstream analytics service only
knows its own opaque website identifiers. Each deployment of the proxy ships
its own alias table and listens on its own port.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class Deployment(str, Enum):
    """Deployment instance of the proxy."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


PRIMARY_WEBSITES: Mapping[str, str] = MappingProxyType(
    {
        "codefe": "b02f2e6d-d898-4f11-913a-0a94e31dbf78",
        "hmxy": "fd22bd9c-f397-4a28-8f5d-7c0ca92397b7",
        "poetry": "1f32c8c2-8a60-482c-99b7-d6db36cd43a8",
    }
)

SECONDARY_WEBSITES: Mapping[str, str] = MappingProxyType(
    {
        **PRIMARY_WEBSITES,
        "poetry": "5591c5cd-9139-4779-acca-d4fef1aecf37",
    }
)

WEBSITE_TABLES: Mapping[Deployment, Mapping[str, str]] = MappingProxyType(
    {
        Deployment.PRIMARY: PRIMARY_WEBSITES,
        Deployment.SECONDARY: SECONDARY_WEBSITES,
    }
)

DEPLOYMENT_PORTS: Mapping[Deployment, int] = MappingProxyType(
    {
        Deployment.PRIMARY: 4001,
        Deployment.SECONDARY: 4002,
    }
)


def resolve_website(table: Mapping[str, str], alias: str) -> str | None:
    """Look up the upstream website identifier for an alias.

    Args:
        table: Alias table of the running deployment
        alias: Alias supplied by the caller (matched exactly)

    Returns:
        The website identifier, or None if the alias is unknown
    """
    return table.get(alias)
