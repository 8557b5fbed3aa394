"""Visitor statistics endpoint.

Resolves a website alias against the deployment's alias table and returns
the upstream stats payload unchanged.
"""

from collections.abc import Mapping
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from statsproxy.core.exceptions import (
    AnalyticsError,
    AnalyticsUnavailableError,
    InvalidWebsiteError,
)
from statsproxy.core.logging import get_logger, log_context
from statsproxy.dependencies import SettingsDep, get_alias_table, get_visitor_service
from statsproxy.schemas.common import ErrorResponse
from statsproxy.services.visitors import VisitorService
from statsproxy.sites import resolve_website

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/visitors",
    status_code=status.HTTP_200_OK,
    summary="Get visitor statistics",
    description="All-time visitor statistics of a website, passed through from upstream.",
    responses={
        200: {"description": "Upstream stats payload"},
        400: {"model": ErrorResponse, "description": "Unknown website alias"},
        500: {"model": ErrorResponse, "description": "Stats could not be fetched"},
    },
)
async def get_visitors(
    settings: SettingsDep,
    aliases: Annotated[Mapping[str, str], Depends(get_alias_table)],
    visitors: Annotated[VisitorService, Depends(get_visitor_service)],
    website: Annotated[
        str | None, Query(description="Website alias, e.g. codefe")
    ] = None,
) -> JSONResponse:
    """Return the visitor stats of the aliased website."""
    alias = website if website is not None else settings.default_website

    website_id = resolve_website(aliases, alias)
    if website_id is None:
        raise InvalidWebsiteError(website=alias)

    with log_context(website=alias, website_id=website_id):
        try:
            payload = await visitors.get_visitor_data(website_id)
        except AnalyticsError as e:
            logger.error(
                "get_visitors_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise AnalyticsUnavailableError(details={"cause": type(e).__name__}) from e

    return JSONResponse(content=payload)
