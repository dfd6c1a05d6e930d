"""Share-link routes: anonymous redemption and owner-only issuance."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body

from spatial_showcase.api.dependencies import CurrentIdentity, Metadata, Services
from spatial_showcase.api.schemas.portfolios import PortfolioResponse
from spatial_showcase.api.schemas.share import (
    ShareGenerateRequest,
    SharedPortfolioEnvelope,
    ShareLinkResponse,
)
from spatial_showcase.services.share_links import build_share_url

router = APIRouter(prefix="/share", tags=["share"])


@router.get(
    "/{token}",
    response_model=SharedPortfolioEnvelope,
    summary="Open a shared portfolio",
    description=(
        "Resolve a share token to its portfolio. Unknown and expired tokens both "
        "return 404. Each successful redemption records a view event."
    ),
)
async def redeem_share_token(
    token: str, metadata: Metadata, services: Services
) -> SharedPortfolioEnvelope:
    shared = await services.share_links.redeem(token, metadata)
    response = PortfolioResponse.model_validate(shared.portfolio)
    return SharedPortfolioEnvelope(
        portfolio=response.model_copy(update={"owner_name": shared.owner_name})
    )


@router.post(
    "/{portfolio_id}/generate",
    response_model=ShareLinkResponse,
    summary="Get or create a share link",
    description=(
        "Return the portfolio's active share link, creating one if none is active. "
        "Repeated calls return the same token until it expires."
    ),
)
async def generate_share_link(
    portfolio_id: str,
    identity: CurrentIdentity,
    services: Services,
    request: Annotated[ShareGenerateRequest | None, Body()] = None,
) -> ShareLinkResponse:
    options = request or ShareGenerateRequest()
    link = await services.share_links.issue(portfolio_id, identity, options.expires_in_days)
    return ShareLinkResponse(
        share_url=build_share_url(services.settings.share_base_url, link.token),
        token=link.token,
        expires_at=link.expires_at,
    )
