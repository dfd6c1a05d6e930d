"""Portfolio routes.

Reads accept an optional credential: owners can always read, anonymous and
other users only when the portfolio is public. Mutations are owner-only.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from spatial_showcase.api.dependencies import CurrentIdentity, OptionalIdentity, Services
from spatial_showcase.api.schemas.common import MessageResponse
from spatial_showcase.api.schemas.portfolios import (
    OwnerPortfolioEnvelope,
    OwnerPortfolioResponse,
    PortfolioCreateRequest,
    PortfolioEnvelope,
    PortfolioListEnvelope,
    PortfolioResponse,
    PortfolioUpdateRequest,
)

router = APIRouter(prefix="/portfolios", tags=["portfolios"])


@router.get("", response_model=PortfolioListEnvelope, summary="List my portfolios")
async def list_portfolios(identity: CurrentIdentity, services: Services) -> PortfolioListEnvelope:
    """Return the caller's portfolios, most recently updated first."""
    portfolios = await services.content.list_portfolios(identity)
    return PortfolioListEnvelope(
        portfolios=[OwnerPortfolioResponse.model_validate(p) for p in portfolios]
    )


@router.post(
    "",
    response_model=OwnerPortfolioEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a portfolio",
)
async def create_portfolio(
    request: PortfolioCreateRequest, identity: CurrentIdentity, services: Services
) -> OwnerPortfolioEnvelope:
    portfolio = await services.content.create_portfolio(
        identity,
        title=request.title,
        description=request.description,
        template_id=request.template_id,
        settings=request.settings,
        is_public=request.is_public,
    )
    return OwnerPortfolioEnvelope(portfolio=OwnerPortfolioResponse.model_validate(portfolio))


@router.get("/{portfolio_id}", response_model=PortfolioEnvelope, summary="Get a portfolio")
async def get_portfolio(
    portfolio_id: str, identity: OptionalIdentity, services: Services
) -> PortfolioEnvelope:
    """Return the portfolio without its inline share token, whoever the caller is."""
    portfolio, owner_name = await services.content.get_portfolio(identity, portfolio_id)
    response = PortfolioResponse.model_validate(portfolio)
    return PortfolioEnvelope(portfolio=response.model_copy(update={"owner_name": owner_name}))


@router.put(
    "/{portfolio_id}", response_model=OwnerPortfolioEnvelope, summary="Update a portfolio"
)
async def update_portfolio(
    portfolio_id: str,
    request: PortfolioUpdateRequest,
    identity: CurrentIdentity,
    services: Services,
) -> OwnerPortfolioEnvelope:
    portfolio = await services.content.update_portfolio(
        identity, portfolio_id, request.model_dump(exclude_unset=True)
    )
    return OwnerPortfolioEnvelope(portfolio=OwnerPortfolioResponse.model_validate(portfolio))


@router.delete("/{portfolio_id}", response_model=MessageResponse, summary="Delete a portfolio")
async def delete_portfolio(
    portfolio_id: str, identity: CurrentIdentity, services: Services
) -> MessageResponse:
    await services.content.delete_portfolio(identity, portfolio_id)
    return MessageResponse(message="Portfolio deleted successfully")
