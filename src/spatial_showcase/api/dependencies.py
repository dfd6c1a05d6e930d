"""Shared dependencies for API routes.

Services are built once in the application lifespan and stored on
``app.state.services``; routes receive them through the providers below.
Authentication is selected per route by depending on either
:data:`CurrentIdentity` (required) or :data:`OptionalIdentity`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Header, Request

from spatial_showcase.config import Settings
from spatial_showcase.data.db import Database
from spatial_showcase.services.analytics import AnalyticsRecorder, RequestMetadata
from spatial_showcase.services.content import ContentService
from spatial_showcase.services.credentials import (
    AuthCapability,
    CredentialVerifier,
    Identity,
    OptionalAuth,
    RequiredAuth,
)
from spatial_showcase.services.ownership import OwnershipResolver
from spatial_showcase.services.share_links import ShareLinkManager


@dataclass
class AppServices:
    """Everything the routes need, wired to one database."""

    settings: Settings
    database: Database
    verifier: CredentialVerifier
    resolver: OwnershipResolver
    recorder: AnalyticsRecorder
    share_links: ShareLinkManager
    content: ContentService


def build_services(settings: Settings, database: Database) -> AppServices:
    """Wire the services for one application instance."""
    verifier = CredentialVerifier(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(minutes=settings.access_token_expire_minutes),
    )
    resolver = OwnershipResolver(database)
    recorder = AnalyticsRecorder(database)
    share_links = ShareLinkManager(
        database,
        resolver,
        recorder,
        max_attempts=settings.share_token_attempts,
        step_timeout=settings.share_query_timeout,
        issue_timeout=settings.share_issue_timeout,
    )
    return AppServices(
        settings=settings,
        database=database,
        verifier=verifier,
        resolver=resolver,
        recorder=recorder,
        share_links=share_links,
        content=ContentService(database, resolver),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


Services = Annotated[AppServices, Depends(get_services)]


class BearerAuth:
    """FastAPI dependency applying an :class:`AuthCapability` to the request."""

    def __init__(self, capability: type[AuthCapability]) -> None:
        self.capability = capability

    def __call__(
        self,
        services: Services,
        authorization: Annotated[str | None, Header()] = None,
    ) -> Identity | None:
        return self.capability(services.verifier).authenticate(authorization)


require_identity = BearerAuth(RequiredAuth)
optional_identity = BearerAuth(OptionalAuth)

CurrentIdentity = Annotated[Identity, Depends(require_identity)]
OptionalIdentity = Annotated[Identity | None, Depends(optional_identity)]


def get_request_metadata(
    request: Request,
    user_agent: Annotated[str | None, Header()] = None,
) -> RequestMetadata:
    """Collect the user agent and client address of the request."""
    ip_address = request.client.host if request.client else None
    return RequestMetadata(user_agent=user_agent, ip_address=ip_address)


Metadata = Annotated[RequestMetadata, Depends(get_request_metadata)]
