"""Shared API dependencies for viewer identity and session lookup."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from popcorn_social.services.social_session import SessionRegistry, SocialSession


def get_registry(request: Request) -> SessionRegistry:
    """Return the session registry created at application startup."""
    registry: SessionRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store is not configured",
        )
    return registry


def get_viewer_id(
    x_viewer_id: Annotated[str | None, Header(alias="X-Viewer-Id")] = None,
) -> str:
    """Return the authenticated viewer id forwarded by the auth layer.

    Raises:
        HTTPException: If the header is missing or blank.
    """
    if not x_viewer_id or not x_viewer_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing viewer identity",
        )
    return x_viewer_id.strip()


RegistryDep = Annotated[SessionRegistry, Depends(get_registry)]
ViewerDep = Annotated[str, Depends(get_viewer_id)]


def get_social_session(registry: RegistryDep, viewer_id: ViewerDep) -> SocialSession:
    """Return the viewer's social session, creating it on first use."""
    return registry.get(viewer_id)


SessionDep = Annotated[SocialSession, Depends(get_social_session)]
