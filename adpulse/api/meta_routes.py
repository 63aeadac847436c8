"""AdPulse — Meta Connection Routes.

What the admin "Connect Facebook" screen needs: store the token it got from
the login dialog (short-lived; the next sync exchanges it), show whether a
token is present, disconnect, and validate the stored token against Meta.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from adpulse.api.deps import get_context
from adpulse.connectors.meta.client import MetaAPIError
from adpulse.models.sync_models import TokenType
from adpulse.sync.context import SyncContext
from adpulse.core.logging import get_logger

logger = get_logger("api.meta")

router = APIRouter(prefix="/meta", tags=["Meta"])


class ConnectionRequest(BaseModel):
    access_token: str
    token_type: TokenType = TokenType.SHORT_LIVED


class ConnectionStatus(BaseModel):
    connected: bool
    provider: str
    token_type: Optional[str] = None
    updated_at: Optional[datetime] = None


@router.get("/connection", response_model=ConnectionStatus)
def get_connection(ctx: SyncContext = Depends(get_context)):
    """Whether a credential is stored for the configured provider."""
    provider = ctx.settings.token_provider
    row = ctx.credentials.get_provider(provider)
    if row is None:
        return ConnectionStatus(connected=False, provider=provider)
    return ConnectionStatus(
        connected=True,
        provider=provider,
        token_type=row.token_type,
        updated_at=row.updated_at,
    )


@router.put("/connection", response_model=ConnectionStatus)
def put_connection(body: ConnectionRequest, ctx: SyncContext = Depends(get_context)):
    """Store (or replace) the provider's token."""
    if not body.access_token.strip():
        raise HTTPException(status_code=422, detail="access_token must not be empty")
    provider = ctx.settings.token_provider
    row = ctx.credentials.save_token(provider, body.access_token.strip(), body.token_type)
    logger.info(f"Stored {row.token_type} token", extra={"provider": provider})
    return ConnectionStatus(
        connected=True,
        provider=provider,
        token_type=row.token_type,
        updated_at=row.updated_at,
    )


@router.delete("/connection", status_code=204)
def delete_connection(ctx: SyncContext = Depends(get_context)):
    """Disconnect: remove the provider's credential."""
    provider = ctx.settings.token_provider
    deleted = ctx.credentials.delete_provider(provider)
    logger.info(f"Removed {deleted} credential(s)", extra={"provider": provider})
    return Response(status_code=204)


@router.get("/validate-token")
async def validate_token(ctx: SyncContext = Depends(get_context)):
    """Check the stored long-lived token with Meta's debug_token endpoint."""
    row = ctx.credentials.get_token(ctx.settings.token_provider, TokenType.LONG_LIVED)
    if row is None:
        raise HTTPException(status_code=404, detail="No long-lived token stored")

    client = ctx.meta_client(row.access_token)
    try:
        result = await client.validate_token()
        return {
            "status": "success",
            "valid": result["valid"],
            "expires_at": result["expires_at"],
            "scopes": result["scopes"],
            "app_id": result["app_id"],
        }
    except MetaAPIError as e:
        raise HTTPException(
            status_code=400, detail=f"Token validation failed: {str(e)}"
        )
    finally:
        await client.close()
