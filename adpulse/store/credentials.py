"""AdPulse — Credential Store Adapter.

Typed access to the ``config_tokens`` table (provider → token). No business
logic lives here; callers decide what a missing row means.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from adpulse.models.store_models import ConfigToken
from adpulse.models.sync_models import TokenType


class CredentialStore:
    """Read/write provider credentials."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get_token(self, provider: str, token_type: TokenType) -> Optional[ConfigToken]:
        """Most recently updated credential of ``token_type`` for ``provider``."""
        with Session(self.engine) as session:
            return session.exec(
                select(ConfigToken)
                .where(
                    ConfigToken.provider == provider,
                    ConfigToken.token_type == token_type.value,
                )
                .order_by(ConfigToken.updated_at.desc())
            ).first()

    def get_provider(self, provider: str) -> Optional[ConfigToken]:
        with Session(self.engine) as session:
            return session.exec(
                select(ConfigToken).where(ConfigToken.provider == provider)
            ).first()

    def promote_to_long_lived(self, token_id: int, access_token: str) -> ConfigToken:
        """Overwrite an existing row in place with an exchanged long-lived token."""
        with Session(self.engine) as session:
            row = session.get(ConfigToken, token_id)
            if row is None:
                raise LookupError(f"Credential {token_id} no longer exists")
            row.access_token = access_token
            row.token_type = TokenType.LONG_LIVED.value
            row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def save_token(
        self,
        provider: str,
        access_token: str,
        token_type: TokenType = TokenType.SHORT_LIVED,
    ) -> ConfigToken:
        """Insert or replace the provider's credential (keyed on provider)."""
        with Session(self.engine) as session:
            row = session.exec(
                select(ConfigToken).where(ConfigToken.provider == provider)
            ).first()
            if row is None:
                row = ConfigToken(provider=provider, token_type=token_type.value, access_token=access_token)
            else:
                row.access_token = access_token
                row.token_type = token_type.value
                row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def delete_provider(self, provider: str) -> int:
        """Remove the provider's credential. Returns the number of rows deleted."""
        with Session(self.engine) as session:
            rows = session.exec(
                select(ConfigToken).where(ConfigToken.provider == provider)
            ).all()
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)
