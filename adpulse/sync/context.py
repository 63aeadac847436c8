"""AdPulse — Sync Context.

Everything the sync components share, built once at process start and
passed down explicitly: settings, the store engine, the credential adapter
and a factory for Meta clients bound to a token.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx
from sqlalchemy.engine import Engine

from adpulse.config import Settings
from adpulse.connectors.meta.client import MetaClient
from adpulse.database import create_db_engine
from adpulse.store.credentials import CredentialStore

ClientFactory = Callable[[Optional[str]], MetaClient]


@dataclass
class SyncContext:
    settings: Settings
    engine: Engine
    credentials: CredentialStore
    client_factory: ClientFactory = field(repr=False)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        engine: Optional[Engine] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "SyncContext":
        engine = engine or create_db_engine(settings.effective_database_url)

        def client_factory(token: Optional[str]) -> MetaClient:
            return MetaClient(
                access_token=token,
                graph_url=settings.meta_graph_url,
                timeout=settings.meta_timeout_seconds,
                max_retries=settings.meta_max_retries,
                transport=transport,
            )

        return cls(
            settings=settings,
            engine=engine,
            credentials=CredentialStore(engine),
            client_factory=client_factory,
        )

    def meta_client(self, token: Optional[str] = None) -> MetaClient:
        return self.client_factory(token)

    def close(self) -> None:
        self.engine.dispose()
