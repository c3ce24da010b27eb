"""
Process-wide collaborators, built once at startup and injected into routes.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from bind_playground.bundle.session import BundleSession
from bind_playground.exchange.client import ExchangeClient
from bind_playground.exchange.directory import DebouncedDirectoryLookup, DirectoryClient
from bind_playground.exchange.keys import KeyPair, KeyStore
from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.services.storage import KeyValueStore
from bind_playground.services.terminology import TerminologyClient


@dataclass
class Playground:
    session_factory: sessionmaker
    registry: SchemaRegistry
    bundle: BundleSession
    keys: KeyStore
    exchange: ExchangeClient
    directory: DirectoryClient
    lookup: DebouncedDirectoryLookup
    terminology: TerminologyClient
    key_pair: KeyPair | None = None
    issuer: str = ""

    @classmethod
    def build(
        cls,
        session_factory: sessionmaker,
        registry: SchemaRegistry,
        exchange: ExchangeClient,
        directory: DirectoryClient,
        terminology: TerminologyClient,
        debounce_seconds: float | None = None,
    ) -> Playground:
        store = KeyValueStore(session_factory)
        keys = KeyStore(store)
        return cls(
            session_factory=session_factory,
            registry=registry,
            bundle=BundleSession(store),
            keys=keys,
            exchange=exchange,
            directory=directory,
            lookup=DebouncedDirectoryLookup(directory, delay=debounce_seconds),
            terminology=terminology,
            key_pair=keys.load_key_pair(),
            issuer=keys.load_issuer(),
        )

    def set_key_pair(self, pair: KeyPair) -> None:
        self.key_pair = pair
        self.keys.save_key_pair(pair)

    def set_issuer(self, issuer: str) -> None:
        self.issuer = issuer
        self.keys.save_issuer(issuer)

    def refresh_directory_status(self) -> None:
        """Re-run the (debounced) trust lookup for the current issuer and kid."""
        kid = self.key_pair.kid if self.key_pair else None
        self.lookup.schedule(self.issuer, kid)

    async def close(self) -> None:
        self.lookup.cancel()
        await self.exchange.close()
        await self.directory.close()
        await self.terminology.close()


def get_playground(request: Request) -> Playground:
    return request.app.state.playground


def get_db(request: Request):
    """FastAPI dependency that yields a database session."""
    db: Session = request.app.state.playground.session_factory()
    try:
        yield db
    finally:
        db.close()
