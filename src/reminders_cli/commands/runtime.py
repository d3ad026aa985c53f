"""Per-invocation wiring of authenticator, CloudKit client, cache and writer."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from reminders_cli.api.client import CloudKitClient
from reminders_cli.auth.authenticator import Authenticator
from reminders_cli.auth.credentials import CredentialsProvider
from reminders_cli.auth.session import Session, SessionStore
from reminders_cli.config import ConfigService, get_config_service
from reminders_cli.services.record_cache import RecordCache
from reminders_cli.services.sync_service import SyncEngine
from reminders_cli.services.writer import Writer


@dataclass
class Runtime:
    config: ConfigService
    session: Session
    client: CloudKitClient
    engine: SyncEngine
    writer: Writer


def build_authenticator(config: ConfigService) -> Authenticator:
    return Authenticator(
        SessionStore(config.session_file),
        CredentialsProvider(config.credentials_file),
        api_config=config.config.api,
    )


@asynccontextmanager
async def open_runtime(
    *, sync: bool = True, force_sync: bool = False, force_reauth: bool = False
) -> AsyncIterator[Runtime]:
    """Sign in, open the CloudKit client and (by default) sync once.

    The client is closed when the block exits.
    """
    config = get_config_service()
    session = await build_authenticator(config).ensure_session(force_reauth=force_reauth)

    async with CloudKitClient(session, config.config.api) as client:
        engine = SyncEngine(client, RecordCache(config.cache_file))
        if sync:
            await engine.sync(force_sync)
        yield Runtime(
            config=config,
            session=session,
            client=client,
            engine=engine,
            writer=Writer(client, engine),
        )
