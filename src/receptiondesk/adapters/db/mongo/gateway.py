"""
MongoDB persistence gateway.

Owns the single AsyncMongoClient of the process: opened by the app lifespan,
health-checked with a ping at most once per interval, dropped and reopened
after a connectivity failure, and closed at shutdown. Driver exceptions are
translated here into DatabaseError so callers never see pymongo types.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Type

import certifi  # type: ignore
from beanie import Document, init_beanie  # type: ignore
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from ....core.config import DatabaseSettings
from ....core.exceptions import DatabaseError, DatabaseUnavailableError

logger = logging.getLogger(__name__)

# Server error codes that mean the credentials in the URI were rejected
_AUTH_ERROR_CODES = {13, 18}
_DUPLICATE_KEY_CODE = 11000


class MongoGateway:
    """Lifecycle and error boundary around the Mongo client."""

    def __init__(self, settings: DatabaseSettings, document_models: Sequence[Type[Document]] = ()):
        self._settings = settings
        self._document_models = list(document_models)
        self._client: Optional[AsyncMongoClient] = None
        self._last_ping: float = 0.0

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def database(self) -> AsyncDatabase:
        if self._client is None:
            raise DatabaseUnavailableError("Database client is not connected")
        return self._client[self._settings.db_name]

    def _build_client(self) -> AsyncMongoClient:
        uri = self._settings.uri
        options: Dict[str, Any] = {
            "serverSelectionTimeoutMS": self._settings.server_selection_timeout_ms,
            "connectTimeoutMS": self._settings.connect_timeout_ms,
            "maxPoolSize": self._settings.max_pool_size,
            "minPoolSize": self._settings.min_pool_size,
        }
        # Enable TLS only for Atlas SRV URIs
        if uri.startswith("mongodb+srv://"):
            options.update(tls=True, tlsCAFile=certifi.where(), tlsAllowInvalidCertificates=False)
        return AsyncMongoClient(uri, **options)

    async def open(self) -> None:
        """Create the client, verify it with a ping and register the document models."""
        if self._client is not None:
            return
        client = self._build_client()
        try:
            async with self.translate_errors("connect"):
                await client.admin.command("ping")
                if self._document_models:
                    await self._init_models(client[self._settings.db_name])
        except DatabaseError:
            await client.close()
            raise
        self._client = client
        self._last_ping = time.monotonic()
        logger.info("✅ Database connection established (db=%s)", self._settings.db_name)

    async def _init_models(self, database: AsyncDatabase) -> None:
        """Register the document models, building their indexes when the data allows it."""
        try:
            await init_beanie(database=database, document_models=self._document_models)
        except OperationFailure as exc:
            if exc.code != _DUPLICATE_KEY_CODE:
                raise
            # Existing duplicates block a unique index; serve without it until they are merged
            logger.error(
                "❌ Unique index build failed on existing duplicates (%s); continuing without it. "
                "Run scripts/migrate_identifier_forms.py --merge-queue-duplicates",
                exc.details.get("errmsg") if exc.details else exc,
            )
            await init_beanie(database=database, document_models=self._document_models, skip_indexes=True)

    async def invalidate(self) -> None:
        """Drop the cached client so the next access reconnects."""
        if self._client is not None:
            logger.warning("⚠️  Dropping database client after a connectivity failure")
            client, self._client = self._client, None
            await client.close()

    async def ensure_ready(self) -> None:
        """Reconnect when needed and ping the cached client if the interval has passed."""
        if self._client is None:
            await self.open()
            return
        if time.monotonic() - self._last_ping < self._settings.health_check_interval_seconds:
            return
        async with self.translate_errors("ping"):
            await self._client.admin.command("ping")
        self._last_ping = time.monotonic()

    async def ping(self) -> bool:
        """Unconditional liveness ping used by the health endpoint."""
        try:
            if self._client is None:
                await self.open()
            async with self.translate_errors("ping"):
                await self._client.admin.command("ping")
        except DatabaseError as exc:
            logger.error("Database ping failed: %s", exc.message)
            return False
        self._last_ping = time.monotonic()
        return True

    async def collection_counts(self, names: List[str]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        async with self.operation("count"):
            for name in names:
                counts[name] = await self.database[name].estimated_document_count()
        return counts

    async def close(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.close()
            logger.info("Database connection closed")

    @asynccontextmanager
    async def translate_errors(self, operation: str) -> AsyncIterator[None]:
        """Re-raise driver failures as DatabaseError with a descriptive message."""
        try:
            yield
        except ConnectionFailure as exc:
            # Covers ServerSelectionTimeoutError, AutoReconnect and NetworkTimeout
            await self.invalidate()
            raise DatabaseUnavailableError(
                f"Database unavailable during {operation}: {type(exc).__name__}",
                {"operation": operation},
            ) from exc
        except OperationFailure as exc:
            if exc.code in _AUTH_ERROR_CODES:
                await self.invalidate()
                raise DatabaseUnavailableError(
                    "Database authentication failed; check the MongoDB credentials",
                    {"operation": operation},
                ) from exc
            raise DatabaseError(
                f"Database operation '{operation}' failed: {exc.details.get('errmsg') if exc.details else exc}",
                {"operation": operation, "code": exc.code},
            ) from exc
        except PyMongoError as exc:
            raise DatabaseError(
                f"Database operation '{operation}' failed: {exc}", {"operation": operation}
            ) from exc

    @asynccontextmanager
    async def operation(self, name: str) -> AsyncIterator[None]:
        """Readiness check plus error translation around one repository call."""
        await self.ensure_ready()
        async with self.translate_errors(name):
            yield

    @asynccontextmanager
    async def write_unit(self, use_transactions: Optional[bool] = None) -> AsyncIterator[Any]:
        """Yield a session inside a transaction, or None when transactions are disabled."""
        if use_transactions is None:
            use_transactions = self._settings.use_transactions
        if not use_transactions:
            yield None
            return
        await self.ensure_ready()
        async with self._client.start_session() as session:
            async with await session.start_transaction():
                yield session
