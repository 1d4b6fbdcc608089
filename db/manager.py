"""
Database connection manager module.

Provides a singleton DatabaseManager class that owns the motor client and
binds the Beanie document models to it.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from datetime import UTC
from typing import Any, Self

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from config import get_mongo_database, get_mongo_uri

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Singleton class to manage the MongoDB client and database connection.

    The client is bound to the event loop it was created on; a changed or
    closed loop (test runs, reloads) triggers a reconnect.

    Environment Variables:
        MONGODB_URI: MongoDB URI (default: mongodb://localhost:27017)
        MONGODB_DATABASE: Database name (default: drive_timer)
        MONGODB_SERVER_SELECTION_TIMEOUT_MS: Server selection timeout (default: 5000)
    """

    _instance: DatabaseManager | None = None
    _lock = threading.Lock()

    def __new__(cls) -> Self:
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if not getattr(self, "_initialized", False):
            self._client: AsyncIOMotorClient | None = None
            self._db: AsyncIOMotorDatabase | None = None
            self._bound_loop: asyncio.AbstractEventLoop | None = None
            self._beanie_initialized = False
            self._initialized = True
            self._server_selection_timeout_ms = int(
                os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "5000"),
            )

    def _initialize_client(self) -> None:
        mongo_uri = get_mongo_uri()
        logger.debug("Initializing MongoDB client with URI: %s", mongo_uri)
        client_kwargs: dict[str, Any] = {
            "tz_aware": True,
            "tzinfo": UTC,
            "serverSelectionTimeoutMS": self._server_selection_timeout_ms,
            "appname": "DriveTimer",
        }
        self._client = AsyncIOMotorClient(mongo_uri, **client_kwargs)
        self._db = self._client[get_mongo_database()]
        self._bound_loop = self._get_current_loop()
        logger.info("MongoDB client initialized successfully")

    @staticmethod
    def _get_current_loop() -> asyncio.AbstractEventLoop | None:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _reset_client(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
        self._bound_loop = None
        self._beanie_initialized = False

    def _check_loop_and_reconnect(self) -> None:
        if self._client is None or self._bound_loop is None:
            return
        current_loop = self._get_current_loop()
        if self._bound_loop.is_closed() or (
            current_loop is not None and current_loop is not self._bound_loop
        ):
            logger.info("Event loop changed, reconnecting MongoDB client")
            self._reset_client()

    @property
    def db(self) -> AsyncIOMotorDatabase:
        self._check_loop_and_reconnect()
        if self._db is None:
            self._initialize_client()
        if self._db is None:
            msg = "Database instance could not be initialized."
            raise RuntimeError(msg)
        return self._db

    @property
    def beanie_initialized(self) -> bool:
        return self._beanie_initialized

    async def init_beanie(self) -> None:
        """Bind all document models; call once during application startup."""
        self._check_loop_and_reconnect()
        if self._beanie_initialized and self._db is not None:
            logger.debug("Beanie already initialized, skipping")
            return

        from db.models import ALL_DOCUMENT_MODELS

        await init_beanie(database=self.db, document_models=ALL_DOCUMENT_MODELS)
        self._beanie_initialized = True
        logger.info(
            "Beanie ODM initialized with %d document models",
            len(ALL_DOCUMENT_MODELS),
        )

    async def cleanup_connections(self) -> None:
        """Clean up MongoDB client connections."""
        if self._client is not None:
            logger.info("Closing MongoDB client connections...")
        self._reset_client()


# Singleton instance
db_manager = DatabaseManager()
