# taskminder/core/database.py

from contextlib import AbstractAsyncContextManager
from typing import Optional, cast

import motor.motor_asyncio
from motor.motor_asyncio import AsyncIOMotorDatabase
from loguru import logger

from taskminder.core.config import settings

DEFAULT_DB_NAME = "taskminder"

def parse_db_name(uri: str) -> str:
    """Extracts the database name from a MongoDB URI, falling back to the default."""
    uri_path = uri.rsplit('/', 1)[-1] if uri.count('/') >= 3 else ""
    db_name = uri_path.split('?')[0]
    if not db_name or '@' in db_name or ':' in db_name or len(db_name) > 63:
        logger.warning(f"Could not parse DB name from URI, using default: {DEFAULT_DB_NAME}")
        return DEFAULT_DB_NAME
    return db_name

class MongoDbContext(AbstractAsyncContextManager):
    """Owns one motor client for the lifetime of an `async with` block."""

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self.uri = uri or settings.MONGODB_URI
        self.db_name = db_name or settings.MONGODB_DB_NAME or parse_db_name(self.uri)
        self.client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self):
        """Establishes and verifies the connection to MongoDB."""
        if self.client is not None and self.db is not None:
            logger.info("MongoDB connection already established.")
            return

        logger.info("Connecting to MongoDB...")
        try:
            self.client = motor.motor_asyncio.AsyncIOMotorClient(
                self.uri,
                tz_aware=True,
                serverSelectionTimeoutMS=5000,
            )
            await self.client.admin.command('ping')
            self.db = self.client[self.db_name]
            logger.success(f"MongoDB connection successful to database '{self.db_name}'.")
        except Exception as e:
            logger.critical(f"FATAL: Failed to connect to MongoDB: {e}")
            if self.client is not None:
                self.client.close()
            self.client = None
            self.db = None
            raise ConnectionError(f"MongoDB connection failed: {e}") from e

    async def disconnect(self):
        """Closes the MongoDB connection."""
        if self.client is not None:
            logger.info("Closing MongoDB connection...")
            try:
                self.client.close()
                logger.info("MongoDB connection closed.")
            finally:
                self.client = None
                self.db = None

    def get_db(self) -> AsyncIOMotorDatabase:
        """Returns the database instance, raising if not connected."""
        if self.db is None:
            logger.critical("Attempted to get MongoDB instance, but it's not available.")
            raise RuntimeError("MongoDB database is not connected or initialized.")
        return cast(AsyncIOMotorDatabase, self.db)
