# taskminder/core/counters.py

from pymongo import ReturnDocument
from loguru import logger

from taskminder.core.errors import UnavailableError

COUNTERS_COLLECTION = "counters"

class CounterService:
    """Hands out monotonically increasing integer ids, one sequence per name."""

    def __init__(self, db):
        self.collection = db[COUNTERS_COLLECTION]
        logger.debug(f"CounterService initialized with collection '{COUNTERS_COLLECTION}'.")

    async def next_sequence(self, name: str) -> int:
        """Atomically increments and returns the sequence value. Values are never handed out twice."""
        log = logger.bind(counter_name=name)
        try:
            counter = await self.collection.find_one_and_update(
                {"_id": name},
                {"$inc": {"sequence_value": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            log.exception(f"Database error while getting next sequence for counter '{name}': {e}")
            raise UnavailableError(f"Database error accessing counter '{name}'") from e

        if counter is None or "sequence_value" not in counter:
            log.critical(f"CRITICAL: find_one_and_update returned unexpected value: {counter}")
            raise UnavailableError(f"Failed to reliably get or create counter '{name}'")

        next_val = int(counter["sequence_value"])
        log.debug(f"Next sequence value obtained: {next_val}")
        return next_val
