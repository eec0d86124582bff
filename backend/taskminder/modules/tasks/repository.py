# taskminder/modules/tasks/repository.py

from typing import Optional, List, Dict, Any
from datetime import datetime

from pymongo import ASCENDING, DESCENDING
from loguru import logger

from taskminder.core.repository import BaseRepository, to_db_datetime
from taskminder.core.counters import CounterService
from .models import TaskInDB

COLLECTION_NAME = "tasks"
TASK_SEQUENCE = "tasks"

class TaskRepository(BaseRepository[TaskInDB]):
    model = TaskInDB
    collection_name = COLLECTION_NAME

    def __init__(self, db, counter_service: Optional[CounterService] = None):
        super().__init__(db)
        self.counters = counter_service or CounterService(db)

    async def create_indexes(self):
        """Creates the indexes used by listing and the due-date scan."""
        try:
            await self.collection.create_index([("due_date", ASCENDING)])
            await self.collection.create_index("is_completed")
            await self.collection.create_index([("created_at", DESCENDING)])
            logger.info(f"Indexes created/verified for collection: {self.collection_name}")
        except Exception as e:
            self._handle_db_exception(e, "create_indexes")

    async def create(self, data: Dict[str, Any]) -> TaskInDB:
        """Assigns the next task id and stores the document."""
        task_id = await self.counters.next_sequence(TASK_SEQUENCE)
        document = {**data, "_id": task_id}
        document.pop("id", None)
        created = await self.insert(document)
        logger.debug(f"Task stored: ID {task_id}")
        return created

    async def replace_fields(self, task: TaskInDB) -> bool:
        """Writes the mutable fields of `task` back. False if the row is gone."""
        return await self.update_fields(task.id, {
            "title": task.title,
            "description": task.description,
            "due_date": task.due_date,
            "updated_at": task.updated_at,
        })

    async def mark_complete(self, task_id: int, updated_at: datetime) -> bool:
        # Setting an already-true flag still matches, so completion is idempotent
        return await self.update_fields(task_id, {"is_completed": True, "updated_at": updated_at})

    async def list_page(self, limit: int, offset: int) -> List[TaskInDB]:
        """Newest-created first."""
        sort_order = [("created_at", DESCENDING), ("_id", DESCENDING)]
        return await self.list_by(query={}, skip=offset, limit=limit, sort=sort_order)

    async def list_due_between(self, start: datetime, end: datetime) -> List[TaskInDB]:
        """Incomplete tasks with start <= due_date <= end, soonest first."""
        query = {
            "is_completed": False,
            "due_date": {"$gte": to_db_datetime(start), "$lte": to_db_datetime(end)},
        }
        sort_order = [("due_date", ASCENDING), ("_id", ASCENDING)]
        return await self.list_by(query=query, limit=0, sort=sort_order)
