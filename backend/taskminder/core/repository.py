# taskminder/core/repository.py

from typing import TypeVar, Type, Optional, List, Any, Dict, Tuple, Generic, NoReturn
from datetime import datetime, timezone

from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError
from loguru import logger

from taskminder.core.errors import UnavailableError

ModelType = TypeVar("ModelType", bound=BaseModel)

def to_db_datetime(value: datetime) -> datetime:
    """BSON datetimes are naive UTC; aware values are converted before writing or querying."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

class BaseRepository(Generic[ModelType]):
    """Base class for MongoDB repositories built on Motor and Pydantic.

    Every driver failure is logged and re-raised as UnavailableError so callers
    never have to know about pymongo exceptions. "No such document" is not an
    error at this level: lookups return None and writes report whether a
    document matched.
    """

    model: Type[ModelType]
    collection_name: str

    def __init__(self, db):
        if not getattr(self, 'collection_name', None):
            raise AttributeError("Repository subclass must define a 'collection_name'")
        if not getattr(self, 'model', None) or not issubclass(self.model, BaseModel):
            raise AttributeError("Repository subclass must define a Pydantic 'model'")

        self.db = db
        self.collection = db[self.collection_name]
        logger.debug(f"BaseRepository initialized for collection: '{self.collection_name}'")

    def _handle_db_exception(self, e: Exception, operation: str, doc_id: Any = None, query: Optional[Dict] = None) -> NoReturn:
        context = f"op='{operation}' coll='{self.collection_name}'"
        if doc_id is not None: context += f" id='{doc_id}'"
        if query: context += f" query='{str(query)[:100]}'"

        if isinstance(e, DuplicateKeyError):
            dup_key_info = e.details.get('keyValue', {}) if e.details else {}
            logger.error(f"DB Error during {context}: {e} - Duplicate Key: {dup_key_info}")
            raise UnavailableError(f"Duplicate key on {list(dup_key_info.keys())} during {operation}") from e

        logger.exception(f"DB Error during {context}: {e}")
        raise UnavailableError(f"Database error during operation: {operation}") from e

    def _prepare_data_for_db(self, data: Dict) -> Dict:
        """Converts values to what the driver stores. Subclasses may extend."""
        prepared_data = {}
        for key, value in data.items():
            if isinstance(value, datetime):
                prepared_data[key] = to_db_datetime(value)
            else:
                prepared_data[key] = value
        return prepared_data

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        try:
            document = await self.collection.find_one({"_id": id})
        except Exception as e:
            self._handle_db_exception(e, "get_by_id", id)
        return self.model.model_validate(document) if document else None

    async def list_by(
        self,
        query: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
        sort: Optional[List[Tuple[str, int]]] = None
    ) -> List[ModelType]:
        """Lists documents matching a query, with pagination and sorting. limit=0 means no limit."""
        query = query or {}
        try:
            cursor = self.collection.find(query)
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(max(0, skip)).limit(max(0, limit))
            documents = await cursor.to_list(length=limit if limit > 0 else None)
        except Exception as e:
            self._handle_db_exception(e, "list_by", query=query)
        return [self.model.model_validate(doc) for doc in documents]

    async def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        query = query or {}
        try:
            return await self.collection.count_documents(query)
        except Exception as e:
            self._handle_db_exception(e, "count", query=query)

    async def insert(self, document: Dict[str, Any]) -> ModelType:
        """Inserts a document whose `_id` is already assigned and returns it validated."""
        prepared = self._prepare_data_for_db(document)
        try:
            await self.collection.insert_one(prepared)
        except Exception as e:
            self._handle_db_exception(e, "insert", document.get("_id"))
        return self.model.model_validate(prepared)

    async def update_fields(self, id: Any, fields: Dict[str, Any]) -> bool:
        """Applies a $set to one document. Returns False when no document has that id."""
        prepared = self._prepare_data_for_db(fields)
        for immutable in ("_id", "id", "created_at"):
            prepared.pop(immutable, None)
        if not prepared:
            logger.debug(f"update_fields called for ID {id} with no updatable data.")
            return await self.exists(id)

        try:
            result = await self.collection.update_one({"_id": id}, {"$set": prepared})
        except Exception as e:
            self._handle_db_exception(e, "update_fields", id)

        if result.matched_count == 0:
            logger.warning(f"Document not found for update: ID {id}, Collection: {self.collection_name}")
            return False
        logger.debug(f"Document updated: ID {id}, Matched: {result.matched_count}, Modified: {result.modified_count}")
        return True

    async def delete(self, id: Any) -> bool:
        try:
            result = await self.collection.delete_one({"_id": id})
        except Exception as e:
            self._handle_db_exception(e, "delete", id)
        deleted = result.deleted_count > 0
        if deleted: logger.info(f"Document deleted: ID {id}, Collection: {self.collection_name}")
        else: logger.warning(f"Document not found for deletion: ID {id}, Collection: {self.collection_name}")
        return deleted

    async def exists(self, id: Any) -> bool:
        return await self.count({"_id": id}) > 0
