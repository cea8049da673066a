import os
import json
import logging
from typing import Any, Dict, List, Optional, Union

from supabase import create_client, Client

from queue_processor.errors import PersistenceError

logger = logging.getLogger(__name__)

Rows = Union[Dict[str, Any], List[Dict[str, Any]]]


class SupabaseClient:
    """
    Row-level access to the Supabase tables used by the queue processor.
    Every failed query is raised as PersistenceError.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.url: str = url or os.environ.get("SUPABASE_URL")
        self.key: str = key or os.environ.get("SUPABASE_KEY")
        if not self.url or not self.key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
        self.client: Client = create_client(self.url, self.key)

    def _execute(self, query, action: str, table_name: str) -> List[Dict]:
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"Error on {action} {table_name}: {str(e)}")
            raise PersistenceError(f"{action} {table_name} failed: {str(e)}") from e
        return result.data or []

    def post(self, table_name: str, data: Rows) -> List[Dict]:
        """Insert one or more rows into a table"""
        logger.debug(f"Posting to table {table_name}, data: {json.dumps(data, default=str)}")
        return self._execute(self.client.from_(table_name).insert(data), "insert into", table_name)

    def get_one(self, table_name: str, row: str, uid: Any) -> Optional[Dict]:
        """Get one row from a table"""
        logger.debug(f"Getting from table {table_name}, where {row} = {uid}")
        query = self.client.from_(table_name).select("*").eq(row, uid).limit(1)
        data = self._execute(query, "select from", table_name)
        return data[0] if data else None

    def get_all(self, table_name: str, filters: Optional[Dict[str, Any]] = None,
                order_by: Optional[str] = None, desc: bool = False,
                limit: Optional[int] = None) -> List[Dict]:
        """Get all rows from a table, optionally filtered by equality and ordered"""
        logger.debug(f"Getting all from table {table_name}, filters: {filters}")
        query = self.client.from_(table_name).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit:
            query = query.limit(limit)
        return self._execute(query, "select from", table_name)

    def get_by_status(self, table_name: str, status: str, include_null: bool = False,
                      order_by: Optional[str] = None, desc: bool = False,
                      limit: Optional[int] = None) -> List[Dict]:
        """Get rows with the given status (and, optionally, rows with no status yet)"""
        logger.debug(f"Getting from table {table_name}, status {status}, include_null: {include_null}")
        clause = f"status.eq.{status}"
        if include_null:
            clause += ",status.is.null"
        query = self.client.from_(table_name).select("*").or_(clause)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit:
            query = query.limit(limit)
        return self._execute(query, "select from", table_name)

    def update(self, table_name: str, uid: Any, data: Dict[str, Any], key: str = "id") -> List[Dict]:
        """Update a row in a table"""
        query = self.client.from_(table_name).update(data).eq(key, uid)
        return self._execute(query, "update", table_name)

    def upsert(self, table_name: str, data: Rows, on_conflict: str = "id",
               ignore_duplicates: bool = False) -> List[Dict]:
        """Insert rows, updating (or skipping) those whose key already exists"""
        query = self.client.from_(table_name).upsert(
            data, on_conflict=on_conflict, ignore_duplicates=ignore_duplicates
        )
        return self._execute(query, "upsert into", table_name)

    def delete(self, table_name: str, uid: Any, key: str = "id") -> List[Dict]:
        """Delete a row from a table"""
        query = self.client.from_(table_name).delete().eq(key, uid)
        return self._execute(query, "delete from", table_name)

    def delete_all(self, table_name: str, key: str = "id") -> List[Dict]:
        """Delete every row of a table (PostgREST refuses deletes without a filter)"""
        query = self.client.from_(table_name).delete().not_.is_(key, "null")
        return self._execute(query, "delete from", table_name)
