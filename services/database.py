from supabase import create_client, Client
from config import settings
from typing import List, Optional, Dict, Any
from models.tubuyaki import TubuyakiRecord, RecordFilter, RecordStatus
from utils.errors import StoreError
from datetime import datetime, timezone
from uuid import UUID, uuid4
import logging

logger = logging.getLogger(__name__)

# Columns searched by the free-text filter. `ideas_text` is a generated
# column holding the ideas array joined with newlines.
TEXT_SEARCH_COLUMNS = [
    "raw_text",
    "clean_text",
    "summary_3lines",
    "ideas_text",
    "next_action",
]

# Columns the service never writes through update_tubuyaki
IMMUTABLE_COLUMNS = {"id", "created_at", "ideas_text"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the query matches literally"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def ilike_clause(column: str, text: str) -> str:
    """Build a PostgREST `or` clause for a case-insensitive substring match

    The value is double-quoted so commas and parentheses in user input
    cannot break the filter syntax.
    """
    pattern = f"*{escape_like(text)}*"
    quoted = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return f'{column}.ilike."{quoted}"'


def is_record_id(value: str) -> bool:
    """True if value can be an id in the uuid `id` column"""
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def contains_text(row: Dict[str, Any], text: str) -> bool:
    """Literal case-insensitive substring match over the text search columns"""
    needle = text.lower()
    return any(
        isinstance(row.get(column), str) and needle in row[column].lower()
        for column in TEXT_SEARCH_COLUMNS
    )


class DatabaseService:
    """Record Store for tubuyaki, backed by a Supabase (PostgREST) table"""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self.client: Client = client or create_client(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
        )
        self.table = table or settings.TUBUYAKI_TABLE

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Supabase error while trying to {action}: {e}")
            raise StoreError(f"Failed to {action}") from e

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> TubuyakiRecord:
        return TubuyakiRecord(**row)

    def create_tubuyaki(self, raw_text: str, status: RecordStatus) -> TubuyakiRecord:
        """Insert a new record, allocating its id and timestamps"""
        now = _utcnow().isoformat()
        row = {
            "id": str(uuid4()),
            "raw_text": raw_text,
            "status": RecordStatus(status).value,
            "intent": [],
            "ideas": [],
            "created_at": now,
            "updated_at": now,
        }
        response = self._execute(
            self.client.table(self.table).insert(row), "create tubuyaki"
        )
        if not response.data:
            raise StoreError("Insert returned no rows")
        return self._to_record(response.data[0])

    def get_tubuyaki(self, record_id: str) -> Optional[TubuyakiRecord]:
        """Get record by ID, None if it does not exist"""
        if not is_record_id(record_id):
            return None
        response = self._execute(
            self.client.table(self.table).select("*").eq("id", record_id).limit(1),
            f"get tubuyaki {record_id}",
        )
        return self._to_record(response.data[0]) if response.data else None

    def update_tubuyaki(self, record_id: str, fields: Dict[str, Any]) -> Optional[TubuyakiRecord]:
        """Merge fields into a record and bump updated_at

        Returns:
            Updated record, or None if the id does not exist
        """
        if not is_record_id(record_id):
            return None
        payload = {k: v for k, v in fields.items() if k not in IMMUTABLE_COLUMNS}
        if "status" in payload:
            payload["status"] = RecordStatus(payload["status"]).value
        for key in ("feedback", "feedback_detail"):
            if payload.get(key) is not None:
                payload[key] = getattr(payload[key], "value", payload[key])
        payload["updated_at"] = _utcnow().isoformat()

        response = self._execute(
            self.client.table(self.table).update(payload).eq("id", record_id),
            f"update tubuyaki {record_id}",
        )
        return self._to_record(response.data[0]) if response.data else None

    def delete_tubuyaki(self, record_id: str) -> bool:
        """Delete record, False if it did not exist"""
        if not is_record_id(record_id):
            return False
        response = self._execute(
            self.client.table(self.table).delete().eq("id", record_id),
            f"delete tubuyaki {record_id}",
        )
        return bool(response.data)

    def list_tubuyaki(
        self,
        record_filter: Optional[RecordFilter] = None,
        limit: Optional[int] = None,
        descending: bool = True,
    ) -> List[TubuyakiRecord]:
        """List records matching every criterion of the filter, ordered by created_at"""
        record_filter = record_filter or RecordFilter()
        query = self.client.table(self.table).select("*")

        if record_filter.created_from:
            query = query.gte("created_at", record_filter.created_from.isoformat())
        if record_filter.created_before:
            query = query.lt("created_at", record_filter.created_before.isoformat())
        if record_filter.intent:
            query = query.contains("intent", [record_filter.intent])
        if record_filter.statuses:
            query = query.in_("status", [RecordStatus(s).value for s in record_filter.statuses])
        if record_filter.text:
            query = query.or_(
                ",".join(ilike_clause(column, record_filter.text) for column in TEXT_SEARCH_COLUMNS)
            )

        # PostgREST reads `*` in an ilike pattern as a wildcard, so a query
        # containing one is narrowed to literal matches here
        literal_text = record_filter.text if record_filter.text and "*" in record_filter.text else None

        query = query.order("created_at", desc=descending)
        if limit is not None and not literal_text:
            query = query.limit(limit)

        response = self._execute(query, "list tubuyaki")
        rows = response.data or []
        if literal_text:
            rows = [row for row in rows if contains_text(row, literal_text)]
            if limit is not None:
                rows = rows[:limit]
        return [self._to_record(row) for row in rows]
