from services.database import DatabaseService
from models.tubuyaki import RecordFilter, TubuyakiRecord
from utils.date_range import day_range, local_timezone, parse_date, start_of_day
from utils.errors import NotFoundError
from datetime import date, datetime, tzinfo
from typing import List, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50


class QueryService:
    """Read side: single record, today's records, all records, filtered search"""

    def __init__(
        self,
        db: DatabaseService = None,
        tz: Optional[tzinfo] = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self.db = db or DatabaseService()
        self.tz = tz or local_timezone()
        self.search_limit = search_limit

    def get(self, record_id: str) -> TubuyakiRecord:
        """Get a tubuyaki by ID

        Raises:
            NotFoundError: record does not exist
        """
        record = self.db.get_tubuyaki(record_id)
        if not record:
            raise NotFoundError(record_id)
        return record

    def list_today(self, now: Optional[datetime] = None) -> List[TubuyakiRecord]:
        """Records created since the start of the current local day, newest first"""
        now = now or datetime.now(self.tz)
        since = start_of_day(now, self.tz)
        records = self.db.list_tubuyaki(RecordFilter(created_from=since))
        logger.debug(f"Found {len(records)} tubuyaki since {since.isoformat()}")
        return records

    def list_all(self) -> List[TubuyakiRecord]:
        """All records, newest first"""
        return self.db.list_tubuyaki(RecordFilter())

    def search(
        self,
        query: Optional[str] = None,
        intent: Optional[str] = None,
        date_from: Union[str, date, None] = None,
        date_to: Union[str, date, None] = None,
    ) -> List[TubuyakiRecord]:
        """
        Search tubuyaki; every supplied filter must match

        Args:
            query: Substring matched against raw text, clean text, summary,
                ideas and next action (any of them)
            intent: Intent tag the record must carry
            date_from: First local day to include (YYYY-MM-DD)
            date_to: Last local day to include, through end of day (YYYY-MM-DD)

        Returns:
            Up to `search_limit` records, newest first

        Raises:
            ValidationError: a date is not YYYY-MM-DD
        """
        created_from, created_before = day_range(
            parse_date(date_from, "from"), parse_date(date_to, "to"), self.tz
        )

        record_filter = RecordFilter(
            text=query.strip() if query and query.strip() else None,
            intent=intent.strip() if intent and intent.strip() else None,
            created_from=created_from,
            created_before=created_before,
        )

        records = self.db.list_tubuyaki(record_filter, limit=self.search_limit)
        logger.info(
            f"Search q={record_filter.text!r} intent={record_filter.intent!r} "
            f"from={date_from} to={date_to}: {len(records)} results"
        )
        return records
