"""
Lead store adapter — single-row reads and writes keyed on url or id.

Every write is one session, one commit. No locking: two triggers enriching the
same URL at once race, and the last commit wins.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from leadgen import database
from leadgen.config import STATUS_NEW
from leadgen.models.lead import Lead

logger = logging.getLogger('services.store')

WRITABLE_FIELDS = frozenset({'company_name', 'status', 'scraped_data', 'ai_analysis', 'email_draft'})


class StoreError(Exception):
    """A store read/write failed; the row is left as it was."""


class LeadStore:

    def __init__(self, session_factory: Optional[Callable] = None):
        self._session_factory = session_factory

    def _session(self):
        if self._session_factory is not None:
            return self._session_factory()
        return database.get_session()

    @staticmethod
    def _check_fields(fields: Dict[str, Any]):
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown lead fields: {sorted(unknown)}")

    @staticmethod
    def _apply(lead: Lead, fields: Dict[str, Any]):
        for key, value in fields.items():
            setattr(lead, key, value)
        lead.updated_at = datetime.now(timezone.utc)

    def _write(self, action: str, fn):
        """Run fn(session) -> Lead|None inside one commit; detach the result."""
        session = self._session()
        try:
            lead = fn(session)
            session.commit()
            if lead is not None:
                session.refresh(lead)
                session.expunge(lead)
            return lead
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Store %s failed: %s", action, e, exc_info=True)
            raise StoreError(f"Failed to {action} lead: {e.__class__.__name__}") from e
        finally:
            session.close()

    def _read(self, action: str, fn):
        session = self._session()
        try:
            return fn(session)
        except SQLAlchemyError as e:
            logger.error("Store %s failed: %s", action, e, exc_info=True)
            raise StoreError(f"Failed to {action}: {e.__class__.__name__}") from e
        finally:
            session.close()

    # ── Reads ────────────────────────────────────────────────────────────

    def get_by_id(self, lead_id) -> Optional[Lead]:
        return self._read('load lead', lambda s: s.get(Lead, lead_id))

    def find_by_url(self, url: str) -> Optional[Lead]:
        return self._read('look up lead', lambda s: s.query(Lead).filter_by(url=url).first())

    def list_leads(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[Lead]:
        def _list(session):
            query = session.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc())
            if status:
                query = query.filter_by(status=status)
            if limit:
                query = query.limit(limit)
            return query.all()
        return self._read('list leads', _list)

    # ── Writes ───────────────────────────────────────────────────────────

    def upsert_by_url(self, url: str, fields: Dict[str, Any]) -> Lead:
        """
        Insert-or-update keyed on the unique url.

        If another writer inserts the same url between our lookup and our
        insert, the insert is rolled back and retried once as an update of
        that row (last write wins).
        """
        self._check_fields(fields)

        def _upsert(session):
            lead = session.query(Lead).filter_by(url=url).first()
            if lead is None:
                lead = Lead(url=url, status=STATUS_NEW, scraped_data={}, ai_analysis={}, email_draft='')
                self._apply(lead, fields)
                session.add(lead)
                try:
                    session.flush()
                    return lead
                except IntegrityError:
                    session.rollback()
                    logger.info("Lead %s inserted concurrently, updating instead", url)
                    lead = session.query(Lead).filter_by(url=url).one()
            self._apply(lead, fields)
            return lead
        return self._write('upsert', _upsert)

    def update_by_id(self, lead_id, fields: Dict[str, Any]) -> Optional[Lead]:
        """Partial update; None when the row doesn't exist."""
        self._check_fields(fields)

        def _update(session):
            lead = session.get(Lead, lead_id)
            if lead is not None:
                self._apply(lead, fields)
            return lead
        return self._write('update', _update)

    def update_by_url(self, url: str, fields: Dict[str, Any]) -> Optional[Lead]:
        self._check_fields(fields)

        def _update(session):
            lead = session.query(Lead).filter_by(url=url).first()
            if lead is not None:
                self._apply(lead, fields)
            return lead
        return self._write('update', _update)

    def delete_by_id(self, lead_id) -> bool:
        """Hard delete. Returns False when there was nothing to delete."""
        deleted = []

        def _delete(session):
            lead = session.get(Lead, lead_id)
            if lead is not None:
                session.delete(lead)
                deleted.append(lead_id)
            return None
        self._write('delete', _delete)
        if deleted:
            logger.info("Deleted lead %s", lead_id)
        return bool(deleted)
