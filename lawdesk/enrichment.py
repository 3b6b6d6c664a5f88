"""
Case Arguments Service
======================

Persisted, one-shot argument extraction per case id.

The first request for a case feeds its documents to the extraction service
and stores the answer in `case_arguments`; later requests are served from
that row without any external call. A per-case asyncio lock keeps
concurrent first requests in this process down to a single external
round-trip, and the primary key on case_id settles writers in other
processes (the loser re-reads the stored row).

If the external calls succeed but the row cannot be written, the caller
gets a StorageError and the extraction service keeps its session; the
next request starts a new session.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .ai.enrichment_client import EnrichmentClient, get_enrichment_client
from .db.models import CaseArguments
from .errors import NotFoundError, StorageError
from .locks import enrichment_locks
from .storage import CaseDocumentStore, get_document_store, validate_case_id

logger = logging.getLogger(__name__)


class CaseArgumentsService:
    """Cache-first access to extracted case arguments"""

    def __init__(
        self,
        db: Session,
        store: Optional[CaseDocumentStore] = None,
        client: Optional[EnrichmentClient] = None,
    ):
        self.db = db
        self.store = store or get_document_store()
        self.client = client or get_enrichment_client()

    def _cached(self, case_id: str) -> Optional[CaseArguments]:
        return self.db.query(CaseArguments).filter(CaseArguments.case_id == case_id).first()

    async def get_arguments(self, case_id: Optional[str]) -> dict:
        case_id = validate_case_id(case_id)

        files = self.store.case_files(case_id)
        if not files:
            raise NotFoundError("No documents found for this case")

        record = self._cached(case_id)
        if record:
            return {"caseId": case_id, "arguments": record.arguments, "cached": True}

        async with enrichment_locks.hold(case_id):
            # Another request may have finished while we waited
            self.db.expire_all()
            record = self._cached(case_id)
            if record:
                return {"caseId": case_id, "arguments": record.arguments, "cached": True}

            logger.info(f"Extracting arguments for case {case_id} from {len(files)} document(s)")
            session_id, text = await self.client.extract_arguments(case_id, files)

            try:
                self.db.add(CaseArguments(case_id=case_id, arguments=text, session_id=session_id))
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                record = self._cached(case_id)
                if record is None:
                    raise StorageError("Failed to save case arguments")
                logger.info(f"Arguments for case {case_id} were stored concurrently; using stored copy")
                return {"caseId": case_id, "arguments": record.arguments, "cached": True}
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to save arguments for case {case_id} (session {session_id}): {e}")
                raise StorageError("Failed to save case arguments")

        return {"caseId": case_id, "arguments": text, "cached": False}

    def delete_arguments(self, case_id: Optional[str]) -> dict:
        case_id = validate_case_id(case_id)
        record = self._cached(case_id)
        if not record:
            raise NotFoundError("No arguments found for this case")
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete arguments for case {case_id}: {e}")
            raise StorageError("Failed to delete case arguments")
        return {"caseId": case_id}
