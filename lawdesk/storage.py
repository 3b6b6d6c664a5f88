"""
Case Document Store
===================

Filesystem-backed document storage keyed by case id, plus the tag list kept
in the `case_tags` table.

Layout:
    <UPLOAD_DIR>/<caseId>/<epoch-millis>-<sanitised original name>

Upload and delete for one case id run under the same per-case lock so that
"delete the last file, then drop the directory and tags" cannot interleave
with an upload for that case.
"""

import logging
import os
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import CaseTagSet
from .errors import NotFoundError, StorageError, UnsupportedTypeError, ValidationError
from .locks import document_locks

logger = logging.getLogger(__name__)

CASE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")
STORED_NAME_PATTERN = re.compile(r"^(\d+)-(.+)$")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


def validate_case_id(case_id: Optional[str]) -> str:
    """Return the stripped case id or raise ValidationError."""
    case_id = (case_id or "").strip()
    if not case_id:
        raise ValidationError("caseId is required")
    if not CASE_ID_PATTERN.match(case_id):
        raise ValidationError("Invalid caseId")
    return case_id


def is_plain_file_name(name: str) -> bool:
    """True for a single path component that cannot leave its directory"""
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return not name.startswith(".")


def sanitize_file_name(original: Optional[str]) -> str:
    # Browsers on Windows may send the full client path
    base = (original or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = _UNSAFE_CHARS.sub("_", base).strip(" .")
    return base or "document"


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma separated tag string; empties dropped, order kept."""
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


READ_CHUNK_BYTES = 1024 * 1024


async def read_limited(upload, max_bytes: int) -> bytes:
    """Read an UploadFile in chunks, failing once it passes max_bytes."""
    chunks = []
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise ValidationError(f"File too large (max {max_bytes} bytes)")
        chunks.append(chunk)
    return b"".join(chunks)


def _uploaded_at(stored_name: str) -> Optional[str]:
    match = STORED_NAME_PATTERN.match(stored_name)
    if not match:
        return None
    millis = int(match.group(1))
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


class CaseDocumentStore:
    """Case-scoped document directories and their tag lists"""

    def __init__(
        self,
        root: Optional[str] = None,
        allowed_extensions: Optional[List[str]] = None,
        max_bytes: Optional[int] = None,
        public_prefix: Optional[str] = None,
    ):
        settings = get_settings()
        self.root = Path(root or settings.upload_dir).resolve()
        self.allowed_extensions = {
            e.lower().lstrip(".") for e in (allowed_extensions or settings.allowed_document_extensions)
        }
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes
        self.public_prefix = "/" + (public_prefix or settings.public_upload_prefix).strip("/")

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def case_dir(self, case_id: str) -> Path:
        path = (self.root / validate_case_id(case_id)).resolve()
        if path.parent != self.root:
            raise ValidationError("Invalid caseId")
        return path

    def resolve(self, case_id: str, file_name: str) -> Path:
        """Path of an existing stored file; raises NotFoundError."""
        if not is_plain_file_name(file_name or ""):
            raise ValidationError("Invalid fileName")
        path = self.case_dir(case_id) / file_name
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    def case_files(self, case_id: str) -> List[Path]:
        """Stored files of a case, sorted by name; raises NotFoundError."""
        directory = self.case_dir(case_id)
        if not directory.is_dir():
            raise NotFoundError("No documents found for this case")
        return sorted((p for p in directory.iterdir() if p.is_file()), key=lambda p: p.name)

    def public_url(self, base_url: str, case_id: str, stored_name: str) -> str:
        return f"{base_url.rstrip('/')}{self.public_prefix}/{quote(case_id)}/{quote(stored_name)}"

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    @staticmethod
    def get_tags(db: Session, case_id: str) -> List[str]:
        row = db.query(CaseTagSet).filter(CaseTagSet.case_id == case_id).first()
        return list(row.tags or []) if row else []

    @staticmethod
    def _append_tags(db: Session, case_id: str, tags: List[str]) -> List[str]:
        row = db.query(CaseTagSet).filter(CaseTagSet.case_id == case_id).first()
        if row is None:
            row = CaseTagSet(case_id=case_id, tags=list(tags))
            db.add(row)
        else:
            # Reassign so the JSON column is flagged dirty
            row.tags = list(row.tags or []) + list(tags)
        db.commit()
        return list(row.tags)

    @staticmethod
    def _discard(path: Path):
        """Remove a just-written file, and its directory if that leaves it empty."""
        try:
            path.unlink()
            if not any(path.parent.iterdir()):
                path.parent.rmdir()
        except OSError as e:
            logger.error(f"Failed to remove {path.name} after a failed upload: {e}")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def upload(
        self,
        db: Session,
        case_id: Optional[str],
        original_name: Optional[str],
        data: Optional[bytes],
        tags: Optional[str] = None,
    ) -> dict:
        """Store one document under the case directory and record its tags."""
        case_id = validate_case_id(case_id)
        if not original_name or data is None:
            raise ValidationError("No file uploaded")

        name = sanitize_file_name(original_name)
        extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        if extension not in self.allowed_extensions:
            raise UnsupportedTypeError(
                f"Unsupported file type. Allowed: {', '.join(sorted(self.allowed_extensions))}"
            )
        if len(data) > self.max_bytes:
            raise ValidationError(f"File too large (max {self.max_bytes} bytes)")

        tag_list = parse_tags(tags)

        async with document_locks.hold(case_id):
            directory = self.case_dir(case_id)
            millis = int(time.time() * 1000)
            try:
                directory.mkdir(parents=True, exist_ok=True)
                target = directory / f"{millis}-{name}"
                while target.exists():
                    millis += 1
                    target = directory / f"{millis}-{name}"
                target.write_bytes(data)
            except OSError as e:
                logger.error(f"Failed to store document for case {case_id}: {e}")
                raise StorageError("Failed to store document")

            try:
                stored_tags = self._append_tags(db, case_id, tag_list) if tag_list else self.get_tags(db, case_id)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to record tags for case {case_id}: {e}")
                self._discard(target)
                raise StorageError("Failed to store document")

        logger.info(f"Stored {target.name} ({len(data)} bytes) for case {case_id}")
        return {
            "caseId": case_id,
            "fileName": target.name,
            "originalName": original_name,
            "size": len(data),
            "tags": stored_tags,
        }

    def list(self, db: Session, case_id: Optional[str], base_url: str) -> dict:
        case_id = validate_case_id(case_id)
        files = []
        for path in self.case_files(case_id):
            files.append({
                "name": path.name,
                "size": path.stat().st_size,
                "uploaded_at": _uploaded_at(path.name),
                "url": self.public_url(base_url, case_id, path.name),
            })
        return {"caseId": case_id, "files": files, "tags": self.get_tags(db, case_id)}

    async def delete(self, db: Session, case_id: Optional[str], file_name: Optional[str]) -> dict:
        """Remove one file; the last file takes the directory and tags with it."""
        if not (case_id or "").strip() or not (file_name or "").strip():
            raise ValidationError("caseId and fileName are required")
        case_id = validate_case_id(case_id)

        async with document_locks.hold(case_id):
            path = self.resolve(case_id, file_name)
            directory = path.parent
            case_emptied = [p.name for p in directory.iterdir()] == [path.name]
            try:
                # Tag row goes in the same step as the last file
                if case_emptied:
                    db.query(CaseTagSet).filter(CaseTagSet.case_id == case_id).delete()
                    db.flush()
                os.remove(path)
                if case_emptied:
                    directory.rmdir()
                db.commit()
            except (OSError, SQLAlchemyError) as e:
                db.rollback()
                logger.error(f"Failed to delete {file_name} for case {case_id}: {e}")
                raise StorageError("Failed to delete document")

        logger.info(f"Deleted {file_name} for case {case_id}")
        return {"caseId": case_id, "fileName": file_name, "caseEmptied": case_emptied}


_store: Optional[CaseDocumentStore] = None


def get_document_store() -> CaseDocumentStore:
    """Get or create the document store singleton"""
    global _store
    if _store is None:
        _store = CaseDocumentStore()
    return _store


def reset_document_store():
    global _store
    _store = None
