from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Optional

from backend.hiring.config import UPLOAD_CONFIG

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"
STORED_NAME = re.compile(r"^\d+(_\d+)?\.pdf$")


class ResumeValidationError(ValueError):
    """The uploaded file is not an acceptable resume."""


class ResumeStorageError(Exception):
    """The resume could not be written."""


def validate_resume(filename: str, content_type: Optional[str], data: bytes, max_bytes: Optional[int] = None):
    """Reject anything that is not a PDF or is larger than max_bytes."""
    max_bytes = max_bytes if max_bytes is not None else UPLOAD_CONFIG["max_bytes"]
    name = (filename or "").lower()
    looks_pdf = content_type == PDF_CONTENT_TYPE or name.endswith(".pdf")
    if not looks_pdf or not data.startswith(PDF_MAGIC):
        raise ResumeValidationError("Please upload a PDF file")
    if len(data) > max_bytes:
        raise ResumeValidationError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")


def _safe_segment(value: str) -> str:
    cleaned = re.sub(r"[^\w\-]+", "_", value or "").strip("_")
    return cleaned or "anonymous"


class ResumeStorage:
    """Writes resumes under <root>/<owner>/<millis>.pdf and returns a public URL."""

    def __init__(
        self,
        root: Optional[Path] = None,
        public_base_url: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ):
        self.root = Path(root or UPLOAD_CONFIG["dir"])
        self.max_bytes = max_bytes if max_bytes is not None else UPLOAD_CONFIG["max_bytes"]
        self.public_base_url = (public_base_url if public_base_url is not None else UPLOAD_CONFIG["public_base_url"]).rstrip("/")

    def store(self, owner_id: str, data: bytes) -> str:
        owner_dir = self.root / _safe_segment(owner_id)
        stamp = int(time.time() * 1000)
        path = owner_dir / f"{stamp}.pdf"
        suffix = 1
        try:
            owner_dir.mkdir(parents=True, exist_ok=True)
            while path.exists():
                path = owner_dir / f"{stamp}_{suffix}.pdf"
                suffix += 1
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            logger.exception("Failed to store resume for %s", owner_id)
            raise ResumeStorageError("Failed to upload resume") from exc
        logger.info("Stored resume at %s", path)
        return f"{self.public_base_url}/{owner_dir.name}/{path.name}"

    def locate(self, owner_segment: str, filename: str) -> Optional[Path]:
        """Path of a stored resume, or None when it does not exist."""
        if owner_segment != _safe_segment(owner_segment) or not STORED_NAME.fullmatch(filename or ""):
            return None
        path = self.root / owner_segment / filename
        return path if path.is_file() else None
