from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from fastapi import UploadFile

from marketplace_api.core.exceptions import ValidationError
from marketplace_api.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Attachment:
    """A file received with a submission, spooled to local disk."""
    path: str
    filename: str = ""
    content_type: Optional[str] = None


@dataclass
class InquiryAttachments:
    photos: List[Attachment] = field(default_factory=list)
    rc_card: Optional[Attachment] = None

    def __iter__(self) -> Iterator[Attachment]:
        yield from self.photos
        if self.rc_card is not None:
            yield self.rc_card

    def __len__(self) -> int:
        return len(self.photos) + (1 if self.rc_card is not None else 0)


def discard_local_file(path: str) -> bool:
    """Remove a spooled file. Returns False when it was already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("attachment.cleanup_failed", path=path, error=str(e))
        return False
    return True


def discard_attachments(attachments: InquiryAttachments) -> None:
    for attachment in attachments:
        discard_local_file(attachment.path)


def spool_upload(
    upload: UploadFile,
    tmp_dir: Optional[str] = None,
    max_bytes: Optional[int] = None,
    field_name: str = "photo",
) -> Attachment:
    """Copy an incoming upload to a named temporary file that outlives the request.

    Files larger than ``max_bytes`` are rejected while copying and nothing is
    left on disk.
    """
    suffix = Path(upload.filename or "").suffix.lower()
    written = 0
    with tempfile.NamedTemporaryFile(prefix="inquiry-", suffix=suffix, dir=tmp_dir, delete=False) as tmp:
        try:
            upload.file.seek(0)
            while True:
                chunk = upload.file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise ValidationError(
                        message=f"{upload.filename or field_name} exceeds the {max_bytes} byte upload limit",
                        details={"errors": [{"field": field_name, "message": "file too large"}]},
                    )
                tmp.write(chunk)
        except BaseException:
            tmp.close()
            discard_local_file(tmp.name)
            raise

    return Attachment(
        path=tmp.name,
        filename=upload.filename or "",
        content_type=upload.content_type,
    )
