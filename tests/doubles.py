"""In-memory doubles for the storage, registry and persistence collaborators."""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from marketplace_api.core.exceptions import StorageError
from marketplace_api.models.seller_inquiry import SellerInquiry
from marketplace_api.schemas.registry import RegistryRecord
from marketplace_api.services.attachments import Attachment, InquiryAttachments, discard_local_file
from marketplace_api.services.normalization import normalize_reg_no


class InMemoryInquiryRepository:
    """Dict-backed stand-in for InquiryRepository that records every merge."""

    def __init__(self):
        self.rows: Dict[int, SellerInquiry] = {}
        self.merges: List[Tuple[int, Dict[str, Any]]] = []
        self.fail_create: Optional[Exception] = None
        self.fail_merge: Optional[Exception] = None
        self._next_id = 1

    async def create(self, values):
        if self.fail_create is not None:
            raise self.fail_create
        inquiry = SellerInquiry.new(**values)
        inquiry.id = self._next_id
        self._next_id += 1
        self.rows[inquiry.id] = inquiry
        return inquiry

    async def merge_update(self, inquiry_id, fields):
        if self.fail_merge is not None:
            raise self.fail_merge
        self.merges.append((inquiry_id, dict(fields)))
        inquiry = self.rows.get(inquiry_id)
        if inquiry is None:
            return False
        for key, value in fields.items():
            setattr(inquiry, key, value)
        return True

    async def get(self, inquiry_id):
        return self.rows.get(inquiry_id)

    async def list(self, status=None):
        rows = sorted(self.rows.values(), key=lambda row: row.id, reverse=True)
        if status:
            rows = [row for row in rows if row.status == status]
        return rows

    async def delete(self, inquiry_id):
        return self.rows.pop(inquiry_id, None) is not None


class FakeRegistry:
    """Registry double; ``gate`` holds every lookup until it is set."""

    def __init__(self, records: Optional[Dict[str, RegistryRecord]] = None):
        self.records = records or {}
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[str] = []

    async def fetch(self, plate_number):
        reg_no = normalize_reg_no(plate_number)
        self.calls.append(reg_no)
        if self.gate is not None:
            await self.gate.wait()
        return self.records.get(reg_no)


class FakeS3Client:
    """Records ``put_object`` calls, or raises ``error`` when one is set."""

    def __init__(self, error=None):
        self.error = error
        self.objects = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.objects.append(kwargs)
        return {"ETag": '"abc"'}


class FakeMedia:
    """Storage double that consumes local files like the real store."""

    def __init__(self):
        self.failing_paths = set()
        self.uploaded: List[str] = []
        self.seen_paths: List[str] = []

    async def upload(self, local_path, folder):
        self.seen_paths.append(local_path)
        discard_local_file(local_path)
        if local_path in self.failing_paths:
            raise StorageError("Remote storage rejected the upload")
        url = f"https://cdn.example.com/{folder}/{len(self.uploaded) + 1}.jpg"
        self.uploaded.append(url)
        return url


def make_attachments(tmp_path, photos=0, rc_card=False) -> InquiryAttachments:
    attachments = InquiryAttachments()
    for index in range(photos):
        path = tmp_path / f"photo-{index}.jpg"
        path.write_bytes(b"jpeg-bytes")
        attachments.photos.append(Attachment(path=str(path), filename=path.name, content_type="image/jpeg"))
    if rc_card:
        path = tmp_path / "rc-card.jpg"
        path.write_bytes(b"jpeg-bytes")
        attachments.rc_card = Attachment(path=str(path), filename=path.name, content_type="image/jpeg")
    return attachments


SWIFT = RegistryRecord(
    make="Maruti Suzuki",
    model="Swift",
    variant="VXI",
    year="2019",
    fuel_type="Petrol",
    rc_owner_count="1",
    hypothecation=True,
    financier="HDFC BANK",
)

