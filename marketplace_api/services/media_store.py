from __future__ import annotations

import asyncio
import io
import os
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from marketplace_api.core.config import Settings
from marketplace_api.core.exceptions import StorageError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.services.attachments import discard_local_file

logger = get_structlog_logger(__name__)

# Pillow format name -> (file extension, content type)
_FORMATS = {
    "JPEG": ("jpg", "image/jpeg"),
    "PNG": ("png", "image/png"),
    "WEBP": ("webp", "image/webp"),
}
_FORMAT_ALIASES = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}


def build_s3_client(settings: Settings) -> Any:
    """Get a properly configured S3 client."""
    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        config=Config(
            signature_version="s3v4",
            region_name=settings.s3_region,
            s3={"addressing_style": "virtual"},
        ),
    )


@contextmanager
def scoped_local_file(path: str) -> Iterator[str]:
    """Yield ``path`` and remove the file once the block exits, however it exits."""
    try:
        yield path
    finally:
        discard_local_file(path)


class MediaStore:
    """Uploads seller media to an S3-compatible bucket."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        public_base_url: str = "",
        *,
        max_bytes: int = 20 * 1024 * 1024,
        allowed_formats: Sequence[str] = ("jpg", "jpeg", "png", "webp"),
        max_size: Tuple[int, int] = (1200, 800),
        quality: int = 85,
    ) -> None:
        self._client = client
        self.bucket = bucket
        self.public_base_url = (public_base_url or f"https://{bucket}.s3.amazonaws.com").rstrip("/")
        self.max_bytes = max_bytes
        self.allowed_formats = {
            _FORMAT_ALIASES[fmt.lower()] for fmt in allowed_formats if fmt.lower() in _FORMAT_ALIASES
        }
        self.max_size = max_size
        self.quality = quality

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[Any] = None) -> "MediaStore":
        return cls(
            client if client is not None else build_s3_client(settings),
            settings.s3_bucket,
            settings.media_public_base_url,
            max_bytes=settings.max_upload_bytes,
            allowed_formats=settings.image_formats(),
            max_size=(settings.image_max_width, settings.image_max_height),
            quality=settings.image_quality,
        )

    async def upload(self, local_path: str, folder: str) -> str:
        """Transform and store a local image, returning its public URL.

        The local file is removed whether or not the upload succeeds.
        """
        with scoped_local_file(local_path):
            url = await asyncio.to_thread(self._upload_sync, local_path, folder)
        logger.info("media.uploaded", folder=folder, url=url)
        return url

    def _upload_sync(self, local_path: str, folder: str) -> str:
        try:
            size = os.path.getsize(local_path)
        except OSError as e:
            raise StorageError("Upload file is missing", details={"error": str(e)}) from e
        if size > self.max_bytes:
            raise StorageError(
                "File exceeds the upload size limit",
                details={"size": size, "max_bytes": self.max_bytes},
            )

        body, image_format = self._transform(local_path)
        extension, content_type = _FORMATS[image_format]
        key = f"{folder.strip('/')}/{uuid.uuid4().hex}.{extension}"

        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Remote storage rejected the upload", details={"error": str(e)[:200]}) from e

        return f"{self.public_base_url}/{key}"

    def _transform(self, local_path: str) -> Tuple[bytes, str]:
        """Downscale to fit ``max_size`` and re-encode in the source format."""
        try:
            with Image.open(local_path) as im:
                image_format = (im.format or "").upper()
                if image_format not in self.allowed_formats:
                    raise StorageError(
                        "Unsupported image format",
                        details={"format": image_format or "unknown"},
                    )
                im.thumbnail(self.max_size, Image.LANCZOS)

                buf = io.BytesIO()
                if image_format == "JPEG":
                    im.convert("RGB").save(buf, format="JPEG", quality=self.quality, optimize=True)
                elif image_format == "WEBP":
                    im.save(buf, format="WEBP", quality=self.quality, method=6)
                else:
                    im.save(buf, format="PNG", optimize=True)
        except StorageError:
            raise
        except UnidentifiedImageError as e:
            raise StorageError("File is not a recognised image") from e
        except Image.DecompressionBombError as e:
            raise StorageError("Image dimensions exceed the decoding limit", details={"error": str(e)[:200]}) from e
        except Exception as e:
            raise StorageError("Image could not be processed", details={"error": str(e)[:200]}) from e

        return buf.getvalue(), image_format
