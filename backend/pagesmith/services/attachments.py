"""Decode caller-supplied data-URI attachments into raw bytes."""

import base64
import binascii
import re

import structlog

from pagesmith.schemas.deployment import Attachment, AttachmentDescriptor

logger = structlog.get_logger(__name__)

_DATA_URI = re.compile(r"^data:([^;,]+)?;base64,(.+)$", re.DOTALL)


def decode_attachments(descriptors: list[AttachmentDescriptor] | tuple[AttachmentDescriptor, ...]) -> list[Attachment]:
    """Decode every base64 data URI, skipping anything that is not one.

    A bad attachment is logged and dropped; it never aborts the pipeline.
    """
    decoded: list[Attachment] = []
    for descriptor in descriptors:
        match = _DATA_URI.match(descriptor.url)
        if not match:
            logger.warning("attachment_skipped_not_data_uri", name=descriptor.name)
            continue

        try:
            content = base64.b64decode(match.group(2), validate=False)
        except (binascii.Error, ValueError) as exc:
            logger.warning("attachment_decode_failed", name=descriptor.name, error=str(exc))
            continue

        decoded.append(Attachment(name=descriptor.name, content=content))
        logger.info("attachment_decoded", name=descriptor.name, mime_type=match.group(1), size_bytes=len(content))

    return decoded
