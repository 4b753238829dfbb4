"""
Content Validation Service

Field-level checks for report submissions and attachment descriptors.
Attachments are descriptors only; nothing here fetches or stores them.
"""

import base64
import binascii
from typing import Iterable, List, Optional

import models.schemas as schemas
from models.config import settings
from models.exceptions import ValidationException

ADDRESS_MIN_LENGTH = 3
ADDRESS_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500
FEEDBACK_MIN_LENGTH = 10

ALLOWED_IMAGE_MIMETYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "image/heic"}
)


class ContentValidationService:
    """Validation for user-submitted report content."""

    @staticmethod
    def validate_address(address: Optional[str]) -> str:
        address = (address or "").strip()
        if not ADDRESS_MIN_LENGTH <= len(address) <= ADDRESS_MAX_LENGTH:
            raise ValidationException(
                f"Address must be between {ADDRESS_MIN_LENGTH} and "
                f"{ADDRESS_MAX_LENGTH} characters"
            )
        return address

    @staticmethod
    def validate_description(description: Optional[str]) -> str:
        description = (description or "").strip()
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationException(
                f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
        return description

    @staticmethod
    def validate_required_text(value: Optional[str], field: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValidationException(f"{field} is required")
        return value

    @staticmethod
    def validate_feedback(feedback: Optional[str]) -> str:
        feedback = (feedback or "").strip()
        if len(feedback) < FEEDBACK_MIN_LENGTH:
            raise ValidationException(
                f"Resolution feedback must be at least {FEEDBACK_MIN_LENGTH} characters"
            )
        return feedback

    @staticmethod
    def validate_attachment(attachment: schemas.ImageAttachment) -> None:
        """
        Check one image descriptor.

        Raises:
            ValidationException: If the mimetype is not an image, the size is
                over the limit, or it does not carry exactly one of url/data
        """
        mimetype = attachment.mimetype.lower()
        if mimetype not in ALLOWED_IMAGE_MIMETYPES:
            raise ValidationException(f"Unsupported image type: {attachment.mimetype}")

        has_url = bool(attachment.url)
        has_data = bool(attachment.data)
        if has_url == has_data:
            raise ValidationException(
                "Each image must have either a URL or inline data, not both"
            )

        if has_url and not attachment.url.startswith(("http://", "https://")):  # type: ignore[union-attr]
            raise ValidationException("Image URL must use http or https")

        size = attachment.size
        if has_data:
            payload = attachment.data.split(",", 1)[-1]  # type: ignore[union-attr]
            try:
                decoded = base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError):
                raise ValidationException("Image data is not valid base64") from None
            size = max(size, len(decoded))

        if size > settings.MAX_IMAGE_SIZE_BYTES:
            max_mb = settings.MAX_IMAGE_SIZE_BYTES / (1024 * 1024)
            raise ValidationException(f"Each image must be {max_mb:g} MB or smaller")

    @staticmethod
    def validate_attachments(
        attachments: Iterable[schemas.ImageAttachment], require_one: bool = False
    ) -> List[schemas.ImageAttachment]:
        attachments = list(attachments)
        if len(attachments) > settings.MAX_IMAGES_PER_REPORT:
            raise ValidationException(
                f"A report can have at most {settings.MAX_IMAGES_PER_REPORT} images"
            )
        if require_one and not attachments:
            raise ValidationException("At least one image is required")
        for attachment in attachments:
            ContentValidationService.validate_attachment(attachment)
        return attachments
