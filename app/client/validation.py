"""Client-side checks applied to a file before it is uploaded."""

from dataclasses import dataclass
from pathlib import PurePath

from app.exceptions.base import ValidationError

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Recognized document types by MIME type and by extension
ALLOWED_CONTENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)
ALLOWED_EXTENSIONS = (".pdf", ".doc", ".docx", ".txt")


@dataclass
class UploadCandidate:
    """A file picked for upload."""

    file_name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


def is_document_type(candidate: UploadCandidate) -> bool:
    if candidate.content_type:
        return candidate.content_type.split(";")[0].strip().lower() in ALLOWED_CONTENT_TYPES
    return PurePath(candidate.file_name).suffix.lower() in ALLOWED_EXTENSIONS


def validate_upload(candidate: UploadCandidate, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """Reject files that are not documents or exceed the size limit.

    Raises:
        ValidationError: With a message naming the rejected file.
    """
    if not is_document_type(candidate):
        raise ValidationError(
            f"{candidate.file_name} is not a supported document. Please upload a PDF, Word or text file.",
            details={"reason": "invalid_type", "file_name": candidate.file_name},
        )
    if candidate.size > max_bytes:
        raise ValidationError(
            f"{candidate.file_name} is too large. Please upload a file smaller than {max_bytes // (1024 * 1024)}MB.",
            details={"reason": "too_large", "file_name": candidate.file_name, "size": candidate.size},
        )
