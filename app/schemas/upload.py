"""Upload schemas."""

from .base import BaseSchema


class UploadResponse(BaseSchema):
    """Where an uploaded file ended up."""

    file_name: str
    file_path: str
    file_url: str
