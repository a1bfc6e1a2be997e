from __future__ import annotations

from dataclasses import dataclass

from .telegram.api_models import Document, PhotoSize

JPEG_MIME_TYPE = "image/jpeg"
DOCUMENT_FILE_TYPE = "document"
_JPEG_SUFFIXES = (".jpg", ".jpeg")


@dataclass(frozen=True, slots=True)
class FileAnalysis:
    is_jpeg: bool
    file_type: str
    size_kb: str
    dimensions: str | None = None


def is_jpeg(mime_type: str | None, file_name: str | None) -> bool:
    mime = mime_type or ""
    if mime.startswith(JPEG_MIME_TYPE):
        return True
    if (file_name or "").lower().endswith(_JPEG_SUFFIXES):
        return True
    return mime == "image/jpg"


def format_file_size(size: int | None) -> str:
    return f"{(size or 0) / 1024:.2f} KB"


def format_dimensions(width: int, height: int) -> str:
    return f"{width}x{height}"


def largest_photo(photos: list[PhotoSize] | None) -> PhotoSize | None:
    """Pick the variant with the biggest ``file_size``; earlier wins on ties."""
    if not photos:
        return None
    largest = photos[0]
    for photo in photos[1:]:
        if (photo.file_size or 0) > (largest.file_size or 0):
            largest = photo
    return largest


def analyze_photo(photo: PhotoSize) -> FileAnalysis:
    # Telegram re-encodes every photo upload as JPEG.
    return FileAnalysis(
        is_jpeg=True,
        file_type=JPEG_MIME_TYPE,
        size_kb=format_file_size(photo.file_size),
        dimensions=format_dimensions(photo.width, photo.height),
    )


def analyze_document(document: Document) -> FileAnalysis:
    jpeg = is_jpeg(document.mime_type, document.file_name)
    return FileAnalysis(
        is_jpeg=jpeg,
        file_type=JPEG_MIME_TYPE if jpeg else DOCUMENT_FILE_TYPE,
        size_kb=format_file_size(document.file_size),
    )
