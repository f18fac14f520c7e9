import re
from typing import Dict, Optional, Tuple

from menvo.core.errors import ValidationError

PDF = "application/pdf"
DOC = "application/msword"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PNG = "image/png"
JPEG = "image/jpeg"

EXTENSION_TYPES: Dict[str, str] = {
    ".pdf": PDF,
    ".doc": DOC,
    ".docx": DOCX,
    ".png": PNG,
    ".jpg": JPEG,
    ".jpeg": JPEG,
}

CATEGORY_TYPES: Dict[str, Tuple[str, ...]] = {
    "cv": (PDF,),
    "document": (PDF, DOC, DOCX, PNG, JPEG),
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_file_name(name: str) -> str:
    name = name.rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    return _UNSAFE_CHARS.sub("_", name) or "file"


def resolve_content_type(file_name: str, declared: Optional[str] = None) -> str:
    """Content type from the extension; browsers send unreliable declared types"""
    lowered = file_name.lower()
    for extension, content_type in EXTENSION_TYPES.items():
        if lowered.endswith(extension):
            return content_type
    return declared or "application/octet-stream"


def validate_upload(category: str, file_name: str, content_type: str, size: int, max_size: int) -> None:
    allowed = CATEGORY_TYPES.get(category)
    if allowed is None:
        raise ValidationError(
            f"Unknown file category. Use one of: {', '.join(CATEGORY_TYPES)}",
            field="category",
        )
    if size == 0:
        raise ValidationError("File is empty", field="file")
    if size > max_size:
        raise ValidationError(
            f"File exceeds the maximum size of {max_size // (1024 * 1024)}MB",
            field="file",
        )
    if content_type not in allowed:
        raise ValidationError(
            f"File type not allowed for {category}: {file_name}",
            field="file",
            extra={"allowed_types": list(allowed)},
        )
