import re
from datetime import datetime, timezone

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

MIME_EXTENSIONS = {
    "application/pdf": "pdf",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def utcnow():
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def safe_filename(base):
    """Collapse whitespace, replace path/control characters, and cap at 120 characters."""
    s = re.sub(r"\s+", " ", (base or "").strip())
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", s)
    return cleaned[:120] or "certificate"


def ext_from_mime(mime):
    return MIME_EXTENSIONS.get(mime, "bin")
