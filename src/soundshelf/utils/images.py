"""Image format helpers for embedded artwork."""

DEFAULT_IMAGE_MIME = "image/jpeg"

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
}

# Every extension a stored cover may carry, used when deleting covers
COVER_EXTENSIONS = tuple(sorted(set(_EXTENSIONS.values())))


def detect_image_mime(data: bytes) -> str | None:
    """Detect image format from magic bytes.

    Returns:
        MIME type, or None if the signature is not recognized.
    """
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:2] == b"BM":
        return "image/bmp"
    return None


def normalize_image_mime(declared: str | None) -> str | None:
    """Normalize a declared picture format into a full MIME type.

    Some containers declare just the subtype ("png", "JPEG") rather than
    a MIME string.
    """
    if not declared:
        return None
    declared = declared.strip().lower()
    if not declared:
        return None
    if "/" not in declared:
        declared = f"image/{declared}"
    if declared == "image/jpg":
        return "image/jpeg"
    return declared


def resolve_image_mime(declared: str | None, data: bytes) -> str:
    """Pick the content type for stored artwork.

    Prefers the declared format, then the sniffed format, then JPEG.
    """
    return (
        normalize_image_mime(declared) or detect_image_mime(data) or DEFAULT_IMAGE_MIME
    )


def extension_for_mime(mime_type: str) -> str:
    """Map an image MIME type to a file extension (".jpg" if unknown)."""
    return _EXTENSIONS.get(mime_type.lower(), ".jpg")
