SUPPORTED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
    "image/svg+xml",
]

SUPPORTED_FORMATS = ["png", "jpg", "jpeg", "webp", "gif", "bmp", "tiff", "svg"]

MIME_TO_EXTENSION = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/svg+xml": "svg",
}

FORMAT_TO_MIME = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "svg": "image/svg+xml",
}

def normalize_format(fmt: str) -> str:
    fmt = fmt.strip().lower()
    return "jpg" if fmt == "jpeg" else fmt

def extension_for_mimetype(mimetype: str) -> str:
    return MIME_TO_EXTENSION.get(mimetype, "png")

def mimetype_for_format(fmt: str) -> str:
    return FORMAT_TO_MIME.get(fmt.lower(), "application/octet-stream")
