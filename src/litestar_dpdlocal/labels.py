"""Label formats and their content types."""

from __future__ import annotations

from collections.abc import Mapping

LABEL_CONTENT_TYPES: dict[str, str] = {
    "html": "text/html",
    "zpl": "text/vnd.zebra-zpl",
    "clp": "text/vnd.citizen-clp",
    "epl": "text/vnd.eltron-epl",
}

LABEL_FILE_EXTENSIONS: dict[str, str] = {
    "html": "html",
    "zpl": "txt",
    "clp": "txt",
    "epl": "txt",
}


def get_accept_header(label_format: str) -> str:
    """Accept header for a label format. Unknown formats fall back to ZPL."""
    return LABEL_CONTENT_TYPES.get(label_format, LABEL_CONTENT_TYPES["zpl"])


def is_label_request(headers: Mapping[str, str]) -> bool:
    """Whether the request headers ask for a label rather than JSON."""
    for name, value in headers.items():
        if name.lower() == "accept":
            return value.strip().lower() in LABEL_CONTENT_TYPES.values()
    return False
