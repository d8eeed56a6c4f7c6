"""
File attachment resolver — attachment extraction, MIME guessing and the
upload-and-substitute flow for local paths found in a prompt.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Protocol, Union

import filetype

from devin_agent.credentials import sanitize_error_message
from devin_agent.errors import DevinError
from devin_agent.paths import substitute_file_paths

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES_BY_EXTENSION = {
    ".js": "application/javascript",
    ".ts": "application/javascript",
    ".json": "application/json",
    ".html": "text/html",
    ".css": "text/css",
    ".md": "text/markdown",
    ".txt": "text/plain",
    ".py": "text/x-python",
    ".java": "text/x-java",
    ".c": "text/x-c",
    ".cpp": "text/x-c",
    ".h": "text/x-c",
    ".go": "text/x-go",
    ".rs": "text/x-rust",
    ".rb": "text/x-ruby",
    ".php": "text/x-php",
}


class Uploader(Protocol):
    async def upload_file(
        self, path: str, content: Union[bytes, str], present_to_agent: bool = True,
    ) -> str: ...


def extract_attachments(input_items: Iterable[dict[str, Any]]) -> list[str]:
    """URLs of inline images and files in user input, in encounter order."""
    urls: list[str] = []
    for item in input_items:
        if item.get("type") != "message":
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if not isinstance(part, dict):
                continue
            if part.get("type") == "input_image":
                url = part.get("image_url")
            elif part.get("type") == "input_file":
                url = part.get("file_url")
            else:
                continue
            if isinstance(url, str) and url:
                urls.append(url)
    if urls:
        logger.debug(f"extract_attachments: found {len(urls)} file attachments")
    return urls


def guess_mime_type(filename: str, content: bytes) -> str:
    """Content sniffing first, then the extension table, then generic binary."""
    try:
        kind = filetype.guess(content)
    except TypeError as e:
        logger.debug(f"MIME type detection failed, using extension: {e}")
        kind = None
    if kind is not None:
        return kind.mime
    return MIME_TYPES_BY_EXTENSION.get(Path(filename).suffix.lower(), DEFAULT_MIME_TYPE)


def read_local_file(path: str) -> bytes:
    return Path(os.path.expandvars(path)).expanduser().read_bytes()


async def upload_and_substitute(
    uploader: Uploader,
    message: str,
    paths: Iterable[str],
    read_file: Optional[Callable[[str], bytes]] = None,
) -> str:
    """Upload each local path and replace it in ``message`` with a markdown link.

    Paths that cannot be read or uploaded are logged and left unchanged.
    """
    read = read_file or read_local_file
    urls: dict[str, str] = {}
    for path in dict.fromkeys(paths):
        try:
            urls[path] = await uploader.upload_file(path, read(path), present_to_agent=False)
        except (OSError, DevinError) as e:
            logger.error(f"Error uploading file {path}: {sanitize_error_message(e)}")
    return substitute_file_paths(message, urls)
