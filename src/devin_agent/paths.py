"""
Local file-path detection in user text.

The remote agent cannot read the caller's disk, so paths mentioned in a
prompt are detected here and either uploaded (and replaced by links) or left
as-is at the user's choice.
"""

import ntpath
import posixpath
import re
from typing import Mapping

_SEGMENT = r"[a-zA-Z0-9_.-]+"
_EXT = r"\.[a-zA-Z0-9]+"

PATH_PATTERNS = [
    # /home/user/project/main.js
    re.compile(rf"(?:/{_SEGMENT})+{_EXT}"),
    # C:\Users\name\main.js
    re.compile(rf"[A-Za-z]:\\(?:{_SEGMENT}\\)+{_SEGMENT}{_EXT}"),
    # ./src/main.js, ../main.js
    re.compile(rf"\.{{1,2}}/(?:{_SEGMENT}/)*{_SEGMENT}{_EXT}"),
    # .\src\main.js
    re.compile(rf"\.{{1,2}}\\(?:{_SEGMENT}\\)*{_SEGMENT}{_EXT}"),
    # $HOME/project/main.js, ~/project/main.js
    re.compile(rf"(?:\$[A-Za-z0-9_]+|~)/(?:{_SEGMENT}/)*{_SEGMENT}{_EXT}"),
    # %USERPROFILE%\project\main.js
    re.compile(rf"%[A-Za-z0-9_]+%\\(?:{_SEGMENT}\\)*{_SEGMENT}{_EXT}"),
]
URL_PATTERN = re.compile(r"https?://\S+")

LOCAL_PATH_NOTICE = (
    "Note: I noticed you referenced local file path(s): {paths}. \n"
    "The Devin agent can only access files that are explicitly shared. \n"
    "Would you like to upload this file, use remote processing instead, or cancel this request?"
)


def detect_local_file_paths(text: str) -> list[str]:
    """Local file paths mentioned in ``text``, in order of appearance.

    Matches inside URLs and matches nested in a longer match are dropped.
    """
    if not text:
        return []
    url_spans = [m.span() for m in URL_PATTERN.finditer(text)]

    spans: list[tuple[int, int]] = []
    for pattern in PATH_PATTERNS:
        for m in pattern.finditer(text):
            start, end = m.span()
            if any(u_start <= start < u_end for u_start, u_end in url_spans):
                continue
            spans.append((start, end))

    # longest first so nested matches are seen after their container
    spans.sort(key=lambda s: (s[0] - s[1], s[0]))
    kept: list[tuple[int, int]] = []
    for start, end in spans:
        if any(k_start <= start and end <= k_end for k_start, k_end in kept):
            continue
        kept.append((start, end))

    paths: list[str] = []
    for start, end in sorted(kept):
        path = text[start:end]
        if path not in paths:
            paths.append(path)
    return paths


def path_basename(path: str) -> str:
    if "\\" in path and "/" not in path:
        return ntpath.basename(path)
    return posixpath.basename(path)


def substitute_file_paths(text: str, urls_by_path: Mapping[str, str]) -> str:
    """Replace every occurrence of each path with ``[basename](url)``."""
    if not urls_by_path:
        return text
    ordered = sorted(urls_by_path, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(p) for p in ordered))
    return pattern.sub(lambda m: f"[{path_basename(m.group(0))}]({urls_by_path[m.group(0)]})", text)


def format_local_path_notice(message: str, paths: list[str]) -> str:
    if not paths:
        return message
    return f"{message}\n\n{LOCAL_PATH_NOTICE.format(paths=', '.join(paths))}"
