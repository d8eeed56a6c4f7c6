"""Tests for attachment extraction, MIME guessing and upload-and-substitute."""

import pytest

from devin_agent.attachments import extract_attachments, guess_mime_type, upload_and_substitute
from devin_agent.errors import NetworkError

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeUploader:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.calls = []

    async def upload_file(self, path, content, present_to_agent=True):
        self.calls.append((path, content, present_to_agent))
        if path in self.fail:
            raise NetworkError("ECONNRESET")
        return f"https://x/{len(self.calls)}"


def test_extract_attachments_in_encounter_order():
    items = [
        {"type": "message", "role": "user", "content": [
            {"type": "input_text", "text": "look"},
            {"type": "input_image", "image_url": "https://x/img.png"},
            {"type": "input_file", "file_url": "https://x/doc.pdf"},
        ]},
        {"type": "message", "role": "user", "content": "plain string content"},
        {"type": "message", "role": "user", "content": [{"type": "input_file", "file_url": ""}]},
        {"type": "message", "role": "user", "content": [{"type": "input_image", "image_url": "https://x/2.png"}]},
    ]
    assert extract_attachments(items) == ["https://x/img.png", "https://x/doc.pdf", "https://x/2.png"]


def test_guess_mime_type():
    assert guess_mime_type("picture", PNG_HEADER) == "image/png"
    assert guess_mime_type("main.rs", b"fn main() {}") == "text/x-rust"
    assert guess_mime_type("App.JS", b"let x = 1") == "application/javascript"
    assert guess_mime_type("data.xyz", b"\x01\x02") == "application/octet-stream"


@pytest.mark.asyncio
async def test_upload_and_substitute():
    uploader = FakeUploader()
    message = "Can you analyze the file at /tmp/a.js and /tmp/b.js?"

    result = await upload_and_substitute(
        uploader, message, ["/tmp/a.js", "/tmp/b.js"], read_file=lambda path: path.encode(),
    )

    assert result == "Can you analyze the file at [a.js](https://x/1) and [b.js](https://x/2)?"
    assert uploader.calls == [("/tmp/a.js", b"/tmp/a.js", False), ("/tmp/b.js", b"/tmp/b.js", False)]


@pytest.mark.asyncio
async def test_failed_paths_are_left_unchanged():
    uploader = FakeUploader(fail={"/tmp/b.js"})

    def read_file(path):
        if path == "/tmp/missing.js":
            raise FileNotFoundError(path)
        return b"x"

    result = await upload_and_substitute(
        uploader, "/tmp/a.js /tmp/b.js /tmp/missing.js", ["/tmp/a.js", "/tmp/b.js", "/tmp/missing.js"],
        read_file=read_file,
    )

    assert result == "[a.js](https://x/1) /tmp/b.js /tmp/missing.js"


@pytest.mark.asyncio
async def test_reads_real_files(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    uploader = FakeUploader()

    result = await upload_and_substitute(uploader, f"read {path}", [str(path)])

    assert result == "read [notes.txt](https://x/1)"
    assert uploader.calls[0][1] == b"hello"
