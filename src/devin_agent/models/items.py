"""
Normalized response items — the uniform unit handed to the UI.

Assistant items carry ``output_text`` / ``output_file`` parts; adapter notices
(errors, approval prompts, upload confirmations) are ``system`` items with
``input_text`` parts.
"""

import uuid
from typing import Any, Literal, Union
from pydantic import BaseModel, Field


class OutputText(BaseModel):
    type: Literal["output_text"] = "output_text"
    text: str
    annotations: list[Any] = Field(default_factory=list)


class InputText(BaseModel):
    type: Literal["input_text"] = "input_text"
    text: str


class OutputFile(BaseModel):
    type: Literal["output_file"] = "output_file"
    file_url: str
    filename: str
    mime_type: str


ContentPart = Union[OutputText, InputText, OutputFile]


class ResponseItem(BaseModel):
    id: str
    type: Literal["message"] = "message"
    role: Literal["assistant", "system"]
    content: list[ContentPart]

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content if isinstance(part, (OutputText, InputText)))

    @property
    def files(self) -> list[OutputFile]:
        return [part for part in self.content if isinstance(part, OutputFile)]


def new_item_id(prefix: str = "devin") -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def assistant_item(text: str, *files: OutputFile, prefix: str = "devin") -> ResponseItem:
    return ResponseItem(id=new_item_id(prefix), role="assistant", content=[OutputText(text=text), *files])


def system_item(text: str, prefix: str = "error") -> ResponseItem:
    return ResponseItem(id=new_item_id(prefix), role="system", content=[InputText(text=text)])
