"""
Typed outbound message blocks.

Messages are a list of tagged blocks (header, text section, field pair,
context note, divider) built through ``MessageBuilder`` and rendered to the
Slack Block Kit payload only at the transport boundary.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class HeaderBlock(BaseModel):
    type: Literal["header"] = "header"
    text: str

    def to_slack(self) -> Dict[str, Any]:
        return {
            "type": "header",
            "text": {"type": "plain_text", "text": self.text, "emoji": True},
        }


class TextSectionBlock(BaseModel):
    type: Literal["section"] = "section"
    text: str

    def to_slack(self) -> Dict[str, Any]:
        return {"type": "section", "text": {"type": "mrkdwn", "text": self.text}}


class FieldPairBlock(BaseModel):
    """Two-column section; Slack allows at most ten fields."""
    type: Literal["fields"] = "fields"
    fields: List[str] = Field(min_length=1, max_length=10)

    def to_slack(self) -> Dict[str, Any]:
        return {
            "type": "section",
            "fields": [{"type": "mrkdwn", "text": text} for text in self.fields],
        }


class ContextNoteBlock(BaseModel):
    type: Literal["context"] = "context"
    text: str

    def to_slack(self) -> Dict[str, Any]:
        return {"type": "context", "elements": [{"type": "mrkdwn", "text": self.text}]}


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"

    def to_slack(self) -> Dict[str, Any]:
        return {"type": "divider"}


Block = Annotated[
    Union[HeaderBlock, TextSectionBlock, FieldPairBlock, ContextNoteBlock, DividerBlock],
    Field(discriminator="type"),
]


class Message(BaseModel):
    """An outbound message: fallback text plus ordered blocks."""

    text: str
    blocks: List[Block] = Field(default_factory=list)

    def to_slack(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "blocks": [block.to_slack() for block in self.blocks],
        }

    def plain_text(self) -> str:
        """All visible text, one block per line (used for logs and tests)."""
        lines: List[str] = []
        for block in self.blocks:
            if isinstance(block, FieldPairBlock):
                lines.extend(block.fields)
            elif not isinstance(block, DividerBlock):
                lines.append(block.text)
        return "\n".join(lines)


class MessageBuilder:
    """Small fluent API for composing a ``Message``."""

    def __init__(self, text: Optional[str] = None) -> None:
        self._text = text
        self._blocks: List[Block] = []

    def header(self, text: str) -> "MessageBuilder":
        self._blocks.append(HeaderBlock(text=text))
        if self._text is None:
            self._text = text
        return self

    def section(self, text: str) -> "MessageBuilder":
        self._blocks.append(TextSectionBlock(text=text))
        if self._text is None:
            self._text = text
        return self

    def fields(self, *texts: str) -> "MessageBuilder":
        texts = tuple(t for t in texts if t)
        if texts:
            self._blocks.append(FieldPairBlock(fields=list(texts)))
        return self

    def context(self, text: str) -> "MessageBuilder":
        self._blocks.append(ContextNoteBlock(text=text))
        return self

    def divider(self) -> "MessageBuilder":
        self._blocks.append(DividerBlock())
        return self

    def build(self) -> Message:
        return Message(text=self._text or "", blocks=list(self._blocks))
