"""Tests for the canonical document model."""

from __future__ import annotations

import dataclasses
import time
import uuid

import pytest

from src.file_parser.model import (
    Document,
    Heading,
    InlineStyle,
    ListBlock,
    ListItem,
    LocalPathSource,
    Meta,
    Paragraph,
    TextInline,
    Unrecognized,
    UploadedSource,
    document_to_dict,
    new_document_id,
)


def _document(*blocks) -> Document:
    meta = Meta(source=UploadedSource("notes.txt"), content_type="text/plain")
    return Document(id=new_document_id(), title="notes", meta=meta, blocks=tuple(blocks))


def test_document_ids_are_uuid7_and_time_ordered() -> None:
    first = new_document_id()
    time.sleep(0.002)
    second = new_document_id()

    parsed = uuid.UUID(first)
    assert parsed.version == 7
    assert parsed.variant == uuid.RFC_4122
    assert first < second


def test_document_requires_at_least_one_block() -> None:
    meta = Meta(source=UploadedSource("empty.txt"), content_type="text/plain")
    with pytest.raises(ValueError):
        Document(id=new_document_id(), title="", meta=meta, blocks=())


def test_heading_level_is_bounded() -> None:
    with pytest.raises(ValueError):
        Heading(level=7)
    with pytest.raises(ValueError):
        Heading(level=0)


def test_inline_style_serializes_only_applied_attributes() -> None:
    assert InlineStyle().to_dict() == {}
    assert InlineStyle().is_plain()
    style = InlineStyle(bold=True, link="https://example.com")
    assert style.to_dict() == {"bold": True, "link": "https://example.com"}
    assert not style.is_plain()


def test_document_is_immutable() -> None:
    document = _document(Paragraph((TextInline("text"),)))

    with pytest.raises(dataclasses.FrozenInstanceError):
        document.title = "changed"  # type: ignore[misc]
    with pytest.raises(TypeError):
        document.meta.properties["page_count"] = 3  # type: ignore[index]


def test_document_to_dict_tags_every_node() -> None:
    document = _document(
        Heading(level=1, inlines=(TextInline("Title"),)),
        ListBlock(items=(ListItem((TextInline("one"),)),), ordered=True),
        Unrecognized(content_type="application/msword", reason="no text"),
    )

    payload = document_to_dict(document)

    assert payload["meta"]["source"] == {"type": "uploaded", "original_name": "notes.txt"}
    assert [block["type"] for block in payload["blocks"]] == ["heading", "list", "unrecognized"]
    assert payload["blocks"][0]["inlines"] == [{"type": "text", "text": "Title", "style": {}}]
    assert payload["blocks"][1]["ordered"] is True
    assert payload["blocks"][1]["items"][0]["level"] == 0
    assert payload["blocks"][2]["reason"] == "no text"


def test_local_path_source_serializes_path() -> None:
    meta = Meta(source=LocalPathSource("reports/q1.pdf"), content_type="application/pdf")
    document = Document(id="fixed", title="q1", meta=meta, blocks=(Paragraph(),))

    assert document_to_dict(document)["meta"]["source"] == {
        "type": "local_path",
        "path": "reports/q1.pdf",
    }


def test_documents_with_properties_are_hashable() -> None:
    meta = Meta(
        source=LocalPathSource("reports/q3.pdf"),
        content_type="application/pdf",
        properties={"page_count": 3},
    )
    first = Document(id="fixed", title="q3", meta=meta, blocks=(Paragraph((TextInline("Revenue"),)),))
    second = dataclasses.replace(first)

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1
