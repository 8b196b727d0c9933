"""Walk a message structure tree to find attachments and the readable body."""

from __future__ import annotations

import os
from typing import Iterator

from .constants import MAX_STRUCTURE_DEPTH, RESUME_EXTENSIONS
from .models import AttachmentDescriptor, LeafPart, MultiPart, StructureNode, TextPartRef

_ATTACHMENT_DISPOSITIONS = ("attachment", "inline")
_TEXT_SUBTYPES = ("plain", "html")


def iter_leaves(node: StructureNode | None, prefix: str = "", depth: int = 0) -> Iterator[tuple[str, LeafPart]]:
    """Yield (part path, leaf) pairs in depth-first order.

    Paths are dot-joined 1-based child indexes ("2.1"). A message that is not
    multipart has a single leaf addressed as "1".
    """
    if node is None:
        return
    if depth > MAX_STRUCTURE_DEPTH:
        raise ValueError(f"Message structure nested deeper than {MAX_STRUCTURE_DEPTH} levels")

    if isinstance(node, MultiPart):
        for index, child in enumerate(node.children, start=1):
            path = f"{prefix}.{index}" if prefix else str(index)
            yield from iter_leaves(child, path, depth + 1)
    else:
        yield (prefix or "1", node)


def _is_attachment(leaf: LeafPart) -> bool:
    return bool(leaf.filename) and leaf.disposition.lower() in _ATTACHMENT_DISPOSITIONS


def extract_attachments(structure: StructureNode | None) -> list[AttachmentDescriptor]:
    """Flatten a structure tree into attachment descriptors."""
    return [
        AttachmentDescriptor(
            filename=leaf.filename,
            part=path,
            media_type=f"{leaf.media_type}/{leaf.subtype}".lower(),
            size=leaf.size,
        )
        for path, leaf in iter_leaves(structure)
        if _is_attachment(leaf)
    ]


def find_first_text_part(structure: StructureNode | None) -> TextPartRef | None:
    """Return the first text/plain or text/html part that is not an attachment."""
    for path, leaf in iter_leaves(structure):
        if leaf.media_type.lower() != "text" or leaf.subtype.lower() not in _TEXT_SUBTYPES:
            continue
        if _is_attachment(leaf):
            continue
        return TextPartRef(
            part=path,
            media_type=f"text/{leaf.subtype.lower()}",
            charset=leaf.charset,
        )
    return None


def is_resume_attachment(filename: str) -> bool:
    """True when the filename carries a resume-like extension."""
    if not filename:
        return False
    return os.path.splitext(filename)[1].lower() in RESUME_EXTENSIONS


def resume_attachments(structure: StructureNode | None) -> list[AttachmentDescriptor]:
    return [a for a in extract_attachments(structure) if is_resume_attachment(a.filename)]
