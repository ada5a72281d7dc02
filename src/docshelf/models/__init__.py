from __future__ import annotations

from docshelf.models.documents import (
    ContentProducer,
    DocumentEntry,
    Heading,
    MarkdownFile,
    static_content,
)
from docshelf.models.reference import ReferenceEntry, ReferenceModule
from docshelf.models.tools import (
    GetDocInput,
    GetDocOutput,
    GetDocPagesInput,
    GetDocPagesOutput,
    GetDocSectionInput,
    GetDocSectionOutput,
    SearchDocsInput,
    SearchDocsOutput,
    SearchResult,
)

__all__ = [
    # documents
    "ContentProducer",
    "DocumentEntry",
    "Heading",
    "MarkdownFile",
    "static_content",
    # reference
    "ReferenceEntry",
    "ReferenceModule",
    # tools
    "SearchDocsInput",
    "SearchDocsOutput",
    "SearchResult",
    "GetDocInput",
    "GetDocOutput",
    "GetDocPagesInput",
    "GetDocPagesOutput",
    "GetDocSectionInput",
    "GetDocSectionOutput",
]
