from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# search_docs
# ---------------------------------------------------------------------------


class SearchDocsInput(BaseModel):
    query: str = Field(max_length=500)
    corpus: str | None = None


class SearchResult(BaseModel):
    """Single result returned by search_docs."""

    document_id: int
    title: str
    description: str | None = None


class SearchDocsOutput(BaseModel):
    corpus: str
    results: list[SearchResult]


# ---------------------------------------------------------------------------
# get_doc / get_doc_pages / get_doc_section
# ---------------------------------------------------------------------------


class _DocumentInput(BaseModel):
    # Unknown ids (negative included) surface as DOCUMENT_NOT_FOUND downstream
    document_id: int
    corpus: str | None = None
    # Clamped to [1, 500] downstream, not rejected
    page_size: int | None = None


class GetDocInput(_DocumentInput):
    page: int = 1


class GetDocPagesInput(_DocumentInput):
    start_page: int
    end_page: int | None = None


class GetDocSectionInput(_DocumentInput):
    heading: str = Field(max_length=500)
    depth: int | None = Field(default=None, ge=1, le=6)

    @field_validator("heading")
    @classmethod
    def validate_heading(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("heading must not be blank")
        return v


class GetDocOutput(BaseModel):
    content: str
    page: int
    total_pages: int


class GetDocPagesOutput(BaseModel):
    content: str
    start_page: int
    end_page: int
    total_pages: int


class GetDocSectionOutput(BaseModel):
    content: str
    from_line: int
    to_line: int
    page_start: int
    page_end: int
    total_pages: int
