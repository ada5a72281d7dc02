from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class ReferenceModule(BaseModel):
    name: str


class ReferenceEntry(BaseModel):
    """One API reference record (function, type, constant...) from a JSON dump."""

    model_config = ConfigDict(populate_by_name=True)

    tag: str = Field(alias="_tag")
    module: ReferenceModule
    project: str
    name: str
    description: str | None = None
    deprecated: bool = False
    examples: list[str] = []
    since: str = ""
    category: str | None = None
    signature: str | None = None
    source_url: str = Field(default="", alias="sourceUrl")

    @property
    def module_title(self) -> str:
        """Module file name without its extension: ``"Effect.ts"`` → ``"Effect"``."""
        return _EXTENSION_RE.sub("", self.module.name)

    @property
    def name_with_module(self) -> str:
        return f"{self.module_title}.{self.name}"

    def as_markdown(self) -> str:
        """Render as a markdown page: heading, description, signature, examples."""
        body = self.description or ""
        if self.signature:
            body += f"\n\n```ts\n{self.signature}\n```"
        if self.examples:
            body += "\n\n**Example**"
            for example in self.examples:
                body += f"\n\n```ts\n{example}\n```"
        return f"# {self.project}/{self.name_with_module}\n\n{body}"
