"""Per-request render context.

Created by the render handler for every page request and handed to the
renderer, which is free to overwrite ``meta`` and fill in ``params``
and ``state`` while it renders. Discarded when the response ends.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Meta:
    """Document metadata. Defaults are placeholders the page replaces."""

    title: str = "Default Title"
    description: str = "Default description"


@dataclass(slots=True)
class RenderContext:
    """Mutable context for one render call."""

    url: str
    meta: Meta = field(default_factory=Meta)
    params: dict[str, str] = field(default_factory=dict)
    state: dict[str, Any] | None = None

    @property
    def path(self) -> str:
        """``url`` without its query string."""
        return self.url.split("?", 1)[0]
