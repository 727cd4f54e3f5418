"""
Staged operations.

An adapter records exactly one of these before ``push()`` interprets it.
Pull is never left staged; ``pull()`` builds one and executes it at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class OperationKind(str, Enum):
    """Names of the operations an adapter can execute."""

    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"
    LINK = "link"
    PULL = "pull"
    TEST_CONNECTION = "test_connection"


@dataclass(frozen=True, slots=True)
class Create:
    """Create a product that has no linkage on the account yet."""

    product_id: int
    kind: OperationKind = field(default=OperationKind.CREATE, init=False)


@dataclass(frozen=True, slots=True)
class Update:
    """
    Update an already linked product.

    With no narrowing applied every field is sent.

    Attributes:
        product_id: Local product id.
        title: New title, when narrowed with ``title()``.
        images: New image URLs, when narrowed with ``images()``.
        pricing: Whether current pricing is sent.
    """

    product_id: int
    title: str | None = None
    images: tuple[str, ...] | None = None
    pricing: bool = False
    kind: OperationKind = field(default=OperationKind.UPDATE, init=False)

    @property
    def is_narrowed(self) -> bool:
        """Check if any field was selected explicitly."""
        return self.title is not None or self.images is not None or self.pricing

    @property
    def fields(self) -> tuple[str, ...]:
        """Return the field names this update sends."""
        if not self.is_narrowed:
            return ("title", "images", "pricing")
        selected = []
        if self.title is not None:
            selected.append("title")
        if self.images is not None:
            selected.append("images")
        if self.pricing:
            selected.append("pricing")
        return tuple(selected)

    def with_title(self, title: str) -> Update:
        """Return a copy narrowed to the given title."""
        return replace(self, title=title)

    def with_images(self, images: list[str] | tuple[str, ...]) -> Update:
        """Return a copy narrowed to the given images."""
        return replace(self, images=tuple(url for url in images if url))

    def with_pricing(self) -> Update:
        """Return a copy that includes pricing."""
        return replace(self, pricing=True)


@dataclass(frozen=True, slots=True)
class Recreate:
    """Drop the existing linkage and create the product again."""

    product_id: int
    kind: OperationKind = field(default=OperationKind.RECREATE, init=False)


@dataclass(frozen=True, slots=True)
class Link:
    """Match local SKUs to identifiers already present on the channel."""

    product_id: int
    kind: OperationKind = field(default=OperationKind.LINK, init=False)


@dataclass(frozen=True, slots=True)
class Pull:
    """Fetch remote records matching channel-defined filters."""

    filters: dict[str, Any] = field(default_factory=dict)
    kind: OperationKind = field(default=OperationKind.PULL, init=False)


type ProductOperation = Create | Update | Recreate | Link
type StagedOperation = ProductOperation | Pull
