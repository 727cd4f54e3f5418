"""Tests for staged operation values."""

from __future__ import annotations

import pytest

from services.marketplaces.operations import Create, Link, OperationKind, Pull, Recreate, Update


class TestOperationKinds:
    """Tests for the kind tag on each operation."""

    def test_kinds(self) -> None:
        """Each operation should carry its kind."""
        assert Create(1).kind is OperationKind.CREATE
        assert Update(1).kind is OperationKind.UPDATE
        assert Recreate(1).kind is OperationKind.RECREATE
        assert Link(1).kind is OperationKind.LINK
        assert Pull().kind is OperationKind.PULL


class TestUpdate:
    """Tests for update narrowing."""

    def test_unnarrowed_update_sends_everything(self) -> None:
        """An update without narrowing sends every field."""
        update = Update(1)

        assert update.is_narrowed is False
        assert update.fields == ("title", "images", "pricing")

    def test_narrowing_accumulates(self) -> None:
        """Narrowing calls add fields in a fixed order."""
        update = Update(1).with_pricing().with_title("New title")

        assert update.is_narrowed is True
        assert update.fields == ("title", "pricing")
        assert update.title == "New title"

    def test_with_images_drops_empty_urls(self) -> None:
        """Empty image URLs are discarded."""
        update = Update(1).with_images(["https://a/1.jpg", "", "https://a/2.jpg"])

        assert update.images == ("https://a/1.jpg", "https://a/2.jpg")
        assert update.fields == ("images",)

    def test_with_empty_images_still_narrows(self) -> None:
        """Narrowing to no images is an explicit choice."""
        update = Update(1).with_images([])

        assert update.images == ()
        assert update.fields == ("images",)

    def test_update_is_immutable(self) -> None:
        """Narrowing returns a new value."""
        original = Update(1)
        original.with_title("x")

        assert original.title is None
        with pytest.raises(AttributeError):
            original.title = "y"  # type: ignore[misc]
