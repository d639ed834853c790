"""
Interfaces for org connections.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

from .models import ItemDescriptor


class MetadataConnection(Protocol):
    """Read-only access to an org's metadata catalog and identity."""

    api_version: str

    def describe_metadata_types(self) -> List[str]:
        ...

    def list_metadata(self, types: Sequence[str]) -> List[ItemDescriptor]:
        ...

    def identity(self) -> str:
        ...

    def user_display_name(self, user_id: str) -> str:
        ...
