"""
Core data models for recent metadata changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ChangeMode(str, Enum):
    """Which timestamp and author drive the filter and the report."""

    CREATED = "created"
    MODIFIED = "modified"

    @classmethod
    def from_flag(cls, created: bool) -> "ChangeMode":
        return cls.CREATED if created else cls.MODIFIED

    @property
    def age_field(self) -> str:
        return "creation_age" if self is ChangeMode.CREATED else "modification_age"

    @property
    def date_field(self) -> str:
        return "created_date" if self is ChangeMode.CREATED else "last_modified_date"

    @property
    def author_field(self) -> str:
        return "created_by_name" if self is ChangeMode.CREATED else "last_modified_by_name"


@dataclass(frozen=True)
class ItemDescriptor:
    """A metadata component as listed by the org."""

    type: str
    full_name: str
    last_modified_date: str = ""
    created_date: str = ""
    last_modified_by_name: str = ""
    created_by_name: str = ""


@dataclass(frozen=True)
class ChangeRecord:
    """A component that was created or modified inside the window."""

    type: str
    name: str
    modification_age: Optional[int]
    creation_age: Optional[int]
    last_modified_date: str
    created_date: str
    last_modified_by_name: str
    created_by_name: str

    def effective_age(self, mode: ChangeMode) -> Optional[int]:
        return getattr(self, mode.age_field)

    def effective_author(self, mode: ChangeMode) -> str:
        return getattr(self, mode.author_field)

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type,
            "name": self.name,
            "modificationAge": self.modification_age,
            "creationAge": self.creation_age,
            "lastModifiedDate": self.last_modified_date,
            "createdDate": self.created_date,
            "lastModifiedByName": self.last_modified_by_name,
            "createdByName": self.created_by_name,
        }
