from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


@dataclass
class Record:
    """One queryable catalog item (a descriptor's main entry or one of its actions)."""
    file: str
    label: str = ""
    sub: str = ""
    icon: str = ""
    exec: str = ""
    terminal: bool = False
    path: str = ""
    categories: List[str] = field(default_factory=list)
    initial_class: str = ""
    identifier: str = ""
    prefer: bool = False

    def searchable(self) -> List[str]:
        """Fields in matching priority order: label, sub, then tags."""
        return [self.label, self.sub, *self.categories]


class QueryRequest(BaseModel):
    autoselect: bool = False
    providers: Optional[List[str]] = Field(default_factory=list)
    query: str = ""

    @field_validator("providers")
    @classmethod
    def _dedupe(cls, value: Optional[List[str]]) -> List[str]:
        # null means no providers; keep first occurrence so the order stays deterministic
        if value is None:
            return []
        return list(dict.fromkeys(value))


class ActivationType(IntEnum):
    PRIMARY = 0
    SECONDARY = 1


class ActivationRequest(BaseModel):
    identifier: str
    provider: str
    type: ActivationType = ActivationType.PRIMARY
    terminal: bool = False


class ResultItem(BaseModel):
    labels: Dict[str, str] = Field(default_factory=dict)
    icon: str = ""
    identifier: str = ""
    provider: str = ""
    score: float = Field(0.0, exclude=True)
