from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from .errors import DirectoryError
from .query_builder import ReadRequest, ReferenceRequest


@dataclass
class ReadResult:
    rows: list = field(default_factory=list)
    count: int = 0


class DirectoryStore(ABC):
    """
    Read-only access to the directory tables.

    Implementations raise ``DirectoryError`` (already classified) on failure
    and never return partial results.
    """

    @abstractmethod
    async def read(self, request: ReadRequest) -> ReadResult:
        pass

    @abstractmethod
    async def read_reference(self, request: ReferenceRequest) -> list:
        pass

    @abstractmethod
    async def check_table(self, table: str) -> Optional[DirectoryError]:
        """Return None when ``table`` is queryable, else the classified error."""
        pass

    async def close(self):
        pass
