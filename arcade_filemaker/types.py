from typing import Any, Protocol

from arcade_filemaker.models import FileMakerRecord, FoundSet


class RecordClient(Protocol):
    """The single-record operations the bulk layer drives."""

    async def create_record(self, layout: str, field_data: dict[str, Any]) -> str: ...

    async def update_record(
        self, layout: str, record_id: str, field_data: dict[str, Any]
    ) -> str: ...

    async def delete_record(self, layout: str, record_id: str) -> None: ...

    async def find_records(
        self,
        layout: str,
        query: list[dict[str, Any]] | dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
        sort: list[dict[str, str]] | None = None,
    ) -> FoundSet: ...

    async def find_one(self, layout: str, query: dict[str, Any]) -> FileMakerRecord | None: ...
