"""Resource tree repository port."""

from typing import Protocol

from dacsimple.domain.entities import Resource


class ResourceRepository(Protocol):
    """Port for resource tree persistence."""

    async def get_by_uri(self, uri: str) -> Resource | None: ...

    async def list_children(self, uri: str, is_class: bool) -> list[Resource]: ...

    async def list_descendants(self, uri: str, is_class: bool) -> list[Resource]: ...

    async def create(self, resource: Resource) -> Resource: ...
