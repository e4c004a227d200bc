"""Resource tree port - ontology navigation."""

from typing import Protocol

from dacsimple.domain.entities import Resource


class ResourceTree(Protocol):
    """Port for navigating the class/instance tree.

    The tree is guaranteed acyclic by its owner; callers do not guard against
    cycles.
    """

    async def get_resource(self, uri: str) -> Resource | None: ...

    async def get_subclasses(self, resource: Resource, transitive: bool = False) -> list[Resource]: ...

    async def get_instances(self, resource: Resource, transitive: bool = False) -> list[Resource]: ...

    async def get_parent(self, resource: Resource) -> Resource | None: ...

    async def get_label(self, resource: Resource) -> str: ...
