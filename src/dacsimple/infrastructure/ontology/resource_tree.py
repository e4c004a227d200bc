"""Resource tree over the relational resource table."""

from dacsimple.domain.entities import Resource


class RelationalResourceTree:
    """ResourceTree adapter; each call runs in its own unit of work."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def get_resource(self, uri: str) -> Resource | None:
        async with self._uow_factory() as uow:
            return await uow.resources.get_by_uri(uri)

    async def get_subclasses(self, resource: Resource, transitive: bool = False) -> list[Resource]:
        return await self._below(resource, is_class=True, transitive=transitive)

    async def get_instances(self, resource: Resource, transitive: bool = False) -> list[Resource]:
        return await self._below(resource, is_class=False, transitive=transitive)

    async def get_parent(self, resource: Resource) -> Resource | None:
        if resource.parent_uri is None:
            return None
        return await self.get_resource(resource.parent_uri)

    async def get_label(self, resource: Resource) -> str:
        return resource.label or resource.uri

    async def _below(self, resource: Resource, is_class: bool, transitive: bool) -> list[Resource]:
        if not resource.is_class:
            return []
        async with self._uow_factory() as uow:
            if transitive:
                return await uow.resources.list_descendants(resource.uri, is_class)
            return await uow.resources.list_children(resource.uri, is_class)
