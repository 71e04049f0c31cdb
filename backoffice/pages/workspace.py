from __future__ import annotations

from cachetools import TTLCache

from backoffice.auth import Principal
from backoffice.config import settings
from backoffice.pages.container import PageContainer
from backoffice.schemas.records import DataType
from backoffice.services.entity_service import EntityService
from backoffice.services.lookup_service import LookupService
from backoffice.services.mutation_service import MutationService
from backoffice.services.upstream_client import UpstreamClient


class Workspace:
    """Per-session set of page containers sharing one upstream client."""

    def __init__(self, token: str | None) -> None:
        self.client = UpstreamClient(token)
        self.entities = EntityService(self.client)
        self.mutations = MutationService(self.client)
        self.lookups = LookupService(self.client)
        self.containers: dict[DataType, PageContainer] = {}

    def container(self, data_type: DataType | str) -> PageContainer:
        data_type = DataType(data_type)
        container = self.containers.get(data_type)
        if container is None or container.closed:
            container = PageContainer(data_type, self.entities, self.mutations, self.lookups)
            self.containers[data_type] = container
        return container


_WORKSPACES: TTLCache[str, Workspace] = TTLCache(maxsize=512, ttl=settings.workspace_ttl_seconds)


def workspace_for(principal: Principal) -> Workspace:
    key = principal.token or principal.username
    workspace = _WORKSPACES.get(key)
    if workspace is None:
        workspace = Workspace(principal.token)
        _WORKSPACES[key] = workspace
    return workspace

