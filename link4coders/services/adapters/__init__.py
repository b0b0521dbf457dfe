import httpx

from link4coders.config import Settings
from link4coders.services.adapters.base import AdapterRegistry, PreviewAdapter
from link4coders.services.adapters.devto import DevToAdapter
from link4coders.services.adapters.github import GitHubAdapter
from link4coders.services.adapters.hashnode import HashnodeAdapter
from link4coders.services.adapters.medium import MediumAdapter
from link4coders.services.adapters.substack import SubstackAdapter
from link4coders.services.adapters.webpage import WebpageAdapter
from link4coders.services.detector import Platform


def build_registry(client: httpx.AsyncClient, settings: Settings) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register(Platform.GITHUB, GitHubAdapter(client, settings))
    registry.register(Platform.DEVTO, DevToAdapter(client, settings))
    registry.register(Platform.HASHNODE, HashnodeAdapter(client, settings))
    registry.register(Platform.MEDIUM, MediumAdapter(client, settings))
    registry.register(Platform.SUBSTACK, SubstackAdapter(client, settings))
    return registry


__all__ = [
    "AdapterRegistry",
    "DevToAdapter",
    "GitHubAdapter",
    "HashnodeAdapter",
    "MediumAdapter",
    "PreviewAdapter",
    "SubstackAdapter",
    "WebpageAdapter",
    "build_registry",
]
