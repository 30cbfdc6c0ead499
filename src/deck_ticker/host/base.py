from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class HostSurface(ABC):
    """Commands the plugin sends back to the host for one key (``instance_id``)."""

    @abstractmethod
    async def set_image(self, instance_id: str, image: str) -> None:
        ...

    @abstractmethod
    async def set_title(self, instance_id: str, title: str) -> None:
        ...

    @abstractmethod
    async def get_settings(self, instance_id: str) -> Optional[Mapping[str, Any]]:
        """Current persisted settings for a key, or ``None`` if unknown."""
