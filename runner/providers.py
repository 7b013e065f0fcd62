from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from .logging_utils import get_logger
from .models import ResultItem

logger = get_logger("providers")


class Provider(ABC):
    """A pluggable source of query results.

    ``setup`` runs once before serving and may do expensive indexing.
    ``query`` may run concurrently with other providers' queries.
    """

    name: str = ""

    @abstractmethod
    def setup(self) -> None:
        ...

    @abstractmethod
    def query(self, text: str) -> List[ResultItem]:
        ...


@runtime_checkable
class Activatable(Protocol):
    """Providers whose items can be activated expose the record behind an identifier."""

    def find(self, identifier: str):
        ...


class ProviderRegistry:
    """Name to provider mapping, built once at startup and passed around explicitly."""

    def __init__(self, providers: Optional[Iterable[Provider]] = None):
        self._providers: Dict[str, Provider] = {}
        for provider in providers or ():
            self.register(provider)

    def register(self, provider: Provider) -> None:
        if not provider.name:
            raise ValueError(f"provider {type(provider).__name__} has no name")
        if provider.name in self._providers:
            logger.warning(f"Provider '{provider.name}' registered twice, replacing")
        self._providers[provider.name] = provider

    def get(self, name: str) -> Optional[Provider]:
        return self._providers.get(name)

    def names(self) -> List[str]:
        return list(self._providers)

    def __contains__(self, name: str) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def setup_all(self) -> None:
        for name, provider in self._providers.items():
            logger.info(f"Setting up provider '{name}'")
            provider.setup()
