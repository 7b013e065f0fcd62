from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

from .applications import Applications
from .commands import Runner
from .config import Settings
from .logging_utils import get_logger
from .providers import Provider, ProviderRegistry

logger = get_logger("provider_factory")


class ProviderType(str, Enum):
    APPLICATIONS = "applications"
    RUNNER = "runner"


PROVIDER_FACTORIES: Dict[str, Callable[[Settings], Provider]] = {
    ProviderType.APPLICATIONS.value: lambda settings: Applications(settings),
    ProviderType.RUNNER.value: lambda settings: Runner(),
}


def create_registry(settings: Settings,
                    factories: Optional[Dict[str, Callable[[Settings], Provider]]] = None) -> ProviderRegistry:
    """Register every provider named in the configuration.

    Names without a factory are logged and skipped.
    """
    factories = PROVIDER_FACTORIES if factories is None else factories
    registry = ProviderRegistry()

    for name in dict.fromkeys(settings.providers):
        factory = factories.get(name)
        if factory is None:
            logger.warning(f"Unknown provider '{name}' in configuration, skipping")
            continue
        registry.register(factory(settings))

    return registry
