from __future__ import annotations

import os
import shlex
import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional

from .logging_utils import get_logger
from .models import ActivationRequest, ActivationType, Record
from .providers import Activatable, ProviderRegistry

logger = get_logger("activation")

KNOWN_TERMINALS = [
    "Eterm",
    "alacritty",
    "aterm",
    "foot",
    "gnome-terminal",
    "guake",
    "hyper",
    "kitty",
    "konsole",
    "lilyterm",
    "lxterminal",
    "mate-terminal",
    "qterminal",
    "roxterm",
    "rxvt",
    "st",
    "terminator",
    "terminix",
    "terminology",
    "termit",
    "termite",
    "tilda",
    "tilix",
    "urxvt",
    "uxterm",
    "wezterm",
    "x-terminal-emulator",
    "xfce4-terminal",
    "xterm",
]


def detect_terminal(preferred: str = "") -> str:
    """First installed terminal: $TERM / $TERMINAL, the configured one, then well-known emulators."""
    candidates = list(KNOWN_TERMINALS)
    if preferred:
        candidates.insert(0, preferred)
    for var in ("TERM", "TERMINAL"):
        value = os.environ.get(var)
        if value:
            candidates.insert(0, value)

    for candidate in candidates:
        if shutil.which(candidate):
            return candidate
    return ""


@dataclass(frozen=True)
class LaunchSpec:
    argv: List[str]
    cwd: Optional[str] = None
    secondary: bool = False


def log_launcher(spec: LaunchSpec) -> None:
    """Default launcher: process execution belongs to the frontend."""
    logger.info(f"Launch requested: {spec.argv} (cwd={spec.cwd}, secondary={spec.secondary})")


Launcher = Callable[[LaunchSpec], None]


class ActivationHandler:
    """Resolve an activation request to a command line and hand it to the launcher."""

    def __init__(self, registry: ProviderRegistry, terminal: str = "", launcher: Launcher = log_launcher):
        self.registry = registry
        self.terminal = terminal
        self.launcher = launcher

    def resolve(self, request: ActivationRequest) -> Optional[Record]:
        provider = self.registry.get(request.provider)
        if provider is None:
            logger.info(f"Activation for unknown provider '{request.provider}' ignored")
            return None
        if not isinstance(provider, Activatable):
            logger.info(f"Provider '{request.provider}' does not support activation")
            return None
        record = provider.find(request.identifier)
        if record is None:
            logger.warning(f"No item '{request.identifier}' in provider '{request.provider}'")
        return record

    def build(self, record: Record, request: ActivationRequest) -> LaunchSpec:
        argv = shlex.split(record.exec)
        if record.terminal or request.terminal:
            if self.terminal:
                argv = [self.terminal, "-e", *argv]
            else:
                logger.warning("Terminal requested but none configured, launching directly")
        return LaunchSpec(
            argv=argv,
            cwd=record.path or None,
            secondary=request.type == ActivationType.SECONDARY,
        )

    def activate(self, request: ActivationRequest) -> Optional[LaunchSpec]:
        record = self.resolve(request)
        if record is None or not record.exec.strip():
            return None
        try:
            spec = self.build(record, request)
        except ValueError as e:
            logger.error(f"Cannot split command of '{record.label}': {e}")
            return None
        self.launcher(spec)
        return spec
