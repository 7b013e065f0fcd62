from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from .fuzzy import fuzzy_score
from .logging_utils import get_logger
from .models import Record, ResultItem
from .providers import Provider

logger = get_logger("commands")

RUN_PREFIX = "run:"

# Verbatim command lines outrank every fuzzy hit
VERBATIM_SCORE = float("inf")


def path_executables(path_env: Optional[str] = None) -> Dict[str, str]:
    """Map executable name to its full path; earlier $PATH entries win."""
    path_env = os.environ.get("PATH", "") if path_env is None else path_env
    found: Dict[str, str] = {}
    for directory in path_env.split(os.pathsep):
        if not directory:
            continue
        try:
            entries = sorted(Path(directory).iterdir())
        except OSError:
            continue
        for entry in entries:
            if entry.name in found:
                continue
            try:
                if entry.is_file() and os.access(entry, os.X_OK):
                    found[entry.name] = str(entry)
            except OSError:
                continue
    return found


class Runner(Provider):
    """Runs shell commands: fuzzy matches executables found in $PATH."""

    name = "runner"

    def __init__(self, path_env: Optional[str] = None):
        self.path_env = path_env
        self.executables: Dict[str, str] = {}
        self._ready = False

    def setup(self) -> None:
        if self._ready:
            return
        self.executables = path_executables(self.path_env)
        self._ready = True
        logger.info(f"Indexed {len(self.executables)} executables")

    def match_command(self, text: str) -> Optional[str]:
        """Full path of the executable a command line starts with, if indexed."""
        words = text.split()
        if not words:
            return None
        return self.executables.get(words[0])

    def query(self, text: str) -> List[ResultItem]:
        text = text.strip()
        if not text:
            return []

        items = []
        executable = self.match_command(text)
        if executable:
            items.append(ResultItem(
                labels={"label": text, "sub": executable, "categories": ""},
                identifier=RUN_PREFIX + text,
                provider=self.name,
                score=VERBATIM_SCORE,
            ))

        hits = []
        for name, path in self.executables.items():
            score = fuzzy_score([name], text)
            if score > 0:
                hits.append(ResultItem(
                    labels={"label": name, "sub": path, "categories": ""},
                    identifier=path,
                    provider=self.name,
                    score=score,
                ))
        hits.sort(key=lambda item: item.score, reverse=True)
        return items + hits

    def find(self, identifier: str) -> Optional[Record]:
        if identifier.startswith(RUN_PREFIX):
            command = identifier[len(RUN_PREFIX):]
            return Record(file=self.match_command(command) or command, label=command,
                          exec=command, identifier=identifier)

        for name, path in self.executables.items():
            if path == identifier:
                return Record(file=path, label=name, exec=path, identifier=identifier)
        return None
