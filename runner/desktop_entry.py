"""Desktop entry parsing.

Turns the text of one ``.desktop`` file into a :class:`Descriptor`: the
application record itself plus one record per ``[Desktop Action ...]`` group.
Files hidden by ``NoDisplay``, ``OnlyShowIn`` or ``NotShowIn`` produce no
descriptor at all.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

from .errors import DescriptorError
from .models import Record

PRIMARY_GROUP = "[Desktop Entry"
ACTION_GROUP = "[Desktop Action"

# Field codes are only meaningful with a live activation context
FIELD_CODES = ("%f", "%F", "%u", "%U", "%d", "%D", "%n", "%N", "%i", "%c", "%k", "%v", "%m")


class Section(str, Enum):
    PRIMARY = "primary"
    ACTION = "action"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ParseOptions:
    desktop: str = ""
    actions: bool = True
    show_generic: bool = True

    def desktops(self) -> set[str]:
        # XDG_CURRENT_DESKTOP may hold several colon separated names
        return {d for d in self.desktop.split(":") if d}


@dataclass
class Descriptor:
    generic: Record
    actions: list[Record] = field(default_factory=list)

    def records(self) -> list[Record]:
        return [self.generic, *self.actions]


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(";") if v.strip()]


def strip_field_codes(command: str) -> str:
    for code in FIELD_CODES:
        command = command.replace(code, "")
    return command


def _set_label(record: Record, value: str) -> None:
    record.label = value


def _set_sub(record: Record, value: str) -> None:
    record.sub = value


def _add_tags(record: Record, value: str) -> None:
    record.categories.extend(_split_list(value))


def _set_path(record: Record, value: str) -> None:
    record.path = value


def _set_terminal(record: Record, value: str) -> None:
    record.terminal = value == "true"


def _set_initial_class(record: Record, value: str) -> None:
    record.initial_class = value.lower()


def _set_icon(record: Record, value: str) -> None:
    record.icon = value


def _set_exec(record: Record, value: str) -> None:
    record.exec = strip_field_codes(value)


Setter = Callable[[Record, str], None]

PRIMARY_FIELDS: dict[str, Setter] = {
    "Name": _set_label,
    "GenericName": _set_sub,
    "Categories": _add_tags,
    "Keywords": _add_tags,
    "Path": _set_path,
    "Terminal": _set_terminal,
    "StartupWMClass": _set_initial_class,
    "Icon": _set_icon,
    "Exec": _set_exec,
}

ACTION_FIELDS: dict[str, Setter] = {
    "Name": _set_label,
    "Exec": _set_exec,
}


def _is_visible(key: str, value: str, desktops: set[str]) -> bool:
    """Evaluate one visibility directive of the main group."""
    if key == "NoDisplay":
        return value != "true"
    if key == "OnlyShowIn":
        return bool(desktops.intersection(_split_list(value)))
    if key == "NotShowIn":
        return not desktops.intersection(_split_list(value))
    return True


VISIBILITY_KEYS = frozenset({"NoDisplay", "OnlyShowIn", "NotShowIn"})


def scan(text: str, actions: bool = True) -> Iterator[tuple[Section, Optional[str], str]]:
    """Yield ``(section, key, value)`` for every key/value line.

    A group header is reported once with ``key=None`` so the caller can open
    a new action record. Lines of disabled action groups and of unknown
    groups are reported as IGNORED.
    """
    section = Section.PRIMARY
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith(PRIMARY_GROUP):
            section = Section.PRIMARY
            continue
        if line.startswith(ACTION_GROUP):
            section = Section.ACTION if actions else Section.IGNORED
            if section is Section.ACTION:
                yield section, None, line
            continue
        if line.startswith("["):
            section = Section.IGNORED
            continue

        if section is Section.IGNORED or "=" not in line:
            continue

        key, _, value = line.partition("=")
        yield section, key.strip(), value.strip()


def record_identifier(file: str, action_index: Optional[int] = None) -> str:
    seed = file if action_index is None else f"{file}#{action_index}"
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()[:16]


def parse_desktop_entry(text: str, file: str, options: ParseOptions = ParseOptions()) -> Optional[Descriptor]:
    """Parse one descriptor; None means the file must not be listed at all."""
    desktops = options.desktops()
    descriptor = Descriptor(generic=Record(file=file))

    for section, key, value in scan(text, actions=options.actions):
        if section is Section.PRIMARY:
            if key in VISIBILITY_KEYS:
                if not _is_visible(key, value, desktops):
                    return None
                continue
            setter = PRIMARY_FIELDS.get(key)
            if setter:
                setter(descriptor.generic, value)
            continue

        if key is None:
            descriptor.actions.append(Record(file=file))
            continue
        setter = ACTION_FIELDS.get(key)
        if setter:
            setter(descriptor.actions[-1], value)

    _inherit(descriptor, options)
    return descriptor


def _inherit(descriptor: Descriptor, options: ParseOptions) -> None:
    generic = descriptor.generic
    generic.identifier = record_identifier(generic.file)

    sub = generic.label
    if options.show_generic and generic.sub:
        sub = f"{generic.label} ({generic.sub})"

    for index, action in enumerate(descriptor.actions):
        action.sub = sub
        action.path = generic.path
        action.icon = generic.icon
        action.terminal = generic.terminal
        action.categories = list(generic.categories)
        action.initial_class = generic.initial_class
        action.file = generic.file
        action.identifier = record_identifier(generic.file, index)


def parse_file(path: Path, options: ParseOptions = ParseOptions()) -> Optional[Descriptor]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorError(str(path), str(e)) from e
    return parse_desktop_entry(text, str(path), options)
