from pathlib import Path

import pytest

from runner.config import ApplicationsSettings, Settings


FIREFOX = """[Desktop Entry]
Name=Firefox
GenericName=Web Browser
Categories=Network;WebBrowser;
Keywords=internet;www;
Exec=firefox %u
Icon=firefox
Terminal=false
StartupWMClass=Firefox
Actions=new-window;private;

[Desktop Action new-window]
Name=New Window
Exec=firefox --new-window %u

[Desktop Action private]
Name=New Private Window
Exec=firefox --private-window %u
"""


def write_desktop(directory: Path, name: str, text: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def apps_dir(tmp_path):
    return tmp_path / "share" / "applications"


@pytest.fixture
def settings():
    return Settings(
        providers=["applications"],
        desktop="GNOME",
        applications=ApplicationsSettings(actions=True, show_generic=True),
    )
