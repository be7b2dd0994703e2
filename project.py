"""
Cordova project discovery.

A directory is a Cordova (hybrid mobile) project when it holds a
``config.xml`` whose root is a W3C ``widget`` element, either at the top
level or, for older project layouts, under ``www/``.  The project's name is
its identity for locking; its directory is the shell's working directory.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import logger as log

_WIDGET_NS  = "http://www.w3.org/ns/widgets"
_CONFIG_XML = ("config.xml", "www/config.xml")

# ── Directories that are never project roots ─────────────────────────────────
_SKIP_DIRS = {"node_modules", "platforms", "plugins", "www", "output"}


@dataclass
class HybridProject:
    name:         str
    location:     Optional[Path] = None
    app_id:       str = ""
    display_name: str = ""
    version:      str = ""

    @property
    def project_id(self) -> str:
        """Stable key that identifies the project in the lock registry."""
        return self.name

    @property
    def working_directory(self) -> Optional[Path]:
        return self.location

    @classmethod
    def load(cls, project_dir: Path) -> Optional["HybridProject"]:
        """
        Load the project rooted at *project_dir*.
        Returns ``None`` if there is no ``config.xml``.
        Raises ``ValueError`` on malformed XML or a non-widget document.
        """
        project_dir = Path(project_dir)
        config_xml = next(
            (project_dir / rel for rel in _CONFIG_XML if (project_dir / rel).is_file()),
            None,
        )
        if config_xml is None:
            return None
        try:
            root = ET.parse(config_xml).getroot()
        except ET.ParseError as exc:
            raise ValueError(f"Malformed {config_xml}: {exc}") from exc

        if root.tag not in (f"{{{_WIDGET_NS}}}widget", "widget"):
            raise ValueError(f"{config_xml}: root element must be <widget>, got <{root.tag}>")

        ns = {"w": _WIDGET_NS} if root.tag.startswith("{") else {}
        name_el = root.find("w:name", ns) if ns else root.find("name")
        display = (name_el.text or "").strip() if name_el is not None else ""

        return cls(
            name         = project_dir.resolve().name,
            location     = project_dir.resolve(),
            app_id       = root.get("id", ""),
            display_name = display,
            version      = root.get("version", ""),
        )


def scan_projects(workspace: Path) -> list[HybridProject]:
    """
    Return the Cordova projects in *workspace*: the workspace itself if it
    is one, then every qualifying sub-directory in name order.  Projects
    with an unreadable ``config.xml`` are skipped with a warning.
    """
    candidates = [workspace]
    for entry in sorted(workspace.iterdir()):
        if not entry.is_dir():
            continue
        if entry.name in _SKIP_DIRS or entry.name.startswith("."):
            continue
        candidates.append(entry)

    projects: list[HybridProject] = []
    for d in candidates:
        try:
            p = HybridProject.load(d)
        except ValueError as exc:
            log.warn(f"Skipping {d.name}: {exc}")
            p = None
        if p is not None:
            projects.append(p)
    return projects


def find_project(workspace: Path, name: str) -> Optional[HybridProject]:
    for p in scan_projects(workspace):
        if p.name == name:
            return p
    return None
