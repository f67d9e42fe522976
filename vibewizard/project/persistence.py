"""Saving and loading IDE projects (``.vcp`` files).

A project file is a self-describing JSON document::

    {
      "format": "vibe-coding-project",
      "format_version": 1,
      "initial_config": {...} | null,
      "root_module_ids": [...],
      "main_module_id": "..." | null,
      "modules": {"<id>": {...}, ...},
      "project_settings": {...}
    }

Every field is decoded by name with a default, so files written before a
field existed still load (missing program mode -> MAIN_WINDOW, missing
project settings -> empty settings, and so on). Paths are stored as plain
strings. Parent references are never written; they are rebuilt from each
module's ``child_ids`` on load.

Loading either returns a fully validated :class:`IDEProject` or raises
:class:`ProjectLoadError`; a half-built project never escapes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vibewizard.project.errors import ProjectLoadError, ProjectSaveError
from vibewizard.project.tree import IDEProject

PROJECT_FORMAT = "vibe-coding-project"
FORMAT_VERSION = 1
PROJECT_EXTENSION = ".vcp"


def project_to_dict(project: IDEProject) -> dict[str, Any]:
    """Serialise *project* into JSON-compatible data.

    Detached modules (registered but unreachable from a root) are dropped.
    """
    with project.lock:
        data = project.model_dump(mode="json", exclude={"modules"})
        data["modules"] = {
            module.id: module.model_dump(mode="json") for module in project.flatten()
        }
        if data["main_module_id"] not in data["modules"]:
            data["main_module_id"] = None
    return {"format": PROJECT_FORMAT, "format_version": FORMAT_VERSION, **data}


def project_from_dict(data: Any) -> IDEProject:
    """Validate decoded JSON data and build a project from it.

    Raises:
        ProjectLoadError: If the data is not a supported project document.
    """
    if not isinstance(data, dict):
        raise ProjectLoadError("Project data must be a JSON object.")

    marker = data.get("format", PROJECT_FORMAT)
    if marker != PROJECT_FORMAT:
        raise ProjectLoadError(f"Not a project file (format '{marker}').")

    version = data.get("format_version", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        raise ProjectLoadError(f"Invalid format version: {version!r}")
    if version > FORMAT_VERSION:
        raise ProjectLoadError(
            f"Project file version {version} is newer than the supported "
            f"version {FORMAT_VERSION}."
        )

    payload = {k: v for k, v in data.items() if k not in ("format", "format_version")}
    try:
        return IDEProject.model_validate(payload)
    except ValidationError as exc:
        raise ProjectLoadError(f"Invalid project data: {exc}") from exc


def dumps_project(project: IDEProject) -> str:
    """Serialise *project* to a JSON string."""
    return json.dumps(project_to_dict(project), indent=2, ensure_ascii=False)


def loads_project(text: str) -> IDEProject:
    """Parse a JSON string produced by :func:`dumps_project`."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProjectLoadError(f"Project file is not valid JSON: {exc}") from exc
    return project_from_dict(data)


def save_project(project: IDEProject, path: str | Path) -> Path:
    """Write *project* to *path*.

    The document is written to a sibling temporary file first and then
    moved into place, so an interrupted save never truncates an existing
    project.

    Returns:
        The path that was written.

    Raises:
        ProjectSaveError: If the file cannot be written.
    """
    target = Path(path)
    content = dumps_project(project)
    tmp = target.with_name(target.name + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(target)
    except OSError as exc:
        if tmp.exists():
            tmp.unlink()
        raise ProjectSaveError(f"Failed to save project to {target}: {exc}", target) from exc
    return target


def load_project(path: str | Path) -> IDEProject:
    """Read a project from *path*.

    Raises:
        ProjectLoadError: If the file is missing, unreadable, corrupt or was
            written by an unsupported version.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ProjectLoadError(f"Failed to read project file {source}: {exc}", source) from exc

    try:
        return loads_project(text)
    except ProjectLoadError as exc:
        raise ProjectLoadError(f"{source}: {exc}", source) from exc
