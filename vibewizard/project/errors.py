"""Exception hierarchy for the project model, persistence and templates."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ProjectError(Exception):
    """Base class for every project-model error."""


class ProjectValidationError(ProjectError):
    """Raised when an edit is rejected. The model is left unchanged."""


class NameConflictError(ProjectValidationError):
    """Raised when a module or variable name is already taken.

    Attributes:
        name: The rejected candidate name.
        scope: Where the clash was found: ``"module"``, ``"module variable"``
            or ``"global variable"``.
    """

    def __init__(self, name: str, scope: str, message: str = "") -> None:
        self.name = name
        self.scope = scope
        super().__init__(message or f"A {scope} named '{name}' already exists.")


class ModuleCycleError(ProjectValidationError):
    """Raised when a re-parent would make a module its own ancestor."""


class UnknownModuleError(ProjectError):
    """Raised when a module is not registered with the project."""

    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        super().__init__(f"Module '{module_id}' does not belong to this project.")


class ProjectPersistenceError(ProjectError):
    """Base class for save/load failures."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        self.path = path
        super().__init__(message)


class ProjectLoadError(ProjectPersistenceError):
    """Raised when a project file cannot be read back into a project."""


class ProjectSaveError(ProjectPersistenceError):
    """Raised when a project file cannot be written."""


class TemplateError(ProjectPersistenceError):
    """Raised when a module template cannot be read or written."""
