"""Scoped variable operations for a project.

Global variables live in the project settings and are visible to every
module; module variables belong to a single module. A name may exist in only
one scope: module variables are checked against their own module and all
globals, and globals are checked against each other and every module
variable in the project. Names compare case-insensitively after trimming.

Every operation validates first and mutates last, so a rejected edit leaves
the project untouched.
"""

from __future__ import annotations

from typing import Optional

from vibewizard.project.errors import NameConflictError, ProjectValidationError
from vibewizard.project.models import GlobalVariable, Module, ModuleVariable
from vibewizard.project.tree import IDEProject
from vibewizard.utils import normalize_key

MODULE_SCOPE = "module variable"
GLOBAL_SCOPE = "global variable"


def _clean(name: Optional[str]) -> str:
    if not normalize_key(name):
        raise ProjectValidationError("Variable name must not be empty.")
    return name.strip()


def _require_module_variable(module: Module, name: str) -> ModuleVariable:
    variable = module.find_variable(name)
    if variable is None:
        raise ProjectValidationError(f"Module '{module.name}' has no variable '{name}'.")
    return variable


def _require_global_variable(project: IDEProject, name: str) -> GlobalVariable:
    variable = project.project_settings.find_global_variable(name)
    if variable is None:
        raise ProjectValidationError(f"No global variable named '{name}'.")
    return variable


def _check_module_variable_name(
    project: IDEProject,
    module: Module,
    name: str,
    editing: Optional[ModuleVariable] = None,
) -> None:
    key = normalize_key(name)
    for existing in module.variables:
        if existing is not editing and normalize_key(existing.name) == key:
            raise NameConflictError(
                name,
                MODULE_SCOPE,
                f"A module variable named '{name}' already exists in module '{module.name}'.",
            )
    if project.project_settings.find_global_variable(name) is not None:
        raise NameConflictError(
            name,
            GLOBAL_SCOPE,
            f"'{name}' is already used by a global variable.",
        )


def _check_global_variable_name(
    project: IDEProject,
    name: str,
    editing: Optional[GlobalVariable] = None,
) -> None:
    key = normalize_key(name)
    for existing in project.project_settings.global_variables:
        if existing is not editing and normalize_key(existing.name) == key:
            raise NameConflictError(name, GLOBAL_SCOPE)
    for module in project.modules.values():
        if module.find_variable(name) is not None:
            raise NameConflictError(
                name,
                MODULE_SCOPE,
                f"'{name}' is already used by a variable of module '{module.name}'.",
            )


# ---------------------------------------------------------------------------
# Module variables
# ---------------------------------------------------------------------------


def add_module_variable(
    project: IDEProject, module: Module, name: str, value: str = ""
) -> ModuleVariable:
    """Add a variable to *module*; raises ``NameConflictError`` on clashes."""
    with project.lock:
        module = project.get_module(module.id)
        clean = _clean(name)
        _check_module_variable_name(project, module, clean)
        variable = ModuleVariable(name=clean, value=value)
        module.variables.append(variable)
        return variable


def rename_module_variable(
    project: IDEProject, module: Module, old_name: str, new_name: str
) -> ModuleVariable:
    with project.lock:
        module = project.get_module(module.id)
        variable = _require_module_variable(module, old_name)
        clean = _clean(new_name)
        _check_module_variable_name(project, module, clean, editing=variable)
        variable.name = clean
        return variable


def set_module_variable_value(
    project: IDEProject, module: Module, name: str, value: str
) -> ModuleVariable:
    with project.lock:
        variable = _require_module_variable(project.get_module(module.id), name)
        variable.value = value
        return variable


def remove_module_variable(project: IDEProject, module: Module, name: str) -> ModuleVariable:
    with project.lock:
        module = project.get_module(module.id)
        variable = _require_module_variable(module, name)
        module.variables.remove(variable)
        return variable


# ---------------------------------------------------------------------------
# Global variables
# ---------------------------------------------------------------------------


def add_global_variable(project: IDEProject, name: str, value: str = "") -> GlobalVariable:
    """Add a project-wide variable; raises ``NameConflictError`` on clashes."""
    with project.lock:
        clean = _clean(name)
        _check_global_variable_name(project, clean)
        variable = GlobalVariable(name=clean, value=value)
        project.project_settings.global_variables.append(variable)
        return variable


def rename_global_variable(project: IDEProject, old_name: str, new_name: str) -> GlobalVariable:
    with project.lock:
        variable = _require_global_variable(project, old_name)
        clean = _clean(new_name)
        _check_global_variable_name(project, clean, editing=variable)
        variable.name = clean
        return variable


def set_global_variable_value(project: IDEProject, name: str, value: str) -> GlobalVariable:
    with project.lock:
        variable = _require_global_variable(project, name)
        variable.value = value
        return variable


def remove_global_variable(project: IDEProject, name: str) -> GlobalVariable:
    with project.lock:
        variable = _require_global_variable(project, name)
        project.project_settings.global_variables.remove(variable)
        return variable


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_variables(project: IDEProject, module: Optional[Module] = None) -> dict[str, str]:
    """Return the variables visible to *module* as ``{name: value}``.

    Module variables shadow globals with the same (case-insensitive) name.
    In a consistent project that never happens, but stale data from older
    files is resolved deterministically.
    """
    with project.lock:
        resolved: dict[str, tuple[str, str]] = {}
        for variable in project.project_settings.global_variables:
            resolved[normalize_key(variable.name)] = (variable.name, variable.value)
        if module is not None:
            for variable in project.get_module(module.id).variables:
                resolved[normalize_key(variable.name)] = (variable.name, variable.value)
        return dict(resolved.values())
