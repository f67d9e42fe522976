"""The IDE project aggregate: an arena of modules plus project settings.

Modules are stored in a flat ``{id: Module}`` arena. Each module keeps the
ordered ids of its children and, at runtime, the id of its parent; the tree
is navigated by id rather than by object references. All structural edits
go through :class:`IDEProject` and are serialised by a re-entrant lock, so
one project may be shared between a UI thread and background workers.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from vibewizard.project.errors import (
    ModuleCycleError,
    NameConflictError,
    ProjectValidationError,
    UnknownModuleError,
)
from vibewizard.project.models import InitialConfig, Module, ProjectSettings, TaskType
from vibewizard.utils import normalize_key


class IDEProject(BaseModel):
    """Root aggregate owning the module tree and the project settings.

    Attributes:
        initial_config: Choices from the wizard's first page, if any.
        modules: Arena of every module registered with the project,
            including detached ones that are not reachable from a root.
        root_module_ids: Ordered ids of the top-level modules.
        main_module_id: Id of the designated main module, if any.
        project_settings: Project-wide settings (never None).
    """

    initial_config: Optional[InitialConfig] = None
    modules: dict[str, Module] = Field(default_factory=dict)
    root_module_ids: list[str] = Field(default_factory=list)
    main_module_id: Optional[str] = None
    project_settings: ProjectSettings = Field(default_factory=ProjectSettings)

    _lock: threading.RLock = PrivateAttr(default_factory=threading.RLock)

    @model_validator(mode="before")
    @classmethod
    def _fill_missing_settings(cls, data):
        if isinstance(data, dict) and data.get("project_settings") is None:
            data = {**data, "project_settings": ProjectSettings()}
        return data

    @model_validator(mode="after")
    def _link_parents(self) -> "IDEProject":
        """Rebuild parent ids from child lists and reject broken structure."""
        for module_id, module in self.modules.items():
            if module.id != module_id:
                raise ValueError(f"module stored under '{module_id}' has id '{module.id}'")
            module.parent_id = None

        for module in self.modules.values():
            for child_id in module.child_ids:
                child = self.modules.get(child_id)
                if child is None:
                    raise ValueError(f"module '{module.id}' lists unknown child '{child_id}'")
                if child.parent_id is not None:
                    raise ValueError(f"module '{child_id}' has more than one parent")
                child.parent_id = module.id

        seen_roots: set[str] = set()
        for root_id in self.root_module_ids:
            root = self.modules.get(root_id)
            if root is None:
                raise ValueError(f"unknown root module '{root_id}'")
            if root.parent_id is not None or root_id in seen_roots:
                raise ValueError(f"root module '{root_id}' is attached more than once")
            seen_roots.add(root_id)

        # Parent chains must terminate, detached modules included.
        acyclic: set[str] = set()
        for module in self.modules.values():
            chain: set[str] = set()
            current: Optional[Module] = module
            while current is not None and current.id not in acyclic:
                if current.id in chain:
                    raise ValueError(f"module '{current.id}' is part of a cycle")
                chain.add(current.id)
                current = self.modules.get(current.parent_id) if current.parent_id else None
            acyclic |= chain

        if self.main_module_id is not None and self.main_module_id not in self.modules:
            raise ValueError(f"unknown main module '{self.main_module_id}'")
        return self

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_initial_config(cls, config: Optional[InitialConfig]) -> "IDEProject":
        """Create an empty project seeded from the wizard's first page."""
        project = cls(initial_config=config)
        if config is not None:
            if config.project_name is not None:
                project.project_settings.project_name = config.project_name
            if config.project_directory is not None:
                project.project_settings.project_path = str(config.project_directory)
        return project

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding structural edits; hold it for multi-step edits."""
        return self._lock

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_module(self, module_id: str) -> Module:
        """Return the registered module with *module_id* or raise."""
        module = self.modules.get(module_id)
        if module is None:
            raise UnknownModuleError(module_id)
        return module

    def find_module_by_id(self, module_id: Optional[str]) -> Optional[Module]:
        if module_id is None:
            return None
        with self._lock:
            return self.modules.get(module_id)

    def _registered(self, module: Module) -> Module:
        stored = self.modules.get(module.id)
        if stored is None:
            raise UnknownModuleError(module.id)
        return stored

    def children(self, module: Module) -> list[Module]:
        with self._lock:
            return [self.modules[child_id] for child_id in self._registered(module).child_ids]

    def parent_of(self, module: Module) -> Optional[Module]:
        with self._lock:
            parent_id = self._registered(module).parent_id
            return self.modules.get(parent_id) if parent_id else None

    @property
    def root_modules(self) -> list[Module]:
        with self._lock:
            return [self.modules[root_id] for root_id in self.root_module_ids]

    @property
    def main_module(self) -> Optional[Module]:
        return self.find_module_by_id(self.main_module_id)

    def set_main_module(self, module: Optional[Module]) -> None:
        with self._lock:
            self.main_module_id = self._registered(module).id if module is not None else None

    def is_attached(self, module: Module) -> bool:
        """True if *module* is reachable from one of the root modules."""
        with self._lock:
            current = self.modules.get(module.id)
            while current is not None and current.parent_id is not None:
                current = self.modules.get(current.parent_id)
            return current is not None and current.id in self.root_module_ids

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk(self, ids: list[str]) -> Iterator[Module]:
        stack = list(reversed(ids))
        while stack:
            module = self.modules[stack.pop()]
            yield module
            stack.extend(reversed(module.child_ids))

    def flatten(self) -> list[Module]:
        """All attached modules, depth-first pre-order, siblings in list order."""
        with self._lock:
            return list(self._walk(self.root_module_ids))

    def subtree(self, module: Module) -> list[Module]:
        """*module* followed by all of its descendants in pre-order."""
        with self._lock:
            return list(self._walk([self._registered(module).id]))

    def level(self, module: Module) -> int:
        """Depth of *module*; root modules are level 0."""
        with self._lock:
            depth = 0
            current = self._registered(module)
            while current.parent_id is not None:
                depth += 1
                current = self.modules[current.parent_id]
            return depth

    def is_ancestor(self, ancestor: Module, module: Module) -> bool:
        """True if *ancestor* is a strict ancestor of *module*."""
        with self._lock:
            current = self.modules.get(module.id)
            parent_id = current.parent_id if current is not None else None
            while parent_id is not None:
                if parent_id == ancestor.id:
                    return True
                parent_id = self.modules[parent_id].parent_id
            return False

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def is_name_unique(self, name: Optional[str], excluding: Optional[Module] = None) -> bool:
        """Case-insensitive uniqueness check over all attached modules.

        Blank names are never considered unique.
        """
        key = normalize_key(name)
        if not key:
            return False
        excluded_id = excluding.id if excluding is not None else None
        for module in self.flatten():
            if module.id != excluded_id and normalize_key(module.name) == key:
                return False
        return True

    def _check_name(self, name: Optional[str], excluding: Optional[Module] = None) -> str:
        if not normalize_key(name):
            raise ProjectValidationError("Module name must not be empty.")
        if not self.is_name_unique(name, excluding):
            raise NameConflictError(name.strip(), "module")
        return name.strip()

    def rename_module(self, module: Module, name: str) -> None:
        """Rename *module*; raises without changing anything on conflict."""
        with self._lock:
            target = self._registered(module)
            target.name = self._check_name(name, excluding=target)

    # ------------------------------------------------------------------
    # Creation / deletion
    # ------------------------------------------------------------------

    def create_module(
        self, name: str, task_type: TaskType = TaskType.GENERATE_APP_OR_SCRIPT
    ) -> Module:
        """Register a new detached module. The name is not validated."""
        module = Module(name=name, task_type=task_type)
        with self._lock:
            self.modules[module.id] = module
        return module

    def new_module(
        self,
        name: str,
        task_type: TaskType = TaskType.GENERATE_APP_OR_SCRIPT,
        parent: Optional[Module] = None,
    ) -> Module:
        """Create a uniquely named module and attach it under *parent*.

        With no parent the module becomes a new root module.
        """
        with self._lock:
            checked = self._check_name(name)
            if parent is not None:
                self._registered(parent)
            module = self.create_module(checked, task_type)
            if parent is None:
                self.add_root_module(module)
            else:
                self.add_child(parent, module)
            return module

    def delete_module(self, module: Module) -> list[Module]:
        """Detach *module* and unregister its whole subtree.

        Returns:
            The removed modules in pre-order.
        """
        with self._lock:
            target = self._registered(module)
            self._detach(target)
            removed = list(self._walk([target.id]))
            for gone in removed:
                del self.modules[gone.id]
            if self.main_module_id in {gone.id for gone in removed}:
                self.main_module_id = None
            return removed

    # ------------------------------------------------------------------
    # Structure edits
    # ------------------------------------------------------------------

    def _detach(self, module: Module) -> None:
        if module.parent_id is not None:
            parent = self.modules[module.parent_id]
            parent.child_ids.remove(module.id)
            module.parent_id = None
        elif module.id in self.root_module_ids:
            self.root_module_ids.remove(module.id)

    def _check_not_cycle(self, parent: Module, child: Module) -> None:
        if parent.id == child.id or self.is_ancestor(child, parent):
            raise ModuleCycleError(
                f"Cannot attach '{child.name}' under '{parent.name}': "
                "a module cannot become its own descendant."
            )

    def add_child(self, parent: Module, child: Module) -> None:
        """Append *child* to *parent*'s children.

        No-op if it is already a direct child. A child attached elsewhere is
        detached first.
        """
        self.insert_child(parent, None, child)

    def insert_child(self, parent: Module, index: Optional[int], child: Module) -> None:
        """Insert *child* at *index* (append when None) under *parent*."""
        with self._lock:
            parent = self._registered(parent)
            child = self._registered(child)
            if child.id in parent.child_ids:
                return
            self._check_not_cycle(parent, child)
            self._detach(child)
            if index is None:
                parent.child_ids.append(child.id)
            else:
                parent.child_ids.insert(index, child.id)
            child.parent_id = parent.id

    def remove_child(self, parent: Module, child: Module) -> bool:
        """Remove *child* from *parent* and clear its parent reference.

        The child stays registered (detached) and may be attached again.
        Dangling references such as a main-window designation are the
        caller's concern.
        """
        with self._lock:
            parent = self._registered(parent)
            if child.id not in parent.child_ids:
                return False
            parent.child_ids.remove(child.id)
            self.modules[child.id].parent_id = None
            return True

    def add_root_module(self, module: Module) -> None:
        self.insert_root_module(None, module)

    def insert_root_module(self, index: Optional[int], module: Module) -> None:
        with self._lock:
            module = self._registered(module)
            if module.id in self.root_module_ids:
                return
            self._detach(module)
            if index is None:
                self.root_module_ids.append(module.id)
            else:
                self.root_module_ids.insert(index, module.id)

    def remove_root_module(self, module: Module) -> bool:
        """Remove a root module; clears the main-module designation if needed."""
        with self._lock:
            if module.id not in self.root_module_ids:
                return False
            self.root_module_ids.remove(module.id)
            if self.main_module_id == module.id:
                self.main_module_id = None
            return True
