"""Unit tests for project persistence (vibewizard.project.persistence).

Tests cover:
- Save/load round trip (tree, variables, dialogs, paths, initial config)
- Document layout (format marker, version, no parent references)
- Backward compatibility with files missing newer fields
- Detached modules and dangling main-module ids
- Error handling for missing, corrupt and future-version files
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vibewizard.project.errors import ProjectLoadError, ProjectSaveError
from vibewizard.project.models import ProgramMode, ProjectMode, TargetOs
from vibewizard.project.persistence import (
    FORMAT_VERSION,
    PROJECT_FORMAT,
    dumps_project,
    load_project,
    loads_project,
    project_to_dict,
    save_project,
)


def _names(project):
    return [module.name for module in project.flatten()]


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.unit
    def test_tree_preserved(self, sample_project_file, sample_project):
        loaded = load_project(sample_project_file)
        assert _names(loaded) == _names(sample_project)
        assert [m.id for m in loaded.flatten()] == [m.id for m in sample_project.flatten()]
        assert loaded.main_module.name == "Orders"

    @pytest.mark.unit
    def test_parent_links_restored(self, sample_project_file):
        loaded = load_project(sample_project_file)
        orders = loaded.root_modules[0]
        for child in loaded.children(orders):
            assert loaded.parent_of(child) is orders

    @pytest.mark.unit
    def test_payloads_preserved(self, sample_project_file):
        loaded = load_project(sample_project_file)
        orders = loaded.root_modules[0]
        entry = loaded.children(orders)[0]
        assert orders.task_data.project_overview == "Order management for a small shop"
        assert [d.name for d in orders.task_data.dialogs] == ["MainWindow", "Settings"]
        assert orders.main_window_name == "MainWindow"
        assert entry.find_variable("maxItems").value == "50"
        assert loaded.project_settings.find_global_variable("currency").value == "EUR"

    @pytest.mark.unit
    def test_paths_preserved(self, sample_project_file, sample_project):
        loaded = load_project(sample_project_file)
        assert loaded.project_settings.database_definition_file == Path("schema") / "shop.sql"
        assert loaded.initial_config.project_directory == sample_project.initial_config.project_directory

    @pytest.mark.unit
    def test_initial_config_preserved(self, sample_project_file, sample_project):
        loaded = load_project(sample_project_file)
        assert loaded.initial_config == sample_project.initial_config
        assert loaded.initial_config.target_operating_systems == frozenset(
            {TargetOs.WINDOWS, TargetOs.LINUX}
        )

    @pytest.mark.unit
    def test_string_round_trip(self, sample_project):
        loaded = loads_project(dumps_project(sample_project))
        assert _names(loaded) == _names(sample_project)

    @pytest.mark.unit
    def test_empty_project(self, tmp_path: Path):
        from vibewizard.project.tree import IDEProject

        path = save_project(IDEProject(), tmp_path / "empty.vcp")
        loaded = load_project(path)
        assert loaded.initial_config is None
        assert loaded.flatten() == []


# ---------------------------------------------------------------------------
# Document layout
# ---------------------------------------------------------------------------


class TestDocumentLayout:
    @pytest.mark.unit
    def test_header(self, sample_project):
        data = project_to_dict(sample_project)
        assert data["format"] == PROJECT_FORMAT
        assert data["format_version"] == FORMAT_VERSION

    @pytest.mark.unit
    def test_no_parent_references(self, sample_project):
        data = project_to_dict(sample_project)
        for module in data["modules"].values():
            assert "parent_id" not in module

    @pytest.mark.unit
    def test_paths_written_as_strings(self, sample_project):
        data = project_to_dict(sample_project)
        assert isinstance(data["project_settings"]["database_definition_file"], str)
        assert isinstance(data["initial_config"]["project_directory"], str)

    @pytest.mark.unit
    def test_detached_modules_not_written(self, sample_project):
        loose = sample_project.create_module("Loose")
        data = project_to_dict(sample_project)
        assert loose.id not in data["modules"]

    @pytest.mark.unit
    def test_unreachable_main_module_dropped(self, sample_project):
        orders = sample_project.root_modules[0]
        sample_project.remove_root_module(orders)
        sample_project.set_main_module(orders)
        data = project_to_dict(sample_project)
        assert data["main_module_id"] is None
        loaded = loads_project(json.dumps(data))
        assert loaded.main_module is None


# ---------------------------------------------------------------------------
# Backward compatibility
# ---------------------------------------------------------------------------


class TestBackwardCompatibility:
    @pytest.mark.unit
    def test_missing_project_settings(self):
        project = loads_project('{"modules": {}, "root_module_ids": []}')
        assert project.project_settings.global_variables == []
        assert project.project_settings.project_name == ""

    @pytest.mark.unit
    def test_null_project_settings(self):
        project = loads_project('{"project_settings": null}')
        assert project.project_settings is not None

    @pytest.mark.unit
    def test_missing_header_treated_as_current(self):
        project = loads_project("{}")
        assert project.flatten() == []

    @pytest.mark.unit
    def test_missing_config_modes_default(self):
        text = json.dumps(
            {
                "initial_config": {
                    "programming_language": "RUST",
                    "project_style": "SCRIPT",
                    "target_operating_systems": ["LINUX"],
                }
            }
        )
        project = loads_project(text)
        assert project.initial_config.program_mode == ProgramMode.MAIN_WINDOW
        assert project.initial_config.ide_or_wizard_mode == ProjectMode.WIZARD

    @pytest.mark.unit
    def test_module_with_null_lists(self):
        text = json.dumps(
            {
                "modules": {
                    "a": {"id": "a", "name": "A", "child_ids": None, "variables": None,
                          "task_data": {"dialogs": None}},
                },
                "root_module_ids": ["a"],
            }
        )
        project = loads_project(text)
        module = project.get_module("a")
        assert module.child_ids == []
        assert module.variables == []
        assert module.task_data.dialogs == []


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ProjectLoadError) as exc_info:
            load_project(tmp_path / "missing.vcp")
        assert exc_info.value.path == tmp_path / "missing.vcp"

    @pytest.mark.unit
    def test_corrupt_json(self, tmp_path: Path):
        path = tmp_path / "broken.vcp"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ProjectLoadError):
            load_project(path)

    @pytest.mark.unit
    def test_not_an_object(self):
        with pytest.raises(ProjectLoadError):
            loads_project("[1, 2, 3]")

    @pytest.mark.unit
    def test_wrong_format_marker(self):
        with pytest.raises(ProjectLoadError):
            loads_project('{"format": "something-else"}')

    @pytest.mark.unit
    def test_future_version(self):
        with pytest.raises(ProjectLoadError) as exc_info:
            loads_project(json.dumps({"format": PROJECT_FORMAT, "format_version": FORMAT_VERSION + 1}))
        assert "newer" in str(exc_info.value)

    @pytest.mark.unit
    def test_invalid_structure(self):
        text = json.dumps({"modules": {"a": {"id": "a", "name": "A", "child_ids": ["ghost"]}}})
        with pytest.raises(ProjectLoadError):
            loads_project(text)

    @pytest.mark.unit
    def test_save_to_unwritable_location(self, sample_project, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(ProjectSaveError):
            save_project(sample_project, blocker / "sub" / "project.vcp")

    @pytest.mark.unit
    def test_save_replaces_existing(self, sample_project, tmp_path: Path):
        target = tmp_path / "project.vcp"
        target.write_text("old", encoding="utf-8")
        save_project(sample_project, target)
        assert json.loads(target.read_text(encoding="utf-8"))["format"] == PROJECT_FORMAT
        assert not (tmp_path / "project.vcp.tmp").exists()
