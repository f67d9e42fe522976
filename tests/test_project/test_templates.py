"""Unit tests for module templates (vibewizard.project.templates).

Tests cover:
- ProjectTemplate.from_module / apply_to
- Suggested file names
- Lenient decoding of unknown enum values
- save_template / load_template
- TemplateManager directory tracking and listing
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vibewizard.project.errors import TemplateError
from vibewizard.project.models import (
    Module,
    ProgrammingLanguage,
    ProjectStyle,
    TargetOs,
    TaskType,
)
from vibewizard.project.templates import (
    ProjectTemplate,
    TemplateManager,
    load_template,
    save_template,
)


@pytest.fixture
def orders_template(sample_project) -> ProjectTemplate:
    orders = sample_project.root_modules[0]
    return ProjectTemplate.from_module(
        orders, sample_project.initial_config, sample_project.project_settings
    )


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class TestProjectTemplate:
    @pytest.mark.unit
    def test_from_module(self, orders_template, sample_project):
        assert orders_template.task_type == TaskType.GENERATE_APP_OR_SCRIPT
        assert orders_template.programming_language == ProgrammingLanguage.CSHARP
        assert orders_template.project_style == ProjectStyle.GUI
        assert orders_template.target_operating_systems == [TargetOs.WINDOWS, TargetOs.LINUX]
        assert orders_template.project_directory == sample_project.initial_config.project_directory
        assert [d.name for d in orders_template.task_data.dialogs] == ["MainWindow", "Settings"]

    @pytest.mark.unit
    def test_from_module_copies_task_data(self, sample_project, orders_template):
        orders = sample_project.root_modules[0]
        orders_template.task_data.project_overview = "changed"
        assert orders.task_data.project_overview == "Order management for a small shop"

    @pytest.mark.unit
    def test_from_module_without_config(self):
        template = ProjectTemplate.from_module(Module(name="Solo", task_type=TaskType.FIX_CODING_ERRORS))
        assert template.programming_language is None
        assert template.target_operating_systems == []

    @pytest.mark.unit
    def test_apply_to(self, orders_template):
        target = Module(name="Copy", task_type=TaskType.CREATE_MODULE)
        orders_template.apply_to(target)
        assert target.task_type == TaskType.GENERATE_APP_OR_SCRIPT
        assert target.task_data.project_overview == "Order management for a small shop"
        assert target.main_window_name == "MainWindow"
        assert target.task_data is not orders_template.task_data

    @pytest.mark.unit
    def test_apply_without_task_type_keeps_module_type(self):
        target = Module(name="Copy", task_type=TaskType.CREATE_ALGORITHM)
        ProjectTemplate().apply_to(target)
        assert target.task_type == TaskType.CREATE_ALGORITHM

    @pytest.mark.unit
    def test_default_file_name(self):
        assert ProjectTemplate(task_type=TaskType.CREATE_MODULE).default_file_name() == (
            "create-module-template.json"
        )
        assert ProjectTemplate().default_file_name() == "module-template.json"

    @pytest.mark.unit
    def test_unknown_enum_values_dropped(self):
        text = json.dumps(
            {
                "programming_language": "COBOL",
                "project_style": "GUI",
                "task_type": "MAKE_COFFEE",
                "target_operating_systems": ["LINUX", "BEOS", "LINUX"],
            }
        )
        template = ProjectTemplate.from_json(text)
        assert template.programming_language is None
        assert template.project_style == ProjectStyle.GUI
        assert template.task_type is None
        assert template.target_operating_systems == [TargetOs.LINUX]

    @pytest.mark.unit
    def test_null_payloads_default(self):
        template = ProjectTemplate.from_json('{"task_data": null, "project_settings": null}')
        assert template.task_data.dialogs == []
        assert template.project_settings.global_variables == []

    @pytest.mark.unit
    def test_from_json_empty(self):
        with pytest.raises(TemplateError):
            ProjectTemplate.from_json("   ")

    @pytest.mark.unit
    def test_from_json_invalid(self):
        with pytest.raises(TemplateError):
            ProjectTemplate.from_json("{oops")

    @pytest.mark.unit
    @pytest.mark.parametrize("targets", [5, "LINUX"])
    def test_from_json_targets_not_a_list(self, targets):
        with pytest.raises(TemplateError):
            ProjectTemplate.from_json(json.dumps({"target_operating_systems": targets}))


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestTemplateFiles:
    @pytest.mark.unit
    def test_save_adds_extension(self, orders_template, tmp_path: Path):
        written = save_template(orders_template, tmp_path / "orders")
        assert written == tmp_path / "orders.json"
        assert written.exists()

    @pytest.mark.unit
    def test_save_and_load(self, orders_template, tmp_path: Path):
        written = save_template(orders_template, tmp_path / "orders.json")
        loaded = load_template(written)
        assert loaded == orders_template

    @pytest.mark.unit
    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(TemplateError) as exc_info:
            load_template(tmp_path / "missing.json")
        assert exc_info.value.path == tmp_path / "missing.json"

    @pytest.mark.unit
    def test_load_corrupt(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(TemplateError):
            load_template(path)

    @pytest.mark.unit
    def test_load_wrong_targets_type(self, tmp_path: Path):
        path = tmp_path / "targets.json"
        path.write_text(json.dumps({"target_operating_systems": 5}), encoding="utf-8")
        with pytest.raises(TemplateError):
            load_template(path)


class TestTemplateManager:
    @pytest.mark.unit
    def test_suggest_path(self, orders_template, tmp_path: Path):
        manager = TemplateManager(tmp_path)
        assert manager.suggest_path(orders_template) == tmp_path / "generate-app-or-script-template.json"

    @pytest.mark.unit
    def test_save_tracks_directory(self, orders_template, tmp_path: Path):
        manager = TemplateManager(tmp_path / "default")
        written = manager.save(orders_template, tmp_path / "elsewhere" / "orders.json")
        assert manager.last_directory == tmp_path / "elsewhere"
        assert written.exists()

    @pytest.mark.unit
    def test_save_default_location(self, orders_template, tmp_path: Path):
        manager = TemplateManager(tmp_path)
        written = manager.save(orders_template)
        assert written.parent == tmp_path

    @pytest.mark.unit
    def test_save_path_with_markup_characters(self, orders_template, tmp_path: Path):
        # "[/b]" would be read as a closing rich tag if printed unescaped
        target = tmp_path / "a[" / "b]" / "orders.json"
        written = TemplateManager(tmp_path).save(orders_template, target)
        assert written.exists()

    @pytest.mark.unit
    def test_load_relative_to_last_directory(self, orders_template, tmp_path: Path):
        manager = TemplateManager(tmp_path)
        manager.save(orders_template, tmp_path / "orders.json")
        loaded = manager.load("orders.json")
        assert loaded.task_type == orders_template.task_type

    @pytest.mark.unit
    def test_list_templates(self, orders_template, tmp_path: Path):
        manager = TemplateManager(tmp_path)
        manager.save(orders_template, tmp_path / "b.json")
        manager.save(orders_template, tmp_path / "a.json")
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        assert [p.name for p in manager.list_templates()] == ["a.json", "b.json"]

    @pytest.mark.unit
    def test_list_templates_missing_directory(self, tmp_path: Path):
        assert TemplateManager(tmp_path / "nope").list_templates() == []
