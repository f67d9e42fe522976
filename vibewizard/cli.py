"""Command-line entry point for the Vibe Coding Wizard core.

Usage::

    python -m vibewizard show shop.vcp
    python -m vibewizard --host-os Linux plan shop.vcp
    python -m vibewizard build shop.vcp --cwd ./generated
    python -m vibewizard run shop.vcp
    python -m vibewizard tools shop.vcp
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.tree import Tree

from vibewizard.builder.executor import BuildExecutor, BuildExecutorError
from vibewizard.builder.planner import get_run_command, plan_for_config
from vibewizard.builder.process_runner import ProcessRunnerError
from vibewizard.builder.toolchain import print_toolchain_status
from vibewizard.config import WizardConfig
from vibewizard.project.errors import ProjectError
from vibewizard.project.models import InitialConfig, Module, TargetOs
from vibewizard.project.persistence import load_project
from vibewizard.project.tree import IDEProject
from vibewizard.utils import (
    console,
    format_command,
    print_error,
    print_success,
    print_summary_table,
    print_tree,
)


def _add_module_branch(project: IDEProject, branch: Tree, module: Module) -> None:
    label = f"[bold]{escape(module.name)}[/bold] [dim]({module.task_type.display_name})[/dim]"
    if module.id == project.main_module_id:
        label += " [green]*main*[/green]"
    node = branch.add(label)
    for variable in module.variables:
        node.add(f"[cyan]${escape(variable.name)}[/cyan] = {escape(variable.value)}")
    for child in project.children(module):
        _add_module_branch(project, node, child)


def show_project(project: IDEProject, title: str) -> None:
    """Print the module tree, global variables and initial configuration."""
    config = project.initial_config
    if config is not None:
        print_summary_table(
            {
                "Language": config.programming_language.display_name,
                "Style": config.project_style.display_name,
                "Targets": ", ".join(
                    target.display_name for target in TargetOs if config.targets(target)
                ),
                "Program mode": config.program_mode.display_name,
                "Directory": str(config.project_directory or "-"),
            },
            title=title,
        )

    tree = Tree(f"[bold cyan]{escape(project.project_settings.project_name or title)}[/bold cyan]")
    for root in project.root_modules:
        _add_module_branch(project, tree, root)
    print_tree(tree)

    globals_ = project.project_settings.global_variables
    if globals_:
        print_summary_table(
            {variable.name: variable.value for variable in globals_},
            title="Global Variables",
        )


def _require_config(project: IDEProject) -> InitialConfig:
    if project.initial_config is None:
        raise BuildExecutorError("Project has no initial configuration (language, style, targets).")
    return project.initial_config


def _cmd_show(project: IDEProject, args: argparse.Namespace, config: WizardConfig) -> int:
    show_project(project, Path(args.project).stem)
    return 0


def _cmd_plan(project: IDEProject, args: argparse.Namespace, config: WizardConfig) -> int:
    initial = _require_config(project)
    build_plan = plan_for_config(initial, config.build.host_os)
    run_command = get_run_command(
        initial.programming_language, initial.project_style, initial, config.build.host_os
    )
    print_summary_table(
        {
            "Description": build_plan.description,
            "Build": "; ".join(build_plan.command_lines()),
            "Run": format_command(run_command) if run_command else "(no generic run command)",
        },
        title="Build Plan",
    )
    return 0


def _cmd_build(project: IDEProject, args: argparse.Namespace, config: WizardConfig) -> int:
    executor = BuildExecutor.from_config(config)
    result = asyncio.run(executor.build_project(_require_config(project), args.cwd))
    return 0 if result.success else result.exit_code or 1


def _cmd_run(project: IDEProject, args: argparse.Namespace, config: WizardConfig) -> int:
    executor = BuildExecutor.from_config(config)
    result = asyncio.run(executor.run_project(_require_config(project), args.cwd))
    return 0 if result.success else result.exit_code or 1


def _cmd_tools(project: IDEProject, args: argparse.Namespace, config: WizardConfig) -> int:
    initial = _require_config(project)
    found = print_toolchain_status(initial.programming_language, initial, config.build.host_os)
    return 0 if found else 1


_COMMANDS = {
    "show": _cmd_show,
    "plan": _cmd_plan,
    "build": _cmd_build,
    "run": _cmd_run,
    "tools": _cmd_tools,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibewizard",
        description="Vibe Coding Wizard -- inspect, build and run wizard projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m vibewizard show shop.vcp\n"
            "  python -m vibewizard build shop.vcp --cwd ./generated\n"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a saved WizardConfig JSON file (default: environment variables)",
    )
    parser.add_argument(
        "--host-os",
        default=None,
        help="Pretend to run on this OS when planning (e.g. Linux, Windows)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("show", "Print the module tree and variables"),
        ("plan", "Print the build plan and run command"),
        ("build", "Execute the build plan with streamed output"),
        ("run", "Execute the generic run command"),
        ("tools", "Check that the required toolchain is installed"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("project", help="Path to the .vcp project file")
        if name in ("build", "run"):
            sub.add_argument(
                "--cwd",
                default=None,
                help="Working directory (default: the project's configured directory)",
            )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``python -m vibewizard``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = WizardConfig.load(Path(args.config)) if args.config else WizardConfig.from_env()
    except (OSError, ValueError) as exc:
        print_error(f"Error: Could not load configuration: {exc}")
        sys.exit(2)
    if args.host_os:
        config.build.host_os = args.host_os

    try:
        project = load_project(args.project)
    except ProjectError as exc:
        print_error(f"Error: {exc}")
        sys.exit(2)

    try:
        status = _COMMANDS[args.command](project, args, config)
    except (BuildExecutorError, ProcessRunnerError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        sys.exit(130)

    if status == 0 and args.command in ("build", "run"):
        print_success(f"{args.command.capitalize()} completed successfully!")
    sys.exit(status)


if __name__ == "__main__":
    main()
