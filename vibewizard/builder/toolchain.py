"""Informational toolchain and package-manager probing.

Nothing here installs software. The results feed status tables so the user
can see which tools a build plan will need before running it.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from typing import Optional

from rich.table import Table

from vibewizard.builder.planner import (
    WINE,
    host_os_name,
    is_windows_host,
    needs_wine_bridge,
    plan,
)
from vibewizard.project.models import InitialConfig, ProgrammingLanguage
from vibewizard.utils import console


@dataclass(frozen=True)
class PackageManager:
    """A system package manager and how it installs npm."""

    name: str
    install_command: str
    requires_sudo: bool


# Probe order matters: the first manager found on PATH wins.
_PACKAGE_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager("apt", "apt install -y npm", True),
    PackageManager("dnf", "dnf install -y npm", True),
    PackageManager("yum", "yum install -y npm", True),
    PackageManager("pacman", "pacman -S --noconfirm npm", True),
    PackageManager("zypper", "zypper install -y npm", True),
    PackageManager("brew", "brew install npm", False),
)

_HOMEBREW = _PACKAGE_MANAGERS[-1]


def command_exists(command: str) -> bool:
    """True when *command* resolves to an executable on PATH."""
    return shutil.which(command) is not None


def detect_package_manager(host_os: Optional[str] = None) -> Optional[PackageManager]:
    """Return the first available package manager, or None.

    On macOS Homebrew is assumed even when ``brew`` is not on PATH.
    """
    for manager in _PACKAGE_MANAGERS:
        if command_exists(manager.name):
            return manager
    name = (host_os if host_os is not None else host_os_name()).lower()
    if "mac" in name or name == "darwin":
        return _HOMEBREW
    return None


def required_tools(
    language: ProgrammingLanguage,
    config: Optional[InitialConfig] = None,
    host_os: Optional[str] = None,
) -> list[str]:
    """Executables the build plan for *language* invokes, in order."""
    build_plan = plan(language, config.project_style if config else None, config, host_os)
    tools: list[str] = []
    for command in build_plan.commands:
        if command and command[0] not in tools:
            tools.append(command[0])
    # The bridged command runs dotnet inside Wine; both must exist.
    if needs_wine_bridge(language, config, host_os) and "dotnet" not in tools:
        tools.append("dotnet")
    return tools


def check_toolchain(
    language: ProgrammingLanguage,
    config: Optional[InitialConfig] = None,
    host_os: Optional[str] = None,
) -> dict[str, bool]:
    """Map each required tool to whether it is on PATH."""
    status: dict[str, bool] = {}
    for tool in required_tools(language, config, host_os):
        if tool == "dotnet" and WINE in status:
            # dotnet is resolved inside the Wine prefix, not on the host PATH.
            status[tool] = status[WINE]
        else:
            status[tool] = command_exists(tool)
    return status


def print_toolchain_status(
    language: ProgrammingLanguage,
    config: Optional[InitialConfig] = None,
    host_os: Optional[str] = None,
) -> bool:
    """Print a status table for *language*'s toolchain.

    Returns:
        True when every required tool was found.
    """
    status = check_toolchain(language, config, host_os)

    table = Table(title=f"{language.display_name} toolchain", show_header=True, header_style="bold cyan")
    table.add_column("Tool", style="bold")
    table.add_column("Status")
    for tool, found in status.items():
        table.add_row(tool, "[green]found[/green]" if found else "[red]missing[/red]")
    console.print(table)

    if not all(status.values()) and not is_windows_host(host_os):
        manager = detect_package_manager(host_os)
        if manager is not None:
            prefix = "sudo " if manager.requires_sudo else ""
            console.print(f"[dim]Package manager: {manager.name} (e.g. {prefix}{manager.install_command})[/dim]")
    return all(status.values())
