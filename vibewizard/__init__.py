"""Vibe Coding Wizard core.

Project model (module tree, scoped variables, persistence, templates) and
build orchestration (command planning and subprocess execution) behind the
Vibe Coding Wizard.
"""

__version__ = "0.1.0"

from vibewizard.config import BuildConfig, ProcessConfig, WizardConfig

__all__ = [
    "__version__",
    "WizardConfig",
    "ProcessConfig",
    "BuildConfig",
]
