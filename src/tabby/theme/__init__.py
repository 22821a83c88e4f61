"""Tabby theme loader — fallback chain for templates.

User templates (``templates/``) take priority.  When a template is not found
in the user directory, Kida falls through to the bundled default theme.

"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tabby.config import TabbyConfig


def _bundled_theme_path() -> Path:
    """Return the absolute path to the bundled default templates."""
    return Path(__file__).parent / "templates"


def get_template_dirs(config: TabbyConfig) -> list[Path]:
    """Return template directories in priority order.

    Returns:
        ``[user_templates_dir, bundled_default_templates]``

    The user directory is included even if it does not exist yet.

    """
    bundled = _bundled_theme_path()
    user_dir = config.templates_path

    dirs: list[Path] = []
    if user_dir != bundled:
        dirs.append(user_dir)
    dirs.append(bundled)
    return dirs
