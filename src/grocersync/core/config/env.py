"""
.env support for grocersync secrets such as GROCERSYNC_ACCESS_TOKEN.

Variables exported in the shell always win. Below them, the project's
.env beats the user's ~/.config/grocersync/.env.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import load_dotenv

from .loader import get_xdg_config_home


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """
    Populate os.environ from the project and user .env files.

    Files are applied most specific first without overriding, so the first
    file to define a variable keeps it.

    Returns:
        Names of the variables that were set from .env files
    """
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "grocersync" / ".env"]
    if project_env_paths is None:
        project_env_paths = [(project_dir or Path.cwd()) / ".env"]

    before = set(os.environ)
    for path in [*project_env_paths, *user_env_paths]:
        if Path(path).is_file():
            load_dotenv(path, override=False)
    return set(os.environ) - before
