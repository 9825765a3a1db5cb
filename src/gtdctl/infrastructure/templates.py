"""Shared Jinja2 template loading with per-vault override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader


def build_template_environment(group: str, *, vault_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with user overrides before packaged defaults.

    User overrides are loaded from ``.gtdctl/templates/`` inside the vault.
    Both a namespaced directory (for example ``.gtdctl/templates/content/``)
    and the shared root are searched.
    """

    loaders: list[BaseLoader] = []
    if vault_root is not None:
        template_root = vault_root / ".gtdctl" / "templates"
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("gtdctl", f"templates/{group}"))
    return Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)


def render_body(kind: str, *, vault_root: Path | None = None, **context: object) -> str:
    """Render the initial body for a new record of *kind*."""
    env = build_template_environment("content", vault_root=vault_root)
    return env.get_template(f"{kind}.md.j2").render(**context)
