"""Plain-text rendering of pending change lists for review surfaces."""

from __future__ import annotations


def render_changelog(changes: list[str], bullet: str = "•") -> str:
    return "\n".join(f"{bullet} {change}" for change in changes)
