"""Text layout helpers for printing recipe targets."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def format_strings(items: Sequence[str]) -> str:
    """Quote the items; more than one item is laid out one per line."""
    joined = ",\n      ".join(f'"{item}"' for item in items)
    if len(items) > 1:
        return "\n      " + joined + ",\n   "
    return joined


def format_link_targets(items: Sequence[Any]) -> str:
    """List the names of link targets; more than one is laid out one per line."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0].name
    return "".join(f"\n    {item.name}," for item in items) + "\n  "