"""Namespace path grammar.

A namespace is an ordered list of segments. Struct and field boundaries
are joined with dots, sequence and mapping elements are bracketed and
attach to whatever precedes them:

    ["User", "Addresses", "[0]", "City"]  ->  "User.Addresses[0].City"

Consumers match on these strings, so the rendering must stay exact.
"""

from typing import Any, Iterable


def index_segment(key: Any) -> str:
    """Segment for a sequence index or mapping key."""
    return f"[{key}]"


def render(segments: Iterable[str]) -> str:
    """Join segments into a path. Empty segments are ignored."""
    out = ""
    for seg in segments:
        if not seg:
            continue
        if not out or seg.startswith("["):
            out += seg
        else:
            out += "." + seg
    return out
