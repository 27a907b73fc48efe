"""Rewrite raw call targets into symbol-table queries."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_OBJECTS: frozenset[str] = frozenset(
    {
        "server", "console", "process", "path", "fs",
        "Math", "JSON", "Object", "Array", "Promise", "window", "document",
        "os", "sys", "json", "re", "logging", "logger", "log",
    }
)  # fmt: skip

SELF_QUALIFIERS: frozenset[str] = frozenset({"self", "cls", "this", "$this", "static"})

_SEPARATOR_RE = re.compile(r"(\?->|->|\?\.|\.|::)")


def _split(raw: str) -> tuple[list[str], list[str]]:
    """Split a call chain into segments and the separators between them."""
    parts = _SEPARATOR_RE.split(raw.strip())
    return parts[0::2], parts[1::2]


class CallTargetNormalizer:
    """Turns a raw call target into ``Class::member``, a bare name, or None.

    None marks a call on a known external object (or a self call outside any
    class); such calls are left out of queries and traces.

    Rules, in order:
        1. ``self.m`` / ``this.m`` / ``$this->m`` / ``static::m``: ``Owner::m``
        2. chain rooted at, or immediately on, an external object: None
        3. ``obj.m``: ``obj::m`` from the last two segments, ``$`` stripped
        4. ``foo`` and already-qualified ``Foo::bar``: unchanged
    """

    def __init__(self, external_objects: Iterable[str] | None = None) -> None:
        if external_objects is None:
            external_objects = DEFAULT_EXTERNAL_OBJECTS
        self.external_objects = frozenset(external_objects)

    def is_external(self, name: str) -> bool:
        return name.lstrip("$") in self.external_objects

    def normalize(self, raw: str, owner_class: str | None = None) -> str | None:
        """Normalize ``raw`` as called from inside ``owner_class``."""
        segments, separators = _split(raw)
        if segments[0] in SELF_QUALIFIERS and len(segments) > 1:
            if len(segments) == 2:
                if owner_class is None:
                    logger.debug("Self call %r outside any class ignored", raw)
                    return None
                return f"{owner_class}::{segments[1].lstrip('$')}"
            segments, separators = segments[1:], separators[1:]

        if len(segments) == 1:
            return segments[0]

        if all(sep == "::" for sep in separators):
            return "::".join(segments)

        root, left, right = segments[0], segments[-2], segments[-1]
        if self.is_external(root) or self.is_external(left):
            return None
        return f"{left.lstrip('$')}::{right.lstrip('$')}"
