"""Execution context: the string-keyed record threaded through one invocation.

An execution context is a plain ``dict``.  It starts as the container's root
context merged with whatever the caller passes, and each middleware may
extend it by handing a patch to ``call_next(context=...)``.  Merges are
shallow and the last writer wins: nested dicts are replaced, never combined.

A fresh dict is built for every invocation, and every patch produces a new
dict, so a middleware holding an earlier context never sees later patches.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

Context = dict[str, Any]

# Set by Container.handle_tool_call on the context of the operation it runs.
FROM_TOOL_CALL = "_from_tool_call"


def merge_context(*layers: Mapping[str, Any] | None) -> Context:
    """Shallow-merge ``layers`` left to right into a new dict; None layers are skipped."""
    merged: Context = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def is_from_tool_call(context: Mapping[str, Any]) -> bool:
    return context.get(FROM_TOOL_CALL) is True
