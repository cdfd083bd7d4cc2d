"""Stream event formatters for the blue-green graph.

Utilities for flattening the chunks produced by
``graph.stream(state, stream_mode="updates")`` into per-phase progress
records, e.g. for a live console or a pipeline log.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any


def format_stream_events(
    stream: Iterator[dict[str, Any]],
) -> Iterator[dict[str, Any]]:
    """Convert LangGraph stream chunks into flat progress dicts.

    Each yielded dict has:

    - ``node``: the graph node name
    - ``phase``: the phase the node entered
    - ``failed``: whether the node reported a step failure
    - ``reason``: the failure message, empty on success
    - ``timestamp``: when the chunk was processed
    """
    for chunk in stream:
        for node_name, update in chunk.items():
            update = update if isinstance(update, dict) else {}
            failure = update.get("failure")
            yield {
                "node": node_name,
                "phase": update.get("phase", node_name),
                "failed": failure is not None,
                "reason": failure.message if failure is not None else "",
                "timestamp": time.time(),
            }


def collect_stream_events(
    stream: Iterator[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Collect all progress records into a list."""
    return list(format_stream_events(stream))
