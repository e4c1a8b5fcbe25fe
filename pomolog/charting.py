from __future__ import annotations

from typing import Sequence

from .stats import StatsBar


def render_bar_chart(buckets: Sequence[StatsBar], width: int = 30, mark: str = "#") -> str:
    if not buckets:
        return ""

    max_value = max(1, *(bucket.value for bucket in buckets))
    label_width = max(len(bucket.label) for bucket in buckets)
    value_width = len(str(max_value))

    lines: list[str] = []
    for bucket in buckets:
        length = round(bucket.value / max_value * max(1, width))
        if bucket.value > 0:
            length = max(1, length)
        bar = mark * length
        lines.append(f"{bucket.label.rjust(label_width)} | {str(bucket.value).rjust(value_width)} {bar}".rstrip())
    return "\n".join(lines)
