# careerform/steps.py
from __future__ import annotations
from typing import TypeAlias
from collections.abc import Iterable

from .form_schema import FormField

Step: TypeAlias = list[FormField]

def split_steps(fields: Iterable[FormField]) -> list[Step]:
    """
    Partitions fields (in ascending `order`) into steps at PAGE_BREAK
    markers. Empty buckets are dropped, so leading, trailing or repeated
    page breaks never yield a step without fields.
    """
    steps: list[Step] = []
    current: Step = []
    for f in sorted(fields, key=lambda f: f.order):
        if f.is_page_break:
            if current:
                steps.append(current)
            current = []
            continue
        current.append(f)
    if current:
        steps.append(current)
    return steps

def clamp_step_index(index: int, step_count: int) -> int:
    if step_count <= 0:
        return 0
    return max(0, min(index, step_count - 1))
