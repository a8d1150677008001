"""
Assessment sequence nodes.

A sequence alternates between two kinds of screen:
- Interstitial: Peezy reacts to the previous answer (after=None is the intro)
- Input: one question

Nodes are immutable values compared by content, so the "same" node can be
found again in a rebuilt sequence.
"""

from collections.abc import Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Union


def step_key(step: Hashable | None) -> str | None:
    """String form of a step id for UI/serialization."""
    if step is None:
        return None
    if isinstance(step, Enum):
        return str(step.value)
    return str(step)


@dataclass(frozen=True)
class InterstitialNode:
    """Reaction screen shown after `after` was answered."""
    after: Hashable | None = None

    @property
    def is_input(self) -> bool:
        return False

    @property
    def input_step(self) -> None:
        return None

    def to_dict(self) -> dict:
        return {"type": "interstitial", "after": step_key(self.after)}


@dataclass(frozen=True)
class InputNode:
    """Question screen for a single step."""
    step: Hashable

    @property
    def is_input(self) -> bool:
        return True

    @property
    def input_step(self) -> Hashable:
        return self.step

    def to_dict(self) -> dict:
        return {"type": "input", "step": step_key(self.step)}


Node = Union[InterstitialNode, InputNode]
