"""
Questionnaire Sequencer.

Owns the ordered list of assessment screens and the cursor into it.

Sequence shape (one Interstitial/Input pair per step):
    Interstitial(None) -> Input(s1) -> Interstitial(s1) -> Input(s2) -> ...

Transitions:
- next(answers): completes on the last node; otherwise, if the current Input
  is a branching step, rebuilds from the latest answers and finds the same
  node again before advancing one position.
- back(): moves to the previous Input node (never onto an Interstitial);
  no-op when there is none.
- reset(answers): cursor to 0, watermark cleared, sequence rebuilt.

Progress uses a watermark denominator - the largest Input count any build has
produced - so the bar never jumps backward when a branch removes questions.

Not safe for concurrent mutation. One session owns one sequencer and every
transition returns an immutable SequenceState snapshot for readers.
"""

import logging
from collections.abc import Hashable, Sequence
from dataclasses import dataclass

from peezy.eligibility.answers import AnswerMap

from .nodes import InputNode, InterstitialNode, Node
from .steps import MOVING_ASSESSMENT, AssessmentFlow

logger = logging.getLogger(__name__)


# =============================================================================
# Building
# =============================================================================

def build_nodes(steps: Sequence[Hashable]) -> tuple[Node, ...]:
    """Interleave an Interstitial before every Input; the first one is the intro."""
    nodes: list[Node] = []
    previous = None
    for step in steps:
        nodes.append(InterstitialNode(after=previous))
        nodes.append(InputNode(step=step))
        previous = step
    return tuple(nodes)


def count_inputs(nodes: Sequence[Node]) -> int:
    return sum(1 for node in nodes if node.is_input)


# =============================================================================
# State Snapshot
# =============================================================================

@dataclass(frozen=True)
class SequenceState:
    """
    Immutable view of the sequencer after a transition.

    Attributes:
        nodes: The current node list
        index: Cursor position, always within range (0 when empty)
        watermark: Highest Input count seen since the last reset
        completed: True once next() was called on the final node
    """
    nodes: tuple[Node, ...]
    index: int
    watermark: int
    completed: bool = False

    @property
    def current_node(self) -> Node | None:
        if 0 <= self.index < len(self.nodes):
            return self.nodes[self.index]
        return None

    @property
    def input_total(self) -> int:
        """Progress denominator."""
        return self.watermark

    @property
    def current_input_number(self) -> int:
        """Inputs from the start through the cursor, at least 1."""
        return max(count_inputs(self.nodes[: self.index + 1]), 1)

    @property
    def progress(self) -> float:
        """Fraction in [0, 1]; 0 when nothing has been built."""
        if self.watermark <= 0:
            return 0.0
        return min(self.current_input_number / self.watermark, 1.0)

    @property
    def is_last(self) -> bool:
        return self.index >= len(self.nodes) - 1

    def to_dict(self) -> dict:
        node = self.current_node
        return {
            "index": self.index,
            "node": node.to_dict() if node is not None else None,
            "current_input_number": self.current_input_number,
            "input_total": self.input_total,
            "progress": self.progress,
            "completed": self.completed,
        }


# =============================================================================
# Sequencer
# =============================================================================

class QuestionnaireSequencer:
    """
    Cursor over a dynamically built assessment sequence.

    Usage:
        sequencer = QuestionnaireSequencer()
        state = sequencer.state
        answers["currentDwellingType"] = "Apartment"
        state = sequencer.next(answers)
    """

    def __init__(self, flow: AssessmentFlow = MOVING_ASSESSMENT, answers: AnswerMap | None = None):
        self.flow = flow
        self._nodes: tuple[Node, ...] = ()
        self._index = 0
        self._watermark = 0
        self._completed = False
        self.build_sequence(answers or {})

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SequenceState:
        return SequenceState(
            nodes=self._nodes,
            index=self._index,
            watermark=self._watermark,
            completed=self._completed,
        )

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def current_node(self) -> Node | None:
        return self.state.current_node

    @property
    def progress(self) -> float:
        return self.state.progress

    @property
    def completed(self) -> bool:
        return self._completed

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def build_sequence(self, answers: AnswerMap) -> tuple[Node, ...]:
        """
        Rebuild the node list from the flow and the given answers.

        Leaves the cursor alone (clamped into range) and raises the watermark
        if this build has more Input nodes than any before it.
        """
        self._nodes = build_nodes(self.flow.resolve_steps(answers))
        self._watermark = max(self._watermark, count_inputs(self._nodes))
        self._index = self._clamp(self._index)
        logger.debug(f"Built sequence: {len(self._nodes)} nodes, watermark {self._watermark}")
        return self._nodes

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def next(self, answers: AnswerMap) -> SequenceState:
        """Advance one node, rebuilding first if a branching answer was just given."""
        if self._completed:
            return self.state

        if self._index >= len(self._nodes) - 1:
            self._completed = True
            logger.info("Assessment sequence complete")
            return self.state

        node = self._nodes[self._index]
        if isinstance(node, InputNode) and self.flow.is_branching(node.step):
            previous_nodes, previous_index = self._nodes, self._index
            self.build_sequence(answers)
            self._index = self._reposition(previous_nodes, previous_index)

        self._index = self._clamp(self._index + 1)
        return self.state

    def back(self) -> SequenceState:
        """Step back to the previous Input node, skipping Interstitials."""
        target = self._index - 1
        while target >= 0 and not self._nodes[target].is_input:
            target -= 1

        if target >= 0:
            self._index = target
            self._completed = False
        return self.state

    def reset(self, answers: AnswerMap | None = None) -> SequenceState:
        """Start over: cursor to 0, watermark cleared, sequence rebuilt."""
        self._index = 0
        self._watermark = 0
        self._completed = False
        self.build_sequence(answers or {})
        return self.state

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _clamp(self, index: int) -> int:
        if not self._nodes:
            return 0
        return min(max(index, 0), len(self._nodes) - 1)

    def _reposition(self, previous_nodes: tuple[Node, ...], previous_index: int) -> int:
        """
        Find the pre-rebuild current node in the rebuilt list.

        When it's gone (its own branch was removed), fall back to the nearest
        earlier node of the old list that survived, so the following advance
        lands on the first question the user hasn't seen yet.
        """
        node = previous_nodes[previous_index]
        if node in self._nodes:
            return self._nodes.index(node)

        for candidate in reversed(previous_nodes[:previous_index]):
            if candidate in self._nodes:
                index = self._nodes.index(candidate)
                break
        else:
            index = 0

        logger.warning(f"{node} missing after rebuild; repositioned to index {index}")
        return index
