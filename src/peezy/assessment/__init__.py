"""
Peezy Assessment.

The question flow and the sequencer that walks it.
"""

from .nodes import InputNode, InterstitialNode, Node
from .sequencer import QuestionnaireSequencer, SequenceState, build_nodes
from .steps import MOVING_ASSESSMENT, AssessmentFlow, AssessmentStep, Branch

__all__ = [
    "InputNode",
    "InterstitialNode",
    "Node",
    "QuestionnaireSequencer",
    "SequenceState",
    "build_nodes",
    "MOVING_ASSESSMENT",
    "AssessmentFlow",
    "AssessmentStep",
    "Branch",
]
