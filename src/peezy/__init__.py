"""
Peezy Engine - Moving assessment and task eligibility.

Packages:
- eligibility: Condition evaluation, catalog matching, task generation
- assessment: Question flow and the questionnaire sequencer
"""

__version__ = "0.3.0"
