"""PydanticAI agents for the Peloton pipeline.

NarrativeSynthesizer:
    Writes one Dutch narrative from the filtered feed items, trying the
    configured Cerebras models in order until one succeeds.

Example:
    >>> from agents import NarrativeSynthesizer
    >>> synthesizer = NarrativeSynthesizer(config)
"""

from agents.synthesizer import NarrativeSynthesizer

__all__ = [
    "NarrativeSynthesizer",
]
