"""
Token counting and usage tracking.

Holds the per-message token breakdown recorded by the assistant.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    """Token breakdown for a single message.

    Every field is a non-negative count; a field missing from the record
    is stored as zero.
    """
    input: int = 0
    output: int = 0
    reasoning: int = 0
    cache_read: int = 0
    cache_write: int = 0

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input + self.output
