"""Result objects for XML stream filtering."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FilterStatistics:
    """Statistics of one successful ``filter`` call.

    Attributes:
        events_read: Lexical events pulled from the token stream by the scan loop
        elements_matched: Elements whose local name equals the target name
        elements_accepted: Matched elements for which the predicate returned true
        bytes_written: Bytes the transformer wrote to the output sink
        processing_time_ms: Wall-clock duration of the call
        compression: Name of the detected input compression, if any
    """

    events_read: int = 0
    elements_matched: int = 0
    elements_accepted: int = 0
    bytes_written: int = 0
    processing_time_ms: float = 0.0
    compression: Optional[str] = None

    @property
    def acceptance_rate(self) -> float:
        """Fraction of matched elements that passed the predicate."""
        if self.elements_matched == 0:
            return 0.0
        return self.elements_accepted / self.elements_matched

    @property
    def elements_per_second(self) -> float:
        """Matched elements processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_matched * 1000.0) / self.processing_time_ms
