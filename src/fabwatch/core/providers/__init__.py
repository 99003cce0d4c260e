"""Reading providers - the producer protocol and the synthetic simulator."""

from fabwatch.core.providers.protocol import Reading, ReadingProducer
from fabwatch.core.providers.simulator import ReadingSimulator

__all__ = [
    "Reading",
    "ReadingProducer",
    "ReadingSimulator",
]
