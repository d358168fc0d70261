"""
Batch scheduling.
Groups parsed replicas into bounded, order-preserving batches.
"""

from dataclasses import dataclass
from typing import List, Sequence

from config.constants import DEFAULT_BATCH_SIZE

from ..errors import ValidationError


@dataclass(frozen=True)
class Batch:
    """A contiguous, non-empty run of replicas."""
    index: int                 # position among the job's batches
    start: int                 # position of the first replica in the document
    replicas: List[str]

    @property
    def text(self) -> str:
        """Replicas joined verbatim, as sent to the oracle."""
        return "".join(self.replicas)

    def __len__(self) -> int:
        return len(self.replicas)


def validate_batch_size(batch_size) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValidationError(f"Invalid batch size: {batch_size!r} (must be a positive integer)")
    return batch_size


def make_batches(replicas: Sequence[str], batch_size: int = DEFAULT_BATCH_SIZE) -> List[Batch]:
    """
    Split replicas into batches of at most ``batch_size``.

    All batches except possibly the last hold exactly ``batch_size`` replicas.
    """
    batch_size = validate_batch_size(batch_size)
    return [
        Batch(index=n, start=start, replicas=list(replicas[start:start + batch_size]))
        for n, start in enumerate(range(0, len(replicas), batch_size))
    ]


def count_batches(total_replicas: int, batch_size: int) -> int:
    """Ceiling of total_replicas / batch_size."""
    batch_size = validate_batch_size(batch_size)
    return -(-total_replicas // batch_size)
