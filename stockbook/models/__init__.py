from stockbook.models.sequence_counter import SequenceCounter

__all__ = [
    "SequenceCounter",
]
