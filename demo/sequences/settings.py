from dataclasses import dataclass


@dataclass(frozen=True)
class NumberSequenceSettings:
    """Arithmetic sequence request.

    Attributes:
        start_value: First element.
        step_size: Difference between consecutive elements.
        sequence_size: Number of elements (one generator call each).
    """

    start_value: int
    step_size: int
    sequence_size: int

    def __post_init__(self) -> None:
        if self.sequence_size < 1:
            raise ValueError(f"sequence_size must be >= 1, got {self.sequence_size}")

    def expected(self) -> list[int]:
        return [self.start_value + self.step_size * i for i in range(self.sequence_size)]
