from dataclasses import dataclass


@dataclass(frozen=True)
class BatchConfig:
    max_parameters: int = 2100
    max_rows: int = 1000

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_parameters <= 0:
            raise ValueError("max_parameters must be > 0")
        if self.max_rows <= 0:
            raise ValueError("max_rows must be > 0")
