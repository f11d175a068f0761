from dataclasses import dataclass
from typing import Optional


@dataclass()
class GeneratorConfig:
    """
    Search parameters of the allocation driver.

    Attributes:
        max_attempts: Upper bound of independent restart attempts
        min_attempts: Attempts to run before a good-enough score may stop the search
        good_enough_score: Score at which the search may stop early
        seed: Seed of the restart randomizer (None for a random seed)
        randomize: Whether attempts after the first shuffle day order and tie-breaks
        relax_workload_cap: Whether placements may bypass the weekly cap as a last resort
        verbose: Print grids and statistics of the best attempt
    """
    max_attempts: int = 10
    min_attempts: int = 3
    good_enough_score: float = 0.95
    seed: Optional[int] = None
    randomize: bool = True
    relax_workload_cap: bool = True
    verbose: bool = False
