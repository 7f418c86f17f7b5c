from __future__ import annotations
from typing import List, Sequence, Tuple, Union

from ..config import CacheGeometry, SimConfig
from ..trace.access import MemoryAccess
from ..utils.logging import get_logger
from .engine import AccessOutcome, ReplacementEngine
from .stats import SimulationStats

logger = get_logger(__name__)


def run(trace: Sequence[MemoryAccess], config: Union[SimConfig, CacheGeometry],
        record: bool = False) -> Tuple[List[AccessOutcome], SimulationStats]:
    """
    Runs the whole trace through a fresh cache.

    This is the main entry point for a simulation. `config` may be a full
    SimConfig or just a CacheGeometry. Outcomes are only kept when `record`
    is set (verbose output and reports need them).
    """
    geometry = config.geometry if isinstance(config, SimConfig) else config
    logger.info("Simulating %d accesses with s=%d E=%d b=%d (%d sets)",
                len(trace), geometry.s, geometry.E, geometry.b, geometry.set_num)

    engine = ReplacementEngine(geometry, record=record)
    stats = engine.run(trace)

    logger.info("Simulation finished: %d hits, %d misses, %d evictions",
                stats.hits, stats.misses, stats.evictions)
    return engine.outcomes, stats
