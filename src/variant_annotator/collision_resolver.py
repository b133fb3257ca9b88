"""Barcode collision detection and resolution.

A barcode should identify exactly one physical variant. After filtering,
some barcodes still map to several records:

* groups with any non-perfect record are ambiguous mutants and are
  dropped entirely;
* all-perfect groups are degenerate fusion phases encoding the same
  protein, and one record is kept uniformly at random.

A group mixing perfect and non-perfect records has no defined resolution
and aborts the run with :class:`DataConsistencyViolation`.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .error_handler import DataConsistencyViolation
from .models import BARCODE, DNA_CLASS, REFERENCE_BARCODE, DnaClass

logger = logging.getLogger(__name__)


@dataclass
class CollisionStats:
    """Diagnostic counters for one resolution pass."""

    barcodes_before: int
    barcodes_after: int
    mutant_barcodes_dropped: int
    rows_dropped: int
    perfect_collision_groups: int
    perfect_multiplicity_mean: Optional[float] = None
    perfect_multiplicity_std: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ResolutionResult:
    """Barcode-unique records plus the counters describing how they were reached."""

    frame: pd.DataFrame
    stats: CollisionStats


class CollisionResolver:
    """Resolve barcodes that map to more than one record."""

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        """
        Initialize the resolver.

        Args:
            rng: Random generator used to pick among degenerate perfect records
            seed: Seed for a new generator when ``rng`` is not given
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def resolve(self, frame: pd.DataFrame) -> ResolutionResult:
        """
        Reduce the frame to at most one record per barcode.

        Args:
            frame: Filtered observed records

        Returns:
            ResolutionResult with the resolved frame and diagnostics

        Raises:
            DataConsistencyViolation: If a barcode groups perfect and non-perfect records
        """
        frame = frame.reset_index(drop=True)
        # Reference design rows never take part in collision logic
        is_reference = frame[BARCODE] == REFERENCE_BARCODE
        observed = frame[~is_reference]

        multiplicity = observed.groupby(BARCODE, dropna=False)[BARCODE].transform('size')
        collided = observed[multiplicity > 1]

        is_perfect = collided[DNA_CLASS] == DnaClass.PERFECT.value
        by_barcode = collided.assign(_perfect=is_perfect, _mutant=~is_perfect).groupby(BARCODE, dropna=False)
        has_perfect = by_barcode['_perfect'].any().astype(bool)
        has_mutant = by_barcode['_mutant'].any().astype(bool)

        mixed = has_perfect & has_mutant
        if mixed.any():
            raise DataConsistencyViolation(mixed[mixed].index)

        mutant_barcodes = has_mutant[has_mutant].index
        perfect_barcodes = has_perfect[has_perfect].index

        keep = pd.Series(True, index=frame.index)
        keep[collided.index] = False

        perfect_rows = collided[collided[BARCODE].isin(perfect_barcodes)]
        group_sizes = []
        for _, positions in sorted(perfect_rows.groupby(BARCODE, dropna=False).indices.items(),
                                   key=lambda item: str(item[0])):
            chosen = self.rng.choice(positions)
            keep[perfect_rows.index[chosen]] = True
            group_sizes.append(len(positions))

        resolved = frame[keep]

        stats = CollisionStats(
            barcodes_before=int(observed[BARCODE].nunique(dropna=False)),
            barcodes_after=int(resolved.loc[~is_reference[keep], BARCODE].nunique(dropna=False)),
            mutant_barcodes_dropped=len(mutant_barcodes),
            rows_dropped=int((~keep).sum()),
            perfect_collision_groups=len(group_sizes),
        )
        if group_sizes:
            stats.perfect_multiplicity_mean = float(np.mean(group_sizes))
            # Sample standard deviation; undefined for a single group
            if len(group_sizes) > 1:
                stats.perfect_multiplicity_std = float(np.std(group_sizes, ddof=1))

        logger.info(
            f"Barcode collisions: {stats.barcodes_before} barcodes before, "
            f"{stats.barcodes_after} after; dropped {stats.mutant_barcodes_dropped} ambiguous mutant barcodes, "
            f"resolved {stats.perfect_collision_groups} degenerate perfect groups"
        )
        if group_sizes:
            logger.debug(
                f"Perfect collision multiplicity: mean {stats.perfect_multiplicity_mean:.2f}, "
                f"sd {stats.perfect_multiplicity_std}"
            )

        return ResolutionResult(frame=resolved.reset_index(drop=True), stats=stats)
