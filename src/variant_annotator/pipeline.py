"""End-to-end annotation pipeline: filter, resolve, merge, annotate."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .collision_resolver import CollisionResolver, CollisionStats
from .config import Config
from .dataset_merger import merge_with_designs
from .design_catalog import build_reference_frame
from .logging_config import LogTimer, log_performance
from .models import AnnotatedVariant, ReferenceDesign, VariantRecord, frame_to_annotated, records_to_frame
from .sequence_filter import FilterSummary, filter_records
from .variant_annotator import annotate, summarize_mutation_types

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Annotated variants and run diagnostics."""

    annotated: pd.DataFrame
    filter_summary: FilterSummary
    collision_stats: CollisionStats
    mutation_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def diagnostics(self) -> Dict[str, Any]:
        return {
            'filter': self.filter_summary.to_dict(),
            'collisions': self.collision_stats.to_dict(),
            'mutation_types': dict(self.mutation_counts),
        }

    def to_records(self) -> List[AnnotatedVariant]:
        return frame_to_annotated(self.annotated)


class VariantPipeline:
    """Run the full classification pipeline over one batch of observations."""

    def __init__(self, config: Optional[Config] = None, rng: Optional[np.random.Generator] = None):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration (defaults used when None)
            rng: Random generator for collision resolution; seeded from
                ``config.resolution.seed`` when not given
        """
        self.config = config or Config.default()
        if rng is None:
            rng = np.random.default_rng(self.config.resolution.seed)
        self.resolver = CollisionResolver(rng=rng)

    def run(self,
            observed: Union[pd.DataFrame, Sequence[VariantRecord]],
            designs: Union[pd.DataFrame, Sequence[ReferenceDesign]]) -> PipelineResult:
        """
        Annotate observed records against the reference designs.

        Args:
            observed: Raw observed records (frame or typed records)
            designs: Reference designs, or an already built reference frame

        Returns:
            PipelineResult with the annotated table and diagnostics

        Raises:
            DataConsistencyViolation: If barcode collisions cannot be resolved
        """
        if not isinstance(observed, pd.DataFrame):
            observed = records_to_frame(observed)
        if isinstance(designs, pd.DataFrame):
            reference = designs
        else:
            reference = build_reference_frame(list(designs), self.config.filter)

        with LogTimer("Sequence filtering") as timer:
            filtered, filter_summary = filter_records(observed, self.config.filter)
        log_performance("Sequence filtering", timer.elapsed, len(observed))

        with LogTimer("Barcode collision resolution"):
            resolution = self.resolver.resolve(filtered)

        with LogTimer("Dataset merge"):
            merged = merge_with_designs(resolution.frame, reference)

        with LogTimer("Variant annotation") as timer:
            annotated = annotate(merged)
        log_performance("Variant annotation", timer.elapsed, len(merged))

        return PipelineResult(
            annotated=annotated,
            filter_summary=filter_summary,
            collision_stats=resolution.stats,
            mutation_counts=summarize_mutation_types(annotated),
        )
