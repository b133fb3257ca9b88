"""Amino-acid level classification and mutation-type annotation.

The merged table (observed records plus reference designs) goes through
two grouped passes:

1. Sequence pass, keyed on (protein_id, aa_sequence). Every row sharing a
   protein sequence receives the highest-priority DNA class present in
   the group (perfect > mutant_phase > mutant_nophase) as ``aa_class``,
   and the phase of the first member carrying that class as ``aa_phase``.

2. Phase pass, keyed on (protein_id, phase). The first ``aa_class ==
   perfect`` row of each group supplies the reference length, and each row
   is labelled, in order of precedence:

       Nonsense   translation contained a stop marker
       None       the row itself is a perfect DNA match
       DNA        silent at protein level (aa_class perfect, DNA mutant)
       Unknown    the group has no perfect reference
       Missense / Insertion / Deletion by length against the reference

Group values are computed once per key and joined back onto the rows.
Finally a row's own phase replaces the inferred one and reference design
rows are dropped.
"""

import logging
from typing import Dict

import pandas as pd

from .models import (
    AA_CLASS,
    AA_LENGTH,
    AA_PHASE,
    AA_SEQUENCE,
    BARCODE,
    CONTAINS_STOP,
    DNA_CLASS,
    MUTATION_TYPE,
    PHASE,
    PROTEIN_ID,
    REFERENCE_BARCODE,
    DnaClass,
    MutationType,
)

logger = logging.getLogger(__name__)

SEQUENCE_KEYS = [PROTEIN_ID, AA_SEQUENCE]
PHASE_KEYS = [PROTEIN_ID, PHASE]

PERFECT = DnaClass.PERFECT.value
MUTANT_PHASE = DnaClass.MUTANT_PHASE.value
MUTANT_NOPHASE = DnaClass.MUTANT_NOPHASE.value

_GROUP_CLASS = "_group_class"
_GROUP_PHASE = "_group_phase"
_REFERENCE_LENGTH = "_reference_length"


def normalize_phase(frame: pd.DataFrame) -> pd.DataFrame:
    """Treat empty or whitespace-only phases as missing."""
    phase = frame[PHASE].astype(object)
    blank = phase.isna() | phase.astype(str).str.strip().eq("")
    return frame.assign(**{PHASE: phase.where(~blank, None)})


def _first_phase(frame: pd.DataFrame, mask: pd.Series, name: str) -> pd.DataFrame:
    """Phase of the first row per sequence group among rows matching ``mask``."""
    firsts = frame.loc[mask, SEQUENCE_KEYS + [PHASE]].drop_duplicates(subset=SEQUENCE_KEYS, keep='first')
    return firsts.rename(columns={PHASE: name})


def resolve_aa_classes(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Assign the priority-resolved ``aa_class`` and inferred ``aa_phase``.

    Rows whose group holds none of the three known classes keep their own
    ``dna_class`` as ``aa_class``.
    """
    dna_class = frame[DNA_CLASS]
    is_perfect = dna_class == PERFECT
    is_mutant_phase = dna_class == MUTANT_PHASE
    is_mutant_nophase = dna_class == MUTANT_NOPHASE

    summary = (
        frame[SEQUENCE_KEYS]
        .assign(_perfect=is_perfect, _mutant_phase=is_mutant_phase, _mutant_nophase=is_mutant_nophase)
        .groupby(SEQUENCE_KEYS, dropna=False, sort=False)
        .agg(has_perfect=('_perfect', 'any'),
             has_mutant_phase=('_mutant_phase', 'any'),
             has_mutant_nophase=('_mutant_nophase', 'any'))
        .reset_index()
    )
    for flag in ('has_perfect', 'has_mutant_phase', 'has_mutant_nophase'):
        summary[flag] = summary[flag].astype(bool)

    for mask, name in ((is_perfect, '_perfect_phase'),
                       (is_mutant_phase, '_mutant_phase_phase'),
                       (is_perfect | is_mutant_phase, '_phased_phase')):
        summary = summary.merge(_first_phase(frame, mask, name), on=SEQUENCE_KEYS, how='left')

    # Lowest priority first so higher classes overwrite
    group_class = pd.Series(None, index=summary.index, dtype=object)
    group_class = group_class.mask(summary['has_mutant_nophase'], MUTANT_NOPHASE)
    group_class = group_class.mask(summary['has_mutant_phase'], MUTANT_PHASE)
    group_class = group_class.mask(summary['has_perfect'], PERFECT)

    phased = summary['has_perfect'] | summary['has_mutant_phase']
    group_phase = pd.Series(None, index=summary.index, dtype=object)
    group_phase = group_phase.mask(phased & ~group_class.isin([PERFECT, MUTANT_PHASE]), summary['_phased_phase'])
    group_phase = group_phase.mask(group_class == MUTANT_PHASE, summary['_mutant_phase_phase'])
    group_phase = group_phase.mask(group_class == PERFECT, summary['_perfect_phase'])

    lookup = summary[SEQUENCE_KEYS].assign(**{_GROUP_CLASS: group_class, _GROUP_PHASE: group_phase})
    joined = frame.merge(lookup, on=SEQUENCE_KEYS, how='left', validate='many_to_one')

    aa_class = joined[_GROUP_CLASS].where(joined[_GROUP_CLASS].notna(), joined[DNA_CLASS])
    return joined.assign(**{AA_CLASS: aa_class, AA_PHASE: joined[_GROUP_PHASE]}).drop(
        columns=[_GROUP_CLASS, _GROUP_PHASE]
    )


def infer_mutation_types(frame: pd.DataFrame) -> pd.DataFrame:
    """Label each row's protein-level change against its phase group's reference length."""
    references = (
        frame.loc[frame[AA_CLASS] == PERFECT, PHASE_KEYS + [AA_LENGTH]]
        .drop_duplicates(subset=PHASE_KEYS, keep='first')
        .rename(columns={AA_LENGTH: _REFERENCE_LENGTH})
    )
    joined = frame.merge(references, on=PHASE_KEYS, how='left', validate='many_to_one')

    length = joined[AA_LENGTH]
    reference_length = joined[_REFERENCE_LENGTH]
    has_reference = reference_length.notna()
    own_perfect = joined[DNA_CLASS] == PERFECT

    # Lowest precedence first; later masks win
    mutation = pd.Series(MutationType.UNKNOWN.value, index=joined.index, dtype=object)
    mutation = mutation.mask(has_reference & (length < reference_length), MutationType.DELETION.value)
    mutation = mutation.mask(has_reference & (length > reference_length), MutationType.INSERTION.value)
    mutation = mutation.mask(has_reference & (length == reference_length), MutationType.MISSENSE.value)
    mutation = mutation.mask((joined[AA_CLASS] == PERFECT) & ~own_perfect, MutationType.DNA.value)
    mutation = mutation.mask(own_perfect, MutationType.NONE.value)
    mutation = mutation.mask(joined[CONTAINS_STOP].eq(True), MutationType.NONSENSE.value)

    return joined.assign(**{MUTATION_TYPE: mutation}).drop(columns=[_REFERENCE_LENGTH])


def finalize(frame: pd.DataFrame) -> pd.DataFrame:
    """Let observed phases override inferred ones and drop reference design rows."""
    frame = normalize_phase(frame)
    aa_phase = frame[PHASE].where(frame[PHASE].notna(), frame[AA_PHASE])
    frame = frame.assign(**{AA_PHASE: aa_phase})
    return frame[frame[BARCODE] != REFERENCE_BARCODE].reset_index(drop=True)


def annotate(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Run the sequence pass, the phase pass and finalization over a merged table.

    Args:
        frame: Observed records merged with reference design rows

    Returns:
        Annotated observed rows with ``aa_class``, ``aa_phase`` and ``mutation_type``
    """
    if frame.empty:
        return frame.assign(**{AA_CLASS: None, AA_PHASE: None, MUTATION_TYPE: None}).reset_index(drop=True)

    frame = normalize_phase(frame.reset_index(drop=True))
    classified = resolve_aa_classes(frame)
    typed = infer_mutation_types(classified)
    annotated = finalize(typed)

    logger.info(f"Annotated {len(annotated)} variants "
                f"({len(frame) - len(annotated)} reference design rows removed)")
    return annotated


def summarize_mutation_types(frame: pd.DataFrame) -> Dict[str, int]:
    """Count annotated rows per mutation type, including absent types."""
    counts = frame[MUTATION_TYPE].value_counts() if MUTATION_TYPE in frame.columns else pd.Series(dtype=int)
    return {m.value: int(counts.get(m.value, 0)) for m in MutationType}
