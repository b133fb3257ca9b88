"""Truncation-aware trimming and filtering of translated variant sequences.

Every observed record carries the raw translation of its insert. Before
any grouping happens, the translation is cut at the first stop marker and
three derived columns are added:

    contains_stop            the raw translation has a stop marker anywhere
    stop_in_terminal_window  the only stop markers lie in the last N residues
    aa_length                length of the trimmed translation

Records then survive only if they are long enough (with a lower bar for
legitimate C-terminal truncations) and carry no premature internal stop.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

import pandas as pd

from .config import FilterConfig
from .models import (
    AA_LENGTH,
    AA_SEQUENCE,
    CONTAINS_STOP,
    STOP_IN_WINDOW,
    STOP_MARKER,
)

logger = logging.getLogger(__name__)


@dataclass
class FilterSummary:
    """Record counts through the length and truncation gates."""

    records_in: int
    records_out: int
    dropped_internal_stop: int
    dropped_length: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def trim_at_stop(aa_sequence: Optional[str], stop_marker: str = STOP_MARKER) -> str:
    """Return the prefix strictly before the first stop marker."""
    if not aa_sequence:
        return ""
    pos = aa_sequence.find(stop_marker)
    return aa_sequence[:pos] if pos != -1 else aa_sequence


def stop_in_terminal_window(aa_sequence: Optional[str],
                            window: int = 35,
                            stop_marker: str = STOP_MARKER) -> bool:
    """Whether a stop occurs in the last ``window`` residues and nowhere before.

    Sequences shorter than the window are evaluated over their full length.
    """
    if not aa_sequence:
        return False
    head = aa_sequence[:-window]
    tail = aa_sequence[-window:]
    return stop_marker in tail and stop_marker not in head


def annotate_truncations(frame: pd.DataFrame, config: Optional[FilterConfig] = None) -> pd.DataFrame:
    """Add stop flags and trimmed lengths, returning a new frame."""
    config = config or FilterConfig()
    marker = config.stop_marker
    window = config.terminal_window

    raw = frame[AA_SEQUENCE].fillna("").astype(str)

    contains = raw.str.contains(marker, regex=False).astype(bool)
    head = raw.str[:-window]
    tail = raw.str[-window:]
    in_window = (
        tail.str.contains(marker, regex=False) & ~head.str.contains(marker, regex=False)
    ).astype(bool)
    trimmed = raw.str.split(marker, n=1, regex=False).str[0].fillna("")

    return frame.assign(**{
        AA_SEQUENCE: trimmed,
        AA_LENGTH: trimmed.str.len().astype(int),
        CONTAINS_STOP: contains,
        STOP_IN_WINDOW: in_window,
    })


def inclusion_mask(frame: pd.DataFrame, config: Optional[FilterConfig] = None) -> Tuple[pd.Series, pd.Series]:
    """Evaluate the length gate and truncation-position gate on an annotated frame."""
    config = config or FilterConfig()
    contains = frame[CONTAINS_STOP]
    length = frame[AA_LENGTH]

    length_ok = (
        (~contains & (length > config.min_length_full))
        | (contains & (length > config.min_length_truncated))
    )
    position_ok = ~contains | frame[STOP_IN_WINDOW]
    return length_ok, position_ok


def filter_records(frame: pd.DataFrame,
                   config: Optional[FilterConfig] = None) -> Tuple[pd.DataFrame, FilterSummary]:
    """
    Trim translations and keep only reliable full-length or terminally truncated records.

    Args:
        frame: Observed records with raw ``aa_sequence``
        config: Filter thresholds

    Returns:
        Tuple of (filtered frame, filter summary)
    """
    config = config or FilterConfig()
    annotated = annotate_truncations(frame, config)
    length_ok, position_ok = inclusion_mask(annotated, config)
    keep = length_ok & position_ok

    filtered = annotated[keep].reset_index(drop=True)
    summary = FilterSummary(
        records_in=len(annotated),
        records_out=len(filtered),
        dropped_internal_stop=int((~position_ok).sum()),
        dropped_length=int((position_ok & ~length_ok).sum()),
    )

    logger.info(
        f"Sequence filter kept {summary.records_out}/{summary.records_in} records "
        f"({summary.dropped_internal_stop} internal stops, {summary.dropped_length} too short)"
    )
    return filtered, summary
