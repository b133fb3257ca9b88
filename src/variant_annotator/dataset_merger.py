"""Union of barcode-resolved observations with the reference design rows."""

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def merge_with_designs(observed: pd.DataFrame, reference: pd.DataFrame) -> pd.DataFrame:
    """
    Stack observed records and reference designs into one working table.

    No key matching happens here; designs meet their observations through
    the shared (protein_id, aa_sequence) and (protein_id, phase) groupings
    of the annotator. Columns present on only one side are null on the other.
    """
    columns = list(dict.fromkeys(list(observed.columns) + list(reference.columns)))
    frames = [f for f in (observed, reference) if not f.empty]
    if not frames:
        return pd.DataFrame(columns=columns)

    merged = pd.concat(frames, ignore_index=True, sort=False).reindex(columns=columns)
    logger.info(f"Merged {len(observed)} observed records with {len(reference)} reference designs")
    return merged
