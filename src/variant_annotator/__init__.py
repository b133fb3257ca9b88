"""Barcode-linked variant classification and annotation.

Filters sequencing-derived barcode/variant records, resolves barcode
collisions, merges them with the reference design catalog and annotates
every amino-acid variant with its class, phase and mutation type.
"""

__version__ = "1.0.0"
__author__ = "Austin P. Morrissey"
