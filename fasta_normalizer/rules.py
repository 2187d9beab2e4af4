"""
Deterministic normalization rules.

This file exists to make the fixed alphabet and output conventions explicit.
"""

HEADER_MARKER = ">"
SEQUENCE_ALPHABET = "ACGT"
LINE_BREAK = "\n"
OUTPUT_ENCODING = "utf-8"  # plain UTF-8, no BOM

FASTA_EXTENSIONS = (".fasta", ".fa", ".fna", ".ffn", ".fas", ".fsa", ".txt")

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
