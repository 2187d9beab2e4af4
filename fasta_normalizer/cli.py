"""Command-line entry point: normalize one FASTA file into another."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .normalize import decode_fasta_bytes, normalize_fasta_text
from .rules import DEFAULT_LOG_LEVEL, LOG_LEVELS, OUTPUT_ENCODING

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fasta-normalize",
        description="Upper case all sequence characters, remove all non-ACGT characters "
                    "and re-wrap sequences to the line width of the input.",
    )
    parser.add_argument("input", type=Path, help="Input FASTA file.")
    parser.add_argument("output", type=Path, help="Output FASTA file. Will be overwritten if it exists.")
    parser.add_argument(
        "-l", "--log-level",
        default=DEFAULT_LOG_LEVEL,
        type=str.upper,
        choices=LOG_LEVELS,
        help="The desired log level.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("%s", args)

    logger.info("Reading input file: %s", args.input)
    try:
        raw = args.input.read_bytes()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return 1

    text, enc_report = decode_fasta_bytes(raw)
    logger.debug("Decoded input as %s", enc_report["decode_used"])

    logger.info("Cleaning...")
    text, report, warnings, _ = normalize_fasta_text(text)
    logger.info(
        "Normalized %d records, line width %s, dropped %d characters",
        report["records"]["count"],
        report["line_width"]["width"],
        report["sequence"]["characters_dropped"],
    )
    for item in warnings:
        logger.debug("%s", item)

    logger.info("Writing output file: %s", args.output)
    try:
        args.output.write_bytes(text.encode(OUTPUT_ENCODING))
    except OSError as e:
        logger.error("Cannot write %s: %s", args.output, e)
        return 1

    logger.info("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
