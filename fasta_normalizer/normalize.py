"""
Core FASTA normalization logic.

Responsibilities:
- encoding detection + decoding
- line break collapsing
- record segmentation
- alphabet filtering
- line width inference + re-wrapping

The pipeline scans the whole document before rendering: the line width is
inferred once, from the first raw sequence line of the file, and then applied
to every record, including the one it was taken from.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from charset_normalizer import from_bytes

from .models import FastaRecord
from .rules import HEADER_MARKER, LINE_BREAK, OUTPUT_ENCODING, SEQUENCE_ALPHABET

logger = logging.getLogger(__name__)

_LINE_BREAK_RUN = re.compile(r"[\r\n]+")
_NON_ALPHABET = re.compile(f"[^{SEQUENCE_ALPHABET}]")


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def normalize_line_breaks(text: str) -> str:
    """Replace every run of ``\\n``/``\\r`` characters with a single ``\\n``."""
    return _LINE_BREAK_RUN.sub(LINE_BREAK, text)


def segment_records(text: str, marker: str = HEADER_MARKER) -> tuple[List[FastaRecord], str]:
    """
    Split normalized text into records.

    Returns the records and the discarded text found before the first header.
    Empty fragments left by a leading or trailing line break are not lines.
    """
    records: List[FastaRecord] = []
    preamble: List[str] = []

    for line in text.split(LINE_BREAK):
        if not line:
            continue
        if line.startswith(marker):
            records.append(FastaRecord(header=line))
        elif records:
            records[-1].lines.append(line)
        else:
            preamble.append(line)

    return records, LINE_BREAK.join(preamble)


def filter_sequence(lines: Sequence[str]) -> str:
    return _NON_ALPHABET.sub("", "".join(lines).upper())


def find_width_record(records: Sequence[FastaRecord]) -> Optional[int]:
    """Index of the first record carrying a sequence line, or None."""
    for i, record in enumerate(records):
        if record.lines:
            return i
    return None


def infer_line_width(records: Sequence[FastaRecord]) -> Optional[int]:
    """
    Width of the first raw sequence line in the document, measured before
    filtering. None when no record carries a sequence line.
    """
    index = find_width_record(records)
    if index is None:
        return None
    return len(records[index].lines[0])


def rechunk(stream: str, width: Optional[int]) -> List[str]:
    # Without a usable width the whole stream is one line, even when empty.
    if width is None or width <= 0:
        return [stream]
    return [stream[i:i + width] for i in range(0, len(stream), width)]


def render_document(
    records: Sequence[FastaRecord],
    width: Optional[int],
    streams: Optional[Sequence[str]] = None,
) -> str:
    # streams, when given, holds the already filtered sequence of each record
    if streams is None:
        streams = [filter_sequence(record.lines) for record in records]

    out: List[str] = []
    for record, stream in zip(records, streams):
        out.append(record.header)
        out.extend(rechunk(stream, width))
    return "".join(line + LINE_BREAK for line in out)


def normalize_fasta_text(text: str) -> tuple[str, Dict[str, Any], List[dict], List[dict]]:
    """
    Normalize decoded FASTA text.

    Rules:
    - Collapse every run of line breaks to a single LF.
    - Copy header lines verbatim.
    - Uppercase sequence data and keep only A, C, G and T.
    - Re-wrap every record to the raw length of the first sequence line.
    """
    warnings: list[dict] = []
    errors: list[dict] = []

    # --- Newline normalization: any CR/LF run -> LF ---
    nl_before = {
        "crlf": text.count("\r\n"),
        "cr": text.count("\r") - text.count("\r\n"),
        "lf": text.count("\n"),
        "runs": len(_LINE_BREAK_RUN.findall(text)),
    }

    collapsed = normalize_line_breaks(text)
    newlines_changed = collapsed != text
    text = collapsed

    nl_after = {
        "crlf": text.count("\r\n"),
        "cr": text.count("\r"),
        "lf": text.count("\n"),
    }

    # --- Segmentation ---
    records, preamble = segment_records(text)

    if preamble:
        logger.warning("Discarding %d characters before the first header", len(preamble))
        warnings.append({
            "record": None,
            "header": None,
            "issue": "text_before_first_header",
            "value": str(len(preamble)),
            "action": "discarded",
        })

    # --- Width inference (once per document) ---
    width_index = find_width_record(records)
    width = None if width_index is None else len(records[width_index].lines[0])
    width_source = None

    if width is None:
        if records:
            logger.warning("No sequence lines found, emitting empty sequence lines")
            warnings.append({
                "record": None,
                "header": None,
                "issue": "no_sequence_lines",
                "value": str(len(records)),
                "action": "emitted_empty_lines",
            })
    else:
        logger.debug("Found FASTA line width %d", width)
        record = records[width_index]
        first_line = record.lines[0]
        filtered_len = len(filter_sequence([first_line]))
        width_source = {
            "record": width_index + 1,
            "raw_length": len(first_line),
            "filtered_length": filtered_len,
        }
        if filtered_len != len(first_line):
            logger.debug(
                "Width line of record %d keeps %d of %d characters",
                width_index + 1, filtered_len, len(first_line),
            )
            warnings.append({
                "record": width_index + 1,
                "header": record.header,
                "issue": "width_line_has_filtered_characters",
                "value": str(filtered_len),
                "action": f"kept_raw_width_{width}",
            })

    # --- Filtering ---
    chars_in = 0
    chars_kept = 0
    sequence_lines = 0
    empty_records = 0

    streams = [filter_sequence(record.lines) for record in records]

    for i, (record, stream) in enumerate(zip(records, streams)):
        raw_len = sum(len(line) for line in record.lines)
        kept = len(stream)
        chars_in += raw_len
        chars_kept += kept
        sequence_lines += len(record.lines)

        if kept == 0:
            empty_records += 1
            if record.lines:
                warnings.append({
                    "record": i + 1,
                    "header": record.header,
                    "issue": "no_alphabet_characters",
                    "value": str(raw_len),
                    "action": "header_only",
                })

    # --- Rendering ---
    text = render_document(records, width, streams)

    report = {
        "newlines": {
            "policy": "lf",
            "before": nl_before,
            "after": nl_after,
            "changed": newlines_changed,
        },
        "records": {
            "count": len(records),
            "sequence_lines": sequence_lines,
            "empty_records": empty_records,
            "preamble_discarded": len(preamble),
        },
        "sequence": {
            "alphabet": SEQUENCE_ALPHABET,
            "characters_in": chars_in,
            "characters_kept": chars_kept,
            "characters_dropped": chars_in - chars_kept,
        },
        "line_width": {
            "width": width,
            "source": width_source,
            "policy": "raw_first_sequence_line",
        },
    }

    return text, report, warnings, errors


def decode_fasta_bytes(raw: bytes) -> tuple[str, Dict[str, Any]]:
    """
    Decode input bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is stripped.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement characters.
    """
    detected = None

    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and (decode_used.lower().replace("-", "_") in ("utf_8", "utf8")):
        decode_used = "utf-8-sig"

    decode_fallback = False

    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        try:
            text = raw.decode("utf-8-sig")
            decode_used = "utf-8-sig"
        except UnicodeDecodeError:
            # Last resort: decode with replacement so the pipeline can continue deterministically
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
        decode_fallback = True
        logger.warning("Could not decode input as %s, used %s", detected, decode_used)

    report = {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
        "output": OUTPUT_ENCODING,
    }
    return text, report


def normalize_fasta_bytes(raw: bytes) -> Dict[str, Any]:
    """
    Decode, normalize and re-encode a FASTA document.
    Returns a dict matching the API's response envelope.
    """
    text, enc_report = decode_fasta_bytes(raw)
    text, fasta_report, warnings, errors = normalize_fasta_text(text)

    normalized_bytes = text.encode(OUTPUT_ENCODING)
    b64 = base64.b64encode(normalized_bytes).decode("ascii")
    return {
        "normalized_fasta": {
            "sha256": _sha256_hex(normalized_bytes),
            "encoding": OUTPUT_ENCODING,
            "content_b64": b64,
        },
        "report": {
            "summary": {
                "records": fasta_report["records"]["count"],
                "sequence_lines": fasta_report["records"]["sequence_lines"],
                "line_width": fasta_report["line_width"]["width"],
                "warnings": len(warnings),
                "errors": len(errors),
                "deterministic": True,
            },
            "normalizations": {"encoding": enc_report, **fasta_report},
            "warnings": warnings,
            "errors": errors,
        },
    }
