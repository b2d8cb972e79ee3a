"""
Code compression for the MUSHCODE MCP Server.

Shrinks MUSHCODE for upload in three levels:
- minimal: drop @@ comments and blank lines, trim every line
- moderate: also tighten function call spacing and drop parentheses around
  bare numbers and registers
- aggressive: also collapse blank runs and spacing around ";" separators

Double-quoted strings are never rewritten.
"""

import re

import structlog

from .config import COMPRESSION_LEVELS
from .models import CompressionResult
from .store import KnowledgeStore
from .utils import (
    InputValidationError,
    is_comment_line,
    rewrite_outside_strings,
    tighten_call_spacing,
    validate_input_length,
)

logger = structlog.get_logger(__name__)

# "(5)" or "(q0)" that is not the argument list of a function call
REDUNDANT_PAREN_PATTERN = re.compile(r'(?<!\w)\((\d+|q[0-9a-z])\)')
BLANK_RUN_PATTERN = re.compile(r'[ \t]{2,}')
SEPARATOR_SPACING_PATTERN = re.compile(r'[ \t]+;[ \t]*|;[ \t]+')
ASSIGNMENT_SPACING_PATTERN = re.compile(r'[ \t]+=[ \t]*|=[ \t]+')


def _substitute(lines: list[str], pattern: re.Pattern, replacement: str) -> tuple[list[str], int]:
    """Apply a substitution outside strings on every line; returns the new lines and the match count."""
    count = 0

    def rewrite(part: str) -> str:
        nonlocal count
        part, n = pattern.subn(replacement, part)
        count += n
        return part

    return [rewrite_outside_strings(line, rewrite) for line in lines], count


class MushcodeCompressor:
    """Minifies MUSHCODE."""

    def __init__(self, store: KnowledgeStore):
        self.store = store

    def compress(
        self,
        code: str,
        level: str = "moderate",
        remove_comments: bool = True,
        preserve_functionality: bool = True,
        server_type: str | None = None,
    ) -> CompressionResult:
        """Compress code.

        With preserve_functionality off, spaces around "=" are removed too;
        that can change command arguments that begin or end with a space.

        Raises:
            InputValidationError: If the code is empty or too long, or the
                level is unknown
        """
        validate_input_length(code, "code")
        if level not in COMPRESSION_LEVELS:
            raise InputValidationError(
                f"Invalid compression level: {level}. Must be one of: {', '.join(COMPRESSION_LEVELS)}"
            )

        lines = code.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        applied: list[str] = []
        warnings: list[str] = []

        if remove_comments:
            kept = [line for line in lines if not is_comment_line(line)]
            if len(kept) != len(lines):
                applied.append(f"Removed {len(lines) - len(kept)} comment lines")
            lines = kept

        kept = [line for line in lines if line.strip()]
        if len(kept) != len(lines):
            applied.append(f"Removed {len(lines) - len(kept)} empty lines")
        lines = [line.strip() for line in kept]
        spaces = sum(len(line) for line in kept) - sum(len(line) for line in lines)
        if spaces:
            applied.append(f"Removed {spaces} unnecessary spaces")

        if level in ("moderate", "aggressive"):
            tightened = [tighten_call_spacing(line) for line in lines]
            changed = sum(1 for before, after in zip(lines, tightened) if before != after)
            lines = tightened
            if changed:
                applied.append(f"Compressed {changed} function calls")
                warnings.append("Function call compression may affect readability")

            lines, count = _substitute(lines, REDUNDANT_PAREN_PATTERN, r"\1")
            if count:
                applied.append(f"Removed {count} unnecessary parentheses")

            if not preserve_functionality:
                lines, count = _substitute(lines, ASSIGNMENT_SPACING_PATTERN, "=")
                if count:
                    applied.append(f"Removed spacing around {count} '=' signs")
                    warnings.append("Spacing around '=' was removed; check arguments that start or end with a space")

        if level == "aggressive":
            lines, count = _substitute(lines, BLANK_RUN_PATTERN, " ")
            if count:
                applied.append(f"Collapsed {count} whitespace runs")
            lines, count = _substitute(lines, SEPARATOR_SPACING_PATTERN, ";")
            if count:
                applied.append(f"Removed spacing around {count} command separators")

        compressed = "\n".join(lines)
        original_size = len(code)
        ratio = (original_size - len(compressed)) / original_size

        logger.info(
            "code_compressed",
            level=level,
            original_size=original_size,
            compressed_size=len(compressed),
            server_type=server_type,
        )
        return CompressionResult(
            compressed_code=compressed,
            original_size=original_size,
            compressed_size=len(compressed),
            compression_ratio=ratio,
            optimizations_applied=applied,
            warnings=warnings,
        )
