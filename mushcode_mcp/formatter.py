"""
Code formatting for the MUSHCODE MCP Server.

Three styles:
- readable: re-indents nested blocks, splits long function calls and wraps
  long lines
- compact: one trimmed line per command with tight function calls
- custom: normalized spacing that keeps the author's indentation, wrapping
  only very long lines

Dialect syntax rules that carry a replacement are applied afterwards.
"""

import re

import structlog

from .config import FORMAT_STYLES
from .models import Dialect, FormatResult
from .store import KnowledgeStore
from .utils import (
    InputValidationError,
    is_comment_line,
    rewrite_outside_strings,
    tighten_call_spacing,
    validate_input_length,
)

logger = structlog.get_logger(__name__)

BLANK_RUN_PATTERN = re.compile(r'\n{3,}')
BLANK_CHARS_PATTERN = re.compile(r'[ \t]+')
COMMENT_PATTERN = re.compile(r'@@\s*(.*)')
# name(args) with at least 20 characters of arguments and no nested parentheses
LONG_CALL_PATTERN = re.compile(r'(\w+)\(([^()"]{20,})\)')
WRAP_POINTS = (",", ";")
CUSTOM_WRAP_THRESHOLD = 100


class MushcodeFormatter:
    """Reformats MUSHCODE in a chosen style."""

    def __init__(self, store: KnowledgeStore):
        self.store = store

    def format(
        self,
        code: str,
        style: str = "readable",
        indent_size: int = 2,
        line_length: int = 80,
        preserve_comments: bool = True,
        server_type: str | None = None,
    ) -> FormatResult:
        """Format code.

        Raises:
            InputValidationError: If the code is empty or too long, the style
                is unknown, or indent_size / line_length are out of range
        """
        validate_input_length(code, "code")
        if style not in FORMAT_STYLES:
            raise InputValidationError(f"Invalid style. Must be one of: {', '.join(FORMAT_STYLES)}")
        if not 0 <= indent_size <= 8:
            raise InputValidationError("indent_size must be between 0 and 8")
        if not 40 <= line_length <= 200:
            raise InputValidationError("line_length must be between 40 and 200")

        changes: list[str] = []
        code = code.replace("\r\n", "\n").replace("\r", "\n")

        if style == "readable":
            formatted = self._readable(code, indent_size, line_length, preserve_comments, changes)
        elif style == "compact":
            formatted = self._compact(code, preserve_comments, changes)
        else:
            formatted = self._custom(code, indent_size, line_length, preserve_comments, changes)

        dialect = self.store.get_dialect(server_type) if server_type else None
        if dialect is not None:
            formatted = self._apply_dialect(formatted, dialect, changes)

        logger.info("code_formatted", style=style, changes=len(changes), server_type=server_type)
        return FormatResult(
            formatted_code=formatted,
            changes_made=changes,
            style_notes=self._style_notes(style, indent_size, line_length, preserve_comments),
        )

    # ============== Styles ==============

    def _readable(
        self,
        code: str,
        indent_size: int,
        line_length: int,
        preserve_comments: bool,
        changes: list[str],
    ) -> str:
        original = code.split("\n")
        lines = [line.rstrip() for line in original]
        if lines != original:
            changes.append("Removed trailing whitespace")

        text = "\n".join(lines)
        collapsed = BLANK_RUN_PATTERN.sub("\n\n", text)
        if collapsed != text:
            changes.append("Normalized blank lines")

        lines = self._indent(collapsed.split("\n"), indent_size, changes)
        lines = self._split_calls(lines, indent_size, line_length, changes)
        lines = self._wrap(lines, indent_size, line_length, changes)
        lines = self._comments(lines, preserve_comments, changes)
        return "\n".join(lines).strip("\n")

    def _compact(self, code: str, preserve_comments: bool, changes: list[str]) -> str:
        lines: list[str] = []
        blank = comments = 0
        collapsed = tightened = False

        for line in code.split("\n"):
            stripped = line.strip()
            if not stripped:
                blank += 1
                continue
            if is_comment_line(stripped) and not preserve_comments:
                comments += 1
                continue

            single = rewrite_outside_strings(stripped, lambda part: BLANK_CHARS_PATTERN.sub(" ", part))
            tight = tighten_call_spacing(single)
            collapsed = collapsed or single != stripped
            tightened = tightened or tight != single
            lines.append(tight)

        if blank:
            changes.append(f"Removed {blank} blank lines")
        if comments:
            changes.append(f"Removed {comments} comments")
        if collapsed:
            changes.append("Collapsed whitespace")
        if tightened:
            changes.append("Compacted function calls")
        return "\n".join(lines)

    def _custom(
        self,
        code: str,
        indent_size: int,
        line_length: int,
        preserve_comments: bool,
        changes: list[str],
    ) -> str:
        lines = []
        for line in code.split("\n"):
            body = line.lstrip(" \t")
            indent = line[:len(line) - len(body)]
            body = rewrite_outside_strings(body.rstrip(), lambda part: BLANK_CHARS_PATTERN.sub(" ", part))
            lines.append(indent + body if body else "")

        if lines != code.split("\n"):
            changes.append("Normalized whitespace")

        lines = self._comments(lines, preserve_comments, changes)
        if line_length > CUSTOM_WRAP_THRESHOLD:
            lines = self._wrap(lines, indent_size, line_length, changes)
        return "\n".join(lines).strip("\n")

    # ============== Steps ==============

    def _indent(self, lines: list[str], indent_size: int, changes: list[str]) -> list[str]:
        """Indent one level after a line ending in { or [, dedent at a line starting with } or ]."""
        result: list[str] = []
        level = 0
        changed = False

        for line in lines:
            stripped = line.strip()
            if not stripped or is_comment_line(stripped):
                result.append(stripped)
                continue

            if stripped.startswith(("}", "]")):
                level = max(0, level - 1)
            indented = " " * (level * indent_size) + stripped
            changed = changed or indented != line
            result.append(indented)
            if stripped.endswith(("{", "[")):
                level += 1

        if changed:
            changes.append(f"Applied {indent_size}-space indentation")
        return result

    def _split_calls(self, lines: list[str], indent_size: int, line_length: int, changes: list[str]) -> list[str]:
        """Put each argument of a long call with three or more arguments on its own line."""
        result: list[str] = []
        split = False

        for line in lines:
            if len(line) <= line_length or is_comment_line(line):
                result.append(line)
                continue

            base = line[:len(line) - len(line.lstrip())]
            pad = base + " " * indent_size

            def expand(match: re.Match) -> str:
                args = [arg.strip() for arg in match.group(2).split(",")]
                if len(args) <= 2:
                    return match.group(0)
                return f"{match.group(1)}(\n{pad}" + f",\n{pad}".join(args) + f"\n{base})"

            expanded = LONG_CALL_PATTERN.sub(expand, line)
            split = split or expanded != line
            result.extend(expanded.split("\n"))

        if split:
            changes.append("Split long function calls across lines")
        return result

    def _wrap(self, lines: list[str], indent_size: int, line_length: int, changes: list[str]) -> list[str]:
        """Break lines longer than line_length after a comma or semicolon."""
        result: list[str] = []
        wrapped_any = False

        for line in lines:
            if len(line) <= line_length or is_comment_line(line):
                result.append(line)
                continue

            wrapped = self._wrap_line(line, indent_size, line_length)
            wrapped_any = wrapped_any or len(wrapped) > 1
            result.extend(wrapped)

        if wrapped_any:
            changes.append(f"Wrapped lines longer than {line_length} characters")
        return result

    def _wrap_line(self, line: str, indent_size: int, line_length: int) -> list[str]:
        content = line.lstrip()
        base = line[:len(line) - len(content)]
        pad = base + " " * indent_size

        for separator in WRAP_POINTS:
            parts = content.split(separator)
            if len(parts) < 2:
                continue

            wrapped: list[str] = []
            current = base + parts[0]
            for part in parts[1:]:
                if len(current) + len(separator) + len(part) <= line_length:
                    current += separator + part
                else:
                    wrapped.append(current + separator)
                    current = pad + part.strip()
            wrapped.append(current)

            if len(wrapped) > 1:
                return wrapped

        return [line]

    def _comments(self, lines: list[str], preserve_comments: bool, changes: list[str]) -> list[str]:
        if not preserve_comments:
            kept = [line for line in lines if not is_comment_line(line)]
            if len(kept) != len(lines):
                changes.append(f"Removed {len(lines) - len(kept)} comments")
            return kept

        result = []
        for line in lines:
            if is_comment_line(line):
                body = line.lstrip()
                text = " ".join(COMMENT_PATTERN.fullmatch(body).group(1).split())
                normalized = line[:len(line) - len(body)] + (f"@@ {text}" if text else "@@")
                result.append(normalized)
            else:
                result.append(line)

        if result != lines:
            changes.append("Normalized comment spacing")
        return result

    def _apply_dialect(self, code: str, dialect: Dialect, changes: list[str]) -> str:
        for rule in dialect.syntax_variations:
            if rule.replacement is None:
                continue
            try:
                pattern = re.compile(rule.pattern)
            except re.error:
                logger.warning("syntax_rule_pattern_invalid", dialect=dialect.name, rule_id=rule.rule_id)
                continue

            replaced = pattern.sub(rule.replacement, code)
            if replaced != code:
                changes.append(f"Applied {dialect.name} syntax rule {rule.rule_id}")
                code = replaced
        return code

    def _style_notes(self, style: str, indent_size: int, line_length: int, preserve_comments: bool) -> str:
        if style == "readable":
            notes = [
                "Readable style: nested blocks indented and long lines wrapped.",
                f"Used {indent_size}-space indentation and a {line_length}-character line length.",
            ]
        elif style == "compact":
            notes = ["Compact style: one trimmed line per command with tight function calls."]
        else:
            notes = ["Custom style: spacing normalized, the existing indentation kept."]

        if preserve_comments:
            notes.append("Comments were kept.")
        else:
            notes.append("Comments were removed.")
        return " ".join(notes)
