"""
Utility functions and compiled regex patterns for the MUSHCODE MCP Server.

Contains the code term extractor, query tokenizing, input validation,
the exception taxonomy, code scanning helpers and pre-compiled patterns.
"""

import re
from collections.abc import Callable, Iterator

from .config import settings

# Pre-compiled regex patterns for performance
FUNCTION_CALL_PATTERN = re.compile(r'\b(\w+)(?=\()')
ATTRIBUTE_REF_PATTERN = re.compile(r'&(\w+)')
VARIABLE_REF_PATTERN = re.compile(r'%(\w+)')
COMMAND_REF_PATTERN = re.compile(r'@(\w+)')
QUOTED_STRING_PATTERN = re.compile(r'"([^"]*)"')
NON_WORD_SPLIT_PATTERN = re.compile(r'\W+')
PLACEHOLDER_PATTERN = re.compile(r'\{\{([^{}]*)\}\}')
# A "{{name}" placeholder closed by a single brace
HALF_CLOSED_PLACEHOLDER_PATTERN = re.compile(r'\{\{[^{}]*\}(?!\})')
PARAMETER_NAME_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

# Code analysis patterns
CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
FUNCTION_SYNTAX_PATTERN = re.compile(r'\b([A-Za-z_]\w*)\s*\(')
ATTRIBUTE_NAME_PATTERN = re.compile(r'&([A-Za-z_][A-Za-z0-9_-]*)')
VARIABLE_NAME_PATTERN = re.compile(r'%([0-9]+|[A-Za-z_]\w*)')
# A double-quoted string including backslash escapes; the group keeps it in re.split output
QUOTED_SEGMENT_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")')

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}

# Control-flow words that carry meaning across every dialect
CONTROL_KEYWORDS = frozenset({"if", "then", "else", "switch", "case", "default", "for", "while", "do"})


# ============== Exceptions ==============

class InvalidEntityError(Exception):
    """Raised when an entity is inserted without its primary key."""
    pass


class GenerationError(Exception):
    """Raised when code cannot be generated for a request."""
    pass


class InputValidationError(Exception):
    """Raised when a tool argument fails validation."""
    pass


# ============== Term extraction ==============

def extract_code_terms(code: str) -> list[str]:
    """Extract the lexical terms used to compare code against stored entries.

    Collects, in order of first appearance:
    - names immediately followed by "(" (function calls)
    - &attribute, %variable and @command references, sigil stripped
    - the text of double-quoted strings
    - control keywords (if, switch, while, ...), lowercased

    Returns:
        Deduplicated list of terms
    """
    terms: list[str] = []
    terms.extend(FUNCTION_CALL_PATTERN.findall(code))
    terms.extend(ATTRIBUTE_REF_PATTERN.findall(code))
    terms.extend(VARIABLE_REF_PATTERN.findall(code))
    terms.extend(COMMAND_REF_PATTERN.findall(code))
    # Empty strings would match every text
    terms.extend(s for s in QUOTED_STRING_PATTERN.findall(code) if s)

    words = NON_WORD_SPLIT_PATTERN.split(code.lower())
    terms.extend(word for word in words if word in CONTROL_KEYWORDS)

    return list(dict.fromkeys(terms))


def tokenize_query(query: str) -> list[str]:
    """Split a free-text query into lowercase tokens."""
    return [t for t in NON_WORD_SPLIT_PATTERN.split(query.lower()) if t]


def term_overlap(terms: list[str], text_lower: str) -> tuple[float, list[str]]:
    """Share of terms found (case-insensitive substring) in an already-lowercased text.

    Returns:
        (overlap ratio in [0, 1], matched terms). No terms means zero overlap.
    """
    if not terms:
        return 0.0, []
    matched = [term for term in terms if term.lower() in text_lower]
    return len(matched) / len(terms), matched


# ============== Input Validation ==============

def validate_input_length(value: str, field: str) -> str:
    """Validate a free-text tool argument.

    Args:
        value: The argument value
        field: Argument name, used in the error message

    Returns:
        The validated value

    Raises:
        InputValidationError: If the value is empty or exceeds the configured maximum
    """
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(f"{field} must be a non-empty string")

    if len(value) > settings.max_input_length:
        raise InputValidationError(
            f"{field} is too long ({len(value)} characters, maximum {settings.max_input_length})"
        )

    return value


# ============== Code scanning ==============

def iter_code_chars(code: str) -> Iterator[tuple[int, str]]:
    """Yield (index, char) for characters outside double-quoted strings.

    A backslash escapes the next character; quotes and escaped characters
    are never yielded.
    """
    in_string = False
    escape_next = False

    for index, char in enumerate(code):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if not in_string:
            yield index, char


def max_nesting_depth(code: str) -> int:
    """Deepest bracket nesting outside strings; stray closers never go below zero."""
    closers = set(BRACKET_PAIRS.values())
    depth = max_depth = 0

    for _, char in iter_code_chars(code):
        if char in BRACKET_PAIRS:
            depth += 1
            max_depth = max(max_depth, depth)
        elif char in closers:
            depth = max(0, depth - 1)

    return max_depth


def is_comment_line(line: str) -> bool:
    return line.strip().startswith("@@")


def rewrite_outside_strings(line: str, rewrite: Callable[[str], str]) -> str:
    """Apply rewrite to the parts of a line that are not double-quoted strings."""
    parts = QUOTED_SEGMENT_PATTERN.split(line)
    return "".join(part if i % 2 else rewrite(part) for i, part in enumerate(parts))


def tighten_call_spacing(line: str) -> str:
    """Drop blanks after "(" and "," and before ")" and "," inside parentheses.

    Text outside parentheses and inside double-quoted strings is kept as is,
    so command arguments such as message text are not touched.
    """
    out: list[str] = []
    depth = 0
    in_string = False
    escape_next = False

    for char in line:
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif char == '"':
            in_string = not in_string
        elif not in_string:
            if char in " \t" and depth and out and out[-1] in "(,":
                continue
            if char in ",)" and depth:
                while out and out[-1] in " \t":
                    out.pop()
            if char == "(":
                depth += 1
            elif char == ")":
                depth = max(0, depth - 1)
        out.append(char)

    return "".join(out)
