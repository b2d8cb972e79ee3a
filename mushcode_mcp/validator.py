"""
Code validation for the MUSHCODE MCP Server.

Checks MUSHCODE line by line for syntax problems, runs the security rules
through the matcher, suggests best-practice improvements and scores the code
for complexity, security and maintainability.
"""

import re

import structlog

from .config import MAX_NAME_LENGTH, MAX_NESTING_DEPTH, SEVERITY_WEIGHTS, STRICT_LINE_LENGTH
from .matcher import PatternMatcher
from .models import CodeImprovement, CodeIssue, CodeValidation, Dialect, SecurityRule
from .store import KnowledgeStore
from .utils import (
    ATTRIBUTE_NAME_PATTERN,
    BRACKET_PAIRS,
    CONTROL_CHAR_PATTERN,
    FUNCTION_SYNTAX_PATTERN,
    PARAMETER_NAME_PATTERN,
    VARIABLE_NAME_PATTERN,
    is_comment_line,
    iter_code_chars,
    max_nesting_depth,
    validate_input_length,
)

logger = structlog.get_logger(__name__)

CONTROL_STRUCTURES = ("switch(", "iter(", "fold(", "filter(", "map(", "select(")
LINE_OPERATORS = ("switch(", "if(", "iter(", "fold(", "filter(", "map(")
EXPENSIVE_FUNCTIONS = ("sql", "search", "lsearch")
MAGIC_NUMBER_PATTERN = re.compile(r'\b\d{2,}\b')
ARGUMENT_REF_PATTERN = re.compile(r'%\d')
IMPROVEMENT_WEIGHTS = {"maintainability": 5, "readability": 3, "performance": 4}
MAX_VARIABLE_NUMBER = 99


class MushcodeValidator:
    """Syntax, security and best-practice checks for MUSHCODE."""

    def __init__(self, store: KnowledgeStore, matcher: PatternMatcher | None = None):
        self.store = store
        self.matcher = matcher or PatternMatcher(store)

    def validate(
        self,
        code: str,
        server_type: str | None = None,
        strict: bool = False,
        check_security: bool = True,
        check_best_practices: bool = True,
    ) -> CodeValidation:
        """Validate code.

        Blank lines and @@ comment lines are not syntax-checked. The code is
        valid when no syntax issue has error severity; security findings and
        suggestions only lower the scores.

        Args:
            code: MUSHCODE source, one command or attribute per line
            server_type: Dialect whose function library and security rules apply
            strict: Also warn about lines longer than 200 characters
            check_security: Run the security rules
            check_best_practices: Collect best-practice suggestions

        Raises:
            InputValidationError: If the code is empty or too long
        """
        validate_input_length(code, "code")
        lines = code.split("\n")
        dialect = self.store.get_dialect(server_type) if server_type else None

        syntax_errors: list[CodeIssue] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip() or is_comment_line(line):
                continue
            syntax_errors.extend(self._check_line(line, number, dialect, strict))

        depth = max_nesting_depth(code)
        if depth > MAX_NESTING_DEPTH:
            syntax_errors.append(CodeIssue(
                line=1,
                column=1,
                message=f"Excessive nesting depth: {depth} levels",
                severity="warning",
                code="EXCESSIVE_NESTING",
                suggestion="Break complex expressions into smaller parts",
            ))

        security_warnings = self.matcher.find_security_violations(code, server_type) if check_security else []
        best_practices = self._suggest_improvements(lines) if check_best_practices else []
        compatibility_notes = self._compatibility_notes(code, dialect) if dialect else []
        is_valid = not any(issue.severity == "error" for issue in syntax_errors)

        logger.info(
            "code_validated",
            lines=len(lines),
            valid=is_valid,
            syntax_errors=len(syntax_errors),
            security_warnings=len(security_warnings),
        )
        return CodeValidation(
            is_valid=is_valid,
            syntax_errors=syntax_errors,
            security_warnings=security_warnings,
            best_practices=best_practices,
            compatibility_notes=compatibility_notes,
            total_lines=len(lines),
            complexity_score=self._complexity_score(code, lines, depth),
            security_score=self._security_score(security_warnings),
            maintainability_score=self._maintainability_score(lines, best_practices),
        )

    # ============== Syntax ==============

    def _check_line(self, line: str, number: int, dialect: Dialect | None, strict: bool) -> list[CodeIssue]:
        issues: list[CodeIssue] = []

        for match in CONTROL_CHAR_PATTERN.finditer(line):
            issues.append(CodeIssue(
                line=number,
                column=match.start() + 1,
                message=f"Invalid control character: {ord(match.group()):x}",
                severity="error",
                code="INVALID_CHAR",
                suggestion="Remove or replace the character",
            ))

        if strict and len(line) > STRICT_LINE_LENGTH:
            issues.append(CodeIssue(
                line=number,
                column=STRICT_LINE_LENGTH + 1,
                message=f"Line too long (>{STRICT_LINE_LENGTH} characters)",
                severity="warning",
                code="LINE_TOO_LONG",
                suggestion="Break long lines for better readability",
            ))

        if line.endswith((" ", "\t")):
            issues.append(CodeIssue(
                line=number,
                column=len(line),
                message="Trailing whitespace",
                severity="info",
                code="TRAILING_WHITESPACE",
                suggestion="Remove trailing whitespace",
            ))

        issues.extend(self._check_brackets(line, number))
        issues.extend(self._check_functions(line, number, dialect))
        issues.extend(self._check_attributes(line, number))
        issues.extend(self._check_strings(line, number))
        issues.extend(self._check_variables(line, number))
        return issues

    def _check_brackets(self, line: str, number: int) -> list[CodeIssue]:
        """Match (), [] and {} on one line, ignoring quoted strings and escapes."""
        issues: list[CodeIssue] = []
        openers = {closer: opener for opener, closer in BRACKET_PAIRS.items()}
        stack: list[tuple[str, int]] = []

        for index, char in iter_code_chars(line):
            if char in BRACKET_PAIRS:
                stack.append((char, index))
            elif char in openers:
                if not stack:
                    issues.append(CodeIssue(
                        line=number,
                        column=index + 1,
                        message=f"Unmatched closing {char}",
                        severity="error",
                        code="UNMATCHED_BRACKET",
                        suggestion=f"Add opening {openers[char]}",
                    ))
                    continue
                opener, _ = stack.pop()
                if BRACKET_PAIRS[opener] != char:
                    issues.append(CodeIssue(
                        line=number,
                        column=index + 1,
                        message=f"Mismatched brackets: expected {BRACKET_PAIRS[opener]}, got {char}",
                        severity="error",
                        code="MISMATCHED_BRACKET",
                        suggestion=f"Change {char} to {BRACKET_PAIRS[opener]}",
                    ))

        for opener, index in stack:
            issues.append(CodeIssue(
                line=number,
                column=index + 1,
                message=f"Unclosed {opener}",
                severity="error",
                code="UNCLOSED_BRACKET",
                suggestion=f"Add closing {BRACKET_PAIRS[opener]}",
            ))
        return issues

    def _check_functions(self, line: str, number: int, dialect: Dialect | None) -> list[CodeIssue]:
        issues: list[CodeIssue] = []
        library = {f.name.lower(): f for f in dialect.function_library} if dialect else {}

        for match in FUNCTION_SYNTAX_PATTERN.finditer(line):
            name = match.group(1)
            # Unknown names are only reported against a loaded function library
            if library:
                definition = library.get(name.lower())
                if definition is None:
                    issues.append(CodeIssue(
                        line=number,
                        column=match.start() + 1,
                        message=f"Unknown function: {name}",
                        severity="warning",
                        code="UNKNOWN_FUNCTION",
                        suggestion="Check the function name or server compatibility",
                    ))
                elif definition.deprecated:
                    issues.append(CodeIssue(
                        line=number,
                        column=match.start() + 1,
                        message=f"Deprecated function: {name}",
                        severity="warning",
                        code="DEPRECATED_FUNCTION",
                        suggestion=(
                            f"Use {definition.alternative_to} instead"
                            if definition.alternative_to else "Consider an alternative function"
                        ),
                    ))

            if line[match.end():].startswith(" "):
                issues.append(CodeIssue(
                    line=number,
                    column=match.end() + 1,
                    message="Unexpected space after opening parenthesis",
                    severity="warning",
                    code="SPACE_AFTER_PAREN",
                    suggestion="Remove the space after the opening parenthesis",
                ))
        return issues

    def _check_attributes(self, line: str, number: int) -> list[CodeIssue]:
        issues: list[CodeIssue] = []

        for match in ATTRIBUTE_NAME_PATTERN.finditer(line):
            name = match.group(1)
            if len(name) > MAX_NAME_LENGTH:
                issues.append(CodeIssue(
                    line=number,
                    column=match.start() + 1,
                    message=f"Attribute name too long: {name} (max {MAX_NAME_LENGTH} characters)",
                    severity="error",
                    code="ATTR_NAME_TOO_LONG",
                    suggestion="Shorten the attribute name",
                ))
            if not PARAMETER_NAME_PATTERN.fullmatch(name):
                issues.append(CodeIssue(
                    line=number,
                    column=match.start() + 1,
                    message=f"Invalid attribute name: {name}",
                    severity="error",
                    code="INVALID_ATTR_NAME",
                    suggestion="Use only letters, numbers and underscores",
                ))
        return issues

    def _check_strings(self, line: str, number: int) -> list[CodeIssue]:
        in_string = False
        escape_next = False
        start = -1

        for index, char in enumerate(line):
            if escape_next:
                escape_next = False
            elif char == "\\":
                escape_next = True
            elif char == '"':
                in_string = not in_string
                start = index if in_string else -1

        if not in_string:
            return []
        return [CodeIssue(
            line=number,
            column=start + 1,
            message="Unterminated string literal",
            severity="error",
            code="UNTERMINATED_STRING",
            suggestion="Add the closing quote",
        )]

    def _check_variables(self, line: str, number: int) -> list[CodeIssue]:
        issues: list[CodeIssue] = []

        for match in VARIABLE_NAME_PATTERN.finditer(line):
            name = match.group(1)
            if name.isdigit() and int(name) > MAX_VARIABLE_NUMBER:
                issues.append(CodeIssue(
                    line=number,
                    column=match.start() + 1,
                    message=f"Variable number too high: %{name} (max %{MAX_VARIABLE_NUMBER})",
                    severity="warning",
                    code="VAR_NUMBER_TOO_HIGH",
                    suggestion=f"Use %0-%{MAX_VARIABLE_NUMBER} or a named register",
                ))
        return issues

    # ============== Best practices & compatibility ==============

    def _suggest_improvements(self, lines: list[str]) -> list[CodeImprovement]:
        improvements: list[CodeImprovement] = []

        for index, line in enumerate(lines):
            if not line.strip() or is_comment_line(line):
                continue
            number = index + 1

            if "switch(" in line and not (index > 0 and is_comment_line(lines[index - 1])):
                improvements.append(CodeImprovement(
                    type="readability",
                    description="Complex logic without comments",
                    line=number,
                    impact="Add an @@ comment above the line",
                ))

            if line.count("iter(") > 1:
                improvements.append(CodeImprovement(
                    type="performance",
                    description="Nested iter() calls can be slow",
                    line=number,
                    impact="Reduces execution time for large lists",
                ))

            for name in EXPENSIVE_FUNCTIONS:
                if len(re.findall(rf"\b{name}\(", line)) > 1:
                    improvements.append(CodeImprovement(
                        type="performance",
                        description=f"Multiple {name}() calls in one line",
                        line=number,
                        impact="Store the result in a register instead of repeating the call",
                    ))

            for number_text in MAGIC_NUMBER_PATTERN.findall(line):
                if int(number_text) > 10:
                    improvements.append(CodeImprovement(
                        type="maintainability",
                        description=f"Magic number: {number_text}",
                        line=number,
                        impact=f"Keep the value in an attribute such as CONSTANT_{number_text}",
                    ))

            if len(ARGUMENT_REF_PATTERN.findall(line)) > 5:
                improvements.append(CodeImprovement(
                    type="maintainability",
                    description="Too many parameters",
                    line=number,
                    impact="Pass a list or split the code into smaller functions",
                ))

            if self._line_complexity(line) > 10:
                improvements.append(CodeImprovement(
                    type="readability",
                    description="Complex expression",
                    line=number,
                    impact="Break the expression into smaller parts",
                ))

        return improvements

    def _compatibility_notes(self, code: str, dialect: Dialect) -> list[str]:
        notes: list[str] = []
        called = {name.lower() for name in FUNCTION_SYNTAX_PATTERN.findall(code)}

        for definition in dialect.function_library:
            if definition.name.lower() not in called:
                continue
            for note in definition.notes or []:
                if "compatibility" in note or "version" in note:
                    notes.append(f"{definition.name}: {note}")
            if definition.deprecated:
                notes.append(f"{definition.name} is deprecated in {dialect.name}")
                if definition.alternative_to:
                    notes.append(f"Consider using {definition.alternative_to} instead")

        for name in dialect.security_model.restricted_functions:
            if name.lower() in called:
                notes.append(f"{name} is restricted in {dialect.name}")

        return notes

    # ============== Scores ==============

    def _line_complexity(self, line: str) -> int:
        complexity = 1 + sum(line.count(op) for op in LINE_OPERATORS)
        complexity += (line.count("(") + line.count("[")) // 2
        return complexity

    def _complexity_score(self, code: str, lines: list[str], depth: int) -> int:
        """0-100, higher is more complex."""
        complexity = min(len(lines) * 0.5, 20)
        complexity += sum(code.count(structure) for structure in CONTROL_STRUCTURES) * 2
        complexity += depth * 3
        complexity += len(FUNCTION_SYNTAX_PATTERN.findall(code)) * 0.5
        return min(round(complexity), 100)

    def _security_score(self, violations: list[SecurityRule]) -> int:
        """0-100, higher is safer."""
        return max(0, 100 - sum(SEVERITY_WEIGHTS[rule.severity] for rule in violations))

    def _maintainability_score(self, lines: list[str], improvements: list[CodeImprovement]) -> int:
        """0-100, higher is easier to maintain."""
        score = 100
        if len(lines) > 50:
            score -= 10
        if len(lines) > 100:
            score -= 20
        if len(lines) > 200:
            score -= 30

        comment_ratio = sum(1 for line in lines if is_comment_line(line)) / len(lines)
        if comment_ratio < 0.1:
            score -= 15
        if comment_ratio < 0.05:
            score -= 10

        score -= sum(IMPROVEMENT_WEIGHTS[improvement.type] for improvement in improvements)

        if comment_ratio > 0.2:
            score += 5
        if len(lines) < 50:
            score += 5

        return max(0, min(100, score))
