"""
Code generation for the MUSHCODE MCP Server.

Picks the best-matching pattern for a description and renders its template
with caller-supplied parameter values.
"""

import re

import structlog

from .config import PATTERN_CATEGORIES, SECURITY_LEVELS
from .matcher import PatternMatcher
from .models import GenerationRequest, GenerationResult, Pattern, PatternMatch
from .store import KnowledgeStore
from .utils import PLACEHOLDER_PATTERN, GenerationError

logger = structlog.get_logger(__name__)

MAX_DESCRIPTION_LENGTH = 1000


class MushcodeGenerator:
    """Renders pattern templates into MUSHCODE."""

    def __init__(self, store: KnowledgeStore, matcher: PatternMatcher | None = None):
        self.store = store
        self.matcher = matcher or PatternMatcher(store)

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate code for a request.

        Raises:
            GenerationError: If the request is invalid, no pattern fits, or a
                parameter is missing or fails its validation regex
        """
        self._validate_request(request)

        pattern = self._find_best_pattern(request)
        if pattern is None:
            raise GenerationError(f"No suitable pattern found for: {request.description}")

        code = self._render(pattern, request.parameters)

        warnings: list[str] = []
        if request.server_type and self.store.get_dialect(request.server_type) is None:
            warnings.append(f"No dialect data for {request.server_type}; compatibility is taken from the pattern")

        # Only the rendered code is scanned, never the comment header
        violations = self.matcher.find_security_violations(code, request.server_type)
        for rule in violations:
            warnings.append(f"[{rule.severity}] {rule.name}: {rule.recommendation}")

        if request.include_comments:
            code = f"@@ {pattern.name}: {pattern.description}\n{code}"

        logger.info("code_generated", pattern_id=pattern.id, server_type=request.server_type, warnings=len(warnings))
        return GenerationResult(
            code=code,
            explanation=self._explain(pattern),
            usage_example=pattern.examples[0] if pattern.examples else code,
            compatibility=list(pattern.server_compatibility),
            pattern_used=pattern.id,
            security_notes=self._security_notes(pattern),
            warnings=warnings,
        )

    def _validate_request(self, request: GenerationRequest) -> None:
        if not request.description or not request.description.strip():
            raise GenerationError("Description is required")

        if len(request.description) > MAX_DESCRIPTION_LENGTH:
            raise GenerationError(f"Description is too long (max {MAX_DESCRIPTION_LENGTH} characters)")

        if request.function_type and request.function_type not in PATTERN_CATEGORIES:
            raise GenerationError(f"Invalid function type. Must be one of: {', '.join(PATTERN_CATEGORIES)}")

        if request.security_level and request.security_level not in SECURITY_LEVELS:
            raise GenerationError(f"Invalid security level. Must be one of: {', '.join(SECURITY_LEVELS)}")

    def _find_best_pattern(self, request: GenerationRequest) -> Pattern | None:
        matches = self.matcher.find_patterns_for_generation(
            request.description, request.server_type, request.function_type
        )
        if not matches and request.function_type:
            # Broader retry without the category filter
            matches = self.matcher.find_patterns_for_generation(request.description, request.server_type)

        return self._select_pattern(matches, request.security_level)

    def _select_pattern(self, matches: list[PatternMatch], security_level: str | None) -> Pattern | None:
        """First match the caller is privileged enough to use."""
        for match in matches:
            pattern = self.store.get_pattern(match.pattern_id)
            if pattern is None:
                continue
            if security_level and SECURITY_LEVELS.index(security_level) < SECURITY_LEVELS.index(pattern.security_level):
                continue
            return pattern
        return None

    def _render(self, pattern: Pattern, values: dict[str, str]) -> str:
        """Substitute {{name}} placeholders with values or parameter defaults."""
        resolved: dict[str, str] = {}

        for param in pattern.parameters:
            value = values.get(param.name, param.default_value)
            if value is None:
                if param.required:
                    raise GenerationError(f"Missing required parameter: {param.name}")
                value = ""
            if param.validation and value:
                try:
                    valid = re.fullmatch(param.validation, value) is not None
                except re.error:
                    logger.warning("parameter_validation_invalid", pattern_id=pattern.id, parameter=param.name)
                    valid = True
                if not valid:
                    raise GenerationError(f"Parameter {param.name} does not match {param.validation}")
            resolved[param.name] = value

        # Placeholders without a declared parameter take the supplied value as-is
        for name, value in values.items():
            resolved.setdefault(name, value)

        def substitute(match: re.Match) -> str:
            name = match.group(1)
            return resolved.get(name, match.group(0))

        return PLACEHOLDER_PATTERN.sub(substitute, pattern.code_template)

    def _explain(self, pattern: Pattern) -> str:
        explanation = f"{pattern.name}: {pattern.description}"
        if pattern.parameters:
            params = ", ".join(f"{p.name} ({p.description or p.type})" for p in pattern.parameters)
            explanation += f"\nParameters: {params}"
        return explanation

    def _security_notes(self, pattern: Pattern) -> str:
        if pattern.security_level in ("public", "player"):
            return ""
        return f"Requires {pattern.security_level} permissions to run."
