"""
Pydantic models for the MUSHCODE MCP Server.

Contains the knowledge entities (patterns, dialects, security rules, examples,
learning paths), the query/result models returned by the matching engine
and the results of the code analysis engines.

Entities are frozen: the store replaces them wholesale, never field by field.
They serialize with camelCase names (the snapshot format) and accept either
camelCase or snake_case on input.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PatternCategory = Literal["command", "function", "trigger", "attribute", "utility"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
SecurityLevel = Literal["public", "player", "builder", "wizard", "god"]
Severity = Literal["low", "medium", "high", "critical"]
RuleCategory = Literal["injection", "permission", "resource", "logic", "data"]
ResourceType = Literal["documentation", "tutorial", "reference", "community"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KnowledgeEntity(BaseModel):
    """Base for every snapshot-facing record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ============== Patterns ==============

class Parameter(KnowledgeEntity):
    """A placeholder of a pattern template, or an argument of a library function."""

    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    default_value: str | None = None
    validation: str | None = None  # regex


class Pattern(KnowledgeEntity):
    """Reusable, parameterized MUSHCODE template."""

    id: str
    name: str
    description: str = ""
    category: PatternCategory
    code_template: str
    parameters: list[Parameter] = Field(default_factory=list)
    server_compatibility: list[str] = Field(default_factory=list)
    security_level: SecurityLevel = "public"
    examples: list[str] = Field(default_factory=list)
    related_patterns: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "beginner"
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ============== Server dialects ==============

class SyntaxExample(KnowledgeEntity):
    before: str
    after: str


class SyntaxRule(KnowledgeEntity):
    """Server-specific syntax variation."""

    rule_id: str
    description: str = ""
    pattern: str
    replacement: str | None = None
    server_specific: bool = True
    examples: SyntaxExample | None = None


class Feature(KnowledgeEntity):
    name: str
    description: str = ""
    syntax: str = ""
    availability: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    limitations: list[str] | None = None


class EscalationRule(KnowledgeEntity):
    from_level: str = Field(alias="from")
    to: str
    conditions: list[str] = Field(default_factory=list)


class SecurityModel(KnowledgeEntity):
    permission_levels: list[str] = Field(default_factory=list)
    default_level: str = "player"
    escalation_rules: list[EscalationRule] = Field(default_factory=list)
    restricted_functions: list[str] = Field(default_factory=list)


class FunctionDefinition(KnowledgeEntity):
    name: str
    description: str = ""
    syntax: str = ""
    parameters: list[Parameter] = Field(default_factory=list)
    return_type: str = "string"
    permissions: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    notes: list[str] | None = None
    deprecated: bool | None = None
    alternative_to: str | None = None


class DialectDocumentation(KnowledgeEntity):
    url: str | None = None
    version: str | None = None
    last_updated: datetime | None = None


class Dialect(KnowledgeEntity):
    """A named server variant of MUSHCODE, keyed by name."""

    name: str
    version: str = ""
    description: str = ""
    syntax_variations: list[SyntaxRule] = Field(default_factory=list)
    unique_features: list[Feature] = Field(default_factory=list)
    security_model: SecurityModel = Field(default_factory=SecurityModel)
    function_library: list[FunctionDefinition] = Field(default_factory=list)
    common_patterns: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
    documentation: DialectDocumentation = Field(default_factory=DialectDocumentation)


# ============== Security rules ==============

class RuleExamples(KnowledgeEntity):
    vulnerable: str = ""
    secure: str = ""
    explanation: str = ""


class SecurityRule(KnowledgeEntity):
    """Regex-based detector for an unsafe code idiom."""

    rule_id: str
    name: str
    description: str = ""
    severity: Severity
    category: RuleCategory
    pattern: str
    recommendation: str = ""
    examples: RuleExamples = Field(default_factory=RuleExamples)
    affected_servers: list[str] = Field(default_factory=list)  # empty = every server
    cwe_id: str | None = None
    references: list[str] = Field(default_factory=list)


# ============== Examples & learning paths ==============

class ExampleSource(KnowledgeEntity):
    url: str
    author: str | None = None
    license: str | None = None


class CodeExample(KnowledgeEntity):
    """Worked code example used for teaching and similarity lookups."""

    id: str
    title: str
    description: str = ""
    code: str
    explanation: str = ""
    difficulty: Difficulty = "beginner"
    category: str = "general"
    tags: list[str] = Field(default_factory=list)
    server_compatibility: list[str] = Field(default_factory=list)
    related_concepts: list[str] = Field(default_factory=list)
    prerequisites: list[str] | None = None
    learning_objectives: list[str] = Field(default_factory=list)
    source: ExampleSource | None = None


class LearningStep(KnowledgeEntity):
    step_number: int
    title: str
    description: str = ""
    example_ids: list[str] = Field(default_factory=list)
    exercises: list[str] | None = None
    objectives: list[str] = Field(default_factory=list)


class LearningResource(KnowledgeEntity):
    type: ResourceType
    title: str
    url: str
    description: str | None = None


class LearningPath(KnowledgeEntity):
    id: str
    name: str = ""
    description: str = ""
    difficulty: Difficulty = "beginner"
    estimated_time: str = ""
    prerequisites: list[str] = Field(default_factory=list)
    steps: list[LearningStep] = Field(default_factory=list)
    resources: list[LearningResource] = Field(default_factory=list)


# ============== Queries & results ==============

class KnowledgeQuery(BaseModel):
    """Free-text query with optional AND-combined filters."""

    query: str
    category: str | None = None
    server_type: str | None = None
    difficulty: str | None = None
    tags: list[str] | None = None
    limit: int | None = None
    include_patterns: bool = True
    include_examples: bool = True
    fuzzy_match: bool = False


class PatternMatch(BaseModel):
    """Model for a scored pattern hit."""

    pattern_id: str
    confidence: float
    relevance: float
    matched_terms: list[str]


class ExampleMatch(BaseModel):
    """Model for a scored example hit."""

    example_id: str
    relevance: float
    matched_terms: list[str]


class SearchResult(BaseModel):
    """Model for the combined result of a knowledge search."""

    patterns: list[PatternMatch] = Field(default_factory=list)
    examples: list[ExampleMatch] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    total_results: int = 0
    execution_time_ms: float = 0.0


class TemplateValidation(BaseModel):
    valid: bool
    errors: list[str]


class KnowledgeStats(BaseModel):
    patterns: int
    dialects: int
    security_rules: int
    examples: int
    learning_paths: int
    last_updated: datetime
    version: str


class SnapshotMetadata(KnowledgeEntity):
    """Metadata record stored beside the serialized collections."""

    version: str
    last_updated: datetime
    total_files: int = 0
    sources: list[str] = Field(default_factory=list)


class GenerationRequest(BaseModel):
    """Model for a code generation request."""

    description: str
    server_type: str | None = None
    function_type: str | None = None
    security_level: str | None = None
    parameters: dict[str, str] = Field(default_factory=dict)
    include_comments: bool = False


class GenerationResult(BaseModel):
    """Model for the result of a generation request."""

    code: str
    explanation: str
    usage_example: str
    compatibility: list[str]
    pattern_used: str
    security_notes: str = ""
    warnings: list[str] = Field(default_factory=list)


# ============== Code analysis results ==============

IssueSeverity = Literal["error", "warning", "info"]
ImprovementType = Literal["performance", "readability", "maintainability"]
SectionComplexity = Literal["simple", "moderate", "complex"]


class CodeIssue(BaseModel):
    """Model for a syntax problem at a line and column."""

    line: int
    column: int
    message: str
    severity: IssueSeverity
    code: str
    suggestion: str = ""


class CodeImprovement(BaseModel):
    """Model for a best-practice suggestion on one line."""

    type: ImprovementType
    description: str
    line: int
    impact: str = ""


class CodeValidation(BaseModel):
    """Model for the result of validating code."""

    is_valid: bool
    syntax_errors: list[CodeIssue] = Field(default_factory=list)
    security_warnings: list[SecurityRule] = Field(default_factory=list)
    best_practices: list[CodeImprovement] = Field(default_factory=list)
    compatibility_notes: list[str] = Field(default_factory=list)
    total_lines: int = 0
    complexity_score: int = 0
    security_score: int = 100
    maintainability_score: int = 100


class CodeSection(BaseModel):
    """Model for the explanation of one line of code."""

    line_number: int
    code: str
    explanation: str
    concepts: list[str] = Field(default_factory=list)
    functions: list[str] = Field(default_factory=list)
    complexity: SectionComplexity = "simple"
    security_notes: list[str] = Field(default_factory=list)


class CodeExplanation(BaseModel):
    """Model for the result of explaining code."""

    explanation: str
    sections: list[CodeSection]
    concepts_used: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "beginner"
    related_examples: list[str] = Field(default_factory=list)
    security_considerations: list[str] = Field(default_factory=list)
    performance_notes: list[str] = Field(default_factory=list)


class FormatResult(BaseModel):
    formatted_code: str
    changes_made: list[str] = Field(default_factory=list)
    style_notes: str = ""


class CompressionResult(BaseModel):
    """Model for the result of compressing code."""

    compressed_code: str
    original_size: int
    compressed_size: int
    compression_ratio: float
    optimizations_applied: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
