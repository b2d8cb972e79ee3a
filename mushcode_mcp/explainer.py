"""
Code explanation for the MUSHCODE MCP Server.

Describes MUSHCODE line by line: the command or functions each line uses,
the concepts involved, how complex it is and what the security rules say
about it. Similar stored examples are offered as further reading.
"""

import re

import structlog

from .config import DETAIL_LEVELS
from .matcher import PatternMatcher
from .models import CodeExplanation, CodeSection, Dialect
from .store import KnowledgeStore
from .utils import FUNCTION_CALL_PATTERN, InputValidationError, is_comment_line, validate_input_length

logger = structlog.get_logger(__name__)

CONCEPT_PATTERNS = [
    (re.compile(r'@\w+'), "commands"),
    (re.compile(r'&\w+'), "attributes"),
    (re.compile(r'%[0-9qrv]'), "registers"),
    (re.compile(r'%#|%!|%@|%\*|%\+'), "substitutions"),
    (re.compile(r'\$\w+'), "user_commands"),
    (re.compile(r'\bswitch\('), "conditional_logic"),
    (re.compile(r'\biter\('), "iteration"),
    (re.compile(r'\bsetq\('), "variable_assignment"),
    (re.compile(r'\bu\('), "user_functions"),
    (re.compile(r'\btrigger\(|@trigger'), "triggers"),
    (re.compile(r'pemit|remit|oemit'), "messaging"),
    (re.compile(r'\b(?:un)?lock\('), "security"),
    (re.compile(r'\b(?:create|destroy)\('), "object_management"),
    (re.compile(r'\b(?:get|set)\('), "attribute_manipulation"),
    (re.compile(r'\b(?:match|grab)\('), "pattern_matching"),
    (re.compile(r'\bansi\('), "formatting"),
    (re.compile(r'\b(?:rand|die)\('), "randomization"),
    (re.compile(r'\b(?:time|secs)\('), "time_functions"),
    (re.compile(r'\b(?:strlen|mid|left|right)\('), "string_manipulation"),
    (re.compile(r'\b(?:add|sub|mul|div)\('), "arithmetic"),
    (re.compile(r'\b(?:eq|neq|lt|gt)\('), "comparison"),
    (re.compile(r'\b(?:and|or|not)\('), "boolean_logic"),
]

FUNCTION_DESCRIPTIONS = {
    "switch": "evaluates conditions and returns different results",
    "if": "performs conditional logic",
    "iter": "loops through a list of items",
    "setq": "stores a value in a register for later use",
    "get": "retrieves an attribute value from an object",
    "set": "assigns a value to an attribute",
    "pemit": "sends a private message to a player",
    "remit": "sends a message to everyone in a room",
    "u": "calls a user-defined function",
    "strlen": "returns the length of a string",
    "mid": "extracts a substring from a string",
    "add": "performs addition",
    "eq": "tests for equality",
    "and": "performs logical AND",
    "or": "performs logical OR",
}

CONCEPT_DESCRIPTIONS = {
    "registers": {
        "intermediate": "Uses registers (%q, %r, %v) to hold temporary values.",
        "advanced": "Keeps intermediate results in registers so later function calls can reuse them.",
    },
    "substitutions": {
        "intermediate": "Uses substitutions (%#, %!, ...) to reference dynamic values.",
        "advanced": "Relies on substitutions, so the result depends on who runs the code and where.",
    },
    "conditional_logic": {
        "intermediate": "Makes decisions based on data.",
        "advanced": "Branches with switch() to select among several outcomes.",
    },
    "iteration": {
        "intermediate": "Loops through data to process multiple items.",
        "advanced": "Processes whole lists with iter(); cost grows with the list length.",
    },
    "messaging": {
        "intermediate": "Sends messages to players or rooms.",
        "advanced": "Uses the messaging commands to notify players of game events.",
    },
    "security": {
        "intermediate": "Applies locks or permission checks.",
        "advanced": "Controls access with locks; check who may pass them.",
    },
}

# Constructs worth a note even without a matching security rule
RISKY_CONSTRUCTS = [
    (re.compile(r'@shutdown|@restart', re.IGNORECASE), "CRITICAL: Administrative command that affects server operation"),
    (re.compile(r'@force', re.IGNORECASE), "HIGH: @force can bypass normal security restrictions"),
    (re.compile(r'@newpassword|@password', re.IGNORECASE), "HIGH: Password changes need careful permission checks"),
    (re.compile(r'\beval\(|\bufun\(', re.IGNORECASE), "MEDIUM: Dynamic code execution; validate inputs carefully"),
    (re.compile(r'%#'), "LOW: Uses the %# executor reference; make sure permissions are checked"),
]

COMPLEXITY_RANK = {"simple": 1, "moderate": 2, "complex": 3}


class MushcodeExplainer:
    """Line-by-line explanations of MUSHCODE."""

    def __init__(self, store: KnowledgeStore, matcher: PatternMatcher | None = None):
        self.store = store
        self.matcher = matcher or PatternMatcher(store)

    def explain(
        self,
        code: str,
        detail_level: str = "intermediate",
        server_type: str | None = None,
        include_examples: bool = True,
    ) -> CodeExplanation:
        """Explain code.

        Raises:
            InputValidationError: If the code is empty or too long, or the
                detail level is unknown
        """
        validate_input_length(code, "code")
        if detail_level not in DETAIL_LEVELS:
            raise InputValidationError(f"Invalid detail level. Must be one of: {', '.join(DETAIL_LEVELS)}")

        dialect = self.store.get_dialect(server_type) if server_type else None
        sections = [
            self._explain_line(number, line.strip(), detail_level, server_type, dialect)
            for number, line in enumerate(code.split("\n"), start=1)
            if line.strip()
        ]

        concepts = list(dict.fromkeys(c for section in sections for c in section.concepts))
        security = list(dict.fromkeys(n for section in sections for n in section.security_notes))
        related: list[str] = []
        if include_examples:
            related = [f"{e.title}: {e.description}" for e in self.matcher.find_similar_examples(code, server_type, 3)]

        logger.info("code_explained", sections=len(sections), concepts=len(concepts), server_type=server_type)
        return CodeExplanation(
            explanation=self._overall_explanation(sections, server_type),
            sections=sections,
            concepts_used=concepts,
            difficulty=self._difficulty(sections),
            related_examples=related,
            security_considerations=security,
            performance_notes=self._performance_notes(sections),
        )

    def _explain_line(
        self,
        number: int,
        line: str,
        detail_level: str,
        server_type: str | None,
        dialect: Dialect | None,
    ) -> CodeSection:
        if is_comment_line(line):
            return CodeSection(line_number=number, code=line, explanation="This is a comment and is not executed.")

        functions = list(dict.fromkeys(name.lower() for name in FUNCTION_CALL_PATTERN.findall(line)))
        concepts = [concept for pattern, concept in CONCEPT_PATTERNS if pattern.search(line)]

        notes = [
            f"{rule.severity.upper()}: {rule.description} - {rule.recommendation}"
            for rule in self.matcher.find_security_violations(line, server_type)
        ]
        notes.extend(note for pattern, note in RISKY_CONSTRUCTS if pattern.search(line))

        if line.startswith("@"):
            parts = [f"This is a MUSHCODE command: {line.split()[0]}"]
        elif line.startswith("&"):
            parts = ["This sets an attribute on an object to store data or code."]
        elif "(" in line and ")" in line:
            parts = ["This line contains function calls that process data and return results."]
        else:
            parts = ["This is a MUSHCODE expression."]

        described = self._describe_functions(functions, dialect)
        if described:
            parts.append(f"Functions used: {', '.join(described)}.")

        if detail_level != "basic":
            parts.extend(
                CONCEPT_DESCRIPTIONS[concept][detail_level]
                for concept in concepts
                if concept in CONCEPT_DESCRIPTIONS
            )

        return CodeSection(
            line_number=number,
            code=line,
            explanation=" ".join(parts),
            concepts=concepts,
            functions=functions,
            complexity=self._complexity(line, functions, concepts),
            security_notes=notes,
        )

    def _describe_functions(self, functions: list[str], dialect: Dialect | None) -> list[str]:
        library = {f.name.lower(): f.description for f in dialect.function_library if f.description} if dialect else {}
        described = []
        for name in functions:
            description = library.get(name) or FUNCTION_DESCRIPTIONS.get(name)
            if description:
                described.append(f"{name}() {description}")
        return described

    def _complexity(self, line: str, functions: list[str], concepts: list[str]) -> str:
        score = (len(functions) + len(concepts) + line.count("(")) * 0.5
        if "switch(" in line:
            score += 1
        if "iter(" in line:
            score += 2
        if re.search(r'\bu\(', line):
            score += 1
        if "eval(" in line:
            score += 3

        if score <= 2:
            return "simple"
        if score <= 5:
            return "moderate"
        return "complex"

    def _overall_explanation(self, sections: list[CodeSection], server_type: str | None) -> str:
        code_sections = [s for s in sections if not is_comment_line(s.code)]

        if any(s.code.startswith("@") for s in code_sections):
            parts = ["This MUSHCODE runs commands that act on the game world."]
        elif any(s.code.startswith("&") for s in code_sections):
            parts = ["This MUSHCODE defines attributes that store data or code on objects."]
        elif any(s.functions for s in code_sections):
            parts = ["This MUSHCODE consists of function calls that process data and return results."]
        else:
            parts = ["This MUSHCODE performs simple operations."]

        complex_count = sum(1 for s in sections if s.complexity == "complex")
        moderate_count = sum(1 for s in sections if s.complexity == "moderate")
        if complex_count:
            parts.append(f"It has {complex_count} complex line(s) that need advanced MUSHCODE knowledge.")
        elif moderate_count:
            parts.append(f"It has {moderate_count} moderately complex line(s) suited to intermediate developers.")
        else:
            parts.append("It is straightforward and suitable for beginners.")

        if server_type:
            parts.append(f"Explained for the {server_type} dialect.")
        return " ".join(parts)

    def _difficulty(self, sections: list[CodeSection]) -> str:
        average = sum(COMPLEXITY_RANK[s.complexity] for s in sections) / len(sections)
        if average <= 1.3:
            return "beginner"
        if average <= 2.3:
            return "intermediate"
        return "advanced"

    def _performance_notes(self, sections: list[CodeSection]) -> list[str]:
        notes = []
        if any("iter" in s.functions for s in sections):
            notes.append("Consider optimizing iterations for better performance with large lists.")
        if any(s.code.count("(") > 3 for s in sections):
            notes.append("Deeply nested functions may be slow; consider breaking them into smaller parts.")
        if any("eval(" in s.code for s in sections):
            notes.append("Dynamic evaluation is slow; use it sparingly and cache results.")
        return notes
