"""
Pytest configuration and fixtures for mushcode-mcp tests.
"""

import pytest

from mushcode_mcp.models import (
    CodeExample,
    Dialect,
    Feature,
    LearningPath,
    LearningStep,
    Parameter,
    Pattern,
    RuleExamples,
    SecurityModel,
    SecurityRule,
)
from mushcode_mcp.store import KnowledgeStore


def make_patterns() -> list[Pattern]:
    return [
        # Pattern 1: Object creation, references one existing and one missing pattern
        Pattern(
            id="create-object",
            name="Create Object",
            description="Creates a new object with name and description",
            category="command",
            code_template="@create {{name}}={{description}}",
            parameters=[
                Parameter(name="name", description="Object name"),
                Parameter(name="description", description="Object description", required=False,
                          default_value="A new object"),
            ],
            server_compatibility=["PennMUSH", "TinyMUSH"],
            security_level="builder",
            examples=["@create sword=A sharp blade"],
            related_patterns=["set-attribute", "missing-pattern"],
            tags=["creation", "object", "build"],
            difficulty="beginner",
        ),
        # Pattern 2: Attribute setter with a validated parameter
        Pattern(
            id="set-attribute",
            name="Set Attribute",
            description="Stores a value in an attribute on an object",
            category="attribute",
            code_template="&{{attr}} {{object}}={{value}}",
            parameters=[
                Parameter(name="attr", description="Attribute name", validation=r"[A-Za-z_][A-Za-z0-9_.-]*"),
                Parameter(name="object", description="Target object", required=False, default_value="me"),
                Parameter(name="value", description="Stored value"),
            ],
            server_compatibility=["PennMUSH", "TinyMUSH", "RhostMUSH"],
            security_level="player",
            tags=["attribute", "object", "data"],
            difficulty="beginner",
        ),
        # Pattern 3: Function-style conditional
        Pattern(
            id="switch-command",
            name="Switch Command",
            description="Branches on a value with switch",
            category="function",
            code_template="[switch({{value}},{{case}},{{result}},{{fallback}})]",
            server_compatibility=["PennMUSH"],
            security_level="public",
            tags=["conditional", "switch", "logic"],
            difficulty="intermediate",
        ),
        # Pattern 4: Room digging, shares two tags with create-object
        Pattern(
            id="dig-room",
            name="Dig Room",
            description="Creates a new room and links exits",
            category="command",
            code_template="@dig {{room}}={{exit_to}},{{exit_back}}",
            server_compatibility=["PennMUSH", "TinyMUX"],
            security_level="builder",
            tags=["creation", "room", "build"],
            difficulty="intermediate",
        ),
        # Pattern 5: Mixed-case tags
        Pattern(
            id="test-pattern",
            name="Test Pattern",
            description="A pattern used in tests",
            category="utility",
            code_template="think {{message}}",
            server_compatibility=["RhostMUSH"],
            security_level="public",
            tags=["test", "Object"],
            difficulty="advanced",
        ),
    ]


def make_examples() -> list[CodeExample]:
    return [
        CodeExample(
            id="ex-create",
            title="Creating objects",
            description="Shows how to create an object and set an attribute on it",
            code="@create Sword\n&damage sword=10",
            explanation="@create makes the object, &damage stores a value on it.",
            difficulty="beginner",
            category="building",
            tags=["creation", "object"],
            server_compatibility=["PennMUSH", "TinyMUSH"],
            learning_objectives=["Create objects", "Set attributes"],
        ),
        CodeExample(
            id="ex-switch",
            title="Conditional switch",
            description="Pick an output based on the first argument",
            code="[switch(%0,yes,Accepted,no,Rejected,Unknown)]",
            difficulty="intermediate",
            category="functions",
            tags=["conditional", "switch"],
            server_compatibility=["PennMUSH"],
        ),
        CodeExample(
            id="ex-eval",
            title="Dynamic evaluation",
            description="Evaluates user input",
            code="think eval(%0)",
            difficulty="advanced",
            category="functions",
            tags=["eval"],
            server_compatibility=["RhostMUSH"],
        ),
    ]


def make_security_rules() -> list[SecurityRule]:
    return [
        SecurityRule(
            rule_id="SEC-001",
            name="Unsafe Eval",
            description="Detects potentially unsafe eval usage",
            severity="high",
            category="injection",
            pattern=r"\beval\s*\(",
            recommendation="Avoid using eval() with user input",
            examples=RuleExamples(
                vulnerable="eval(%0)",
                secure="switch(%0, case1, action1)",
                explanation="Use switch() instead of eval()",
            ),
            affected_servers=["PennMUSH"],
        ),
        SecurityRule(
            rule_id="SEC-002",
            name="Missing Permission Check",
            description="Commands without proper permission checks",
            severity="medium",
            category="permission",
            pattern=r"@create\s+%\d+\s*=",
            recommendation="Add permission checks before object creation",
            affected_servers=["PennMUSH", "TinyMUSH"],
        ),
        SecurityRule(
            rule_id="SEC-003",
            name="Forced Command",
            description="@force runs commands as another object",
            severity="critical",
            category="permission",
            pattern=r"@force\s",
            recommendation="Restrict @force to wizard-owned objects",
        ),
        SecurityRule(
            rule_id="SEC-004",
            name="Debug Output",
            description="Leftover think statements",
            severity="low",
            category="logic",
            pattern=r"\bthink\b",
            recommendation="Remove debugging output",
        ),
    ]


@pytest.fixture
def store() -> KnowledgeStore:
    """Create a KnowledgeStore populated with test entities."""
    kb = KnowledgeStore()
    for pattern in make_patterns():
        kb.add_pattern(pattern)
    for example in make_examples():
        kb.add_example(example)
    for rule in make_security_rules():
        kb.add_security_rule(rule)

    kb.add_dialect(Dialect(
        name="PennMUSH",
        version="1.8.8",
        description="PennMUSH server",
        unique_features=[Feature(name="regedit", description="Regex substitution")],
        security_model=SecurityModel(
            permission_levels=["player", "builder", "wizard", "god"],
            restricted_functions=["pcreate"],
        ),
        common_patterns=["create-object", "missing-pattern"],
        limitations=["No SQL by default"],
    ))
    kb.add_learning_path(LearningPath(
        id="lp-basics",
        name="Building Basics",
        description="First steps in building",
        steps=[
            LearningStep(step_number=1, title="Make an object", example_ids=["ex-create"]),
            LearningStep(step_number=2, title="Not written yet", example_ids=["ex-missing"]),
        ],
    ))
    return kb


@pytest.fixture
def matcher(store):
    """Create a PatternMatcher over the populated store."""
    from mushcode_mcp.matcher import PatternMatcher
    return PatternMatcher(store)
