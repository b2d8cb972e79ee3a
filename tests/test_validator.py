"""
Tests for MUSHCODE validation.
"""

import pytest

from mushcode_mcp.models import Dialect, FunctionDefinition
from mushcode_mcp.utils import InputValidationError


@pytest.fixture
def validator(store, matcher):
    """Create a MushcodeValidator over the populated store."""
    from mushcode_mcp.validator import MushcodeValidator
    return MushcodeValidator(store, matcher)


def issue_codes(result) -> list[str]:
    return [issue.code for issue in result.syntax_errors]


# ============== Tests for bracket checks ==============

class TestBrackets:
    """Tests for (), [] and {} matching."""

    def test_unclosed_bracket(self, validator):
        """Test that an unclosed [ is an error at its column."""
        result = validator.validate("[switch(%0,a,b)")

        assert result.is_valid is False
        assert issue_codes(result) == ["UNCLOSED_BRACKET"]
        assert result.syntax_errors[0].column == 1
        assert result.syntax_errors[0].message == "Unclosed ["

    def test_unmatched_closing(self, validator):
        """Test a stray closing parenthesis."""
        result = validator.validate("think add(1,2))")

        assert issue_codes(result) == ["UNMATCHED_BRACKET"]
        assert result.syntax_errors[0].column == 15

    def test_mismatched_brackets(self, validator):
        """Test a brace closing a parenthesis."""
        result = validator.validate("[add(1,2})")

        assert issue_codes(result) == ["MISMATCHED_BRACKET", "MISMATCHED_BRACKET"]
        assert result.syntax_errors[0].message == "Mismatched brackets: expected ), got }"

    def test_brackets_in_strings_ignored(self, validator):
        """Test that quoted text is not bracket-checked."""
        result = validator.validate('think "(unclosed" ok')

        assert result.is_valid is True
        assert result.syntax_errors == []

    def test_comment_lines_skipped(self, validator):
        """Test that @@ lines are not syntax-checked."""
        assert validator.validate("@@ [unclosed").is_valid is True

    def test_excessive_nesting(self, validator):
        """Test the nesting depth warning."""
        result = validator.validate("[" * 11 + "]" * 11)

        assert result.is_valid is True
        assert issue_codes(result) == ["EXCESSIVE_NESTING"]
        assert result.syntax_errors[0].message == "Excessive nesting depth: 11 levels"


# ============== Tests for line checks ==============

class TestLineChecks:
    """Tests for strings, attributes, variables and spacing."""

    def test_unterminated_string(self, validator):
        """Test an unterminated string literal."""
        result = validator.validate('think "abc')

        assert result.is_valid is False
        assert issue_codes(result) == ["UNTERMINATED_STRING"]
        assert result.syntax_errors[0].column == 7

    def test_invalid_attribute_name(self, validator):
        """Test that hyphenated attribute names are flagged."""
        result = validator.validate("&bad-name me=1")

        assert result.is_valid is False
        assert issue_codes(result) == ["INVALID_ATTR_NAME"]

    def test_variable_number_too_high(self, validator):
        """Test that %100 is a warning, not an error."""
        result = validator.validate("think %100")

        assert result.is_valid is True
        assert "VAR_NUMBER_TOO_HIGH" in issue_codes(result)

    def test_trailing_whitespace_is_info(self, validator):
        """Test that trailing whitespace does not invalidate code."""
        result = validator.validate("think 1 ")

        assert result.is_valid is True
        assert result.syntax_errors[0].severity == "info"
        assert issue_codes(result) == ["TRAILING_WHITESPACE"]

    def test_space_after_paren(self, validator):
        """Test the space-after-parenthesis warning."""
        result = validator.validate("think add( 1,2)")

        assert issue_codes(result) == ["SPACE_AFTER_PAREN"]

    def test_control_character(self, validator):
        """Test that control characters are errors."""
        result = validator.validate("think \x07")

        assert result.is_valid is False
        assert result.syntax_errors[0].message == "Invalid control character: 7"

    def test_line_length_only_in_strict_mode(self, validator):
        """Test that long lines are reported only when strict."""
        code = "think " + "a" * 195

        assert "LINE_TOO_LONG" not in issue_codes(validator.validate(code))
        assert "LINE_TOO_LONG" in issue_codes(validator.validate(code, strict=True))

    def test_empty_code_rejected(self, validator):
        """Test that blank code raises."""
        with pytest.raises(InputValidationError, match="code must be a non-empty string"):
            validator.validate("   ")


# ============== Tests for dialect checks ==============

class TestDialectChecks:
    """Tests for function library and restricted function checks."""

    @pytest.fixture
    def old_dialect(self, store):
        store.add_dialect(Dialect(
            name="OldMUSH",
            function_library=[
                FunctionDefinition(name="oldfn", deprecated=True, alternative_to="newfn"),
                FunctionDefinition(name="newfn", notes=["Changed in version 2"]),
            ],
        ))
        return "OldMUSH"

    def test_deprecated_function(self, validator, old_dialect):
        """Test deprecated function warning and notes."""
        result = validator.validate("think oldfn(1)", server_type=old_dialect)

        assert issue_codes(result) == ["DEPRECATED_FUNCTION"]
        assert result.syntax_errors[0].suggestion == "Use newfn instead"
        assert result.compatibility_notes == ["oldfn is deprecated in OldMUSH", "Consider using newfn instead"]

    def test_unknown_function(self, validator, old_dialect):
        """Test that functions missing from the library are flagged."""
        result = validator.validate("think frob(1)", server_type=old_dialect)

        assert issue_codes(result) == ["UNKNOWN_FUNCTION"]
        assert result.is_valid is True

    def test_version_note(self, validator, old_dialect):
        """Test that version notes of called functions are reported."""
        result = validator.validate("think newfn(1)", server_type=old_dialect)

        assert result.compatibility_notes == ["newfn: Changed in version 2"]

    def test_no_unknown_function_without_library(self, validator):
        """Test that a dialect without a function library reports nothing unknown."""
        result = validator.validate("think frob(1)", server_type="PennMUSH")

        assert "UNKNOWN_FUNCTION" not in issue_codes(result)

    def test_restricted_function(self, validator):
        """Test the restricted function note."""
        result = validator.validate("think pcreate(Bob,pw)", server_type="PennMUSH")

        assert "pcreate is restricted in PennMUSH" in result.compatibility_notes


# ============== Tests for security and scores ==============

class TestSecurityAndScores:
    """Tests for the security scan and the scores."""

    def test_security_score(self, validator):
        """Test that a high-severity finding costs 20 points."""
        result = validator.validate("eval(%0)", server_type="PennMUSH")

        assert [rule.rule_id for rule in result.security_warnings] == ["SEC-001"]
        assert result.security_score == 80

    def test_security_checks_disabled(self, validator):
        """Test skipping the security scan."""
        result = validator.validate("eval(%0)", server_type="PennMUSH", check_security=False)

        assert result.security_warnings == []
        assert result.security_score == 100

    def test_switch_without_comment(self, validator):
        """Test the comment suggestion for switch()."""
        bare = validator.validate("[switch(%0,a,b)]")
        commented = validator.validate("@@ pick one\n[switch(%0,a,b)]")

        assert "Complex logic without comments" in [i.description for i in bare.best_practices]
        assert "Complex logic without comments" not in [i.description for i in commented.best_practices]

    def test_best_practices_disabled(self, validator):
        """Test skipping best-practice suggestions."""
        result = validator.validate("[switch(%0,a,b)]", check_best_practices=False)

        assert result.best_practices == []

    def test_scores_in_range(self, validator):
        """Test that every score stays within 0-100."""
        result = validator.validate("\n".join(["[iter(lnum(100),switch(##,1,a,b))]"] * 60))

        assert 0 <= result.complexity_score <= 100
        assert 0 <= result.maintainability_score <= 100
        assert result.total_lines == 60
