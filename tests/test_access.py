"""
Tests for the AccessFilter.

Tests verify that:
    - Missing rule sets allow everything / block nothing
    - Literal and pattern modes match as documented
    - Blocked names are always rejected, even when allowed
    - Legacy option names still work, with a DeprecationWarning
    - Bad patterns fail with ConfigurationError at first use
"""

import pytest

from limetab.access import AccessFilter, compile_pattern
from limetab.errors import ConfigurationError


class TestDefaults:
    """A filter without rules lets everything through."""

    def test_no_rules_allows_all(self):
        f = AccessFilter()
        assert f.is_allowed("Q1")
        assert f.is_allowed("")
        assert f.is_unrestricted

    def test_from_empty_options(self):
        assert AccessFilter.from_options({}).is_allowed("anything")
        assert AccessFilter.from_options(None).is_allowed("anything")


class TestLiteralRules:
    """Lists of names are exact-membership rules."""

    def test_allowed_list(self):
        f = AccessFilter(allowed=["Q1", "Q2"])
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q3")
        assert not f.is_allowed("Q10")

    def test_blocked_list(self):
        f = AccessFilter(blocked=["Q2"])
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q2")

    def test_list_is_not_a_pattern(self):
        """A list entry that looks like a regex is still a literal."""
        f = AccessFilter(allowed=["Q.*"])
        assert not f.is_allowed("Q1")
        assert f.is_allowed("Q.*")

    def test_block_vetoes_allow(self):
        f = AccessFilter(allowed=["Q1", "Q2"], blocked=["Q2"])
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q2")

    @pytest.mark.parametrize("allowed_is_pattern", [True, False])
    @pytest.mark.parametrize("blocked_is_pattern", [True, False])
    def test_block_vetoes_allow_in_every_mode(self, allowed_is_pattern, blocked_is_pattern):
        allowed = "^Q1$" if allowed_is_pattern else ["Q1"]
        blocked = "^Q1$" if blocked_is_pattern else ["Q1"]
        f = AccessFilter(
            allowed=allowed,
            blocked=blocked,
            allowed_is_pattern=allowed_is_pattern,
            blocked_is_pattern=blocked_is_pattern,
        )
        assert not f.is_allowed("Q1")


class TestPatternRules:
    """Strings default to regular-expression rules."""

    def test_string_defaults_to_pattern(self):
        f = AccessFilter(allowed=r"^Q\d+$")
        assert f.allowed_is_pattern
        assert f.is_allowed("Q1")
        assert f.is_allowed("Q10")
        assert not f.is_allowed("QX")

    def test_pattern_searches_anywhere(self):
        f = AccessFilter(blocked="time")
        assert not f.is_allowed("interviewtime")
        assert f.is_allowed("Q1")

    def test_pcre_delimiters_and_flags(self):
        f = AccessFilter(allowed="/^q\\d+$/i")
        assert f.is_allowed("Q5")
        assert not f.is_allowed("Q5x")

    def test_string_forced_literal(self):
        f = AccessFilter(allowed="Q1", allowed_is_pattern=False)
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q10")

    def test_pattern_list_matches_any(self):
        f = AccessFilter(allowed=["^Q1$", "^Q2$"], allowed_is_pattern=True)
        assert f.is_allowed("Q2")
        assert not f.is_allowed("Q3")

    def test_bad_pattern_fails_at_first_use(self):
        f = AccessFilter(allowed="Q(")  # construction succeeds
        with pytest.raises(ConfigurationError):
            f.is_allowed("Q1")
        with pytest.raises(ConfigurationError):
            f.is_allowed("Q1")

    def test_compile_pattern_caches(self):
        assert compile_pattern("^Q") is compile_pattern("^Q")


class TestOptions:
    """Option-mapping construction."""

    def test_camel_case_flags(self):
        f = AccessFilter.from_options({"allowed": ["Q1"], "allowedIsPattern": True})
        assert f.allowed_is_pattern
        assert f.is_allowed("Q10")

    def test_snake_case_flags(self):
        f = AccessFilter.from_options({"blocked": "Q1", "blocked_is_pattern": False})
        assert f.is_allowed("Q10")
        assert not f.is_allowed("Q1")

    def test_whitelist_is_deprecated(self):
        with pytest.warns(DeprecationWarning, match="whitelist"):
            f = AccessFilter.from_options({"whitelist": ["Q1"]})
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q2")

    def test_blacklist_does_not_override_blocked(self):
        with pytest.warns(DeprecationWarning, match="blacklist"):
            f = AccessFilter.from_options({"blacklist": ["Q1"], "blocked": ["Q2"]})
        assert f.is_allowed("Q1")
        assert not f.is_allowed("Q2")

    def test_non_bool_flag_rejected(self):
        with pytest.raises(ConfigurationError):
            AccessFilter.from_options({"allowed": "Q1", "allowedIsPattern": "yes"})

    def test_wrong_rule_type_rejected(self):
        with pytest.raises(ConfigurationError):
            AccessFilter(allowed=42)
        with pytest.raises(ConfigurationError):
            AccessFilter(blocked=["Q1", 2])

    def test_filter_is_callable(self):
        f = AccessFilter(blocked=["Q2"])
        assert list(filter(f, ["Q1", "Q2", "Q3"])) == ["Q1", "Q3"]
