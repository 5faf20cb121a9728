"""
Tests for msvsdetect.toolchain.resolver module.
"""

import pytest

from msvsdetect.core.exceptions import (
    ConfigurationError,
    DuplicatePreferenceError,
    NoCompilerFoundError,
    UnknownPreferenceError,
)
from msvsdetect.toolchain.catalog import DEFAULT_PREFERENCE
from msvsdetect.toolchain.models import DirectoryList, EnvironmentMatch, MatchConfidence
from msvsdetect.toolchain.prober import ProbeResult
from msvsdetect.toolchain.resolver import (
    PreferenceResolver,
    classify_token,
    parse_preferences,
    version_tuple,
)
from tests.fixtures.toolchains import make_installation, make_validated


def _probe(name: str) -> ProbeResult:
    return ProbeResult(
        path=DirectoryList.parse(f"C:\\{name}\\bin"),
        include=DirectoryList.parse(f"C:\\{name}\\include"),
        lib=DirectoryList.parse(f"C:\\{name}\\lib"),
    )


def _validated(*specs):
    """Build a validated mapping from (key, version, archs) tuples."""
    validated = {}
    for key, version, archs in specs:
        installation = make_installation(key, version=version)
        for arch in archs:
            compiler = make_validated(installation, arch, _probe(f"{key}-{arch}"))
            validated[compiler.key] = compiler
    return validated


BOTH = ("x86", "x64")


class TestClassifyToken:
    """Tests for classify_token."""

    @pytest.mark.parametrize(
        "token,kind",
        [
            ("@", "environment"),
            ("VS14.0", "package"),
            ("SDK7.1", "package"),
            ("VS17.*", "wildcard"),
            ("17.*", "wildcard"),
            ("VS17.9", "vswhere"),
            ("VS16.11", "vswhere"),
            ("10.0", "version"),
            ("14.0", "version"),
            ("7.1", "version"),
        ],
    )
    def test_known_tokens(self, token, kind):
        """Test every token form."""
        assert classify_token(token) == kind

    @pytest.mark.parametrize("token", ["VS13.0", "VS99.*", "VS14.5", "gcc", "6.0", "SDK9.9", "*"])
    def test_unknown_tokens(self, token):
        """Test tokens naming nothing."""
        assert classify_token(token) is None


class TestParsePreferences:
    """Tests for parse_preferences."""

    def test_semicolon_separated(self):
        """Test splitting."""
        assert parse_preferences("@;VS17.*;;VS14.0") == ("@", "VS17.*", "VS14.0")

    def test_token_sequence(self):
        """Test positional argument input."""
        assert parse_preferences(["VS14.0", "10.0;9.0"]) == ("VS14.0", "10.0", "9.0")

    def test_whitespace_separated(self):
        """Test space-separated input."""
        assert parse_preferences("VS14.0 VS12.0") == ("VS14.0", "VS12.0")

    def test_default_preference(self):
        """Test the built-in list."""
        assert len(parse_preferences(DEFAULT_PREFERENCE)) == 12

    def test_duplicate_rejected(self):
        """Test that a repeated token is a configuration error."""
        with pytest.raises(DuplicatePreferenceError) as exc_info:
            parse_preferences("VS14.0;@;VS14.0")

        assert exc_info.value.token == "VS14.0"
        assert exc_info.value.exit_code == 2

    def test_duplicate_checked_before_unknown(self):
        """Test that duplicates are reported even alongside unknown tokens."""
        with pytest.raises(DuplicatePreferenceError):
            parse_preferences("bogus;@;@")

    def test_unknown_rejected(self):
        """Test that every unknown token is reported."""
        with pytest.raises(UnknownPreferenceError) as exc_info:
            parse_preferences("VS14.0;VS13.0;clang")

        assert exc_info.value.tokens == ["VS13.0", "clang"]
        assert isinstance(exc_info.value, ConfigurationError)


class TestExpand:
    """Tests for PreferenceResolver.expand."""

    def test_wildcard_newest_first(self):
        """Test wildcard expansion order."""
        validated = _validated(
            ("VS17.4", "17.4.33213.308", BOTH),
            ("VS17.10", "17.10.35004.147", BOTH),
            ("VS17.9", "17.9.34728.123", BOTH),
        )

        sequence = PreferenceResolver().expand(("VS17.*",), validated)

        assert sequence == ["VS17.10", "VS17.9", "VS17.4"]

    def test_alias_wildcard(self):
        """Test '17.*' behaves like 'VS17.*'."""
        validated = _validated(("VS17.9", "17.9.1", BOTH))

        assert PreferenceResolver().expand(("17.*",), validated) == ["VS17.9"]

    def test_version_matches_vs_and_sdks(self):
        """Test a runtime version token."""
        validated = _validated(("SDK7.1", "7.1.7600", BOTH), ("VS10.0", "10.0", BOTH))

        assert PreferenceResolver().expand(("10.0",), validated) == ["VS10.0", "SDK7.1"]

    def test_no_repeats(self):
        """Test that a key reached twice appears once."""
        validated = _validated(("SDK7.1", "7.1", BOTH))

        assert PreferenceResolver().expand(("SDK7.1", "10.0"), validated) == [
            "SDK7.1",
            "VS10.0",
        ]


class TestResolve:
    """Tests for PreferenceResolver.resolve."""

    def test_first_available_wins(self):
        """Test plain preference order."""
        validated = _validated(("VS12.0", "12.0", BOTH), ("VS14.0", "14.0", BOTH))

        resolution = PreferenceResolver().resolve(
            parse_preferences("VS14.0;VS12.0"), validated, EnvironmentMatch()
        )

        assert resolution.key == "VS14.0"
        assert [c.arch for c in resolution.compilers] == ["x86", "x64"]
        assert not resolution.from_environment

    def test_wildcard_beats_later_entries(self):
        """Test that a VS17 key wins over VS14.0."""
        validated = _validated(("VS14.0", "14.0", BOTH), ("VS17.9", "17.9.34728.123", BOTH))

        resolution = PreferenceResolver().resolve(
            parse_preferences(["VS17.*", "VS14.0"]), validated, EnvironmentMatch()
        )

        assert resolution.key.startswith("VS17.")
        assert resolution.name == "Visual Studio 2022"

    def test_both_architectures_required_when_unpinned(self):
        """Test that an x86-only package is skipped."""
        validated = _validated(("VS7.1", "7.1", ("x86",)), ("VS8.0", "8.0", BOTH))

        resolution = PreferenceResolver().resolve(
            parse_preferences("7.1;8.0"), validated, EnvironmentMatch()
        )

        assert resolution.key == "VS8.0"

    def test_pinned_architecture(self):
        """Test --arch x86."""
        validated = _validated(("VS7.1", "7.1", ("x86",)), ("VS8.0", "8.0", BOTH))

        resolution = PreferenceResolver().resolve(
            parse_preferences("7.1;8.0"), validated, EnvironmentMatch(), arch="x86"
        )

        assert resolution.key == "VS7.1"
        assert len(resolution.compilers) == 1

    def test_environment_wins_regardless_of_position(self):
        """Test that a strongly matched environment compiler beats earlier entries."""
        validated = _validated(("VS14.0", "14.0", BOTH), ("VS17.9", "17.9.1", BOTH))
        match = EnvironmentMatch(MatchConfidence.STRONG, "VS14.0")

        resolution = PreferenceResolver().resolve(
            parse_preferences("VS17.*;@"), validated, match
        )

        assert resolution.key == "VS14.0"
        assert resolution.from_environment

    def test_environment_ignored_without_marker(self):
        """Test that the environment compiler needs '@' in the list."""
        validated = _validated(("VS14.0", "14.0", BOTH), ("VS17.9", "17.9.1", BOTH))
        match = EnvironmentMatch(MatchConfidence.STRONG, "VS14.0")

        resolution = PreferenceResolver().resolve(
            parse_preferences("VS17.*;VS14.0"), validated, match
        )

        assert resolution.key == "VS17.9"
        assert not resolution.from_environment

    def test_environment_package_chosen_normally_is_flagged(self):
        """Test from_environment when the environment package wins on order."""
        validated = _validated(("VS14.0", "14.0", BOTH))
        match = EnvironmentMatch(MatchConfidence.STRONG, "VS14.0")

        resolution = PreferenceResolver().resolve(parse_preferences("VS14.0"), validated, match)

        assert resolution.from_environment

    def test_weak_environment_match_wins(self):
        """Test that a sole weak match is adopted."""
        validated = _validated(("VS12.0", "12.0", BOTH), ("VS14.0", "14.0", BOTH))
        match = EnvironmentMatch(MatchConfidence.WEAK, "VS12.0")

        resolution = PreferenceResolver().resolve(
            parse_preferences("VS14.0;@"), validated, match
        )

        assert resolution.key == "VS12.0"

    def test_ambiguous_environment_falls_through(self):
        """Test that an unidentified environment compiler is skipped."""
        validated = _validated(("VS14.0", "14.0", BOTH))

        resolution = PreferenceResolver().resolve(
            parse_preferences("@;VS14.0"),
            validated,
            EnvironmentMatch(MatchConfidence.AMBIGUOUS),
        )

        assert resolution.key == "VS14.0"

    def test_environment_missing_architecture_falls_through(self):
        """Test an environment package validated for x64 only."""
        validated = _validated(("VS14.0", "14.0", ("x64",)), ("VS12.0", "12.0", BOTH))
        match = EnvironmentMatch(MatchConfidence.STRONG, "VS14.0")

        resolution = PreferenceResolver().resolve(
            parse_preferences("@;VS12.0"), validated, match
        )

        assert resolution.key == "VS12.0"

    def test_nothing_available(self):
        """Test the no-compiler error."""
        with pytest.raises(NoCompilerFoundError) as exc_info:
            PreferenceResolver().resolve(
                parse_preferences(DEFAULT_PREFERENCE), {}, EnvironmentMatch()
            )

        assert exc_info.value.exit_code == 1

    def test_unlisted_package_never_selected(self):
        """Test that validated packages outside the list are ignored."""
        validated = _validated(("VS14.0", "14.0", BOTH))

        with pytest.raises(NoCompilerFoundError):
            PreferenceResolver().resolve(parse_preferences("VS12.0"), validated, EnvironmentMatch())


def test_version_tuple():
    """Test version ordering keys."""
    assert version_tuple("17.10.35004.147") > version_tuple("17.9.34728.123")
    assert version_tuple("7.1.7600.0.30514") == (7, 1, 7600, 0, 30514)
    assert version_tuple("") == (0,)
