"""
Preference list parsing and compiler selection.

A preference list is a ``;``-separated ranking such as
``@;VS17.*;VS14.0;10.0``. Tokens may be:

- ``@``: the compiler already active in the environment
- a catalog key: ``VS14.0``, ``SDK7.1``
- a wildcard major version: ``VS17.*`` (or its alias ``17.*``), matching
  every installed 17.x, newest first
- a specific vswhere version: ``VS17.9``
- a runtime version: ``10.0``, matching ``VS10.0`` and every SDK shipping
  the 10.0 runtime (``SDK7.1``)

The first entry available for every required architecture wins, except that
an identified environment compiler wins outright when ``@`` is listed.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from msvsdetect.core.exceptions import (
    DuplicatePreferenceError,
    NoCompilerFoundError,
    UnknownPreferenceError,
)
from msvsdetect.toolchain.catalog import (
    CATALOG,
    ENVIRONMENT_MARKER,
    PACKAGES,
    find_vswhere_package,
)
from msvsdetect.toolchain.models import (
    EnvironmentMatch,
    FoundInstallation,
    ValidatedCompiler,
    validated_key,
)

logger = logging.getLogger(__name__)

_NUMERIC = re.compile(r"^\d+\.\d+$")
_NUMERIC_WILDCARD = re.compile(r"^\d+\.\*$")
_VSWHERE_VERSION = re.compile(r"^VS(\d+)\.\d+$")
_SEPARATORS = re.compile(r"[;\s]+")

PreferenceList = Tuple[str, ...]


def version_tuple(version: str) -> Tuple[int, ...]:
    """
    Sortable form of a dotted version string.

    Example:
        >>> version_tuple("17.10.35004.147")
        (17, 10, 35004, 147)
    """
    parts = []
    for part in version.split("."):
        digits = re.match(r"\d+", part)
        parts.append(int(digits.group(0)) if digits else 0)
    return tuple(parts)


def classify_token(token: str) -> Optional[str]:
    """
    Classify a preference token.

    Args:
        token: Preference token

    Returns:
        'environment', 'package', 'wildcard', 'vswhere' or 'version',
        or None if the token is not recognised
    """
    if token == ENVIRONMENT_MARKER:
        return "environment"

    if _NUMERIC.match(token):
        if f"VS{token}" in CATALOG or any(
            package.kind == "sdk" and package.runtime == token for package in PACKAGES
        ):
            return "version"
        return None

    if _NUMERIC_WILDCARD.match(token):
        token = f"VS{token}"

    package = CATALOG.get(token)
    if package is not None:
        return "wildcard" if package.is_wildcard else "package"

    match = _VSWHERE_VERSION.match(token)
    if match and find_vswhere_package(match.group(1)) is not None:
        return "vswhere"

    return None


def parse_preferences(value: Union[str, Iterable[str]]) -> PreferenceList:
    """
    Parse and validate a preference list.

    Args:
        value: ``;``-separated string, or a sequence of tokens (each of which
            may itself contain ``;``)

    Returns:
        Tuple of tokens in order

    Raises:
        DuplicatePreferenceError: If a token is repeated
        UnknownPreferenceError: If any token is not recognised
    """
    if isinstance(value, str):
        value = [value]

    tokens: List[str] = []
    for item in value:
        tokens.extend(token for token in _SEPARATORS.split(item) if token)

    seen = set()
    for token in tokens:
        if token in seen:
            raise DuplicatePreferenceError(token)
        seen.add(token)

    unknown = [token for token in tokens if classify_token(token) is None]
    if unknown:
        raise UnknownPreferenceError(unknown)

    return tuple(tokens)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of compiler selection.

    Attributes:
        key: Winning package key
        installation: Winning installation
        compilers: Validated compiler for each required architecture, in
            (primary, secondary) order; a single entry when pinned
        from_environment: True if selected because it is the environment
            compiler
    """

    key: str
    installation: FoundInstallation
    compilers: Tuple[ValidatedCompiler, ...]
    from_environment: bool = False

    @property
    def name(self) -> str:
        return self.installation.name


class PreferenceResolver:
    """
    Select one package from the validated compilers.

    Example:
        >>> resolver = PreferenceResolver()
        >>> resolution = resolver.resolve(parse_preferences("VS17.*;VS14.0"),
        ...                               validated, EnvironmentMatch())
        >>> resolution.key
        'VS17.9'
    """

    def expand(
        self, preferences: PreferenceList, validated: Mapping[str, ValidatedCompiler]
    ) -> List[str]:
        """
        Expand preference tokens into concrete package keys.

        Args:
            preferences: Parsed preference list
            validated: Validated compilers keyed by '{package}-{arch}'

        Returns:
            Package keys (and ``@``) in preference order, without repeats
        """
        installations: Dict[str, FoundInstallation] = {}
        for compiler in validated.values():
            installations.setdefault(compiler.package_key, compiler.installation)

        sequence: List[str] = []
        for token in preferences:
            kind = classify_token(token)
            if kind in ("environment", "package", "vswhere"):
                candidates = [token]
            elif kind == "wildcard":
                family = CATALOG.get(token) or CATALOG[f"VS{token}"]
                matches = [
                    found for found in installations.values() if found.package.key == family.key
                ]
                matches.sort(key=lambda found: version_tuple(found.version), reverse=True)
                candidates = [found.key for found in matches]
            elif kind == "version":
                candidates = [f"VS{token}"] if f"VS{token}" in CATALOG else []
                sdks = [
                    found
                    for found in installations.values()
                    if found.package.kind == "sdk" and found.package.runtime == token
                ]
                sdks.sort(key=lambda found: version_tuple(found.version), reverse=True)
                candidates.extend(found.key for found in sdks)
            else:
                candidates = []

            logger.debug(f"Preference {token} -> {', '.join(candidates) or 'nothing'}")
            for candidate in candidates:
                if candidate not in sequence:
                    sequence.append(candidate)

        return sequence

    def _compilers_for(
        self,
        key: str,
        architectures: Tuple[str, ...],
        validated: Mapping[str, ValidatedCompiler],
    ) -> Optional[Tuple[ValidatedCompiler, ...]]:
        compilers = []
        for arch in architectures:
            compiler = validated.get(validated_key(key, arch))
            if compiler is None:
                return None
            compilers.append(compiler)
        return tuple(compilers)

    def resolve(
        self,
        preferences: PreferenceList,
        validated: Mapping[str, ValidatedCompiler],
        environment: EnvironmentMatch,
        arch: Optional[str] = None,
    ) -> Resolution:
        """
        Select the preferred compiler.

        Args:
            preferences: Parsed preference list
            validated: Validated compilers keyed by '{package}-{arch}'
            environment: Identification of the environment compiler
            arch: Pinned architecture, or None to require both x86 and x64

        Returns:
            Resolution

        Raises:
            NoCompilerFoundError: If no listed compiler is available
        """
        architectures = (arch,) if arch else ("x86", "x64")
        sequence = self.expand(preferences, validated)

        if ENVIRONMENT_MARKER in sequence and environment.identified:
            compilers = self._compilers_for(environment.key, architectures, validated)
            if compilers is not None:
                logger.info(f"Selected environment compiler {environment.key}")
                return Resolution(
                    key=environment.key,
                    installation=compilers[0].installation,
                    compilers=compilers,
                    from_environment=True,
                )
            logger.warning(
                f"Environment compiler {environment.key} is not available for "
                f"{' and '.join(architectures)}"
            )

        for key in sequence:
            if key == ENVIRONMENT_MARKER:
                continue
            compilers = self._compilers_for(key, architectures, validated)
            if compilers is None:
                logger.debug(f"{key} not available for {' and '.join(architectures)}")
                continue
            logger.info(f"Selected {key}: {compilers[0].name}")
            return Resolution(
                key=key,
                installation=compilers[0].installation,
                compilers=compilers,
                from_environment=environment.identified and environment.key == key,
            )

        raise NoCompilerFoundError()
