"""
Process environment helpers.

Toolchain probes run one after another against the same process environment,
so every variable changed to isolate one probe must be put back before the
next one starts. ``scoped_environment`` is the only place that mutates
``os.environ``.
"""

import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterable, MutableMapping, Optional

logger = logging.getLogger(__name__)


@contextmanager
def scoped_environment(
    set_vars: Optional[Dict[str, str]] = None,
    unset: Iterable[str] = (),
    environ: Optional[MutableMapping[str, str]] = None,
):
    """
    Temporarily set and clear environment variables.

    Every variable named in ``set_vars`` or ``unset`` is snapshotted on entry
    and restored on exit, whether the block completes or raises. Variables
    which were unset on entry are removed again.

    Args:
        set_vars: Variables to set for the duration of the block
        unset: Variables to remove for the duration of the block
        environ: Mapping to operate on (defaults to ``os.environ``)

    Yields:
        The mutated environment mapping

    Example:
        >>> with scoped_environment({"PATH": "C:\\\\sentinel"}, unset=["LIB"]):
        ...     run_probe()
    """
    if environ is None:
        environ = os.environ
    set_vars = set_vars or {}
    unset = list(unset)

    saved: Dict[str, Optional[str]] = {}
    for name in unset + list(set_vars):
        if name not in saved:
            saved[name] = environ.get(name)

    try:
        for name in unset:
            environ.pop(name, None)
        for name, value in set_vars.items():
            environ[name] = value
        yield environ
    finally:
        for name, value in saved.items():
            if value is None:
                environ.pop(name, None)
            else:
                environ[name] = value
        logger.debug(f"Restored {len(saved)} environment variable(s)")


def get_variable(
    names: Iterable[str], environ: Optional[MutableMapping[str, str]] = None
) -> Optional[str]:
    """
    Read the first set variable from a list of alternative spellings.

    Windows environments are case-insensitive but Cygwin and MSYS2 shells
    may pass ``Include``/``Lib`` through with their original case.

    Args:
        names: Candidate variable names, in order of preference
        environ: Mapping to read (defaults to ``os.environ``)

    Returns:
        Value of the first variable which is set, or None
    """
    if environ is None:
        environ = os.environ
    for name in names:
        value = environ.get(name)
        if value is not None:
            return value
    return None
