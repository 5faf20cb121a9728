"""
Canned setup script probing.
"""

from typing import Dict, List, Optional

from msvsdetect.toolchain.prober import ProbeResult


class FakeProber:
    """Prober returning prepared results keyed by setup script invocation."""

    def __init__(self, results: Optional[Dict[str, ProbeResult]] = None):
        self.results: Dict[str, ProbeResult] = dict(results or {})
        self.calls: List[str] = []

    def add(self, invocation: str, result: ProbeResult):
        """Register the result for an invocation."""
        self.results[invocation] = result

    def probe(self, invocation: str) -> Optional[ProbeResult]:
        self.calls.append(invocation)
        return self.results.get(invocation)
