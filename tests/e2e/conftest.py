"""
Fixtures for end-to-end tests.

Runs the real command line against a fake machine: an in-memory registry, a
prober returning prepared toolchain trees and a patched ``cl.exe``.
"""

from unittest.mock import Mock, patch

import pytest

from msvsdetect.toolchain.enumerator import VISUAL_STUDIO_KEY, CandidateEnumerator
from tests.fixtures.toolchains import make_toolchain
from tests.mocks import FakeProber, FakeRegistry


class FakeMachine:
    """A Windows host assembled from fakes."""

    def __init__(self, root):
        self.root = root
        self.registry = FakeRegistry()
        self.prober = FakeProber()
        self.environ = {}
        self.cl_path = None
        self.banner = ""

    def install_vs2015(self):
        """
        Register Visual Studio 2015 with working x86 and x64 toolchains.

        Returns:
            Dict mapping architecture to the ProbeResult of its setup script
        """
        install = self.root / "VS14"
        tools = install / "Common7" / "Tools"
        tools.mkdir(parents=True)
        (tools / "vsvars32.bat").write_text("@echo off\n")
        self.environ["VS140COMNTOOLS"] = str(tools)
        self.registry.set_value(
            rf"{VISUAL_STUDIO_KEY}\14.0\Setup\VC", "ProductDir", str(install / "VC")
        )

        script = install / "VC" / "vcvarsall.bat"
        probes = {}
        for arch, switch in (("x86", "x86"), ("x64", "amd64")):
            probes[arch] = make_toolchain(install, arch, version="14.0")
            self.prober.add(f"{script} {switch}", probes[arch])
        return probes

    def activate(self, probe, banner):
        """Make a toolchain the caller's environment compiler."""
        self.cl_path = f"{list(probe.path)[0]}/cl.exe"
        self.banner = banner
        return {"PATH": str(probe.path), "INCLUDE": str(probe.include), "LIB": str(probe.lib)}


@pytest.fixture
def machine(tmp_path, monkeypatch):
    """
    Patch discovery, probing and the environment compiler onto a FakeMachine.

    Yields:
        FakeMachine to populate before running the CLI
    """
    fake = FakeMachine(tmp_path)
    for name in ("MSVS_PREFERENCE", "MSVS_DETECT_CONFIG", "INCLUDE", "LIB", "Include", "Lib"):
        monkeypatch.delenv(name, raising=False)

    def enumerator(**kwargs):
        return CandidateEnumerator(
            registry=fake.registry, environ=fake.environ, vswhere=tmp_path / "no-vswhere.exe"
        )

    def run_compiler(command, **kwargs):
        return Mock(returncode=0, stdout="", stderr=fake.banner)

    with patch("msvsdetect.cli.commands.detect.CandidateEnumerator", side_effect=enumerator):
        with patch("msvsdetect.cli.commands.detect.EnvironmentProber", return_value=fake.prober):
            with patch("shutil.which", side_effect=lambda name, path=None: fake.cl_path):
                with patch("subprocess.run", side_effect=run_compiler):
                    yield fake
