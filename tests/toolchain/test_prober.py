"""
Tests for msvsdetect.toolchain.prober module.
"""

import os
import subprocess
from unittest.mock import MagicMock, Mock, patch

import pytest

from msvsdetect.toolchain.prober import (
    MARKER,
    EnvironmentProber,
    build_probe_script,
    kill_process_tree,
    new_sentinel,
    parse_probe_output,
)

SENTINEL = "C:\\msvs-detect-sentinel-test"


def _output(path: str, include: str = "C:\\VC\\include;", lib: str = "C:\\VC\\lib;", **extra) -> str:
    lines = ["noise from vcvarsall", MARKER, f"PATH={path}", f"INCLUDE={include}", f"LIB={lib}"]
    lines.extend(f"{name}={value}" for name, value in extra.items())
    return "\r\n".join(lines) + "\r\n"


class TestBuildProbeScript:
    """Tests for the generated batch file."""

    def test_script_contents(self):
        """Test the batch file runs the setup script then reports variables."""
        script = build_probe_script('"C:\\VS 14\\VC\\vcvarsall.bat" amd64')
        lines = script.split("\r\n")

        assert lines[0] == "@echo off"
        assert lines[1] == 'call "C:\\VS 14\\VC\\vcvarsall.bat" amd64 >nul 2>&1'
        assert f"echo {MARKER}" in lines
        assert "echo PATH=!PATH!" in lines
        assert "echo INCLUDE=!INCLUDE!" in lines
        assert script.endswith("\r\n")

    def test_sentinels_unique(self):
        """Test that every probe gets a fresh sentinel."""
        assert new_sentinel() != new_sentinel()


class TestParseProbeOutput:
    """Tests for parse_probe_output."""

    def test_added_directories_precede_sentinel(self):
        """Test that only the script's PATH additions are kept."""
        result = parse_probe_output(
            _output(f"C:\\VC\\bin\\amd64;C:\\SDK\\bin;;{SENTINEL};C:\\Windows"), SENTINEL
        )

        assert result is not None
        assert list(result.path) == ["C:\\VC\\bin\\amd64", "C:\\SDK\\bin"]
        assert str(result.include) == "C:\\VC\\include;"
        assert str(result.lib) == "C:\\VC\\lib;"

    def test_sentinel_compared_case_insensitively(self):
        """Test that cmd.exe case changes do not lose the sentinel."""
        result = parse_probe_output(_output(f"C:\\VC\\bin;{SENTINEL.upper()}"), SENTINEL)

        assert list(result.path) == ["C:\\VC\\bin"]

    def test_missing_marker(self):
        """Test output from a batch file which never ran."""
        assert parse_probe_output("The system cannot find the path specified.\r\n", SENTINEL) is None

    def test_missing_sentinel(self):
        """Test a setup script which replaced PATH."""
        assert parse_probe_output(_output("C:\\VC\\bin;C:\\Windows"), SENTINEL) is None

    def test_unexpanded_variables_are_empty(self):
        """Test that unset variables echo as placeholders and are treated as empty."""
        result = parse_probe_output(
            _output(f"{SENTINEL}", include="!INCLUDE!", lib=""), SENTINEL
        )

        assert result is not None
        assert not result.path
        assert not result.include
        assert not result.lib

    def test_versions(self):
        """Test version capture."""
        result = parse_probe_output(
            _output(
                f"C:\\VC\\bin;{SENTINEL}",
                VSCMD_VER="17.9.6",
                VisualStudioVersion="17.0",
                VCToolsVersion="14.39.33519",
            ),
            SENTINEL,
        )

        assert result.version == "17.9.6"
        assert result.runtime_version == "14.39.33519"

    def test_version_falls_back_to_visual_studio_version(self):
        """Test older setup scripts without VSCMD_VER."""
        result = parse_probe_output(
            _output(f"{SENTINEL}", VSCMD_VER="!VSCMD_VER!", VisualStudioVersion="14.0"),
            SENTINEL,
        )

        assert result.version == "14.0"
        assert result.runtime_version == ""


def _process(stdout: str = "") -> MagicMock:
    process = MagicMock(pid=4242)
    process.__enter__.return_value = process
    process.communicate.return_value = (stdout, "")
    return process


class TestEnvironmentProber:
    """Tests for EnvironmentProber."""

    @pytest.fixture
    def host_environment(self, monkeypatch):
        monkeypatch.setenv("PATH", "C:\\Windows")
        monkeypatch.setenv("INCLUDE", "C:\\stale\\include")
        monkeypatch.setenv("VSCMD_VER", "15.0")
        monkeypatch.delenv("LIB", raising=False)

    def test_probe_isolates_child_environment(self, host_environment):
        """Test sentinel PATH, cleared variables and restoration."""
        seen = {}

        def fake_popen(command, **kwargs):
            seen["command"] = command
            seen["PATH"] = os.environ["PATH"]
            seen["INCLUDE"] = os.environ.get("INCLUDE")
            seen["VSCMD_VER"] = os.environ.get("VSCMD_VER")
            return _process(_output(f"C:\\VC\\bin;{os.environ['PATH']}"))

        with patch("msvsdetect.toolchain.prober.new_sentinel", return_value=SENTINEL):
            with patch("subprocess.Popen", side_effect=fake_popen):
                result = EnvironmentProber().probe('"C:\\VS\\vcvarsall.bat" x86')

        assert seen["command"][:3] == ["cmd.exe", "/d", "/c"]
        assert seen["command"][3].endswith("probe.cmd")
        assert seen["PATH"] == f"{SENTINEL};C:\\Windows"
        assert seen["INCLUDE"] is None
        assert seen["VSCMD_VER"] is None

        assert list(result.path) == ["C:\\VC\\bin"]
        assert os.environ["PATH"] == "C:\\Windows"
        assert os.environ["INCLUDE"] == "C:\\stale\\include"
        assert os.environ["VSCMD_VER"] == "15.0"
        assert "LIB" not in os.environ

    def test_batch_file_written(self, host_environment):
        """Test that the probe batch file contains the invocation."""
        contents = {}

        def fake_popen(command, **kwargs):
            with open(command[3], encoding="utf-8") as f:
                contents["script"] = f.read()
            return _process()

        with patch("subprocess.Popen", side_effect=fake_popen):
            EnvironmentProber().probe("C:\\SDK\\Bin\\SetEnv.cmd /x64")

        assert "call C:\\SDK\\Bin\\SetEnv.cmd /x64 >nul 2>&1" in contents["script"]

    def test_output_decoded_leniently(self, host_environment):
        """Test that undecodable console output cannot abort a probe."""
        with patch("subprocess.Popen", return_value=_process()) as mock_popen:
            EnvironmentProber().probe("C:\\setup.bat")

        kwargs = mock_popen.call_args[1]
        assert kwargs["text"] is True
        assert kwargs["errors"] == "replace"

    def test_timeout_yields_none_and_restores(self, host_environment):
        """Test that a hung setup script is treated as a failure."""
        process = _process()
        process.communicate.side_effect = subprocess.TimeoutExpired("cmd.exe", 5)

        with patch("subprocess.Popen", return_value=process):
            with patch("msvsdetect.toolchain.prober.kill_process_tree") as mock_kill:
                result = EnvironmentProber(timeout=5).probe("C:\\hang.bat")

        assert result is None
        process.communicate.assert_called_once_with(timeout=5)
        mock_kill.assert_called_once_with(process)
        assert os.environ["PATH"] == "C:\\Windows"
        assert os.environ["INCLUDE"] == "C:\\stale\\include"

    def test_missing_shell_yields_none(self, host_environment):
        """Test that an unrunnable interpreter is not fatal."""
        with patch("subprocess.Popen", side_effect=FileNotFoundError("cmd.exe")):
            assert EnvironmentProber().probe("C:\\setup.bat") is None

    def test_failed_script_yields_none(self, host_environment):
        """Test output without the marker."""
        with patch("subprocess.Popen", return_value=_process("")):
            assert EnvironmentProber().probe("C:\\broken.bat") is None


class TestKillProcessTree:
    """Tests for kill_process_tree."""

    def test_windows_kills_whole_tree(self):
        """Test that helper processes started by the script are killed too."""
        process = Mock(pid=4242)

        with patch("msvsdetect.toolchain.prober.IS_WINDOWS", True):
            with patch("subprocess.run") as mock_run:
                kill_process_tree(process)

        assert mock_run.call_args[0][0] == ["taskkill", "/F", "/T", "/PID", "4242"]
        process.kill.assert_called_once_with()

    def test_other_hosts_kill_process(self):
        """Test that only the child is killed where taskkill does not exist."""
        process = Mock(pid=4242)

        with patch("msvsdetect.toolchain.prober.IS_WINDOWS", False):
            with patch("subprocess.run") as mock_run:
                kill_process_tree(process)

        mock_run.assert_not_called()
        process.kill.assert_called_once_with()
