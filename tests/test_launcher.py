"""Tests for editor launch candidates and sequential fallback."""

import subprocess
import sys
from unittest.mock import patch

import pytest

from openmate.errors import EditorNotFound
from openmate.launcher import EditorLauncher, LaunchCandidate, candidates_for, spawn_detached
from openmate.types import EDITORS



def _labels(candidates):
    return [c.label for c in candidates]


class TestCandidates:

    @pytest.mark.parametrize("editor,app", [
        ("vs", "Visual Studio Code"),
        ("ws", "WebStorm"),
        ("cs", "Cursor"),
        ("ij", "IntelliJ IDEA"),
        ("pc", "PyCharm"),
    ])
    def test_macos_single_open_a(self, editor, app):
        candidates = candidates_for(editor, "darwin", {})
        assert candidates == [LaunchCandidate(("open", "-a", app))]

    def test_linux_commands_in_order(self):
        assert _labels(candidates_for("vs", "linux", {})) == ["code", "code-insiders", "codium"]

    def test_every_editor_has_candidates(self):
        for editor in EDITORS:
            for platform in ("darwin", "linux", "win32"):
                assert candidates_for(editor, platform, {})

    def test_windows_install_locations_after_commands(self):
        environ = {"LOCALAPPDATA": "C:\\Users\\me\\AppData\\Local", "ProgramFiles": "C:\\Program Files"}
        assert _labels(candidates_for("vs", "win32", environ)) == [
            "code",
            "code-insiders",
            "codium",
            "C:\\Users\\me\\AppData\\Local\\Programs\\Microsoft VS Code\\Code.exe",
            "C:\\Program Files\\Microsoft VS Code\\Code.exe",
        ]

    def test_unset_base_dir_skipped(self):
        assert _labels(candidates_for("cs", "win32", {})) == ["cursor"]

    def test_version_folders_globbed_newest_first(self, tmp_path):
        apps = tmp_path / "Applications"
        apps.mkdir()
        for name in ("cursor-0.40.AppImage", "cursor-0.42.AppImage", "other.AppImage"):
            (apps / name).write_text("")
        labels = _labels(candidates_for("cs", "linux", {"HOME": str(tmp_path)}))
        assert labels == [
            "cursor",
            str(apps / "cursor-0.42.AppImage"),
            str(apps / "cursor-0.40.AppImage"),
        ]

    def test_extra_candidates_first(self):
        labels = _labels(candidates_for("vs", "darwin", {}, extra=["/opt/code/bin/code"]))
        assert labels == ["/opt/code/bin/code", "open -a Visual Studio Code"]

    def test_unknown_editor(self):
        with pytest.raises(ValueError):
            candidates_for("emacs", "linux", {})


class TestOpen:

    def test_first_candidate_succeeds(self, launcher, spawner):
        candidate = launcher.open("/src/a", "vs")
        assert candidate.label == "code"
        assert spawner.calls == [["code", "/src/a"]]

    def test_fallback_stops_at_first_success(self, make_launcher):
        launcher, spawner = make_launcher(failing={"code", "code-insiders"})
        candidate = launcher.open("/src/a", "vs")
        assert candidate.label == "codium"
        assert spawner.calls == [
            ["code", "/src/a"],
            ["code-insiders", "/src/a"],
            ["codium", "/src/a"],
        ]

    def test_no_attempts_after_success(self, make_launcher):
        launcher, spawner = make_launcher(failing={"idea"})
        launcher.open("/p", "ij")
        assert spawner.executables == ["idea", "idea.sh"]

    def test_all_fail(self, make_launcher):
        launcher, spawner = make_launcher(fail_all=True)
        with pytest.raises(EditorNotFound) as exc:
            launcher.open("/p", "vs")
        assert exc.value.editor == "VS Code"
        assert exc.value.tried == ["code", "code-insiders", "codium"]
        assert len(spawner.calls) == 3

    def test_macos_tried_once(self, make_launcher):
        launcher, spawner = make_launcher(platform="darwin", fail_all=True)
        with pytest.raises(EditorNotFound):
            launcher.open("/p", "pc")
        assert spawner.calls == [["open", "-a", "PyCharm", "/p"]]

    def test_permission_error_counts_as_failure(self):
        calls = []

        def spawn(command):
            calls.append(command)
            if command[0] == "code":
                raise PermissionError(13, "Permission denied")

        launcher = EditorLauncher(spawn=spawn, platform="linux", environ={})
        assert launcher.open("/p", "vs").label == "code-insiders"
        assert len(calls) == 2

    def test_non_os_errors_propagate(self):
        def spawn(command):
            raise RuntimeError("unexpected")

        launcher = EditorLauncher(spawn=spawn, platform="linux", environ={})
        with pytest.raises(RuntimeError):
            launcher.open("/p", "vs")

    def test_config_candidates_used(self, make_launcher):
        launcher, spawner = make_launcher(extra_candidates={"ws": ["/custom/webstorm"]})
        launcher.open("/p", "ws")
        assert spawner.calls == [["/custom/webstorm", "/p"]]


class TestSpawnDetached:

    def test_stdio_suppressed_and_not_waited(self):
        with patch("openmate.launcher.subprocess.Popen") as popen:
            spawn_detached(["code", "/p"])
        popen.assert_called_once()
        args, kwargs = popen.call_args
        assert args == (["code", "/p"],)
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL
        popen.return_value.wait.assert_not_called()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX session detach")
    def test_new_session_on_posix(self):
        with patch("openmate.launcher.subprocess.Popen") as popen:
            spawn_detached(["code", "/p"])
        assert popen.call_args.kwargs["start_new_session"] is True

    def test_missing_executable_raises_oserror(self):
        with pytest.raises(OSError):
            spawn_detached(["openmate-no-such-editor-binary", "/p"])
