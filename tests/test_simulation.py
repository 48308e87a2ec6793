"""Tests for scripted simulation runs."""

import json
from pathlib import Path

import pytest

from playback_container.domain.overlay import OverlayState, ScrubState
from playback_container.simulation import ScriptError, load_script, run_script


def arrow(at: float, phase: str, button: str = "right_arrow") -> dict:
    return {"at": at, "type": "press", "button": button, "phase": phase}


class TestRunScript:
    def test_tap_produces_single_jump(self) -> None:
        result = run_script(
            [arrow(0.0, "began"), arrow(0.1, "ended")], position=600.0, settle=2.0
        )

        assert result.commands == [("jump_forward", 15.0)]
        assert result.final.skip_indicator_text is None
        assert result.final.scrub_state is ScrubState.IDLE

    def test_hold_commits_one_seek(self) -> None:
        result = run_script([arrow(0.0, "began"), arrow(2.0, "ended")], position=600.0)

        names = [name for name, _ in result.commands]
        assert names == ["jump_forward", "set_position"]
        assert result.commands[1][1] > 615.0

    def test_unbounded_stream_only_skips(self) -> None:
        result = run_script(
            [arrow(0.0, "began"), arrow(2.0, "ended")], runtime=None, position=600.0
        )

        assert result.commands == [("jump_forward", 15.0)]

    def test_events_run_in_time_order(self) -> None:
        result = run_script(
            [
                {"at": 1.0, "type": "overlay", "visible": False},
                {"at": 0.5, "type": "overlay", "visible": True},
            ]
        )

        labels = [entry.label for entry in result.timeline if entry.label != "state"]
        assert labels == ["overlay show", "overlay hide"]
        assert result.final.overlay_state is OverlayState.HIDDEN

    def test_timeline_records_state_changes(self) -> None:
        result = run_script([{"at": 0.0, "type": "toggle_overlay"}], settle=6.0)

        state_rows = [entry for entry in result.timeline if entry.label == "state"]
        assert [row.snapshot.overlay_state for row in state_rows] == [
            OverlayState.VISIBLE,
            OverlayState.HIDDEN,
        ]
        assert state_rows[-1].time == pytest.approx(5.0)

    def test_paused_start_shows_overlay(self) -> None:
        result = run_script([], paused=True, settle=10.0)
        assert result.final.overlay_state is OverlayState.VISIBLE

    def test_status_event(self) -> None:
        result = run_script([{"at": 1.0, "type": "status", "value": "paused"}])
        assert result.final.is_presenting_overlay

    def test_supplement_toggle(self) -> None:
        result = run_script(
            [
                {"at": 0.0, "type": "supplement", "id": "episodes", "guest": True},
                {"at": 1.0, "type": "supplement", "id": "episodes"},
            ]
        )

        assert result.supplement_requests == [True, False]
        assert not result.final.is_guest_supplement

    def test_menu_with_hidden_overlay_dismisses(self) -> None:
        result = run_script([{"at": 0.0, "type": "press", "button": "menu", "phase": "began"}])

        assert result.commands == [("stop", None)]
        assert result.dismissed

    def test_lock_and_compact_events(self) -> None:
        result = run_script(
            [
                {"at": 0.0, "type": "compact", "value": True},
                {"at": 0.0, "type": "lock", "locked": True},
                {"at": 1.0, "type": "overlay", "visible": True},
                {"at": 2.0, "type": "wait"},
            ]
        )

        assert result.final.is_gesture_locked
        assert result.final.is_compact

    @pytest.mark.parametrize(
        "event",
        [
            {"at": 0.0, "type": "teleport"},
            {"at": "soon", "type": "wait"},
            {"at": -1.0, "type": "wait"},
            {"at": 0.0, "type": "press", "button": "home", "phase": "began"},
            {"at": 0.0, "type": "press", "button": "menu"},
            {"at": 0.0, "type": "status", "value": "buffering"},
        ],
    )
    def test_invalid_events(self, event: dict) -> None:
        with pytest.raises(ScriptError):
            run_script([event])

    def test_non_object_event(self) -> None:
        with pytest.raises(ScriptError, match="must be an object"):
            run_script(["press"])


class TestLoadScript:
    def test_list_form(self, tmp_path: Path) -> None:
        path = tmp_path / "script.json"
        path.write_text(json.dumps([arrow(0.0, "began")]))

        assert load_script(path) == {"events": [arrow(0.0, "began")]}

    def test_object_form_keeps_options(self, tmp_path: Path) -> None:
        path = tmp_path / "script.json"
        path.write_text(json.dumps({"runtime": 120, "events": []}))

        assert load_script(path)["runtime"] == 120

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "script.json"
        path.write_text("{not json")

        with pytest.raises(ScriptError, match="Invalid JSON"):
            load_script(path)

    def test_options_are_coerced(self, tmp_path: Path) -> None:
        path = tmp_path / "script.json"
        path.write_text(json.dumps({"runtime": 120, "position": 5, "paused": True, "events": []}))

        script = load_script(path)

        assert script["runtime"] == 120.0
        assert isinstance(script["position"], float)
        assert script["paused"] is True

    @pytest.mark.parametrize(
        "options", [{"runtime": "abc"}, {"position": True}, {"paused": 1}]
    )
    def test_invalid_options(self, tmp_path: Path, options: dict) -> None:
        path = tmp_path / "script.json"
        path.write_text(json.dumps({"events": [], **options}))

        with pytest.raises(ScriptError):
            load_script(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "script.json"
        path.write_text(json.dumps({"steps": []}))

        with pytest.raises(ScriptError):
            load_script(path)

    def test_bundled_example_loads(self) -> None:
        path = Path(__file__).resolve().parents[1] / "examples" / "hold_right.json"

        script = load_script(path)
        result = run_script(script["events"], runtime=script.get("runtime", 3600.0))

        assert result.timeline
