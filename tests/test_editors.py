"""Tests for the single-operation editors (fake engine, real temp files)."""

from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeEngine, probe_json
from reelforge.editors.concat import concat_videos, total_duration
from reelforge.editors.convert import convert_format, extract_audio
from reelforge.editors.crop import crop_video
from reelforge.editors.watermark import add_watermark
from reelforge.ffutil import (
    EmptyInputError,
    EngineFailure,
    PlanValidationError,
    ProbeFailure,
    parse_metadata,
)
from reelforge.planner import WatermarkSpec


def _touch(path: Path) -> Path:
    path.write_bytes(b"x")
    return path


class TestAddWatermark:
    def test_output_name_and_args(self, tmp_path, fake_engine):
        src = _touch(tmp_path / "talk.mp4")
        out = add_watermark(src, tmp_path / "logo.png", engine=fake_engine, opacity=0.5)
        assert out == (tmp_path / "talk.watermark.1.0.5.0.left-top.10.mp4").resolve()
        assert out.exists()
        assert "-filter_complex" in fake_engine.runs[0]["args"]

    def test_identical_calls_overwrite(self, tmp_path, fake_engine):
        src = _touch(tmp_path / "talk.mp4")
        spec = WatermarkSpec(position="right-bottom", rotation=15)
        first = add_watermark(src, tmp_path / "logo.png", spec=spec, engine=fake_engine)
        first_bytes = first.read_bytes()
        second = add_watermark(src, tmp_path / "logo.png", spec=spec, engine=fake_engine)
        assert first == second
        assert second.read_bytes() == first_bytes

    def test_different_options_do_not_collide(self, tmp_path, fake_engine):
        src = _touch(tmp_path / "talk.mp4")
        a = add_watermark(src, "logo.png", engine=fake_engine, scale=0.5)
        b = add_watermark(src, "logo.png", engine=fake_engine, scale=0.75)
        assert a != b

    def test_invalid_option_runs_nothing(self, tmp_path, fake_engine):
        with pytest.raises(PlanValidationError):
            add_watermark(tmp_path / "talk.mp4", "logo.png", engine=fake_engine, scale=-2)
        assert fake_engine.runs == []


class TestCropVideo:
    def test_clamps_to_probed_duration(self, tmp_path):
        engine = FakeEngine(durations={"match.mp4": 10.0})
        src = _touch(tmp_path / "match.mp4")
        out = crop_video(src, 8, 20, engine=engine)
        assert out.name == "match.8-10.crop.mp4"
        args = engine.runs[0]["args"]
        assert args[args.index("-t") + 1] == "2"

    def test_negative_start(self, tmp_path):
        engine = FakeEngine(durations={"match.mp4": 10.0})
        out = crop_video(_touch(tmp_path / "match.mp4"), -5, 20, engine=engine)
        assert out.name == "match.0-10.crop.mp4"

    def test_probe_failure_propagates(self, tmp_path):
        engine = FakeEngine()
        engine.probe_errors["bad.mp4"] = ProbeFailure("ffprobe failed (rc=1)")
        with pytest.raises(ProbeFailure):
            crop_video(tmp_path / "bad.mp4", 0, 5, engine=engine)
        assert engine.runs == []

    def test_progress_uses_window_length(self, tmp_path):
        engine = FakeEngine(
            durations={"match.mp4": 60.0},
            stderr_lines=["  Duration: 00:01:00.00\n", "time=00:00:02.00\n"],
        )
        seen = []
        crop_video(_touch(tmp_path / "match.mp4"), 10, 4, on_progress=seen.append, engine=engine)
        assert seen == [50.0]

    def test_given_metadata_is_used_as_is(self, tmp_path):
        engine = FakeEngine(durations={"match.mp4": 60.0})
        metadata = parse_metadata(probe_json(10.0))
        out = crop_video(_touch(tmp_path / "match.mp4"), 8, 20, engine=engine, metadata=metadata)
        assert engine.inspected == []
        assert out.name == "match.8-10.crop.mp4"

    def test_failed_run_removes_partial_output(self, tmp_path):
        engine = FakeEngine(durations={"match.mp4": 10.0})
        engine.failures["match.mp4"] = 1
        engine.partial_writes = True
        src = _touch(tmp_path / "match.mp4")
        with pytest.raises(EngineFailure):
            crop_video(src, 0, 5, engine=engine)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["match.mp4"]


class TestConvertFormat:
    def test_runs_plan(self, tmp_path, fake_engine):
        out = convert_format(tmp_path / "in.avi", tmp_path / "out.mp4", codec="libx265", engine=fake_engine)
        assert out == (tmp_path / "out.mp4").resolve()
        args = fake_engine.runs[0]["args"]
        assert args[args.index("-c:v") + 1] == "libx265"

    def test_engine_failure(self, tmp_path, fake_engine):
        fake_engine.failures["in.avi"] = 69
        with pytest.raises(EngineFailure) as exc_info:
            convert_format(tmp_path / "in.avi", tmp_path / "out.mp4", engine=fake_engine)
        assert exc_info.value.exit_code == 69


class TestExtractAudio:
    def test_copy_uses_source_codec(self, tmp_path, fake_engine):
        src = _touch(tmp_path / "podcast.mp4")
        out = extract_audio(src, engine=fake_engine)
        assert out.name == "podcast.mp4.aac"
        args = fake_engine.runs[0]["args"]
        assert args[args.index("-acodec") + 1] == "aac"
        assert args[args.index("-b:a") + 1] == "128000"

    def test_video_only_source(self, tmp_path, fake_engine):
        fake_engine.probe_overrides["silent.mp4"] = probe_json(10, audio=False)
        with pytest.raises(PlanValidationError, match="No audio stream"):
            extract_audio(tmp_path / "silent.mp4", engine=fake_engine)


class TestConcatVideos:
    def test_empty_input_has_no_side_effects(self, tmp_path, fake_engine):
        with patch("reelforge.editors.concat.tempfile.mkstemp") as mock_mkstemp:
            with pytest.raises(EmptyInputError):
                concat_videos([], tmp_path / "out.mp4", on_progress=print, engine=fake_engine)
        mock_mkstemp.assert_not_called()
        assert fake_engine.runs == []
        assert fake_engine.inspected == []
        assert not (tmp_path / "out.mp4").exists()

    def test_list_file_order_and_cleanup(self, tmp_path, fake_engine):
        inputs = [_touch(tmp_path / n) for n in ("c.mp4", "a.mp4", "b.mp4")]
        out = concat_videos(inputs, tmp_path / "reel.mp4", engine=fake_engine)
        assert out == (tmp_path / "reel.mp4").resolve()

        list_file, content = fake_engine.list_files[0]
        assert [line.split("/")[-1] for line in content.splitlines()] == [
            "c.mp4'", "a.mp4'", "b.mp4'",
        ]
        assert not list_file.exists()

    def test_each_call_uses_its_own_list_file(self, tmp_path, fake_engine):
        inputs = [_touch(tmp_path / "a.mp4")]
        concat_videos(inputs, tmp_path / "one.mp4", engine=fake_engine)
        concat_videos(inputs, tmp_path / "two.mp4", engine=fake_engine)
        assert fake_engine.list_files[0][0] != fake_engine.list_files[1][0]

    def test_list_file_removed_on_failure(self, tmp_path, fake_engine):
        fake_engine.failures["reel.mp4"] = 1
        with pytest.raises(EngineFailure):
            concat_videos([_touch(tmp_path / "a.mp4")], tmp_path / "reel.mp4", engine=fake_engine)
        assert not fake_engine.list_files[0][0].exists()

    def test_progress_uses_summed_durations(self, tmp_path):
        engine = FakeEngine(
            durations={"a.mp4": 10.0, "b.mp4": 30.0},
            stderr_lines=["Duration: N/A\n", "time=00:00:10.00\n", "time=00:00:40.00\n"],
        )
        seen = []
        concat_videos(
            [tmp_path / "a.mp4", tmp_path / "b.mp4"],
            tmp_path / "reel.mp4",
            on_progress=seen.append,
            engine=engine,
        )
        assert sorted(Path(p).name for p in engine.inspected) == ["a.mp4", "b.mp4"]
        assert seen == [25.0, 100.0]

    def test_no_probing_without_progress(self, tmp_path, fake_engine):
        concat_videos([_touch(tmp_path / "a.mp4")], tmp_path / "reel.mp4", engine=fake_engine)
        assert fake_engine.inspected == []

    def test_total_duration(self, tmp_path):
        engine = FakeEngine(durations={"a.mp4": 1.5, "b.mp4": 2.5, "c.mp4": 6.0})
        assert total_duration(["a.mp4", "b.mp4", "c.mp4"], engine=engine) == 10.0
