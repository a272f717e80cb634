"""Tests for the command-line interface."""

import json

import numpy as np
import pytest
import soundfile as sf
from typer.testing import CliRunner

from chordstream.analysis import GateConfig, SamplingMode
from chordstream.cli import _run_pipeline, app
from chordstream.output import ChordHistory
from chordstream.pipeline import ChordPipeline, PipelineConfig

from spectra import chord_frames, silent_frame

runner = CliRunner()
SR = 44100


@pytest.fixture
def c_major_wav(tmp_path):
    """Two seconds of a C major triad."""
    t = np.arange(2 * SR) / SR
    audio = sum(0.3 * np.sin(2 * np.pi * f * t) for f in (261.63, 329.63, 392.0))
    path = tmp_path / "c_major.wav"
    sf.write(str(path), audio / 3, SR)
    return path


class TestAnalyze:
    """Tests for `chordstream analyze`."""

    def test_detects_c_major(self, c_major_wav, tmp_path):
        out = tmp_path / "events.json"
        result = runner.invoke(app, [
            "analyze", str(c_major_wav),
            "--fft-size", "8192", "--sensitivity", "low", "-o", str(out),
        ])
        assert result.exit_code == 0, result.output
        payload = json.loads(out.read_text())
        assert "C" in [event["name"] for event in payload["events"]]

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "nope.wav")])
        assert result.exit_code == 1

    def test_bad_front_end(self, c_major_wav):
        result = runner.invoke(app, ["analyze", str(c_major_wav), "-f", "fft"])
        assert result.exit_code == 1


class TestHistoryRecording:
    """Tests for feeding the chord ticker from the analyze loop."""

    def test_every_sampled_tick_is_recorded(self):
        frames = [silent_frame(frame_time=i * 1000 / 60) for i in range(3)]
        frames += list(chord_frames("C", 8, start_ms=3 * 1000 / 60))
        history = ChordHistory()
        events, frame_count = _run_pipeline(ChordPipeline(), frames, history)

        assert frame_count == 11
        assert [e.name for e in events] == ["C"] * 4
        # Silence and the unconfirmed ticks become placeholders too
        assert len(history.items) == 11
        assert [item.chord for item in history.items[:8]] == [None] * 7 + ["C"]
        assert history.chords == ["C"]

    def test_skipped_ticks_are_not_recorded(self):
        config = PipelineConfig(
            stabilize=False,
            gate=GateConfig(mode=SamplingMode.FIXED_INTERVAL, fixed_interval_ms=100.0),
        )
        history = ChordHistory()
        _run_pipeline(ChordPipeline(config), chord_frames("C", 30), history)
        assert len(history.items) == 5


class TestUtilities:
    """Tests for the small inspection commands."""

    def test_classify(self):
        result = runner.invoke(app, ["classify", "440", "261.63"])
        assert result.exit_code == 0
        assert "A4" in result.output
        assert "C4" in result.output

    def test_match(self):
        result = runner.invoke(app, ["match", "C", "E", "G"])
        assert result.exit_code == 0
        assert "exact" in result.output

    def test_match_too_few_notes(self):
        result = runner.invoke(app, ["match", "C"])
        assert result.exit_code == 1

    def test_vocabulary(self):
        result = runner.invoke(app, ["vocabulary"])
        assert result.exit_code == 0
        assert "dominant7" in result.output
