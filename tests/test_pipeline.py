"""End-to-end tests for the chord pipeline and its outputs."""

import json

import numpy as np
import pytest

from chordstream.core import SpectralFrame
from chordstream.analysis import FrontEnd, GateConfig, SamplingMode
from chordstream.inference import StabilityPhase
from chordstream.pipeline import ChordEvent, ChordPipeline, PipelineConfig
from chordstream.output import ChordHistory, EventExporter, chord_timeline, event_to_dict

from spectra import SR, chord_frames, chord_peaks, make_frame, make_spectrum, silent_frame


def reported_names(pipeline, frames):
    names = []
    for frame in frames:
        event = pipeline.process(frame)
        names.append(event.name if event else None)
    return names


class TestPeakPipeline:
    """Pipeline with the peak front end."""

    def test_confirms_after_five_frames(self):
        pipeline = ChordPipeline()
        names = reported_names(pipeline, chord_frames("C", 10))
        assert names[:4] == [None] * 4
        assert names[4:] == ["C"] * 6

    def test_chord_change(self):
        pipeline = ChordPipeline()
        reported_names(pipeline, chord_frames("C", 10))
        names = reported_names(pipeline, chord_frames("G", 40, start_ms=10 * 1000 / 60))
        assert names[0] == "C"
        assert names[-1] == "G"
        # No flicker: once G appears, it stays
        first_g = names.index("G")
        assert set(names[first_g:]) == {"G"}

    def test_changed_flag(self):
        pipeline = ChordPipeline()
        events = list(pipeline.run(chord_frames("Am", 8)))
        assert [e.changed for e in events] == [True, False, False, False]
        assert events[0].pitch_classes == ("A", "C", "E")

    def test_overtones(self):
        pipeline = ChordPipeline()
        events = list(pipeline.run(chord_frames("F", 8, harmonics=3)))
        assert events[-1].name == "F"

    def test_raw_mode_reports_immediately(self):
        pipeline = ChordPipeline(PipelineConfig(stabilize=False))
        event = pipeline.process(make_frame(chord_peaks("G")))
        assert event.name == "G"
        assert event.confidence == 0.9
        assert event.strategy == "exact"

    def test_silence(self):
        pipeline = ChordPipeline()
        assert all(e is None for e in map(pipeline.process, [silent_frame(t) for t in range(0, 100, 16)]))

    def test_silence_decays_confirmed_chord(self):
        pipeline = ChordPipeline()
        reported_names(pipeline, chord_frames("C", 10))
        names = reported_names(pipeline, [silent_frame(200.0 + 100 * i) for i in range(15)])
        assert names[0] == "C"
        assert names[-1] is None


class TestDegenerateInput:
    """Malformed frames are skipped, never raised."""

    def test_zero_sample_rate(self):
        frame = SpectralFrame(bins=make_spectrum({440.0: 200.0}), sample_rate=0.0)
        assert ChordPipeline().process(frame) is None

    def test_empty_bins(self):
        assert ChordPipeline().process(SpectralFrame(bins=[], sample_rate=SR)) is None

    def test_nan_bins(self):
        frame = SpectralFrame(bins=np.full(4096, np.nan), sample_rate=SR)
        assert ChordPipeline().process(frame) is None

    def test_nan_in_chord(self):
        bins = make_spectrum(chord_peaks("C"))
        bins[1000] = np.nan
        pipeline = ChordPipeline(PipelineConfig(stabilize=False))
        assert pipeline.process(SpectralFrame(bins=bins, sample_rate=SR)).name == "C"


class TestChromaPipeline:
    """Pipeline with the chroma front end."""

    def test_detects_triad(self):
        pipeline = ChordPipeline(PipelineConfig(front_end="chroma"))
        names = reported_names(pipeline, chord_frames("C", 8))
        assert names[-1] == "C"
        assert pipeline.last_evidence.chroma is not None

    def test_change_gate_holds_stable_chord(self):
        config = PipelineConfig(front_end=FrontEnd.CHROMA, use_change_gate=True)
        pipeline = ChordPipeline(config)
        calls = []
        match_chroma = pipeline.matcher.match_chroma

        def counting_match(*args, **kwargs):
            calls.append(args)
            return match_chroma(*args, **kwargs)

        pipeline.matcher.match_chroma = counting_match
        names = reported_names(pipeline, chord_frames("C", 20))
        assert names[-1] == "C"
        assert pipeline.stabilizer.phase is StabilityPhase.STABLE
        # Steady frames after confirmation re-vote the last match
        assert len(calls) == 5
        assert len(pipeline.stabilizer.window) == 20

    def test_change_gate_follows_chord_change(self):
        config = PipelineConfig(front_end=FrontEnd.CHROMA, use_change_gate=True)
        pipeline = ChordPipeline(config)
        reported_names(pipeline, chord_frames("C", 20))
        names = reported_names(pipeline, chord_frames("G", 120, start_ms=20 * 1000 / 60))
        assert names[0] == "C"
        assert names[-1] == "G"
        first_g = names.index("G")
        assert set(names[first_g:]) == {"G"}

    def test_change_gate_keeps_steady_chord_alive(self):
        config = PipelineConfig(front_end=FrontEnd.CHROMA, use_change_gate=True)
        pipeline = ChordPipeline(config)
        # Three seconds of one chord outlasts the vote window
        names = reported_names(pipeline, chord_frames("C", 180))
        assert names[-1] == "C"
        assert pipeline.stabilizer.phase is StabilityPhase.STABLE

    def test_set_front_end_resets(self):
        pipeline = ChordPipeline()
        reported_names(pipeline, chord_frames("C", 10))
        pipeline.set_front_end("chroma")
        assert pipeline.front_end is FrontEnd.CHROMA
        assert pipeline.stabilizer.confirmed is None
        assert pipeline.process(make_frame(chord_peaks("C"), frame_time=500.0)) is None


class TestConfig:
    """Tests for pipeline configuration."""

    def test_sensitivity_presets(self):
        config = PipelineConfig.from_sensitivity("LOW", front_end="chroma")
        assert config.peaks.amplitude_threshold == 32.0
        assert config.gate.onset_threshold == 1.0
        assert config.front_end is FrontEnd.CHROMA

    def test_unknown_sensitivity(self):
        with pytest.raises(ValueError):
            PipelineConfig.from_sensitivity("extreme")

    def test_unknown_front_end(self):
        with pytest.raises(ValueError):
            PipelineConfig(front_end="fft")

    def test_fixed_sampling(self):
        config = PipelineConfig(
            stabilize=False,
            gate=GateConfig(mode=SamplingMode.FIXED_INTERVAL, fixed_interval_ms=100.0),
        )
        pipeline = ChordPipeline(config)
        events = list(pipeline.run(chord_frames("C", 30)))
        # 30 frames at 60 fps span ~483 ms: samples at 0, ~117, ~233, ~350, ~467
        assert len(events) == 5

    def test_multi_band(self):
        pipeline = ChordPipeline(PipelineConfig(multi_band=True, stabilize=False))
        peaks = {98.0: 200.0, 123.47: 200.0, 146.83: 200.0}
        peaks.update(chord_peaks("C"))
        event = pipeline.process(make_frame(peaks))
        assert set(event.per_band) == {"bass", "mid"}
        assert event.name in ("G", "C")


class TestChordHistory:
    """Tests for the scrolling ticker."""

    def event(self, name, t=0.0):
        return ChordEvent(name=name, confidence=0.9, pitch_classes=(), timestamp=t)

    def test_repeats_become_placeholders(self):
        history = ChordHistory()
        for name in ("C", "C", None, "G", "G"):
            history.record(self.event(name) if name else None, 0.0)
        assert [item.chord for item in history.items] == ["C", None, None, "G", None]
        assert history.chords == ["C", "G"]
        assert history.render() == "C • • G •"

    def test_chord_after_silence_is_recorded_again(self):
        history = ChordHistory()
        for name in ("C", None, "C"):
            history.record(self.event(name) if name else None, 0.0)
        assert history.chords == ["C", "C"]

    def test_bounded(self):
        history = ChordHistory(max_items=3)
        for i, name in enumerate("CDEFG"):
            history.record(self.event(name), float(i))
        assert history.chords == ["E", "F", "G"]

    def test_clear(self):
        history = ChordHistory()
        history.record(self.event("C"), 0.0)
        history.clear()
        assert history.items == []
        history.record(self.event("C"), 1.0)
        assert history.chords == ["C"]


class TestExport:
    """Tests for JSON export."""

    @pytest.fixture
    def events(self):
        return [
            ChordEvent("C", 0.8, ("C", "E", "G"), 100.0),
            ChordEvent("C", 0.9, ("C", "E", "G"), 200.0, changed=False),
            ChordEvent("G", 0.9, ("G", "B", "D"), 300.0),
        ]

    def test_timeline(self, events):
        assert chord_timeline(events) == [
            {"name": "C", "start_ms": 100.0, "end_ms": 200.0, "confidence": 0.9},
            {"name": "G", "start_ms": 300.0, "end_ms": 300.0, "confidence": 0.9},
        ]

    def test_event_to_dict(self, events):
        data = event_to_dict(events[0])
        assert data["name"] == "C"
        assert data["pitch_classes"] == ["C", "E", "G"]
        assert data["timestamp_ms"] == 100.0
        assert "per_band" not in data

    def test_export(self, events, tmp_path):
        path = tmp_path / "events.json"
        EventExporter().export(events, str(path), source="song.wav")
        payload = json.loads(path.read_text())
        assert payload["source"] == "song.wav"
        assert len(payload["events"]) == 3
        assert [seg["name"] for seg in payload["timeline"]] == ["C", "G"]
