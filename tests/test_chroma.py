"""Tests for chroma aggregation and the pitch front ends."""

import numpy as np
import pytest

from chordstream.core import SpectralFrame, PITCH_NAMES
from chordstream.analysis import (
    ChromaAggregator,
    ChromaConfig,
    FrontEnd,
    PeakFrontEnd,
    ChromaFrontEnd,
    create_front_end,
    cosine_similarity,
    chroma_distance,
    dominant_pitch_classes,
    normalize_chroma,
)

from spectra import SR, chord_peaks, make_frame, silent_frame


def chroma_of(**energies):
    chroma = np.zeros(12)
    for name, value in energies.items():
        chroma[PITCH_NAMES.index(name.replace("s", "#"))] = value
    return chroma


class TestChromaAggregator:
    """Tests for folding a spectrum into pitch classes."""

    def test_c_major_triad(self):
        chroma = ChromaAggregator().aggregate(make_frame(chord_peaks("C")))
        assert chroma.shape == (12,)
        assert chroma.max() == pytest.approx(1.0)
        top3 = sorted(np.argsort(chroma)[-3:])
        assert [PITCH_NAMES[i] for i in top3] == ["C", "E", "G"]

    def test_silence_is_all_zero(self):
        chroma = ChromaAggregator().aggregate(silent_frame())
        assert not np.any(chroma)

    def test_invalid_frame_is_all_zero(self):
        frame = SpectralFrame(bins=np.ones(1024), sample_rate=0.0)
        assert not np.any(ChromaAggregator().aggregate(frame))

    def test_out_of_band_energy_ignored(self):
        frame = make_frame({40.0: 200.0, 2000.0: 200.0})
        assert not np.any(ChromaAggregator().aggregate(frame))

    def test_amplitude_scale_does_not_change_shape(self):
        frame = make_frame(chord_peaks("Am"))
        byte_chroma = ChromaAggregator().aggregate(frame)
        linear_chroma = ChromaAggregator(ChromaConfig(amplitude_scale=1.0)).aggregate(frame)
        np.testing.assert_allclose(byte_chroma, linear_chroma)

    def test_bad_band(self):
        with pytest.raises(ValueError):
            ChromaConfig(min_frequency=0.0)
        with pytest.raises(ValueError):
            ChromaConfig(min_frequency=1000.0, max_frequency=65.0)


class TestChromaMaths:
    """Tests for normalization, similarity and dominant notes."""

    def test_normalize_is_idempotent(self):
        chroma = normalize_chroma(np.arange(12, dtype=float))
        np.testing.assert_allclose(normalize_chroma(chroma), chroma)
        assert chroma.max() == 1.0

    def test_normalize_silence(self):
        assert not np.any(normalize_chroma(np.zeros(12)))

    def test_cosine(self):
        a = chroma_of(C=1, E=1, G=1)
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, chroma_of(D=1, Fs=1, A=1)) == 0.0
        assert cosine_similarity(a, np.zeros(12)) == 0.0

    def test_distance(self):
        a = chroma_of(C=1, E=1, G=1)
        assert chroma_distance(a, a) == pytest.approx(0.0)
        assert chroma_distance(a, np.zeros(12)) == 1.0

    def test_clean_triad_keeps_three_notes(self):
        chroma = chroma_of(C=1.0, E=0.9, G=0.8, D=0.1, B=0.2)
        assert dominant_pitch_classes(chroma) == ["C", "E", "G"]

    def test_threshold_follows_third_strongest(self):
        # Third strongest is 0.5, so anything >= 0.4 counts
        chroma = chroma_of(C=1.0, E=0.9, G=0.5, B=0.45, D=0.3)
        assert dominant_pitch_classes(chroma) == ["C", "E", "G", "B"]

    def test_floor(self):
        chroma = chroma_of(C=1.0, E=0.2, G=0.2, A=0.1)
        assert dominant_pitch_classes(chroma) == ["C"]

    def test_capped_at_six(self):
        chroma = np.linspace(1.0, 0.9, 12)
        dominant = dominant_pitch_classes(chroma)
        assert dominant == PITCH_NAMES[:6]

    def test_strongest_first(self):
        chroma = chroma_of(C=0.8, E=0.9, G=1.0)
        assert dominant_pitch_classes(chroma) == ["G", "E", "C"]

    def test_ties_keep_pitch_class_order(self):
        chroma = chroma_of(A=1.0, C=1.0, E=0.9)
        assert dominant_pitch_classes(chroma) == ["C", "A", "E"]

    def test_silence_has_no_dominant(self):
        assert dominant_pitch_classes(np.zeros(12)) == []


class TestFrontEnds:
    """Tests for the interchangeable pitch front ends."""

    def test_factory(self):
        assert isinstance(create_front_end(FrontEnd.PEAK), PeakFrontEnd)
        assert isinstance(create_front_end("chroma"), ChromaFrontEnd)
        with pytest.raises(ValueError):
            create_front_end("pitch")

    def test_peak_evidence(self):
        evidence = PeakFrontEnd().extract(make_frame(chord_peaks("G")))
        assert evidence.chroma is None
        assert evidence.pitch_classes == ["G", "B", "D"]
        assert [n.name for n in evidence.notes] == ["G4", "B4", "D5"]

    def test_peak_strongest(self):
        frame = make_frame({261.63: 100.0, 329.63: 220.0, 392.0: 150.0})
        assert PeakFrontEnd().extract(frame).strongest == "E"

    def test_chroma_evidence(self):
        evidence = ChromaFrontEnd().extract(make_frame(chord_peaks("C")))
        assert evidence.chroma is not None
        assert set(evidence.pitch_classes) == {"C", "E", "G"}
        strengths = [evidence.chroma[PITCH_NAMES.index(n)] for n in evidence.pitch_classes]
        assert strengths == sorted(strengths, reverse=True)

    def test_empty_evidence(self):
        for front_end in (PeakFrontEnd(), ChromaFrontEnd()):
            evidence = front_end.extract(silent_frame())
            assert evidence.is_empty
            assert evidence.strongest is None
