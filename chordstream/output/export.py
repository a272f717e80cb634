"""Serialize chord events for JSON output."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..pipeline import ChordEvent


def event_to_dict(event: ChordEvent) -> Dict[str, Any]:
    """Plain-dict form of a ChordEvent (JSON-ready)."""
    data = {
        "name": event.name,
        "confidence": round(float(event.confidence), 4),
        "pitch_classes": list(event.pitch_classes),
        "chord_tones": list(event.chord_tones),
        "timestamp_ms": round(float(event.timestamp), 2),
        "changed": event.changed,
        "strategy": event.strategy,
    }
    if event.per_band:
        data["per_band"] = {
            band: {
                "name": candidate.name,
                "confidence": round(float(candidate.confidence), 4),
                "notes": list(candidate.notes),
            }
            for band, candidate in event.per_band.items()
        }
    return data


def chord_timeline(events: Iterable[ChordEvent]) -> List[Dict[str, Any]]:
    """
    Collapse a stream of events into chord segments.

    Returns:
        List of {"name", "start_ms", "end_ms", "confidence"} dicts, one
        per run of identical chord names
    """
    segments: List[Dict[str, Any]] = []
    for event in events:
        if segments and segments[-1]["name"] == event.name:
            segment = segments[-1]
            segment["end_ms"] = round(float(event.timestamp), 2)
            segment["confidence"] = max(segment["confidence"], round(float(event.confidence), 4))
        else:
            segments.append({
                "name": event.name,
                "start_ms": round(float(event.timestamp), 2),
                "end_ms": round(float(event.timestamp), 2),
                "confidence": round(float(event.confidence), 4),
            })
    return segments


class EventExporter:
    """Write chord events to a JSON file."""

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    def to_json(self, events: List[ChordEvent], source: Optional[str] = None) -> str:
        payload = {
            "source": source,
            "events": [event_to_dict(e) for e in events],
            "timeline": chord_timeline(events),
        }
        return json.dumps(payload, indent=self.indent)

    def export(self, events: List[ChordEvent], output_path: str, source: Optional[str] = None) -> None:
        """
        Export events to a JSON file.

        Args:
            events: Reported chord events
            output_path: Output .json path
            source: Optional description of the input (e.g. file name)
        """
        Path(output_path).write_text(self.to_json(events, source))
