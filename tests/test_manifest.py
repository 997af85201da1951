from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.manifest import build_platform_metadata, load_segments, write_stitch_report
from src.models import EstimatedQuality, StitchResult


def _result() -> StitchResult:
    return StitchResult(
        output_path="/out/final.mp4",
        total_duration_seconds=15.5,
        file_size_bytes=1024,
        transitions_used=["fade"],
        processing_time_ms=1200,
        quality=EstimatedQuality(90.0, 100.0, 100.0),
        estimated_processing_cost=0.0018,
        segment_count=2,
        total_segment_cost=2.4,
        segments=[
            {"segment_id": "intro", "duration_seconds": 8.0, "cost": 1.2, "has_audio": True, "character_consistent": True},
            {"segment_id": "outro", "duration_seconds": 8.0, "cost": 1.2, "has_audio": False, "character_consistent": False},
        ],
    )


def test_load_segments_from_json_list_resolves_relative_paths(tmp_path: Path) -> None:
    manifest = tmp_path / "segments.json"
    manifest.write_text(
        json.dumps(
            [
                {"id": "intro", "video_path": "clips/a.mp4", "duration_seconds": 8, "cost": 1.2},
                {"video_path": "/abs/b.mp4", "duration": "7.5", "has_audio": False},
            ]
        ),
        encoding="utf-8",
    )

    segments = load_segments(manifest)

    assert [segment.segment_id for segment in segments] == ["intro", "segment-2"]
    assert segments[0].video_path == str(tmp_path.resolve() / "clips" / "a.mp4")
    assert segments[0].cost == pytest.approx(1.2)
    assert segments[1].video_path == "/abs/b.mp4"
    assert segments[1].duration_seconds == pytest.approx(7.5)
    assert segments[1].has_audio is False


def test_load_segments_from_yaml_mapping_uses_duration_resolver(tmp_path: Path) -> None:
    manifest = tmp_path / "segments.yaml"
    manifest.write_text(
        "segments:\n  - id: one\n    video_path: /clips/one.mp4\n  - id: two\n    video_path: /clips/two.mp4\n    duration_seconds: 4\n",
        encoding="utf-8",
    )
    probed: list[str] = []

    def _resolver(path: str) -> float:
        probed.append(path)
        return 6.0

    segments = load_segments(manifest, duration_resolver=_resolver)

    assert probed == ["/clips/one.mp4"]
    assert [segment.duration_seconds for segment in segments] == [6.0, 4.0]


def test_load_segments_requires_duration_without_resolver(tmp_path: Path) -> None:
    manifest = tmp_path / "segments.json"
    manifest.write_text(json.dumps([{"video_path": "/clips/a.mp4"}]), encoding="utf-8")

    with pytest.raises(ValueError, match="row 1 is missing 'duration_seconds'"):
        load_segments(manifest)


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"clips": []}, "must be a list"),
        (["not-an-object"], "row 1 must be an object"),
        ([{"duration_seconds": 3}], "row 1 is missing 'video_path'"),
        ([{"video_path": "/a.mp4", "duration_seconds": "long"}], "invalid duration"),
        ([{"video_path": "/a.mp4", "duration_seconds": 3, "cost": "cheap"}], "row 1 has an invalid cost"),
        ([{"video_path": "/a.mp4", "duration_seconds": 3, "cost": None}], "row 1 has an invalid cost"),
        ([{"video_path": "/a.mp4", "duration_seconds": 3, "has_audio": "maybe"}], "row 1 has an invalid has_audio"),
        ([{"video_path": "/a.mp4", "duration_seconds": 3, "character_consistent": 2}], "invalid character_consistent"),
    ],
)
def test_load_segments_rejects_malformed_manifests(tmp_path: Path, payload: object, message: str) -> None:
    manifest = tmp_path / "segments.json"
    manifest.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        load_segments(manifest)


def test_write_stitch_report_includes_result_and_extra(tmp_path: Path) -> None:
    path = write_stitch_report(_result(), tmp_path / "reports" / "run.json", extra={"manifest_path": "m.json"})

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["status"] == "ok"
    assert payload["total_duration_seconds"] == pytest.approx(15.5)
    assert payload["quality"]["estimated_video_quality"] == pytest.approx(90.0)
    assert payload["manifest_path"] == "m.json"


def test_build_platform_metadata_summarizes_result() -> None:
    metadata = build_platform_metadata(_result(), platform="youtube", timestamp="2026-01-01T00-00-00")

    assert metadata["title"] == "Stitched video - YOUTUBE"
    assert metadata["transitions"] == ["fade"]
    assert metadata["estimated_quality"]["transition_smoothness"] == pytest.approx(100.0)
    assert [segment["has_audio"] for segment in metadata["segments"]] == [True, False]
    assert [segment["character_consistent"] for segment in metadata["segments"]] == [True, False]


def test_load_segments_parses_string_flags(tmp_path: Path) -> None:
    manifest = tmp_path / "segments.json"
    manifest.write_text(
        json.dumps(
            [
                {"video_path": "/clips/a.mp4", "duration_seconds": 4, "has_audio": "false", "character_consistent": "yes"},
                {"video_path": "/clips/b.mp4", "duration_seconds": 4, "has_audio": "On", "character_consistent": "0"},
            ]
        ),
        encoding="utf-8",
    )

    segments = load_segments(manifest)

    assert [segment.has_audio for segment in segments] == [False, True]
    assert [segment.character_consistent for segment in segments] == [True, False]


def test_load_segments_reports_yaml_syntax_errors(tmp_path: Path) -> None:
    manifest = tmp_path / "segments.yaml"
    manifest.write_text("segments:\n  - id: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML manifest"):
        load_segments(manifest)
