"""Testes dos tipos de resultado e sua serializacao JSON."""

from __future__ import annotations

from pathlib import Path

from voxtract._types import (
    AudioMetadata,
    JobResult,
    JobStatus,
    SourceMetadata,
    StageName,
    StageResult,
)


def _stage(stage: StageName, success: bool = True) -> StageResult:
    return StageResult(
        stage=stage,
        success=success,
        input_path=Path("/tmp/in.wav"),
        output_path=Path("/tmp/out.wav") if success else None,
        error=None if success else "boom",
        duration_s=1.23456,
    )


class TestStageResult:
    def test_as_dict_uses_camel_case(self) -> None:
        payload = _stage(StageName.EXTRACT).as_dict()
        assert payload == {
            "stage": "extract",
            "success": True,
            "inputPath": "/tmp/in.wav",
            "outputPath": "/tmp/out.wav",
            "error": None,
            "diagnostic": "",
            "durationSeconds": 1.235,
        }


class TestJobResult:
    def test_success_shape(self) -> None:
        result = JobResult(
            success=True,
            job_id="job-1",
            status=JobStatus.SUCCEEDED,
            source_id="abc",
            metadata=SourceMetadata("abc", "Title", 10.0, "Someone", "20240101"),
            audio_metadata=AudioMetadata(10.0, 44100, 1, "pcm_s16le", 705600),
            output_files={"wav": "/out/a.wav", "mp3": "/out/a.mp3"},
            stages=(_stage(StageName.DOWNLOAD),),
            message="ok",
        )
        payload = result.as_dict()
        assert payload["success"] is True
        assert payload["jobId"] == "job-1"
        assert payload["sourceId"] == "abc"
        assert payload["videoId"] == "abc"
        assert payload["metadata"]["uploadDate"] == "20240101"
        assert payload["audioMetadata"]["sampleRate"] == 44100
        assert payload["outputFiles"] == {"wav": "/out/a.wav", "mp3": "/out/a.mp3"}
        assert payload["message"] == "ok"
        assert len(payload["stages"]) == 1
        assert "error" not in payload

    def test_failure_shape(self) -> None:
        result = JobResult(
            success=False,
            job_id="job-2",
            status=JobStatus.FAILED,
            source_id="abc",
            stages=(_stage(StageName.DOWNLOAD), _stage(StageName.EXTRACT, success=False)),
            error="Failed to extract raw audio",
            details="boom",
            failed_stage=StageName.EXTRACT,
        )
        payload = result.as_dict()
        assert payload["success"] is False
        assert payload["status"] == "failed"
        assert payload["error"] == "Failed to extract raw audio"
        assert payload["details"] == "boom"
        assert payload["stage"] == "extract"
        assert [s["stage"] for s in payload["stages"]] == ["download", "extract"]
        assert "outputFiles" not in payload

    def test_failure_without_stage(self) -> None:
        result = JobResult(
            success=False, job_id="j", status=JobStatus.FAILED, error="Invalid YouTube URL"
        )
        payload = result.as_dict()
        assert payload["stage"] is None
        assert payload["stages"] == []
        assert payload["sourceId"] is None
        assert payload["videoId"] is None
