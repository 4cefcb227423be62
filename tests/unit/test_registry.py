"""Tests for the in-memory job registry."""

from datetime import datetime, timedelta

import pytest

from videospeak.core.exceptions import JobNotFoundError
from videospeak.core.models import (
    JobStatus,
    ProcessingResults,
    ProcessingStage,
    QualityMetrics,
    TextInput,
    TranslationMethod,
    TranslationResult,
)
from videospeak.core.registry import JobRegistry


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now


def results():
    metrics = QualityMetrics(80, 90, 75, 90, 83.75, 93.75)
    translation = TranslationResult(
        translated_text="नमस्ते दुनिया",
        source_language_code="en-IN",
        target_language_code="hi-IN",
        request_id="req",
        translation_accuracy=83.75,
        confidence_score=93.75,
        quality_metrics=metrics,
        method=TranslationMethod.REGIONAL,
    )
    return ProcessingResults(original_text="Hello world", translation=translation)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def jobs(clock):
    return JobRegistry(clock=clock)


def test_create(jobs):
    job = jobs.create(TextInput("Hello world"), "hi-IN", method=TranslationMethod.REGIONAL)

    assert job.status is JobStatus.PENDING
    assert job.progress == 0
    assert job.job_id in jobs
    assert len(jobs) == 1


def test_duplicate_id_rejected(jobs):
    jobs.create(TextInput("a"), "hi-IN", job_id="same")
    with pytest.raises(ValueError):
        jobs.create(TextInput("b"), "hi-IN", job_id="same")


def test_returns_copies(jobs):
    job = jobs.create(TextInput("Hello"), "hi-IN")
    job.progress = 99
    assert jobs.get(job.job_id).progress == 0


def test_require_unknown(jobs):
    assert jobs.get("nope") is None
    with pytest.raises(JobNotFoundError):
        jobs.require("nope")


def test_happy_path(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id

    assert jobs.start(job_id)
    assert jobs.advance(job_id, ProcessingStage.TRANSLATING, 70)
    assert jobs.complete(job_id, results())

    job = jobs.get(job_id)
    assert job.status is JobStatus.COMPLETED
    assert job.stage is ProcessingStage.COMPLETED
    assert job.progress == 100
    assert job.result.translated_text == "नमस्ते दुनिया"
    assert job.error is None


def test_progress_never_decreases(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id
    jobs.start(job_id)
    jobs.advance(job_id, ProcessingStage.TRANSLATING, 80)
    jobs.advance(job_id, ProcessingStage.TRANSLATING, 75)
    assert jobs.get(job_id).progress == 80

    jobs.advance(job_id, ProcessingStage.TRANSLATING, 250)
    assert jobs.get(job_id).progress == 100


def test_advance_requires_processing(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id
    assert not jobs.advance(job_id, ProcessingStage.TRANSLATING, 70)


def test_status_never_moves_backward(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id
    jobs.start(job_id)
    jobs.complete(job_id, results())

    assert not jobs.start(job_id)
    assert not jobs.fail(job_id, "late failure")
    job = jobs.get(job_id)
    assert job.status is JobStatus.COMPLETED
    assert job.error is None


def test_failed_job_never_gets_result(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id
    jobs.start(job_id)
    assert jobs.fail(job_id, "Provider down", "PROVIDER_ERROR", retryable=True)
    assert not jobs.complete(job_id, results())

    job = jobs.get(job_id)
    assert job.status is JobStatus.FAILED
    assert job.result is None
    assert job.error_code == "PROVIDER_ERROR"
    assert job.retryable is True


def test_pending_job_can_fail(jobs):
    job_id = jobs.create(TextInput("Hello"), "hi-IN").job_id
    assert jobs.fail(job_id, "Job cancelled by user", "CANCELLED")
    assert not jobs.start(job_id)


def test_evict_terminal(jobs, clock):
    old = jobs.create(TextInput("old"), "hi-IN").job_id
    jobs.fail(old, "boom")
    active = jobs.create(TextInput("active"), "hi-IN").job_id

    clock.now += timedelta(hours=2)
    recent = jobs.create(TextInput("recent"), "hi-IN").job_id
    jobs.fail(recent, "boom")

    assert jobs.evict_terminal(timedelta(hours=1)) == 1
    assert old not in jobs
    assert active in jobs
    assert recent in jobs


def test_counts_and_active_ids(jobs):
    a = jobs.create(TextInput("a"), "hi-IN").job_id
    b = jobs.create(TextInput("b"), "hi-IN").job_id
    jobs.start(b)
    c = jobs.create(TextInput("c"), "hi-IN").job_id
    jobs.fail(c, "x")

    assert sorted(jobs.active_ids()) == sorted([a, b])
    assert jobs.counts() == {"total": 3, "pending": 1, "processing": 1, "completed": 0, "failed": 1}
    assert jobs.clear() == 3
    assert jobs.all() == []
