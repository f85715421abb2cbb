"""Tests for event streaming, checkpointing and the completion estimate."""

import asyncio

import pytest

from agents.domain.models import PresentationRun
from agents.generation.insight_synthesizer import (
    InsightSynthesizer,
    completion_band,
    compute_completion_score,
)
from agents.generation.progress_manager import PresentationPhase, status_payload
from agents.generation.stream_checkpointer import StreamCheckpointer
from services.agent_stream_bus import EventStream
from conftest import FakePersistence, RecordingSink


class OrderCheckingPersistence(FakePersistence):
    """Asserts the entry was already streamed when it is persisted."""

    def __init__(self, sink):
        super().__init__()
        self.sink = sink

    async def append_blackboard(self, presentation_id, token, entry) -> bool:
        streamed_ids = [data["id"] for data in self.sink.of("blackboard")]
        assert entry["id"] in streamed_ids
        return await super().append_blackboard(presentation_id, token, entry)


class TestStatusPayload:
    def test_default_message(self):
        assert status_payload(PresentationPhase.PLANNING) == {
            "phase": "planning",
            "message": "Planning slide structure...",
        }

    def test_progress_counters_only_when_given(self):
        payload = status_payload(PresentationPhase.GENERATING_SLIDES, "Generating slide 1/3", current=1, total=3)
        assert payload["current"] == 1
        assert payload["total"] == 3
        assert "current" not in status_payload(PresentationPhase.GENERATING_SLIDES, total=3)


class TestAppendEntry:
    async def test_mutates_then_streams_then_persists(self, run):
        sink = RecordingSink()
        persistence = OrderCheckingPersistence(sink)
        checkpointer = StreamCheckpointer(run, sink, persistence)

        entry = await checkpointer.append_entry("read_settings", "observation", "Project exists", {"n": 1})

        assert run.blackboard == [entry]
        assert sink.of("blackboard") == [entry.to_dict()]
        assert persistence.appended[0]["data"] == {"n": 1}

    async def test_persistence_failure_does_not_raise(self, run, sink):
        checkpointer = StreamCheckpointer(run, sink, FakePersistence(fail=True))
        entry = await checkpointer.append_entry("t", "insight", "still streamed")
        assert run.blackboard == [entry]
        assert sink.names() == ["blackboard"]

    async def test_unknown_category_is_rejected(self, checkpointer, run):
        with pytest.raises(ValueError):
            await checkpointer.append_entry("t", "gossip", "nope")
        assert run.blackboard == []

    async def test_entries_have_unique_ids(self, checkpointer, run):
        for i in range(5):
            await checkpointer.append_entry("t", "observation", f"note {i}")
        assert len({e.id for e in run.blackboard}) == 5


class TestCheckpoint:
    async def test_reports_failure_as_false(self, run, sink):
        checkpointer = StreamCheckpointer(run, sink, FakePersistence(fail=True))
        assert await checkpointer.checkpoint(status="generating") is False

    async def test_only_given_fields_are_sent(self, checkpointer, persistence):
        assert await checkpointer.checkpoint(status="generating", slides=[])
        update = persistence.updates[0]
        assert update["status"] == "generating"
        assert update["slides"] == []
        assert update["blackboard"] is None
        assert update["metadata"] is None


class TestEventStream:
    async def test_iterates_in_publish_order_until_closed(self):
        stream = EventStream()
        await stream.publish("status", {"phase": "starting"})
        await stream.publish("complete", {"slideCount": 1})
        await stream.close()
        await stream.publish("late", {})

        received = [event async for event in stream]
        assert received == [("status", {"phase": "starting"}), ("complete", {"slideCount": 1})]
        assert stream.closed

    async def test_consumer_waits_for_producer(self):
        stream = EventStream()

        async def produce():
            await asyncio.sleep(0)
            await stream.publish("status", {"phase": "saving"})
            await stream.close()

        task = asyncio.create_task(produce())
        received = [name async for name, _ in stream]
        await task
        assert received == ["status"]


class TestInsightSynthesizer:
    def test_score_weights(self):
        run = PresentationRun(project_id="p", presentation_id="q", share_token="t")
        assert compute_completion_score(run.collected) == 0

        run.collected.requirements = [{"code": "R1"}]
        run.collected.repo_structure = {"repos": [{"id": "r"}], "files": [{"path": "a.py"}]}
        assert compute_completion_score(run.collected) == 40

        run.collected.canvas = {"nodes": [{}], "edges": []}
        run.collected.specifications = [{}]
        run.collected.artifacts = [{}]
        run.collected.databases = [{}]
        run.collected.deployments = [{}]
        assert compute_completion_score(run.collected) == 100

    def test_bands(self):
        assert completion_band(29).startswith("Early stage")
        assert completion_band(30).startswith("Mid-development")
        assert completion_band(59).startswith("Mid-development")
        assert completion_band(60).startswith("Advanced")

    async def test_appends_estimate_and_summary_then_checkpoints(self, run, sink, persistence, checkpointer):
        run.collected.settings = {"name": "Atlas"}
        run.collected.requirements = [{"code": "R1"}, {"code": "R2"}]

        score = await InsightSynthesizer(checkpointer).synthesize(run)

        assert score == 15
        assert run.completion_score == 15
        estimate, summary = run.blackboard
        assert estimate.category == "estimate"
        assert estimate.content == "Project maturity assessment: 15% complete. Early stage - focus on vision and roadmap."
        assert summary.category == "narrative"
        assert summary.data == {"type": "bluf"}
        assert summary.content.startswith("Executive Summary (BLUF): Atlas. Current status: 15% complete with 2 requirements")
        assert sink.of("status")[0]["phase"] == "synthesis"

        update = persistence.updates[-1]
        assert update["status"] == "generating_slides"
        assert len(update["blackboard"]) == 2
