"""Tests for the speech-paced export schedule."""

import asyncio

import pytest

from chatreel.errors import SynthesisFailure
from chatreel.export_schedule import build_export_plan, export_delay_s, voice_for
from chatreel.schedule import build_schedule

from conftest import FakeSynth

VOICES = {"SENDER": "adam", "RECEIVER": "alloy"}


def run_plan(messages, synth, **kw):
    return asyncio.run(build_export_plan(messages, VOICES, synth, **kw))


class TestExportDelay:
    """Measured length -> delay_s."""

    def test_rounds_to_hundredths(self):
        assert export_delay_s(1234) == 1.23
        assert export_delay_s(2000) == 2.0
        assert export_delay_s(1235) == 1.24

    @pytest.mark.parametrize("ms", [0, 1, 4])
    def test_floor(self, ms):
        assert export_delay_s(ms) == 0.01


class TestBuildExportPlan:
    """Sequential synthesis and re-timing."""

    def test_delays_replaced_by_spoken_length(self, sample_messages):
        synth = FakeSynth([1234, 2000, 1500])
        plan = run_plan(sample_messages, synth)
        assert [m["delay_s"] for m in plan.messages] == [1.23, 2.0, 1.5]
        assert plan.duration_ms == 1234 + 2000 + 1500
        assert [s.message_id for s in plan.segments] == ["a", "b", "c"]
        assert [s.duration_ms for s in plan.segments] == [1234, 2000, 1500]

    def test_input_is_not_mutated(self, sample_messages):
        run_plan(sample_messages, FakeSynth([100, 100, 100]))
        assert sample_messages[0]["delay_s"] == 2

    def test_other_fields_preserved(self, sample_messages):
        plan = run_plan(sample_messages, FakeSynth([100, 100, 100]))
        for before, after in zip(sample_messages, plan.messages):
            assert {k: v for k, v in after.items() if k != "delay_s"} == \
                   {k: v for k, v in before.items() if k != "delay_s"}

    def test_voice_per_speaker_and_order(self, sample_messages):
        synth = FakeSynth([100, 100, 100], delay=0.001)
        run_plan(sample_messages, synth)
        assert synth.calls == [
            ("Hey, you free?", "adam"),
            ("Yep! On my way.", "alloy"),
            ("Great, see you soon.", "adam"),
        ]
        assert synth.max_in_flight == 1

    def test_voice_fallback(self):
        assert voice_for({"speaker": "RECEIVER"}, {"SENDER": "adam"}) == "alloy"

    def test_schedule_matches_audio(self, sample_messages):
        plan = run_plan(sample_messages, FakeSynth([1234, 2000, 1500]))
        assert [e.at for e in build_schedule(plan.messages)] == [0, 1230, 3230]

    def test_progress_notes(self, sample_messages):
        notes = []
        run_plan(sample_messages, FakeSynth([10, 10, 10]), progress=notes.append)
        assert notes == ["Generating speech (1/3)…", "Generating speech (2/3)…", "Generating speech (3/3)…"]


class TestFailures:
    """Any failed message aborts the plan."""

    def test_failure_stops_further_requests(self):
        msgs = [{"id": str(i), "speaker": "SENDER", "text": f"m{i}"} for i in range(5)]
        synth = FakeSynth([100] * 5, fail_at=1)
        with pytest.raises(SynthesisFailure) as exc:
            run_plan(msgs, synth)
        assert exc.value.index == 1
        assert len(synth.calls) == 2

    def test_foreign_errors_are_wrapped(self, sample_messages):
        synth = FakeSynth([100] * 3, fail_at=0, exc=ConnectionResetError("peer reset"))
        with pytest.raises(SynthesisFailure) as exc:
            run_plan(sample_messages, synth)
        assert exc.value.index == 0
        assert isinstance(exc.value.__cause__, ConnectionResetError)
