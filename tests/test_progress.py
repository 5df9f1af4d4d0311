# Unit tests for completion accounting
from dataclasses import replace

import pytest

from chunk_scheduler.errors import ChunkNotFoundError
from chunk_scheduler.models import CHUNK_BREAK, STATUS_ACTIVE, STATUS_COMPLETED
from chunk_scheduler.progress import (
    chunk_countdown,
    complete_chunk,
    credited_minutes,
    current_chunk,
    end_schedule,
    next_pending_chunk,
)


@pytest.fixture
def morning(schedule_of):
    # c1 -> task t1, c2 -> task t2
    return schedule_of(("09:00", "09:30"), ("09:30", "10:00"))


@pytest.mark.unit
class TestCreditedMinutes:
    def test_elapsed_since_scheduled_start(self, morning, at):
        assert credited_minutes(morning.chunks[0], at("09:17")) == 17

    def test_at_least_one_minute(self, morning, at):
        assert credited_minutes(morning.chunks[0], at("09:00:20")) == 1

    def test_rounds_half_up(self, morning, at):
        assert credited_minutes(morning.chunks[0], at("09:10:30")) == 11

    def test_overtime_is_not_capped(self, morning, at):
        assert credited_minutes(morning.chunks[0], at("10:10")) == 70


@pytest.mark.unit
class TestCompleteChunk:
    def test_credits_task(self, morning, task, at):
        tasks = [task("t1", estimated=120)]
        schedule, tasks = complete_chunk(morning, tasks, "c1", at("09:25"))
        chunk = schedule.find_chunk("c1")
        assert chunk.completed
        assert chunk.completed_at == at("09:25").isoformat()
        assert tasks[0].completed_minutes == 25
        assert schedule.status == STATUS_ACTIVE

    def test_credit_clamped_to_estimate(self, morning, task, at):
        tasks = [task("t1", estimated=60, completed=50)]
        _, tasks = complete_chunk(morning, tasks, "c1", at("09:40"))
        assert tasks[0].completed_minutes == 60

    def test_idempotent(self, morning, task, at):
        tasks = [task("t1", estimated=120)]
        once, once_tasks = complete_chunk(morning, tasks, "c1", at("09:25"))
        twice, twice_tasks = complete_chunk(once, once_tasks, "c1", at("09:50"))
        assert twice == once
        assert twice_tasks == once_tasks

    def test_inputs_not_mutated(self, morning, task, at):
        tasks = [task("t1", estimated=120)]
        complete_chunk(morning, tasks, "c1", at("09:25"))
        assert not morning.chunks[0].completed
        assert tasks[0].completed_minutes == 0

    def test_break_gives_no_credit(self, morning, task, at):
        schedule = replace(morning, chunks=[replace(morning.chunks[0], type=CHUNK_BREAK, task_id="")]
                           + morning.chunks[1:])
        tasks = [task("t1"), task("t2")]
        schedule, after = complete_chunk(schedule, tasks, "c1", at("09:30"))
        assert schedule.find_chunk("c1").completed
        assert after == tasks

    def test_missing_task_still_completes(self, morning, at):
        schedule, tasks = complete_chunk(morning, [], "c1", at("09:30"))
        assert schedule.find_chunk("c1").completed
        assert tasks == []

    def test_last_completion_finishes_schedule(self, morning, task, at):
        tasks = [task("t1"), task("t2")]
        schedule, tasks = complete_chunk(morning, tasks, "c1", at("09:30"))
        schedule, tasks = complete_chunk(schedule, tasks, "c2", at("10:00"))
        assert schedule.status == STATUS_COMPLETED
        assert not schedule.ended_early

    def test_progress_never_exceeds_estimate(self, schedule_of, task, at):
        schedule = schedule_of(*[(f"09:{m:02d}", f"09:{m + 10:02d}") for m in range(0, 50, 10)])
        tasks = [replace(task("t1", estimated=15), id=f"t{i}") for i in range(1, 6)]
        for c in schedule.chunks:
            schedule, tasks = complete_chunk(schedule, tasks, c.id, at("11:00"))
        assert all(t.completed_minutes <= t.estimated_minutes for t in tasks)

    def test_unknown_chunk(self, morning, at):
        with pytest.raises(ChunkNotFoundError):
            complete_chunk(morning, [], "missing", at("09:10"))


@pytest.mark.unit
class TestSessionState:
    def test_end_schedule(self, morning):
        ended = end_schedule(morning)
        assert ended.status == STATUS_COMPLETED
        assert ended.ended_early
        assert not any(c.completed for c in ended.chunks)
        assert end_schedule(ended) is ended

    def test_current_chunk(self, morning, task, at):
        assert current_chunk(morning, at("09:45")).id == "c2"
        assert current_chunk(morning, at("09:30")).id == "c2"
        assert current_chunk(morning, at("08:59")) is None
        done, _ = complete_chunk(morning, [task("t2")], "c2", at("09:45"))
        assert current_chunk(done, at("09:45")) is None

    def test_next_pending_chunk(self, morning, task, at):
        assert next_pending_chunk(morning, at("08:00")).id == "c1"
        done, _ = complete_chunk(morning, [task("t1")], "c1", at("09:10"))
        assert next_pending_chunk(done, at("09:10")).id == "c2"
        assert next_pending_chunk(morning, at("10:00")) is None


@pytest.mark.unit
class TestCountdown:
    def test_seconds_to_end_and_next_nag(self, schedule_of, at):
        chunk = schedule_of(("09:00", "10:00"), nag=15).chunks[0]
        assert chunk_countdown(chunk, at("09:20")) == (2400, 600)

    def test_nag_capped_by_end(self, schedule_of, at):
        chunk = schedule_of(("09:00", "09:50"), nag=15).chunks[0]
        assert chunk_countdown(chunk, at("09:47")) == (180, 180)

    def test_no_nags(self, schedule_of, at):
        chunk = schedule_of(("09:00", "10:00")).chunks[0]
        assert chunk_countdown(chunk, at("09:20")) == (2400, None)

    def test_finished_chunk(self, schedule_of, at):
        chunk = schedule_of(("09:00", "10:00"), nag=15).chunks[0]
        assert chunk_countdown(chunk, at("10:05")) == (0, None)

    def test_before_start_counts_to_first_nag_boundary(self, schedule_of, at):
        chunk = schedule_of(("09:00", "10:00"), nag=15).chunks[0]
        assert chunk_countdown(chunk, at("08:50")) == (4200, 1500)

    def test_partial_second_into_chunk(self, schedule_of, at):
        chunk = schedule_of(("09:00", "10:00"), nag=15).chunks[0]
        assert chunk_countdown(chunk, at("09:14:59")) == (2701, 1)
