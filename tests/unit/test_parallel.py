"""Tests for parallel module."""

from parallel import default_worker_count, run_pool, split_evenly
from query import squared_magnitude


class TestSplitEvenly:
    def test_near_equal_contiguous_chunks(self):
        assert split_evenly(range(10), 3) == [[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]]

    def test_never_more_chunks_than_items(self):
        assert split_evenly([1, 2], 8) == [[1], [2]]

    def test_empty_input(self):
        assert split_evenly([], 4) == []

    def test_zero_parts_means_one_chunk(self):
        assert split_evenly([1, 2, 3], 0) == [[1, 2, 3]]


class TestRunPool:
    def test_in_process_runs_initializer(self):
        calls = []

        result = run_pool(
            lambda x: x * 2,
            [(1,), (2,), (3,)],
            workers=1,
            desc="doubling",
            initializer=calls.append,
            initargs=("ready",),
        )

        assert result == [2, 4, 6]
        assert calls == ["ready"]

    def test_worker_processes_keep_task_order(self):
        tasks = [({"a": i, "b": 1},) for i in range(8)]

        result = run_pool(squared_magnitude, tasks, workers=2, desc="magnitudes")

        assert result == [i * i + 1 for i in range(8)]

    def test_no_tasks(self):
        assert run_pool(squared_magnitude, [], workers=4, desc="nothing") == []


class TestDefaultWorkerCount:
    def test_at_least_one(self):
        assert default_worker_count() >= 1
