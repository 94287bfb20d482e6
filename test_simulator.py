import pytest

from memory_manager import AllocationFailure, ConfigError, required_pages
from process_table import ProcessState
from simulator import MemorySimulator, main


def owned_pages(simulator, pid):
    return sorted(simulator.frame_table[i].page_number
                  for i in simulator.frame_table.frames_owned_by(pid))


def assert_frame_invariants(simulator):
    seen = set()
    for frame in simulator.frame_table:
        if not frame.assigned:
            assert frame.process_id is None and frame.page_number is None
        else:
            key = (frame.process_id, frame.page_number)
            assert key not in seen
            seen.add(key)


def assert_allocation_matches_frames(simulator):
    for process in simulator.processes:
        needed = required_pages(process.memory_requirement, simulator.page_size)
        resident = len(simulator.frame_table.frames_owned_by(process.process_id))
        assert process.allocated == (resident == needed)
        assert (process.state is ProcessState.RUNNING) == process.allocated


class TestAllocate:

    def test_exact_fit_runs_without_faults(self):
        simulator = MemorySimulator(num_frames=3, page_size=10, requirements=[25])
        failures = simulator.allocate()

        process = simulator.processes.get(1)
        assert failures == []
        assert process.state is ProcessState.RUNNING
        assert process.allocated
        assert [(f.process_id, f.page_number) for f in simulator.frame_table] == [
            (1, 1), (1, 2), (1, 3)]
        assert simulator.stats.page_faults == 0

    def test_shortage_evicts_own_frames_and_stays_waiting(self):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[30])
        failures = simulator.allocate()

        process = simulator.processes.get(1)
        assert process.state is ProcessState.WAITING
        assert not process.allocated
        assert len(failures) == 1
        assert isinstance(failures[0], AllocationFailure)
        assert failures[0].pages_needed == 3
        assert failures[0].pages_resident == 1

        # The first claimed page went to disk and its frame was freed
        assert simulator.stats.page_faults == 1
        assert len(simulator.backing_store) == 1
        entry = simulator.backing_store.entries[0]
        assert (entry.process_id, entry.page_number, entry.resident) == (1, 1, False)
        assert not simulator.frame_table[0].assigned
        assert owned_pages(simulator, 1) == [2]

    def test_shortage_never_touches_other_processes(self):
        simulator = MemorySimulator(num_frames=4, page_size=10, requirements=[20, 30])
        simulator.allocate()

        assert simulator.processes.get(1).state is ProcessState.RUNNING
        assert owned_pages(simulator, 1) == [1, 2]
        assert simulator.processes.get(2).state is ProcessState.WAITING
        assert [e.process_id for e in simulator.backing_store.entries] == [2]
        assert_allocation_matches_frames(simulator)

    def test_failure_is_reported(self, capsys):
        simulator = MemorySimulator(num_frames=1, page_size=4, requirements=[4, 4])
        simulator.allocate()
        out = capsys.readouterr().out
        assert "Process 1 allocated 1 pages" in out
        assert "Process 2 could not be allocated" in out

    def test_repeated_allocate_keeps_pages_unique(self):
        simulator = MemorySimulator(num_frames=5, page_size=10, requirements=[20, 30, 10])
        for _ in range(3):
            simulator.allocate()
            assert_frame_invariants(simulator)
            assert_allocation_matches_frames(simulator)
        assert simulator.processes.get(1).state is ProcessState.RUNNING
        assert simulator.processes.get(2).state is ProcessState.RUNNING

    def test_page_faults_are_never_rolled_back(self):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[30])
        faults = []
        for _ in range(3):
            simulator.allocate()
            faults.append(simulator.stats.page_faults)
        assert faults == sorted(faults)
        assert len(simulator.backing_store) == faults[-1]


class TestRequests:

    def test_request_additional_memory_grows_footprint(self):
        simulator = MemorySimulator(num_frames=4, page_size=10, requirements=[10])
        simulator.allocate()
        simulator.request_additional_memory(1, 20)

        process = simulator.processes.get(1)
        assert process.memory_requirement == 30
        assert process.state is ProcessState.RUNNING
        assert owned_pages(simulator, 1) == [1, 2, 3]

    def test_request_for_unknown_process(self):
        simulator = MemorySimulator(num_frames=4, page_size=10, requirements=[10])
        with pytest.raises(ConfigError):
            simulator.request_additional_memory(9, 10)
        with pytest.raises(ConfigError):
            simulator.request_additional_memory(1, 0)

    def test_shrinking_requirement_swaps_out_highest_pages(self):
        simulator = MemorySimulator(num_frames=4, page_size=10, requirements=[40])
        simulator.allocate()
        simulator.update_requirements([20])

        assert owned_pages(simulator, 1) == [1, 2]
        assert [e.page_number for e in simulator.backing_store.entries] == [4, 3]
        assert simulator.stats.page_faults == 2
        assert simulator.processes.get(1).state is ProcessState.RUNNING

    def test_deallocate_leaves_backing_store_entries(self):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[30])
        simulator.allocate()
        freed = simulator.deallocate(1)

        assert freed == 1
        assert simulator.frame_table.used_count() == 0
        assert len(simulator.backing_store.entries_for(1)) == 1

    def test_deallocate_unknown_process(self):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[10])
        with pytest.raises(ConfigError):
            simulator.deallocate(5)


class TestSwapping:

    def test_swap_in_flips_first_matching_entry(self):
        simulator = MemorySimulator(num_frames=2, page_size=10)
        first = simulator.swap_out_page(1, 1)
        second = simulator.swap_out_page(1, 1)
        assert simulator.stats.page_faults == 2

        assert simulator.swap_in_page(1, 1) is first
        assert first.resident
        assert not second.resident
        assert simulator.stats.swap_time_ms == 10
        assert len(simulator.backing_store) == 2

    def test_swap_in_does_not_place_page_in_frame(self):
        simulator = MemorySimulator(num_frames=2, page_size=10)
        simulator.swap_out_page(1, 1)
        simulator.swap_in_page(1, 1)
        assert simulator.frame_table.used_count() == 0

    def test_swap_in_missing_page(self):
        simulator = MemorySimulator(num_frames=2, page_size=10)
        assert simulator.swap_in_page(1, 1) is None
        assert simulator.stats.swap_time_ms == 0

    def test_swap_out_when_store_full(self):
        simulator = MemorySimulator(num_frames=2, page_size=10)
        simulator.backing_store.capacity = 1
        simulator.swap_out_page(1, 1)
        assert simulator.swap_out_page(1, 2) is None
        assert simulator.stats.page_faults == 1


class TestReports:

    def test_memory_usage(self):
        simulator = MemorySimulator(num_frames=4, page_size=10, requirements=[25])
        simulator.allocate()
        usage = simulator.memory_usage()

        assert usage['used_frames'] == 3
        assert usage['free_frames'] == 1
        assert usage['total_memory'] == 40
        assert usage['used_memory'] == 30
        assert usage['free_memory'] == 10
        assert usage['external_fragmentation'] == pytest.approx(25.0)
        assert usage['internal_fragmentation'] == pytest.approx(5 / 30 * 100)
        assert usage['memory_utilization'] == pytest.approx(75.0)

    def test_memory_usage_when_empty(self):
        usage = MemorySimulator(num_frames=2, page_size=8).memory_usage()
        assert usage['internal_fragmentation'] == 0.0
        assert usage['external_fragmentation'] == pytest.approx(100.0)

    def test_memory_map_and_processes(self):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[10])
        simulator.allocate()
        assert simulator.memory_map() == [(0, True, 1, 1), (1, False, None, None)]
        assert simulator.active_processes() == [(1, 10, ProcessState.RUNNING)]

    def test_display_memory_map(self, capsys):
        simulator = MemorySimulator(num_frames=2, page_size=10, requirements=[10])
        simulator.allocate()
        simulator.display_memory_map()
        out = capsys.readouterr().out
        assert "Assigned" in out
        assert "Free" in out

    def test_invalid_configuration(self):
        with pytest.raises(ConfigError):
            MemorySimulator(num_frames=2, page_size=0)
        with pytest.raises(ConfigError):
            MemorySimulator(num_frames=101, page_size=4)


class TestMain:

    def test_batch_run(self, capsys):
        code = main(['-n', '3', '-p', '10', '-r', '25', '12', '--fault-delay', '0', '-s', '1'])
        out = capsys.readouterr().out
        assert code == 0
        assert "Memory Map:" in out
        assert "Memory Usage Statistics:" in out
        assert "| Entity" in out

    def test_missing_arguments(self, capsys):
        assert main(['-n', '3']) == 2

    def test_invalid_frames(self, capsys):
        assert main(['-n', '0', '-p', '10', '-r', '5']) == 1
        assert "Error:" in capsys.readouterr().out

    def test_interactive_session(self, monkeypatch, capsys):
        answers = iter(['3', '10', '1', '25', '4', '1', '9', '8'])
        monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
        assert main(['-i', '--fault-delay', '0']) == 0
        out = capsys.readouterr().out
        assert "Process 1 - Memory Required: 25 KB, State: RUNNING" in out
        assert "Error: No process with id 9" in out
