from enum import Enum

from memory_manager import MAX_PROCESSES, ConfigError


class ProcessState(Enum):
    WAITING = 0
    RUNNING = 1
    # Declared for completeness; no operation moves a process here.
    COMPLETED = 2


class Process:
    def __init__(self, process_id, memory_requirement):
        self.process_id = process_id
        self.memory_requirement = memory_requirement
        self.allocated = False
        self.state = ProcessState.WAITING

    def mark_running(self):
        self.allocated = True
        self.state = ProcessState.RUNNING

    def mark_waiting(self):
        self.allocated = False
        self.state = ProcessState.WAITING

    def __repr__(self):
        return (f"Process(pid={self.process_id}, required={self.memory_requirement}KB, "
                f"state={self.state.name})")


class ProcessRegistry:
    def __init__(self, max_processes=MAX_PROCESSES):
        self.max_processes = max_processes
        self.processes = []

    def __len__(self):
        return len(self.processes)

    def __iter__(self):
        return iter(self.processes)

    def register(self, memory_requirement):
        if len(self.processes) >= self.max_processes:
            raise ConfigError(
                f"Process count must not exceed {self.max_processes}")
        if memory_requirement <= 0:
            raise ConfigError(
                f"Memory requirement must be positive, got {memory_requirement}")
        process = Process(len(self.processes) + 1, memory_requirement)
        self.processes.append(process)
        return process

    def get(self, process_id):
        for process in self.processes:
            if process.process_id == process_id:
                return process
        raise ConfigError(f"No process with id {process_id}")

    def update_requirements(self, requirements):
        requirements = list(requirements)
        if len(requirements) != len(self.processes):
            raise ConfigError(
                f"Expected {len(self.processes)} requirements, got {len(requirements)}")
        for requirement in requirements:
            if requirement <= 0:
                raise ConfigError(
                    f"Memory requirement must be positive, got {requirement}")
        for process, requirement in zip(self.processes, requirements):
            process.memory_requirement = requirement
