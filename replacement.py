import random
import time

from memory_manager import MAX_FRAMES, MAX_PAGES, ConfigError

FAULT_DELAY_SECONDS = 0.0001  # 100 microseconds of simulated I/O per fault
POLICIES = ['FIFO', 'LRU']

METRIC_ROWS = [
    ('memory_utilization', 'Memory Utilization (%)'),
    ('fragmentation', 'Fragmentation, simulated (%)'),
    ('allocation_time', 'Allocation Time (micros)'),
    ('deallocation_time', 'Deallocation Time (micros)'),
    ('throughput', 'Throughput (pages/ms)'),
    ('response_time', 'Response Time (micros)'),
    ('thrashing_rate', 'Thrashing Rate'),
    ('overhead', 'Overhead (micros)'),
]


class PolicyMetrics:
    def __init__(self, policy, page_faults, eviction_order, total_frames,
                 process_count, allocation_time, fragmentation):
        self.policy = policy
        self.page_faults = page_faults
        # Slot chosen on each fault, in order
        self.eviction_order = eviction_order
        self.memory_utilization = total_frames / MAX_FRAMES * 100.0
        # Placeholder drawn from a seeded RNG, not a measurement
        self.fragmentation = fragmentation
        self.allocation_time = allocation_time
        self.deallocation_time = allocation_time * 0.2
        if allocation_time > 0:
            self.throughput = process_count / (allocation_time / 1000.0)
        else:
            self.throughput = 0.0
        self.response_time = allocation_time / process_count
        self.thrashing_rate = page_faults / process_count
        self.overhead = allocation_time * 0.1

    def as_dict(self):
        return {key: getattr(self, key) for key, _ in METRIC_ROWS}

    def __str__(self):
        return (f"{self.policy}: Page Faults: {self.page_faults}, "
                f"Thrashing Rate: {self.thrashing_rate:.2f}")


class ReplacementSimulator:

    def __init__(self, total_frames, process_count, reference_string=None,
                 fault_delay=FAULT_DELAY_SECONDS, random_seed=None):
        if total_frames <= 0 or total_frames > MAX_FRAMES:
            raise ConfigError(
                f"Invalid frame count. Please enter a value between 1 and {MAX_FRAMES}.")
        if process_count <= 0 or process_count > MAX_PAGES:
            raise ConfigError(
                f"Invalid page count. Please enter a value between 1 and {MAX_PAGES}.")
        if reference_string is None:
            reference_string = list(range(1, process_count + 1))
        elif len(reference_string) != process_count:
            raise ConfigError(
                f"Reference string has {len(reference_string)} pages, expected {process_count}")

        self.total_frames = total_frames
        self.process_count = process_count
        self.reference_string = list(reference_string)
        self.fault_delay = fault_delay
        self.rng = random.Random(random_seed)

        self.frames = []
        self.recency = []
        self.cursor = 0
        self.current_time = 0

    def reset(self):
        self.frames = [None] * self.total_frames
        self.recency = [0] * self.total_frames
        self.cursor = 0
        self.current_time = 0

    def find_page(self, page):
        for slot, resident in enumerate(self.frames):
            if resident == page:
                return slot
        return None

    def select_victim(self, policy):
        if policy == 'FIFO':
            return self.select_victim_fifo()
        elif policy == 'LRU':
            return self.select_victim_lru()
        else:
            raise ConfigError(f"Unknown policy: {policy}")

    def select_victim_fifo(self):
        slot = self.cursor % self.total_frames
        self.cursor += 1
        return slot

    def select_victim_lru(self):
        # Empty slots carry stamp 0, so they are filled first in index order
        victim = 0
        for slot in range(1, self.total_frames):
            if self.recency[slot] < self.recency[victim]:
                victim = slot
        return victim

    def reference(self, policy, page):
        """
        Process one reference under the given policy.
        Returns the slot that was loaded on a fault, or None on a hit.
        """
        self.current_time += 1
        slot = self.find_page(page)

        if slot is not None:
            if policy == 'LRU':
                self.recency[slot] = self.current_time
            return None

        slot = self.select_victim(policy)
        if self.fault_delay:
            time.sleep(self.fault_delay)
        self.frames[slot] = page
        self.recency[slot] = self.current_time
        return slot

    def run_policy(self, policy, fragmentation=None):
        if policy not in POLICIES:
            raise ConfigError(f"Unknown policy: {policy}")
        if fragmentation is None:
            fragmentation = self.draw_fragmentation()

        self.reset()
        page_faults = 0
        eviction_order = []
        allocation_time = 0.0

        for page in self.reference_string:
            start = time.perf_counter()
            slot = self.reference(policy, page)
            end = time.perf_counter()
            allocation_time += (end - start) * 1000000.0

            if slot is not None:
                page_faults += 1
                eviction_order.append(slot)

        return PolicyMetrics(policy, page_faults, eviction_order, self.total_frames,
                             self.process_count, allocation_time, fragmentation)

    def draw_fragmentation(self):
        return self.rng.randint(1, 10) / 10.0

    def compare(self):
        # One fragmentation draw shared by both policies
        fragmentation = self.draw_fragmentation()
        return {policy: self.run_policy(policy, fragmentation) for policy in POLICIES}


def format_performance_table(results):
    fifo = results['FIFO'].as_dict()
    lru = results['LRU'].as_dict()
    border = "+-----------------------------+---------------+---------------+"
    lines = [border,
             "| Entity                      | FIFO          | LRU           |",
             border]
    for key, label in METRIC_ROWS:
        fifo_value, lru_value = fifo[key], lru[key]
        if key == 'fragmentation':
            fifo_value, lru_value = fifo_value * 100, lru_value * 100
        lines.append(f"| {label:<27} | {fifo_value:13.2f} | {lru_value:13.2f} |")
    lines.append(f"| {'Page Faults':<27} | {results['FIFO'].page_faults:13d} "
                 f"| {results['LRU'].page_faults:13d} |")
    lines.append(border)
    return "\n".join(lines)
