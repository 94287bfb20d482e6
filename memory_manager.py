MAX_FRAMES = 100
MAX_PROCESSES = 100
MAX_PAGES = 100
MAX_DISK_PAGES = 200
SWAP_IN_TIME_MS = 10


class ConfigError(ValueError):
    pass


class AllocationFailure(Exception):
    def __init__(self, process_id, pages_needed, pages_resident):
        super().__init__(
            f"Process {process_id} could not be allocated due to insufficient memory "
            f"({pages_resident}/{pages_needed} pages resident)")
        self.process_id = process_id
        self.pages_needed = pages_needed
        self.pages_resident = pages_resident


def required_pages(memory_requirement, page_size):
    if page_size <= 0:
        raise ConfigError(f"Page size must be positive, got {page_size}")
    if memory_requirement <= 0:
        raise ConfigError(f"Memory requirement must be positive, got {memory_requirement}")
    # Integer ceiling division
    return -(-memory_requirement // page_size)


class Frame:
    def __init__(self):
        self.assigned = False
        self.process_id = None
        self.page_number = None

    def assign(self, process_id, page_number):
        self.assigned = True
        self.process_id = process_id
        self.page_number = page_number

    def release(self):
        self.assigned = False
        self.process_id = None
        self.page_number = None

    def __repr__(self):
        if not self.assigned:
            return "Frame(free)"
        return f"Frame(pid={self.process_id}, page={self.page_number})"


class FrameTable:
    def __init__(self, num_frames=32):
        if num_frames <= 0 or num_frames > MAX_FRAMES:
            raise ConfigError(
                f"Frame count must be between 1 and {MAX_FRAMES}, got {num_frames}")
        self.num_frames = num_frames
        self.frames = [Frame() for _ in range(num_frames)]

    def __len__(self):
        return self.num_frames

    def __iter__(self):
        return iter(self.frames)

    def __getitem__(self, frame_num):
        return self.frames[frame_num]

    def find_free_frame(self):
        for i, frame in enumerate(self.frames):
            if not frame.assigned:
                return i
        return None

    def allocate_frame(self, frame_num, process_id, page_number):
        self.frames[frame_num].assign(process_id, page_number)

    def free_frame(self, frame_num):
        self.frames[frame_num].release()

    def frames_owned_by(self, process_id):
        return [i for i, frame in enumerate(self.frames)
                if frame.assigned and frame.process_id == process_id]

    def used_count(self):
        return sum(1 for frame in self.frames if frame.assigned)

    def free_count(self):
        return self.num_frames - self.used_count()

    def is_full(self):
        return self.find_free_frame() is None


class BackingStoreEntry:
    def __init__(self, process_id, page_number, resident=False):
        self.process_id = process_id
        self.page_number = page_number
        self.resident = resident

    def __repr__(self):
        where = "memory" if self.resident else "disk"
        return f"BackingStoreEntry(pid={self.process_id}, page={self.page_number}, {where})"


class BackingStore:
    # Entries are only ever appended; swap-in flips the resident flag in place.
    def __init__(self, capacity=MAX_DISK_PAGES):
        self.capacity = capacity
        self.entries = []

    def __len__(self):
        return len(self.entries)

    def is_full(self):
        return len(self.entries) >= self.capacity

    def append(self, process_id, page_number):
        if self.is_full():
            return None
        entry = BackingStoreEntry(process_id, page_number)
        self.entries.append(entry)
        return entry

    def find_swapped_out(self, process_id, page_number):
        for entry in self.entries:
            if (entry.process_id == process_id and entry.page_number == page_number
                    and not entry.resident):
                return entry
        return None

    def entries_for(self, process_id):
        return [entry for entry in self.entries if entry.process_id == process_id]


class MemoryStats:
    def __init__(self):
        self.page_faults = 0
        self.swap_time_ms = 0

    def record_page_fault(self):
        self.page_faults += 1

    def record_swap_in(self, cost_ms=SWAP_IN_TIME_MS):
        self.swap_time_ms += cost_ms

    def __str__(self):
        return (f"Total Page Faults: {self.page_faults}\n"
                f"Swap Time: {self.swap_time_ms} ms")
