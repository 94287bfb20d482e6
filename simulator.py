import argparse
import sys

from memory_manager import (AllocationFailure, BackingStore, ConfigError, FrameTable,
                            MemoryStats, required_pages)
from process_table import ProcessRegistry
from replacement import FAULT_DELAY_SECONDS, ReplacementSimulator, format_performance_table


class MemorySimulator:

    def __init__(self, num_frames, page_size, requirements=()):
        if page_size <= 0:
            raise ConfigError(f"Page size must be positive, got {page_size}")
        self.page_size = page_size
        self.frame_table = FrameTable(num_frames=num_frames)
        self.backing_store = BackingStore()
        self.processes = ProcessRegistry()
        self.stats = MemoryStats()

        for requirement in requirements:
            self.processes.register(requirement)

    @property
    def num_frames(self):
        return self.frame_table.num_frames

    def add_process(self, memory_requirement):
        return self.processes.register(memory_requirement)

    # Allocation

    def allocate(self):
        failures = []
        for process in self.processes:
            try:
                self.allocate_process(process)
            except AllocationFailure as failure:
                print(failure)
                failures.append(failure)
        return failures

    def allocate_process(self, process):
        pid = process.process_id
        pages_needed = required_pages(process.memory_requirement, self.page_size)

        owned = self.frame_table.frames_owned_by(pid)
        if len(owned) > pages_needed:
            self.release_surplus(pid, owned, pages_needed)

        resident_pages = {self.frame_table[i].page_number
                          for i in self.frame_table.frames_owned_by(pid)}
        allocated_pages = len(resident_pages)

        # Claim free frames in index order
        for frame_num, frame in enumerate(self.frame_table):
            if allocated_pages >= pages_needed:
                break
            if not frame.assigned:
                page_number = self.next_page_number(resident_pages)
                self.frame_table.allocate_frame(frame_num, pid, page_number)
                resident_pages.add(page_number)
                allocated_pages += 1

        # Shortage: only this process's own frames are swapped out, never
        # another holder's, so the shortfall is never actually covered.
        if allocated_pages < pages_needed:
            for frame_num, frame in enumerate(self.frame_table):
                if allocated_pages >= pages_needed:
                    break
                if frame.assigned and frame.process_id == pid:
                    self.swap_out_page(pid, frame.page_number)
                    self.frame_table.free_frame(frame_num)
                    allocated_pages += 1

        pages_resident = len(self.frame_table.frames_owned_by(pid))
        if pages_resident != pages_needed:
            process.mark_waiting()
            raise AllocationFailure(pid, pages_needed, pages_resident)

        process.mark_running()
        print(f"Process {pid} allocated {pages_needed} pages")

    def release_surplus(self, pid, owned, pages_needed):
        by_page = sorted(owned, key=lambda i: self.frame_table[i].page_number, reverse=True)
        for frame_num in by_page[:len(owned) - pages_needed]:
            self.swap_out_page(pid, self.frame_table[frame_num].page_number)
            self.frame_table.free_frame(frame_num)

    @staticmethod
    def next_page_number(resident_pages):
        page_number = 1
        while page_number in resident_pages:
            page_number += 1
        return page_number

    def deallocate(self, process_id):
        self.processes.get(process_id)
        freed = 0
        for frame_num in self.frame_table.frames_owned_by(process_id):
            self.frame_table.free_frame(frame_num)
            freed += 1
        print(f"Memory deallocated for process {process_id}")
        return freed

    def request_additional_memory(self, process_id, additional_memory):
        if additional_memory <= 0:
            raise ConfigError(
                f"Additional memory must be positive, got {additional_memory}")
        process = self.processes.get(process_id)
        process.memory_requirement += additional_memory
        return self.allocate()

    def update_requirements(self, requirements):
        self.processes.update_requirements(requirements)
        return self.allocate()

    # Swapping

    def swap_out_page(self, process_id, page_number):
        entry = self.backing_store.append(process_id, page_number)
        if entry is None:
            print(f"Backing store full, page {page_number} of process {process_id} not recorded")
            return None
        self.stats.record_page_fault()
        print(f"Swapping out page {page_number} of process {process_id} to disk")
        return entry

    def swap_in_page(self, process_id, page_number):
        # Bookkeeping only: the page is not placed back into a frame
        entry = self.backing_store.find_swapped_out(process_id, page_number)
        if entry is None:
            return None
        entry.resident = True
        self.stats.record_swap_in()
        print(f"Swapping in page {page_number} of process {process_id} from disk")
        return entry

    # Reports

    def memory_map(self):
        return [(i, frame.assigned, frame.process_id, frame.page_number)
                for i, frame in enumerate(self.frame_table)]

    def active_processes(self):
        return [(p.process_id, p.memory_requirement, p.state) for p in self.processes]

    def memory_usage(self):
        used_frames = self.frame_table.used_count()
        total_memory = self.num_frames * self.page_size
        used_memory = used_frames * self.page_size

        wasted = 0
        for process in self.processes:
            resident = len(self.frame_table.frames_owned_by(process.process_id))
            if resident:
                wasted += max(0, resident * self.page_size - process.memory_requirement)

        return {
            'total_frames': self.num_frames,
            'used_frames': used_frames,
            'free_frames': self.num_frames - used_frames,
            'total_memory': total_memory,
            'used_memory': used_memory,
            'free_memory': total_memory - used_memory,
            'external_fragmentation': 100 - used_memory / total_memory * 100,
            'internal_fragmentation': wasted / used_memory * 100 if used_memory else 0.0,
            'memory_utilization': used_memory / total_memory * 100,
            'page_faults': self.stats.page_faults,
            'swap_time': self.stats.swap_time_ms,
        }

    def display_memory_map(self):
        print("\nMemory Map:")
        print(f"{'Frame':<8}{'Status':<16}{'Process ID':<16}{'Number of Page'}")
        print("-" * 49)
        for frame_num, assigned, pid, page_number in self.memory_map():
            if assigned:
                print(f"{frame_num + 1:<8}{'Assigned':<16}{pid:<16}{page_number}")
            else:
                print(f"{frame_num + 1:<8}{'Free':<16}{'N/A':<16}N/A")
        print("-" * 49)

    def display_processes(self):
        print("\nActive Processes:")
        for pid, requirement, state in self.active_processes():
            print(f"Process {pid} - Memory Required: {requirement} KB, State: {state.name}")

    def display_memory_usage(self):
        usage = self.memory_usage()
        print("\nMemory Usage Statistics:")
        print(f"Total Frames: {usage['total_frames']}")
        print(f"Used Frames: {usage['used_frames']}")
        print(f"Free Frames: {usage['free_frames']}")
        print(f"Total Memory: {usage['total_memory']} KB")
        print(f"Used Memory: {usage['used_memory']} KB")
        print(f"Free Memory: {usage['free_memory']} KB")
        print(f"External Fragmentation: {usage['external_fragmentation']:.2f} %")
        print(f"Internal Fragmentation: {usage['internal_fragmentation']:.2f} %")
        print(f"Memory Utilization: {usage['memory_utilization']:.2f}%")
        print(self.stats)

    def performance_matrix(self, random_seed=None, fault_delay=FAULT_DELAY_SECONDS):
        replacement = ReplacementSimulator(self.num_frames, len(self.processes),
                                           fault_delay=fault_delay, random_seed=random_seed)
        results = replacement.compare()
        print(format_performance_table(results))
        return results


MENU = """
Options:
1. Deallocate Memory
2. Request Additional Memory
3. Input New Process Memory Requirement
4. Display Active Processes
5. Display Memory Map
6. Display Memory Usage Statistics and fragmentation
7. Display Performance Matrix
8. Exit"""


def read_int(prompt):
    while True:
        try:
            return int(input(prompt))
        except ValueError:
            print("Please enter a valid integer")


def interactive_session(simulator, args):
    while True:
        print(MENU)
        option = read_int("Choose an option (1-8): ")
        try:
            if option == 1:
                simulator.deallocate(read_int("Enter process ID to deallocate memory: "))
                simulator.display_memory_map()
            elif option == 2:
                pid = read_int("Enter process ID to request additional memory: ")
                extra = read_int("Enter additional memory required (in KB): ")
                simulator.request_additional_memory(pid, extra)
                simulator.display_memory_map()
            elif option == 3:
                requirements = [
                    read_int(f"Enter new memory requirement for process {p.process_id} (in KB): ")
                    for p in simulator.processes]
                simulator.update_requirements(requirements)
                simulator.display_memory_map()
            elif option == 4:
                simulator.display_processes()
            elif option == 5:
                simulator.display_memory_map()
            elif option == 6:
                simulator.display_memory_usage()
            elif option == 7:
                simulator.performance_matrix(args.seed, args.fault_delay)
            elif option == 8:
                break
            else:
                print("Invalid option. Please choose again.")
        except ConfigError as e:
            print(f"Error: {e}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Paged memory allocation simulator")
    parser.add_argument('-n', '--frames', type=int, help="total number of frames")
    parser.add_argument('-p', '--page-size', type=int, help="page size in KB")
    parser.add_argument('-r', '--requirements', type=int, nargs='+',
                        help="memory requirement of each process in KB")
    parser.add_argument('-s', '--seed', type=int, default=None,
                        help="seed for the simulated fragmentation metric")
    parser.add_argument('--fault-delay', type=float, default=FAULT_DELAY_SECONDS,
                        help="seconds of simulated I/O per page fault")
    parser.add_argument('-g', '--graph', help="save a FIFO vs LRU chart to this file")
    parser.add_argument('-i', '--interactive', action='store_true',
                        help="prompt for missing values and open the options menu")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.interactive:
        if args.frames is None:
            args.frames = read_int("Enter total number of frames: ")
        if args.page_size is None:
            args.page_size = read_int("Enter page size (in KB): ")
        if args.requirements is None:
            count = read_int("Enter number of processes: ")
            args.requirements = [
                read_int(f"Enter memory requirement for process {i + 1} (in KB): ")
                for i in range(count)]
    elif args.frames is None or args.page_size is None or not args.requirements:
        print("Error: --frames, --page-size and --requirements are required "
              "unless --interactive is given")
        return 2

    try:
        simulator = MemorySimulator(args.frames, args.page_size, args.requirements)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    simulator.allocate()
    simulator.display_memory_map()

    if args.interactive:
        interactive_session(simulator, args)
    else:
        simulator.display_processes()
        simulator.display_memory_usage()

    try:
        results = simulator.performance_matrix(args.seed, args.fault_delay)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    if args.graph:
        from generate_graphs import plot_comparison
        plot_comparison(results, args.graph)
        print(f"\nGraph saved as '{args.graph}'")
    return 0


if __name__ == '__main__':
    sys.exit(main())
