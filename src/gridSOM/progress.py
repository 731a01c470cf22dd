## Progress reporting for long-running steps (loading, normalizing, grid generation, training, labeling)

import psutil


class ProgressListener:
    """Receives progress from the loader and the trainer. Every hook is a no-op here;
    subclasses override the ones they care about."""

    def start(self, name: str, total_steps: int):
        pass

    def update(self, current: int, total: int, message: str = ""):
        pass

    def complete(self, name: str, success: bool, message: str = ""):
        pass

    def memory_usage(self, used_mb: float, total_mb: float):
        pass


class ConsoleProgressListener(ProgressListener):
    bar_length = 50

    def __init__(self):
        self.current_operation = None
        self._last_percentage = -1

    def start(self, name: str, total_steps: int):
        self.current_operation = name
        self._last_percentage = -1
        print(f"Starting operation: {name}", flush=True)
        if total_steps > 0:
            print(f"Total steps: {total_steps}", flush=True)
        else:
            print("Total steps: unknown", flush=True)

    def update(self, current: int, total: int, message: str = ""):
        if total <= 0:
            suffix = f" - {message}" if message else ""
            print(f"Progress: {current} steps completed{suffix}", flush=True)
            return

        percentage = int(current * 100 // total)
        # only redraw when at least one more percent is done
        if percentage <= self._last_percentage:
            return
        self._last_percentage = percentage

        done = self.bar_length * min(percentage, 100) // 100
        bar = "".join(
            "=" if i < done else (">" if i == done else " ")
            for i in range(self.bar_length)
        )
        line = f"[{bar}] {percentage}%"
        if message:
            line += f" - {message}"
        print(f"\r{line}", end="\n" if percentage >= 100 else "", flush=True)

    def complete(self, name: str, success: bool, message: str = ""):
        if success:
            print(f"Operation completed successfully: {name}", flush=True)
        else:
            print(f"Operation failed: {name}", flush=True)
        if message:
            print(message, flush=True)
        self.current_operation = None

    def memory_usage(self, used_mb: float, total_mb: float):
        percentage = used_mb / total_mb * 100 if total_mb > 0 else 0.0
        print(
            f"Memory usage: {used_mb:.1f} MB / {total_mb:.1f} MB ({percentage:.1f}%)",
            flush=True,
        )


def report_memory_usage(listener: ProgressListener):
    """Send the resident memory of this process and the machine total to listener."""
    if listener is None:
        return
    used = psutil.Process().memory_info().rss / (1024 * 1024)
    total = psutil.virtual_memory().total / (1024 * 1024)
    listener.memory_usage(used, total)
