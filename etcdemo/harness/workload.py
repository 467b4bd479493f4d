"""
Workload - random register operations over independent keys
"""
import random
import threading
from typing import Optional, Tuple
from ..models import Operation


class Workload:
    """
    Generates a uniform mix of reads, writes and compare-and-swaps.

    Values are drawn from range(value_range), so CAS operations have a
    realistic chance of matching. The same seed yields the same sequence.
    """

    def __init__(self, seed: Optional[int] = None, value_range: int = 5):
        if value_range < 1:
            raise ValueError(f"value_range must be at least 1, got {value_range}")
        self.seed = seed
        self.value_range = value_range
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def next_operation(self, key) -> Operation:
        with self._lock:
            choice = self._random.randrange(3)
            if choice == 0:
                return Operation.read(key)
            if choice == 1:
                return Operation.write(key, self._random.randrange(self.value_range))
            return Operation.cas(key, self._random.randrange(self.value_range),
                                 self._random.randrange(self.value_range))

    def stagger(self, mean_delay: float) -> float:
        """A random delay in [0, 2 * mean_delay)"""
        if mean_delay <= 0:
            return 0.0
        with self._lock:
            return self._random.uniform(0, 2 * mean_delay)


class KeyAllocator:
    """
    Hands out independent keys to groups of workers.

    Each group works on one key at a time and moves to a fresh key once
    ops_per_key operations have been claimed on it. Keys are never shared
    between groups.
    """

    def __init__(self, groups: int, ops_per_key: int):
        if groups < 1:
            raise ValueError(f"groups must be at least 1, got {groups}")
        if ops_per_key < 1:
            raise ValueError(f"ops_per_key must be at least 1, got {ops_per_key}")
        self.groups = groups
        self.ops_per_key = ops_per_key
        self._lock = threading.Lock()
        self._next_key = groups
        self._current = {group: group for group in range(groups)}
        self._claimed = {group: 0 for group in range(groups)}

    def claim(self, group: int) -> Tuple[int, int]:
        """Claim one operation slot for a group; returns (key, index of the op on that key)"""
        with self._lock:
            if self._claimed[group] >= self.ops_per_key:
                self._current[group] = self._next_key
                self._next_key += 1
                self._claimed[group] = 0
            index = self._claimed[group]
            self._claimed[group] += 1
            return self._current[group], index
