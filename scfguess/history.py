"""
Fixed-capacity history indexed by age.

Age 0 is the most recent entry. Pushing a new entry shifts every stored
entry one age older and evicts the oldest one.
"""


class History:
    """
    Rolling history of fixed depth.

    Storage is pre-filled with ``capacity`` elements built by ``factory``
    so that every age is addressable from the start.

    Attributes:
        capacity: Number of stored entries
    """

    def __init__(self, capacity, factory):
        """
        Initialize history.

        Args:
            capacity: Number of entries kept
            factory: Callable returning a fresh (zero) element
        """
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._factory = factory
        self._items = [factory() for _ in range(capacity)]

    def push(self, item):
        """
        Store a new most recent entry.

        Returns:
            The evicted oldest entry
        """
        self._items.insert(0, item)
        return self._items.pop()

    def __getitem__(self, age):
        if not -self.capacity <= age < self.capacity:
            raise IndexError(f"age {age} out of range for depth {self.capacity}")
        return self._items[age]

    def __len__(self):
        return self.capacity

    def __iter__(self):
        return iter(self._items)

    def reset(self):
        """Refill with fresh elements."""
        self._items = [self._factory() for _ in range(self.capacity)]
