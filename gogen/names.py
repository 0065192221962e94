"""Collision-free temporary identifiers for generated code"""


class FreshNames:
    """Monotonic counter scoped to one generation run.

    Every generation run gets its own instance, so the emitted names only
    depend on the traversal order of the program.
    """

    def __init__(self, start: int = 0):
        self._counter = start

    def next(self, prefix: str) -> str:
        name = f"{prefix}{self._counter}"
        self._counter += 1
        return name
