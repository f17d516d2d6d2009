from __future__ import annotations

import secrets
from itertools import count
from threading import Lock


class RenderIdAllocator:
    """Hands out render ids that stay unique for the lifetime of the process.

    A random prefix keeps ids from separate allocators (one per registry) apart,
    the counter keeps ids from one allocator apart.
    """

    def __init__(self, prefix: str = "ruledeck") -> None:
        self._prefix = f"{prefix}-{secrets.token_hex(4)}"
        self._counter = count(1)
        self._lock = Lock()

    def next_id(self) -> str:
        with self._lock:
            index = next(self._counter)
        return f"{self._prefix}-{index:x}"
