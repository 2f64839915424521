"""Result tracking for operations that fan out over many stations."""
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class BulkResult:
    """Per-station outcome of a bulk operation, in processing order."""
    results: List[Tuple[int, bool]] = field(default_factory=list)

    def record(self, ctid: int, success: bool) -> None:
        self.results.append((ctid, success))

    @property
    def succeeded(self) -> List[int]:
        return [ctid for ctid, ok in self.results if ok]

    @property
    def failed(self) -> List[int]:
        return [ctid for ctid, ok in self.results if not ok]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def ok(self) -> bool:
        return not self.failed
