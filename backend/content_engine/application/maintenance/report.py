from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class MaintenanceReport:
    """
    Outcome of one maintenance pass.

    Passes are dry runs unless applied; a dry run lists the changes it
    would make without writing anything.
    """
    name: str
    applied: bool
    scanned: int = 0
    changes: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.changes)

    def record_change(self, section_id: str, **fields: Any) -> None:
        self.changes.append({"id": section_id, **fields})

    def record_skip(self, section_id: str, reason: str) -> None:
        self.skipped.append({"id": section_id, "reason": reason})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "applied": self.applied,
            "scanned": self.scanned,
            "changed": self.changed,
            "changes": self.changes,
            "skipped": self.skipped,
        }
