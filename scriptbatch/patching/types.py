from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PatchReport:
    modified: list[Path] = field(default_factory=list)
    substitutions: int = 0

    def __len__(self):
        return len(self.modified)


class PatchError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
