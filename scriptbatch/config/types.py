from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class GroupConfig:
    name: str
    directory: Path
    extension: str = ".py"
    timeout: float | None = None
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class PatchConfig:
    target: str
    replacements: list[tuple[str, str]]

    def is_glob(self) -> bool:
        return any(ch in self.target for ch in "*?[")


@dataclass
class ProjectConfig:
    groups: dict[str, GroupConfig]
    timeout: float = 300.0
    results_dir: Path = Path("test-results")
    interpreter: str | None = None
    patches: list[PatchConfig] = field(default_factory=list)

    def __iter__(self):
        for name in sorted(self.groups):
            yield self.groups[name]

    def __len__(self):
        return len(self.groups)

    def has_group(self, name: str) -> bool:
        return name in self.groups

    def get_group(self, name: str) -> GroupConfig:
        if not self.has_group(name):
            raise KeyError(name)

        return self.groups[name]

    def group_names(self) -> list[str]:
        return sorted(self.groups.keys())

    def timeout_for(self, name: str) -> float:
        group = self.get_group(name)
        return group.timeout if group.timeout is not None else self.timeout


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
