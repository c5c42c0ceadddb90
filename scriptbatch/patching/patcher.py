from __future__ import annotations

import glob
from pathlib import Path

from scriptbatch.config import PatchConfig
from scriptbatch.log import get_logger

from .types import PatchError, PatchReport

logger = get_logger(__name__)


def apply_patches(patches: list[PatchConfig]) -> PatchReport:
    report = PatchReport()

    for patch in patches:
        for path in _targets(patch):
            count = _patch_file(path, patch.replacements)
            if count == 0:
                continue
            if path not in report.modified:
                report.modified.append(path)
            report.substitutions += count
            logger.info("Patched %s (%d substitutions)", path, count)

    return report


def _targets(patch: PatchConfig) -> list[Path]:
    if patch.is_glob():
        matches = glob.glob(patch.target, recursive=True)
        return [Path(m) for m in sorted(matches) if Path(m).is_file()]

    path = Path(patch.target)
    if not path.is_file():
        # Patches name files that only some checkouts have
        logger.debug("Patch target %s not found, skipping", path)
        return []
    return [path]


def _patch_file(path: Path, replacements: list[tuple[str, str]]) -> int:
    try:
        # newline="" keeps CRLF files as they are
        with path.open(encoding="utf-8", newline="") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise PatchError(f"cannot read patch target: {path}") from exc

    count = 0
    for old, new in replacements:
        hits = text.count(old)
        if hits:
            text = text.replace(old, new)
            count += hits

    if count == 0:
        return 0

    try:
        with path.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise PatchError(f"cannot write patch target: {path}") from exc

    return count
