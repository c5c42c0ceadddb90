from .patcher import apply_patches
from .types import PatchError, PatchReport

__all__ = ["apply_patches", "PatchReport", "PatchError"]
