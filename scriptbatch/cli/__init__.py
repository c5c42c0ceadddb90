from .commands import main, run_cli

__all__ = ["run_cli", "main"]
