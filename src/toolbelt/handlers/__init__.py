"""Error handling helpers."""

from .try_catch import TryCatchResult, try_catch

__all__ = ["TryCatchResult", "try_catch"]
