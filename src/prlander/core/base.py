"""Base classes for configuration and state models.

Kept apart from config.py so that log.py can build its sink models on
them without importing the full configuration:
- Closeable Protocol for anything holding an open resource
- BaseCloseable, which closes its Closeable fields on exit
- BaseConfig for configuration sections
- BaseState for runtime state sections
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

# ============================================================
# CLOSEABLE PROTOCOL AND BASE CLASS
# ============================================================

@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Model that closes every Closeable field when it is closed.

    The cascade runs State -> Config -> Logger -> Sink, and on the
    runtime side LandState -> GitHubClient (the open HTTP pool).
    A failing close() is reported on stderr and the remaining
    children are still closed.
    """

    def close(self):
        """Close all closeable child objects."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    msg = f"Warning: Error closing {field_name}: {e}"
                    print(msg, file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


# ============================================================
# BASE CLASSES (semantic markers for readers)
# ============================================================

class BaseConfig(BaseCloseable):
    """Base class for configuration sections (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Base class for runtime state sections (mutated by the workflow)."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
