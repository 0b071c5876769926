"""Database utilities and models."""

from todoai.db.base import Base
from todoai.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
