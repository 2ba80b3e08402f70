"""Order and request lifecycle: status catalog, state machine and persistence."""

from orderflow.lifecycle.catalog import get_catalog, is_compatible
from orderflow.lifecycle.machine import apply_transition, new_entity
from orderflow.lifecycle.service import create_entity, create_with_code, transition

__all__ = [
    "apply_transition",
    "create_entity",
    "create_with_code",
    "get_catalog",
    "is_compatible",
    "new_entity",
    "transition",
]
