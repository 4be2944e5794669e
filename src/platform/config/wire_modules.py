"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.guest.app.command import rename_guest_use_case, update_guest_use_case
from src.service.guest.app.query import get_guest_use_case


WIRE_MODULES: list[ModuleType] = [
    get_guest_use_case,
    update_guest_use_case,
    rename_guest_use_case,
]
