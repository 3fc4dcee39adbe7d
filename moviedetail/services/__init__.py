"""Service layer package initializer.

This re-exports the detail-view services so that callers can simply
``from moviedetail.services import detail_controller, pager``.
"""

from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING

__all__ = [
    "detail_controller",
    "pager",
    "view_registry",
]

if TYPE_CHECKING:
    from . import detail_controller as detail_controller  # noqa: F401
    from . import pager as pager  # noqa: F401
    from . import view_registry as view_registry  # noqa: F401
else:
    # Import lazily to keep the import graph light.
    def __getattr__(name: str) -> ModuleType:  # noqa: D401
        if name in __all__:
            module = import_module(f"moviedetail.services.{name}")
            globals()[name] = module
            return module
        raise AttributeError(name)
