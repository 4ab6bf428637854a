"""Error types shared by the host, the canvas and plugins.

Two families live here:

- :class:`ContractViolation` and its subclasses are programming defects
  (out-of-bounds canvas access, calls out of lifecycle order).  The host
  never recovers from them inside the offending plugin; it halts that
  plugin and keeps dispatching to the others.
- Registry errors (:class:`DuplicatePluginError`,
  :class:`UnknownPluginError`) are raised to whoever loads or addresses
  plugins by id.
"""


class OrasisError(Exception):
    """Base type for all Orasis failures."""


class ContractViolation(OrasisError):
    """A caller broke the host/plugin contract."""


class CanvasBoundsError(ContractViolation, IndexError):
    """Raised when a canvas index or coordinate is outside its buffer."""


class CanvasReleasedError(ContractViolation):
    """Raised when a canvas view is used after its borrow ended."""


class CanvasReadOnlyError(ContractViolation):
    """Raised when a read-only canvas view is written to."""


class CanvasBorrowError(ContractViolation):
    """Raised when the session buffers are borrowed while already borrowed."""


class LifecycleError(ContractViolation):
    """Raised when a plugin operation is invoked out of lifecycle order."""


class DuplicatePluginError(OrasisError, ValueError):
    """Raised when a plugin id is already taken by a loaded plugin."""


class UnknownPluginError(OrasisError, KeyError):
    """Raised when no loaded plugin has the requested id."""
