class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class EquipmentBusyError(ValidationError):
    """Raised when the selected equipment is already used by an open session."""


class AbsenceConflictError(ValidationError):
    """Raised when work and absence entries would share an employee-day."""


class SlotOccupiedError(ValidationError):
    """Raised when a slot already holds an open session."""


class SessionConflictError(DomainError):
    """Raised when another device already changed the session being acted on."""


class AuthorizationError(DomainError):
    """Raised when a position or plan does not allow an action."""


class PersistenceError(Exception):
    """Raised by repositories when the external store rejects or cannot be reached."""
