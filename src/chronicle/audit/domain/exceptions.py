class AuditValidationError(ValueError):
    """Raised when an audit record cannot be built from the given identity fields."""
