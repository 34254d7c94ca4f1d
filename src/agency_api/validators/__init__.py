from .request_validator import Mode, validate, escape_markup

__all__ = ["Mode", "validate", "escape_markup"]
