# core/exceptions.py
"""
Errors raised by the service layer.
Views turn these into JSON error responses; the pure rule helpers
(status transitions, promotion pricing) never raise them.
"""


class StoreError(Exception):
    pass


class NotFoundError(StoreError):
    """Requested record does not exist"""

    def __init__(self, resource, identifier=None):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} not found: {identifier}"
        super().__init__(message)


class ValidationError(StoreError):
    """Missing or invalid input"""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field
