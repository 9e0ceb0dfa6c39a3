"""
Error taxonomy shared by the HTTP surface, the persistence gateway and the tools.

Each error carries the HTTP status the API layer maps it to. Tool handlers
catch these and report them back to the model as failure envelopes instead.
"""

from typing import Optional


class CrmError(Exception):
    """Base class for all CRM errors"""

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class AuthenticationError(CrmError):
    """No valid identity-provider session"""

    status_code = 401


class ValidationError(CrmError):
    """A required field is missing or malformed"""

    status_code = 400


class NotFoundError(CrmError):
    """Referenced entity is absent or not owned by the caller"""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(CrmError):
    """The database failed while serving a request"""

    status_code = 500
