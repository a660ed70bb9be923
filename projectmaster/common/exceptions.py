"""Error types shared by the API, the auth providers and the backing stores.

They subclass ``HTTPException`` so a router can let them propagate. Outside a
request (the sync adapter) they are caught and turned into a flash message.
"""

from fastapi import HTTPException, status


class ProjectMasterException(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(ProjectMasterException):
    """A user, project or other row the caller named does not exist."""

    def __init__(self, resource: str, resource_id: str | None = None):
        detail = f"{resource} '{resource_id}' not found" if resource_id else f"{resource} not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class PermissionDeniedError(ProjectMasterException):
    """The caller's role does not allow the action, or the bearer token is unusable."""

    def __init__(self, detail: str = "Your role does not allow this action"):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN)


class UnauthorizedError(ProjectMasterException):
    """Sign-in failed."""

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED)


class BadRequestError(ProjectMasterException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class ConflictError(ProjectMasterException):
    """A credential already exists for the email."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)


class ExternalServiceError(ProjectMasterException):
    """The backing store or the auth service failed or could not be reached."""

    def __init__(self, service: str, detail: str | None = None):
        self.service = service
        msg = f"{service} unavailable: {detail}" if detail else f"{service} unavailable"
        super().__init__(detail=msg, status_code=status.HTTP_502_BAD_GATEWAY)
