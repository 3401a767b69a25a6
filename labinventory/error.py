from fastapi import HTTPException


class NotAuthenticated(Exception):
    """No usable session on a protected route; answered with a redirect to /login."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class StorageError(Exception):
    """The external object store rejected an upload or delete."""


def abort(status_code: int, code: str, message: str) -> None:
    raise HTTPException(status_code=status_code, detail={"code": code, "message": message})


def forbidden() -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={"code": "FORBIDDEN", "message": "Access denied"},
    )
