from fastapi import HTTPException

class Unauthenticated(HTTPException):
    def __init__(self, detail: str = "not authenticated"):
        super().__init__(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})

class Forbidden(HTTPException):
    def __init__(self, detail: str = "forbidden"):
        super().__init__(status_code=403, detail=detail)

class NotFound(HTTPException):
    def __init__(self, detail: str = "not found"):
        super().__init__(status_code=404, detail=detail)

class AlreadyMember(HTTPException):
    def __init__(self, detail: str = "user is already a project member"):
        super().__init__(status_code=409, detail=detail)

class NotAMember(HTTPException):
    def __init__(self, detail: str = "user is not a project member"):
        super().__init__(status_code=404, detail=detail)

class CannotRemoveOwner(HTTPException):
    def __init__(self, detail: str = "cannot remove project owner"):
        super().__init__(status_code=400, detail=detail)

class OwnerRoleImmutable(HTTPException):
    def __init__(self, detail: str = "cannot change the project owner's role"):
        super().__init__(status_code=400, detail=detail)

class OwnerRoleReserved(HTTPException):
    def __init__(self, detail: str = "owner role cannot be assigned"):
        super().__init__(status_code=400, detail=detail)
