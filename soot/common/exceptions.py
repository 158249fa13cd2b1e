from fastapi import HTTPException, status


class SootException(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(SootException):
    def __init__(self, detail: str = "Ressource introuvable"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class UnauthorizedError(SootException):
    def __init__(self, detail: str = "Non authentifié"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(SootException):
    def __init__(self, detail: str = "Accès refusé à cette ressource"):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN)


class BadRequestError(SootException):
    def __init__(self, detail: str = "Paramètres invalides"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class ConflictError(SootException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)


class ServiceUnavailableError(SootException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class ExternalServiceError(SootException):
    def __init__(self, service: str, detail: str | None = None):
        msg = f"Erreur du service externe: {service}"
        if detail:
            msg += f" - {detail}"
        super().__init__(detail=msg, status_code=status.HTTP_502_BAD_GATEWAY)
