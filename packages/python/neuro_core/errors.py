class DomainError(Exception):
    code: str = "domain_error"
    status: int = 400

    def __init__(self, message: str = "", *, code: str | None = None, status: int | None = None):
        super().__init__(message or self.__class__.__name__)
        if code: self.code = code
        if status: self.status = status

class InvalidSignal(DomainError):
    code = "invalid_signal"
    status = 422

class PersistenceError(DomainError):
    code = "persistence_error"
    status = 503

class NotInitialized(DomainError):
    code = "not_initialized"
    status = 503
