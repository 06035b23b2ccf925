"""
API error types mapped onto HTTP status codes by the app error handler.
"""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class UnauthorizedError(ApiError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(ApiError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
