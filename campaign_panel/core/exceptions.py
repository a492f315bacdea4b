# campaign_panel/core/exceptions.py

class AppError(Exception):
    kind = "bad_request"

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    kind = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    kind = "conflict"

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=409)


class UnauthorizedError(AppError):
    kind = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    kind = "forbidden"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class InvalidCredentialsError(UnauthorizedError):
    kind = "invalid_credentials"

    def __init__(self) -> None:
        # one message for unknown email, inactive account and wrong password
        super().__init__("Invalid credentials")


class InvalidRefreshTokenError(UnauthorizedError):
    kind = "invalid_refresh_token"

    def __init__(self) -> None:
        super().__init__("Invalid refresh token")


class InvalidResetTokenError(UnauthorizedError):
    kind = "invalid_reset_token"

    def __init__(self) -> None:
        super().__init__("Invalid or expired password reset token")


class AccountDeactivatedError(UnauthorizedError):
    kind = "account_deactivated"

    def __init__(self) -> None:
        super().__init__("Account is deactivated")
