from flask import jsonify, g, current_app
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base for errors surfaced to the caller with a specific status."""

    status = 400
    code = "BAD_REQUEST"
    message = "Bad request"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details


class Unauthenticated(ApiError):
    status = 401
    code = "UNAUTHENTICATED"
    message = "Authentication required: missing, invalid or expired token"


class InvalidCredentials(ApiError):
    status = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class Forbidden(ApiError):
    status = 403
    code = "FORBIDDEN"
    message = "Insufficient permissions"


class AccountBlocked(Forbidden):
    code = "ACCOUNT_BLOCKED"
    message = "Your account has been blocked. Please contact the administrator."


class VoterNotFound(ApiError):
    status = 404
    code = "VOTER_NOT_FOUND"
    message = "Voter not found"


class UserNotFound(ApiError):
    status = 404
    code = "USER_NOT_FOUND"
    message = "User not found"


class CandidateNotFound(ApiError):
    status = 404
    code = "CANDIDATE_NOT_FOUND"
    message = "Candidate not found"


class AlreadyVoted(ApiError):
    status = 409
    code = "ALREADY_VOTED"
    message = "You have already voted"


class DuplicateRegistration(ApiError):
    status = 409
    code = "DUPLICATE_REGISTRATION"
    message = "User with this email/mobile/national ID already exists"


class ValidationError(ApiError):
    status = 400
    code = "VALIDATION_ERROR"
    message = "Validation error"


class ServerError(ApiError):
    status = 500
    code = "INTERNAL_SERVER_ERROR"
    message = "An unexpected error occurred"


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )


def error_response(err: ApiError):
    return _payload(err.code, err.message, err.details, err.status)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        if e.status >= 500:
            app.logger.error("Server error request_id=%s: %s", getattr(g, "request_id", None), e.message)
        return error_response(e)

    # Generic HTTP errors (404, 405, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # Structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Full detail server-side, generic message to the caller
        app.logger.exception("Unhandled exception request_id=%s", getattr(g, "request_id", None))
        return error_response(ServerError())


def register_jwt_callbacks(jwt):
    """Map every token failure to the same UNAUTHENTICATED payload."""

    def _unauthenticated():
        return error_response(Unauthenticated())

    @jwt.unauthorized_loader
    def missing_token(reason):
        current_app.logger.debug("No token: %s", reason)
        return _unauthenticated()

    @jwt.invalid_token_loader
    def invalid_token(reason):
        current_app.logger.debug("Invalid token: %s", reason)
        return _unauthenticated()

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _unauthenticated()

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return _unauthenticated()

    @jwt.token_in_blocklist_loader
    def is_token_revoked(jwt_header, jwt_payload) -> bool:
        if not current_app.config.get("JWT_REVOCATION_ENABLED"):
            return False

        from .models.token_blocklist import TokenBlocklist

        jti = jwt_payload.get("jti")
        if not jti:
            return True
        return TokenBlocklist.is_blocklisted(jti)
