import traceback
from typing import Optional, Tuple
from flask import jsonify, current_app
from loguru import logger
from functools import wraps
from werkzeug.exceptions import BadRequest, Unauthorized, Forbidden, NotFound

from exceptions.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    ForbiddenError,
    StoreFailureError,
)


def log_error(error: Exception, context: str) -> Tuple[str, str]:
    """
    Internal utility for consistent error logging across services.
    Returns the error message and stack trace for debugging purposes.

    Args:
        error: The exception that occurred
        context: Description of where/why the error occurred

    Returns:
        Tuple of (error_message, stack_trace)
    """
    error_message = f"{context}: {str(error)}"
    stack_trace = traceback.format_exc()
    logger.exception(f"{error_message}\n{stack_trace}")
    return error_message, stack_trace


def create_error_response(
    error_message: str, stack_trace: Optional[str] = None
) -> dict:
    """
    Creates a standardized error response structure.
    Framework-agnostic - does not handle response formatting.

    Args:
        error_message: The error message to return to the client
        stack_trace: Optional stack trace (only included in development/debug)

    Returns:
        Dictionary containing the error response structure
    """
    response = {"message": error_message}
    if stack_trace:
        response["stack_trace"] = stack_trace
    return response


def _error_response(error: Exception, status_code: int, message: str):
    error_message, stack_trace = log_error(error, message)
    if not current_app.debug:
        stack_trace = None
    return jsonify(create_error_response(error_message, stack_trace)), status_code


def handle_errors(f):
    """
    Decorator for Flask routes to handle errors consistently.
    Converts exceptions to appropriate HTTP responses.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (InvalidArgumentError, BadRequest) as e:
            return _error_response(e, 400, "Bad request")
        except Unauthorized as e:
            return _error_response(e, 401, "Unauthorized access")
        except (ForbiddenError, Forbidden) as e:
            return _error_response(e, 403, "Forbidden")
        except (NotFoundError, NotFound) as e:
            return _error_response(e, 404, "Resource not found")
        except StoreFailureError as e:
            return _error_response(e, 500, "Internal server error")
        except Exception as e:
            return _error_response(e, 500, "An unexpected error occurred")

    return decorated_function
