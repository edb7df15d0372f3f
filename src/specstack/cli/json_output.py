"""JSON output utilities and the error boundary shared by all commands."""

import json
from collections.abc import Callable
from functools import wraps
from typing import Any

import click
from pydantic import BaseModel, ConfigDict, Field

from specstack.cli.output import machine_output, user_output
from specstack.core.branches.errors import BranchValidationError, SpecstackError


class ErrorResponse(BaseModel):
    """Pydantic model for error JSON responses.

    Attributes:
        error: Error message
        error_type: Error class name (e.g., "InvalidBaseError")
        remedy: How to fix the problem, when known
        exit_code: Exit code for the process
    """

    model_config = ConfigDict(strict=True)

    error: str
    error_type: str
    remedy: str | None = None
    exit_code: int = Field(default=1, ge=0, le=255)


def emit_json(data: dict[str, Any]) -> None:
    """Output JSON data to stdout for machine consumption.

    For Pydantic models, call model.model_dump(mode='json') before
    passing to this function.
    """
    machine_output(json.dumps(data, indent=2))


def emit_json_error(
    error: str,
    error_type: str,
    remedy: str | None = None,
    exit_code: int = 1,
) -> None:
    """Output error as JSON and exit.

    Raises:
        SystemExit: Always raises to terminate with specified exit code
    """
    error_response = ErrorResponse(
        error=error,
        error_type=error_type,
        remedy=remedy,
        exit_code=exit_code,
    )
    emit_json(error_response.model_dump(mode="json"))
    raise SystemExit(exit_code)


def _describe_error(error: SpecstackError) -> tuple[str, str | None]:
    if isinstance(error, BranchValidationError):
        return error.message, error.remedy
    return str(error), None


def error_boundary(func: Callable) -> Callable:
    """Decorator turning SpecstackError into a styled error and exit code 1.

    When the command was invoked with json_mode=True the error is emitted as
    an ErrorResponse on stdout instead. Other exceptions propagate.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SpecstackError as e:
            message, remedy = _describe_error(e)
            if kwargs.get("json_mode", False):
                emit_json_error(message, type(e).__name__, remedy=remedy)
            user_output(click.style("Error: ", fg="red") + message)
            if remedy is not None:
                user_output()
                user_output(remedy)
            raise SystemExit(1) from e

    return wrapper
