import inspect
import traceback
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from mono_assistant.core.exceptions import MonoAssistantError
from mono_assistant.utils.logging import get_logger

logger = get_logger("core.error_handler")


def user_message_for(error: Exception) -> str:
    """Text that is safe to show an end user for an error.

    Provider errors carry a message built from provider and model only;
    other project errors use their own message.
    """
    message = getattr(error, "user_message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(error, MonoAssistantError):
        return str(error)
    return f"Unexpected error: {type(error).__name__}"


def handle_error(
    error: Exception | None = None,
    *,
    context: str | None = None,
    verbose: bool = False,
    error_str: str | None = None,
) -> None:
    """Central error handler for the application.

    Args:
        error: The exception instance to handle (can be None if error_str is provided).
        context: Optional string describing where the error occurred.
        verbose: If True, log detailed traceback for debugging.
        error_str: Optional error message string if no exception object is available.
    """
    ctx = f"[{context}]" if context else ""

    if error is None and error_str:
        logger.critical(f"{ctx} {error_str}".strip())
        return

    if error is None:
        logger.critical(f"{ctx} An unknown error occurred")
        return

    try:
        if isinstance(error, MonoAssistantError):
            logger.error(f"{ctx} {user_message_for(error)}".strip())
            diagnostic = getattr(error, "diagnostic", None)
            if diagnostic:
                logger.debug(f"{ctx} {error}: {diagnostic}".strip())
        else:
            error_msg = str(error) if str(error) else "No error message provided"
            logger.critical(
                f"{ctx} Unexpected error: {type(error).__name__}: {error_msg}".strip()
            )

        if verbose:
            trace = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
            logger.debug(f"Traceback:\n{trace}")

    except Exception as e:
        logger.critical(
            f"{ctx} Error while handling error: {e}\n"
            f"Original error type: {type(error).__name__}"
        )


T = TypeVar("T")
P = ParamSpec("P")


def safe_entrypoint(
    context: str, *, exit_code: int | None = None
) -> Callable[[Callable[P, T]], Callable[P, T | None]]:
    """Decorator to wrap entrypoint functions with unified error handling.

    Errors are logged through ``handle_error``; the wrapped call then returns
    None, or exits with ``exit_code`` when one is given. typer/click ``Exit``
    exceptions pass through untouched.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T | None]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | None:
            verbose = bool(kwargs.get("verbose", False))
            try:
                return func(*args, **kwargs)
            except Exception as err:
                if "Exit" in err.__class__.__name__:
                    raise err
                handle_error(err, context=context, verbose=verbose)
                if exit_code is not None:
                    raise SystemExit(exit_code) from err
                return None

        wrapper.__signature__ = inspect.signature(func)
        return wrapper

    return decorator
