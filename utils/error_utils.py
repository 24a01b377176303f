"""
Error handling utility functions.
"""

from typing import List


def describe_error(error: BaseException) -> str:
    """
    Render an exception as a single operator-readable line.
    
    Args:
        error: Exception to describe
        
    Returns:
        "ExceptionType: message", or just the type name when the message is empty
    """
    message = str(error).strip()
    if message:
        return f"{type(error).__name__}: {message}"
    return type(error).__name__


def handle_step_error(error_msg: str, errors: List[str], logger) -> None:
    """
    Handle an error in a processing step.
    
    Args:
        error_msg: Error message to log and track
        errors: List to append the error to
        logger: Logger instance for logging
    """
    logger.error(error_msg)
    errors.append(error_msg)
