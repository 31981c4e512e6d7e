import functools
import inspect
import logging
import ssl

from googleapiclient.errors import HttpError

from gdocs.errors import (
    DocsEngineError,
    DocsErrorBuilder,
    NotFoundError,
    RemoteUnavailableError,
)

logger = logging.getLogger(__name__)


def _bound_argument(func, args, kwargs, name: str, default: str = "unknown") -> str:
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        return default
    return bound.arguments.get(name, default)


def handle_http_errors(operation: str):
    """
    A decorator that translates Google API failures of an async remote call.

    The engine never retries: a 404 becomes NotFoundError (the document is
    absent, an expected user-facing outcome); every other HttpError and any
    SSL or socket failure becomes RemoteUnavailableError. Engine errors raised
    by the wrapped call pass through untouched.

    Args:
        operation (str): Name of the remote operation (e.g., 'documents.get').
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except DocsEngineError:
                raise
            except HttpError as error:
                status = error.resp.status
                if status == 404:
                    document_id = _bound_argument(func, args, kwargs, "document_id")
                    logger.error(f"Document not found in {operation}: {error}", exc_info=True)
                    raise NotFoundError(DocsErrorBuilder.document_not_found(document_id)) from error

                logger.error(f"API error in {operation}: {error}", exc_info=True)
                raise RemoteUnavailableError(
                    DocsErrorBuilder.remote_unavailable(operation, str(error), status_code=status)
                ) from error
            except (ssl.SSLError, OSError) as e:
                logger.error(f"Network error in {operation}: {e}", exc_info=True)
                raise RemoteUnavailableError(
                    DocsErrorBuilder.remote_unavailable(operation, str(e))
                ) from e

        return wrapper

    return decorator
