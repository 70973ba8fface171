"""Folio error module."""

import http

from collections.abc import Iterator
from contextlib import contextmanager


class Error(Exception):
    """
    Base class for folio errors.

    Errors generated from HTTP statuses include the following attributes:
    • status: HTTP status code (int)
    • phrase: HTTP reason phrase
    """


class ClientError(Error):
    """
    Base class for errors caused by the request made to a remote catalog.
    """


class ServerError(Error):
    """
    Base class for errors reported by a remote catalog server.
    """


class TransportError(Error):
    """Error raised if a request could not be delivered or its response not received."""


class DecodeError(Error):
    """Error raised if a response payload could not be decoded into items."""


# statuses a catalog is expected to respond with; others map to ClientError or ServerError
_STATUSES = (
    http.HTTPStatus.BAD_REQUEST,
    http.HTTPStatus.UNAUTHORIZED,
    http.HTTPStatus.FORBIDDEN,
    http.HTTPStatus.NOT_FOUND,
    http.HTTPStatus.REQUEST_TIMEOUT,
    http.HTTPStatus.TOO_MANY_REQUESTS,
    http.HTTPStatus.INTERNAL_SERVER_ERROR,
    http.HTTPStatus.BAD_GATEWAY,
    http.HTTPStatus.SERVICE_UNAVAILABLE,
    http.HTTPStatus.GATEWAY_TIMEOUT,
)


class _Errors:
    """
    Encapsulates HTTP error exception classes. Errors are dynamically generated from the
    catalog statuses in the http.HTTPStatus enum.

    Errors can be accessed by HTTP status or name.
    Example: folio.error.errors[404] == folio.error.errors.NotFoundError
    """

    def __init__(self):
        self._names = {}
        self._codes = {}
        for status in _STATUSES:
            name = "".join(
                w.title() if w not in {"HTTP", "URI"} else w for w in status.name.split("_")
            )
            if not name.endswith("Error"):
                name += "Error"
            error = type(
                name,
                (ClientError if 400 <= status.value <= 499 else ServerError,),
                {
                    "status": status.value,
                    "phrase": status.phrase,
                    "__doc__": f"{status.description or status.phrase.capitalize()}.",
                },
            )
            self._names[name] = error
            self._codes[status.value] = error

    def get(self, code: int, default=None) -> type[Error]:
        """Return error for code."""
        return self._codes.get(code, default)

    def __getitem__(self, code: int) -> type[Error]:
        return self._codes[code]

    def __getattr__(self, name: str) -> type[Error]:
        if error := self._names.get(name):
            return error
        raise AttributeError(name)

    def __iter__(self) -> Iterator[type[Error]]:
        return iter(self._codes.values())


errors = _Errors()


def for_status(code: int) -> type[Error]:
    """
    Return the error class for an HTTP status code. Unknown 4xx codes map to ClientError,
    anything else unknown to ServerError.
    """
    return errors.get(code) or (ClientError if 400 <= code <= 499 else ServerError)


@contextmanager
def wrap_exception(
    *,
    catch: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    throw: type[Exception] = Error,
):
    """
    Context manager that catches an exception and raises another in its place, chaining the
    caught exception as its cause. Exceptions that are already instances of the class to throw
    pass through unchanged.

    Parameters:
    • catch: exception class(es) to catch  [Exception]
    • throw: exception class to raise  [Error]
    """
    try:
        yield
    except throw:
        raise
    except catch as e:
        raise throw(str(e) or type(e).__name__) from e


# commonly used errors
BadRequestError: type[ClientError] = errors.BadRequestError
NotFoundError: type[ClientError] = errors.NotFoundError
TooManyRequestsError: type[ClientError] = errors.TooManyRequestsError
UnauthorizedError: type[ClientError] = errors.UnauthorizedError
InternalServerError: type[ServerError] = errors.InternalServerError
ServiceUnavailableError: type[ServerError] = errors.ServiceUnavailableError
