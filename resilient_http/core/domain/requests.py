"""
Abstract request description.

A request object carries everything the executor needs to build a wire
call: method, path, headers, query parameters and an optional body. The
response type is declared by subclasses so the executor knows what to
decode the body into.
"""

import typing
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar
from urllib.parse import quote

T = TypeVar('T')


def _escape(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters."""
    return quote(str(value), safe="")


class BaseRequest(Generic[T]):
    """
    Base class for typed HTTP requests.

    The response body is decoded into ``response_type``. It is taken from
    the type argument of the parameterized base, or may be set explicitly::

        class GetUserRequest(BaseRequest[User]):
            pass

        GetUserRequest.response_type  # User
    """

    response_type: Any = Any

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "response_type" in cls.__dict__:
            return
        for base in cls.__dict__.get("__orig_bases__", ()):
            origin = typing.get_origin(base)
            args = typing.get_args(base)
            if isinstance(origin, type) and issubclass(origin, BaseRequest) and args:
                if not isinstance(args[0], TypeVar):
                    cls.response_type = args[0]
                return

    def __init__(self, path: Optional[str] = None, method: str = "POST"):
        self.method = method
        self._request_api = ""
        self._headers: Optional[Dict[str, str]] = None
        self._query_parameters: Optional[Dict[str, str]] = None
        self._body: Any = None
        self.set_request_api(path)

    def get_request_api(self) -> str:
        """Return the request path with query parameters appended."""
        if self._query_parameters:
            query_string = "&".join(
                f"{_escape(key)}={_escape(value)}"
                for key, value in self._query_parameters.items()
            )
            separator = "&" if "?" in self._request_api else "?"
            return f"{self._request_api}{separator}{query_string}"

        return self._request_api

    def set_request_api(self, path: Optional[str]) -> None:
        """Set the request path; empty values are ignored."""
        if path:
            self._request_api = path

    def get_headers(self) -> Optional[Dict[str, str]]:
        return self._headers

    def add_header(self, key: str, value: str) -> None:
        if self._headers is None:
            self._headers = {}
        self._headers[key] = value

    def set_headers(self, headers: Optional[Mapping[str, str]]) -> None:
        """Replace all headers; ``None`` or an empty mapping clears them."""
        self._headers = dict(headers) if headers else None

    def get_query_parameters(self) -> Optional[Dict[str, str]]:
        return self._query_parameters

    def add_query_parameter(self, key: str, value: str) -> None:
        if self._query_parameters is None:
            self._query_parameters = {}
        self._query_parameters[key] = value

    def set_query_parameters(self, parameters: Optional[Mapping[str, str]]) -> None:
        """Replace all query parameters; ``None`` or an empty mapping clears them."""
        self._query_parameters = dict(parameters) if parameters else None

    def get_body(self) -> Any:
        return self._body

    def set_body(self, body: Any) -> None:
        self._body = body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(method={self.method!r}, path={self._request_api!r})"
