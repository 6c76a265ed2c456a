"""
Unit tests for the BaseRequest request description.
"""
from typing import Any, List
from urllib.parse import quote

from resilient_http.core.domain.requests import BaseRequest, T
from tests.conftest import User


class SampleRequest(BaseRequest[dict]):
    response_type = dict


class TestBaseRequest:
    """Test cases for BaseRequest."""

    def test_set_request_api(self):
        """Test setting the request path."""
        request = SampleRequest()

        request.set_request_api("/api/test")

        assert request.get_request_api() == "/api/test"

    def test_empty_path_is_ignored(self):
        """Test that None or empty paths leave the current path unchanged."""
        request = SampleRequest("/api/test")

        request.set_request_api(None)
        request.set_request_api("")

        assert request.get_request_api() == "/api/test"

    def test_method_defaults_to_post(self):
        """Test the default method."""
        assert SampleRequest().method == "POST"

    def test_method_is_settable(self):
        """Test the method can be changed."""
        request = SampleRequest()

        request.method = "GET"

        assert request.method == "GET"

    def test_add_header(self):
        """Test adding headers one by one."""
        request = SampleRequest()

        request.add_header("Authorization", "Bearer token")
        request.add_header("Accept", "application/json")

        assert request.get_headers() == {"Authorization": "Bearer token", "Accept": "application/json"}

    def test_add_header_overwrites_duplicate_key(self):
        """Test a repeated header key keeps the last value."""
        request = SampleRequest()

        request.add_header("X-Trace", "1")
        request.add_header("X-Trace", "2")

        assert request.get_headers() == {"X-Trace": "2"}

    def test_set_headers_replaces_all(self):
        """Test set_headers replaces previously added headers."""
        request = SampleRequest()
        request.add_header("OldHeader", "OldValue")

        request.set_headers({"NewHeader1": "Value1", "NewHeader2": "Value2"})

        assert request.get_headers() == {"NewHeader1": "Value1", "NewHeader2": "Value2"}

    def test_set_headers_empty_clears(self):
        """Test that empty headers clear the mapping."""
        request = SampleRequest()
        request.add_header("A", "1")

        request.set_headers({})

        assert request.get_headers() is None

    def test_no_headers_by_default(self):
        """Test headers and query parameters start unset."""
        request = SampleRequest()

        assert request.get_headers() is None
        assert request.get_query_parameters() is None
        assert request.get_body() is None

    def test_query_parameters_appended(self):
        """Test query parameters are appended with a leading question mark."""
        request = SampleRequest("/api/users")

        request.add_query_parameter("page", "1")
        request.add_query_parameter("pageSize", "20")

        assert request.get_request_api() == "/api/users?page=1&pageSize=20"

    def test_existing_query_string_is_extended(self):
        """Test parameters join an existing query string with an ampersand."""
        request = SampleRequest("/api/users?status=active")

        request.add_query_parameter("page", "1")

        assert request.get_request_api() == "/api/users?status=active&page=1"

    def test_set_query_parameters_replaces_all(self):
        """Test set_query_parameters drops earlier parameters."""
        request = SampleRequest("/api/users")
        request.add_query_parameter("old", "value")

        request.set_query_parameters({"page": "2", "pageSize": "30"})

        url = request.get_request_api()
        assert url == "/api/users?page=2&pageSize=30"
        assert "old" not in url

    def test_query_values_are_percent_encoded(self):
        """Test keys and values are escaped."""
        request = SampleRequest("/api/search")

        request.add_query_parameter("keyword", "测试&搜索")
        request.add_query_parameter("a b", "x/y=z")

        url = request.get_request_api()
        assert f"keyword={quote('测试&搜索', safe='')}" in url
        assert "a%20b=x%2Fy%3Dz" in url

    def test_unreserved_characters_left_intact(self):
        """Test RFC 3986 unreserved characters are not escaped."""
        request = SampleRequest("/api")

        request.add_query_parameter("q", "a-b_c.d~e")

        assert request.get_request_api() == "/api?q=a-b_c.d~e"

    def test_get_request_api_is_pure(self):
        """Test repeated calls return the same value."""
        request = SampleRequest("/api/users")
        request.add_query_parameter("page", "1")

        assert request.get_request_api() == request.get_request_api() == "/api/users?page=1"

    def test_set_body(self):
        """Test the body is stored as given."""
        request = SampleRequest()
        body = {"id": 123, "name": "Test"}

        request.set_body(body)

        assert request.get_body() is body


class TestResponseType:
    """Test cases for response_type resolution."""

    def test_inferred_from_type_argument(self):
        """Test the type argument of the base becomes the response type."""
        class GetUser(BaseRequest[User]):
            pass

        assert GetUser.response_type is User

    def test_inferred_generic_alias(self):
        """Test parameterized type arguments are kept as given."""
        class ListUsers(BaseRequest[List[User]]):
            pass

        assert ListUsers.response_type == List[User]

    def test_explicit_response_type_wins(self):
        """Test an explicitly set response_type is not overwritten."""
        class RawUser(BaseRequest[User]):
            response_type = dict

        assert RawUser.response_type is dict

    def test_generic_intermediate_then_concrete(self):
        """Test a still-generic subclass stays untyped until parameterized."""
        class PagedRequest(BaseRequest[T]):
            pass

        class PagedUsers(PagedRequest[User]):
            pass

        assert PagedRequest.response_type is Any
        assert PagedUsers.response_type is User

    def test_plain_subclass_inherits(self):
        """Test subclassing a concrete request keeps its response type."""
        class GetUser(BaseRequest[User]):
            pass

        class GetAdmin(GetUser):
            pass

        assert GetAdmin.response_type is User
