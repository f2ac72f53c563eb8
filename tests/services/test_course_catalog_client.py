"""Tests for CourseCatalogClient against a mocked HTTP transport."""

import httpx
import pytest

from liveclass.services.integrations.course_catalog_client import CourseCatalogClient
from liveclass.utils.app_errors import AppError, AppErrorCode


def _client(handler, **kwargs) -> CourseCatalogClient:
    return CourseCatalogClient(
        base_url="http://catalog.test/api/",
        api_key="catalog-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestCourseCatalogClient:
    async def test_enrolled_true(self):
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "results": True})

        # Act
        result = await _client(handler).is_enrolled("student_b", "course_1")

        # Assert
        assert result is True
        assert seen[0].url == "http://catalog.test/api/courses/course_1/enrollments/student_b"
        assert seen[0].headers["X-Api-Key"] == "catalog-key"

    async def test_instructor_false(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/courses/course_1/instructors/student_b"
            return httpx.Response(200, json={"success": True, "results": False})

        assert await _client(handler).is_instructor_of("student_b", "course_1") is False

    async def test_not_found_means_no(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"success": False})

        assert await _client(handler).is_enrolled("student_c", "course_1") is False

    async def test_unsuccessful_envelope_means_no(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "results": True})

        assert await _client(handler).is_enrolled("student_b", "course_1") is False

    async def test_server_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(AppError) as exc_info:
            await _client(handler).is_enrolled("student_b", "course_1")

        assert exc_info.value.errcode == AppErrorCode.E_CATALOG_UNAVAILABLE
        assert exc_info.value.status_code == 503

    async def test_connection_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AppError) as exc_info:
            await _client(handler).is_instructor_of("instructor_a", "course_1")

        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json={"success": True, "results": "maybe"}),
        ],
        ids=["not-json", "off-schema"],
    )
    async def test_malformed_body_is_unavailable(self, response: httpx.Response):
        """A 2xx the client cannot read is an outage, not an internal error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return response

        with pytest.raises(AppError) as exc_info:
            await _client(handler).is_enrolled("student_b", "course_1")

        assert exc_info.value.errcode == AppErrorCode.E_CATALOG_UNAVAILABLE
        assert exc_info.value.status_code == 503

    async def test_demo_mode_skips_network(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("demo mode must not call the catalog")

        client = _client(handler, demo_mode=True)

        assert await client.is_instructor_of("anyone", "course_1") is True
        assert await client.is_enrolled("anyone", "course_1") is False
