"""Course catalog / enrollment collaborator.

The catalog is the source of truth for who teaches a course and who is
enrolled in it. Both checks answer with the platform envelope
`{"success": true, "results": <bool>}`; a 404 means "no".
"""

import httpx
from loguru import logger
from pydantic import BaseModel

from liveclass.app_config import AppEnvironConfig, get_app_environ_config
from liveclass.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class CatalogCheckResponse(BaseModel):
    success: bool = True
    results: bool = False


class CourseCatalogClient:
    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10,
        demo_mode: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.demo_mode = demo_mode
        self._transport = transport

    def _build_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        if extra:
            headers.update(extra)
        return headers

    async def is_instructor_of(self, user_id: str, course_id: str) -> bool:
        """Whether `user_id` owns or teaches `course_id`."""
        if self.demo_mode:
            logger.info("Catalog client DEMO_MODE=true: every user teaches every course")
            return True
        return await self._check(f"/courses/{course_id}/instructors/{user_id}")

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        """Whether `user_id` is enrolled in `course_id`."""
        if self.demo_mode:
            logger.info("Catalog client DEMO_MODE=true: no enrollments")
            return False
        return await self._check(f"/courses/{course_id}/enrollments/{user_id}")

    async def _check(self, path: str) -> bool:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(url, headers=self._build_headers(), timeout=self.timeout)
                if response.status_code == HttpStatusCode.NOT_FOUND:
                    return False
                response.raise_for_status()
                data = response.json()
            logger.debug(f"GET {path} response: {data}")
            result = CatalogCheckResponse.model_validate(data)
        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers undecodable JSON and off-schema envelopes
            logger.error(f"Course catalog request failed: GET {url}: {e!s}")
            raise AppError(
                errcode=AppErrorCode.E_CATALOG_UNAVAILABLE,
                errmesg=f"Course catalog unavailable: {e!s}",
                status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
            ) from e

        return result.success and result.results


def get_course_catalog_client(cfg: AppEnvironConfig | None = None) -> CourseCatalogClient:
    cfg = cfg or get_app_environ_config()
    return CourseCatalogClient(
        base_url=cfg.COURSE_CATALOG_BASE_URL,
        api_key=cfg.COURSE_CATALOG_API_KEY,
        timeout=cfg.COURSE_CATALOG_TIMEOUT,
        demo_mode=cfg.DEMO_MODE,
    )
