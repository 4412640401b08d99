"""CloudinaryImageStore — ImageStoreProtocol over Cloudinary's upload REST API.

Requests are signed the way Cloudinary expects: SHA-1 over the sorted
`key=value` parameters joined by '&', with the API secret appended.

    POST https://api.cloudinary.com/v1_1/{cloud}/image/upload
    POST https://api.cloudinary.com/v1_1/{cloud}/image/destroy
"""

import hashlib
import logging
import time

import httpx

from config.settings import settings
from src.rl_common.errors import ImageUploadError
from src.rl_shop.domain.image_store import StoredImage

logger = logging.getLogger(__name__)

_API_BASE = "https://api.cloudinary.com/v1_1"
_TIMEOUT_SECONDS = 15.0


def sign_params(params: dict[str, str], api_secret: str) -> str:
    payload = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] != "")
    return hashlib.sha1((payload + api_secret).encode("utf-8")).hexdigest()


class CloudinaryImageStore:
    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        folder: str = "respect-ledger/items",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._folder = folder
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "CloudinaryImageStore":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._cloud_name and self._api_key and self._api_secret)

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        return {
            **params,
            "api_key": self._api_key or "",
            "signature": sign_params(params, self._api_secret or ""),
        }

    async def _post(self, action: str, data: dict[str, str], files: dict | None = None) -> dict:
        url = f"{_API_BASE}/{self._cloud_name}/image/{action}"
        try:
            async with httpx.AsyncClient(
                timeout=_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise ImageUploadError(
                f"{action} returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ImageUploadError(f"{action} failed: {exc}") from exc

    async def upload(
        self, content: bytes, filename: str, content_type: str | None = None
    ) -> StoredImage:
        if not self.is_configured:
            raise ImageUploadError("image hosting is not configured")
        params = {"folder": self._folder, "timestamp": str(int(time.time()))}
        body = await self._post(
            "upload",
            self._signed(params),
            files={"file": (filename, content, content_type or "application/octet-stream")},
        )
        url = body.get("secure_url")
        public_id = body.get("public_id")
        if not url or not public_id:
            raise ImageUploadError("upload response is missing secure_url/public_id")
        logger.info("Image uploaded: public_id=%s", public_id)
        return StoredImage(url=url, public_id=public_id)

    async def destroy(self, public_id: str) -> None:
        if not self.is_configured:
            raise ImageUploadError("image hosting is not configured")
        params = {"public_id": public_id, "timestamp": str(int(time.time()))}
        body = await self._post("destroy", self._signed(params))
        if body.get("result") not in ("ok", "not found"):
            raise ImageUploadError(f"destroy returned {body.get('result')!r}")
        logger.info("Image destroyed: public_id=%s", public_id)
