"""Image hosting port for shop item pictures.

The shop only needs two things from a host: store bytes and get back a
public URL plus a handle, and later delete by that handle.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str


class ImageStoreProtocol(Protocol):
    async def upload(
        self, content: bytes, filename: str, content_type: str | None = None
    ) -> StoredImage: ...

    async def destroy(self, public_id: str) -> None: ...
