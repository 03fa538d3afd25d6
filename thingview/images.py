import base64, binascii, uuid
from typing import Any, Dict, Optional
from .errors import DecodingError

class ImageHandles:
    """Display handles for raw image payloads, like browser object URLs.

    Every ``create`` allocates a new ``blob:`` locator; ``revoke`` frees it.
    """

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    def __len__(self):
        return len(self._blobs)

    def __contains__(self, url: str) -> bool:
        return url in self._blobs

    def create(self, payload: bytes) -> str:
        url = f"blob:thingview/{uuid.uuid4()}"
        self._blobs[url] = payload
        return url

    def get(self, url: str) -> Optional[bytes]:
        return self._blobs.get(url)

    def revoke(self, url: Optional[str]):
        if url:
            self._blobs.pop(url, None)

handles = ImageHandles()

def _as_bytes(payload: Any) -> bytes:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, list):
        try:
            return bytes(payload)
        except (TypeError, ValueError) as e:
            raise DecodingError("byte list payload is not a list of octets") from e
    if isinstance(payload, str):
        return payload.encode("latin-1", errors="replace")
    raise DecodingError(f"cannot read {type(payload).__name__} as image bytes")

def decode_image(unit: Optional[str], payload: Any, previous: Optional[str] = None,
                 registry: Optional[ImageHandles] = None) -> str:
    """Turn a still image payload into an image source.

    ``bytes`` allocates a fresh handle and releases ``previous``; ``base64``
    wraps the payload in a data URL.
    """
    registry = registry if registry is not None else handles
    if unit == "bytes":
        data = _as_bytes(payload)
        registry.revoke(previous)
        return registry.create(data)
    if unit == "base64":
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("ascii", errors="replace")
        if not isinstance(payload, str):
            raise DecodingError("base64 image payload is not a string")
        # MIME-wrapped payloads carry line breaks
        payload = "".join(payload.split())
        try:
            base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise DecodingError("payload is not valid base64") from e
        return f"data:image/jpeg;base64,{payload}"
    raise DecodingError(f"unknown image unit {unit!r}")
