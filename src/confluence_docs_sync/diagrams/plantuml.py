import zlib

import requests

from ..core.client import TIMEOUT
from .base import BaseDiagramClient

# PlantUML's custom base64 alphabet
_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"


def _encode_3bytes(b1: int, b2: int, b3: int) -> str:
    return (
        _ALPHABET[b1 >> 2]
        + _ALPHABET[((b1 & 0x3) << 4) | (b2 >> 4)]
        + _ALPHABET[((b2 & 0xF) << 2) | (b3 >> 6)]
        + _ALPHABET[b3 & 0x3F]
    )


def encode_plantuml(source: str) -> str:
    """Encode diagram source the way PlantUML servers expect in URLs.

    The UTF-8 source is raw-deflated and written in PlantUML's base64
    alphabet. A trailing partial group is padded with zero bytes.
    """
    # strip the zlib header and adler32 trailer to get a raw deflate stream
    compressed = zlib.compress(source.encode("utf-8"), 9)[2:-4]
    result = []
    for i in range(0, len(compressed), 3):
        chunk = compressed[i : i + 3].ljust(3, b"\0")
        result.append(_encode_3bytes(*chunk))
    return "".join(result)


class PlantUmlClient(BaseDiagramClient):
    """Client for a PlantUML server image endpoint."""

    name = "plantuml"
    supported_types = ("plantuml",)

    def request(self, source: str, diagram_type: str) -> requests.Response:
        return self.session.get(
            f"{self.base_url}/{encode_plantuml(source)}",
            stream=True,
            timeout=TIMEOUT,
        )
