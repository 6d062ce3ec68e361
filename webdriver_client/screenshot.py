"""Screenshot payloads returned by the driver."""

import base64
import binascii
from pathlib import Path
from typing import Union

from .exceptions import Base64DecodeError, DriverIOError


class Screenshot:
    """Base64 PNG returned by a screenshot endpoint.

    Decoding is deferred until bytes() or save_file() is called.
    """

    def __init__(self, base64_data: str):
        self.base64 = base64_data

    def bytes(self) -> bytes:
        """Decode the payload.

        Raises:
            Base64DecodeError: If the payload is not valid base64
        """
        try:
            return base64.b64decode(self.base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise Base64DecodeError(f"Invalid screenshot payload: {e}") from e

    def save_file(self, path: Union[str, Path]) -> Path:
        """Decode the payload and write it to ``path``.

        Raises:
            Base64DecodeError: If the payload is not valid base64
            DriverIOError: If the file cannot be written
        """
        data = self.bytes()
        output = Path(path)
        try:
            output.write_bytes(data)
        except OSError as e:
            raise DriverIOError(
                f"Failed to write screenshot to {output}: {e}",
                details={"path": str(output)},
            ) from e
        return output

    def __repr__(self):
        return f"Screenshot({len(self.base64)} base64 chars)"
