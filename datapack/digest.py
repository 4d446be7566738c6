"""Content digests for bag manifests.

Manifests use MD5. The digest guards against accidental corruption only; it
is not used for any security decision.
"""

import hashlib
import os
from typing import Union

CHUNK_SIZE = 1024 * 1024

DIGEST_ALGORITHM = "md5"


def digest(content: Union[bytes, str, os.PathLike]) -> str:
    """Return the hex MD5 digest of raw bytes or of a file's content.

    ``bytes`` are hashed directly; a path (``str`` or ``PathLike``) is read
    in chunks so large payload files are never loaded whole.
    """
    hasher = hashlib.new(DIGEST_ALGORITHM, usedforsecurity=False)
    if isinstance(content, (bytes, bytearray, memoryview)):
        hasher.update(content)
        return hasher.hexdigest()
    with open(content, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()
