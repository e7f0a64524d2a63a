"""
Shared test helpers: multipart encoding and test JWTs.
"""

import time

import jwt

TEST_AUTH_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TEST_ISSUER = "https://auth.test.local"
TEST_AUDIENCE = "medintake-test"

BOUNDARY = "----MedIntakeTestBoundary7MA4YWxkTrZu0gW"

Part = tuple[str, str | None, str | None, bytes]


def encode_multipart(parts: list[Part], boundary: str = BOUNDARY) -> bytes:
    """
    Encode (field, filename, content_type, data) tuples as multipart/form-data.

    A None filename or content_type omits that attribute/header.
    """
    body = bytearray()
    for field, filename, content_type, data in parts:
        disposition = f'form-data; name="{field}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode()
        if content_type is not None:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + data + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return bytes(body)


def multipart_content_type(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


def make_token(sub: str = "uid-123", **overrides) -> str:
    """Create an HS256 token accepted by a validator built from the TEST_* values."""
    now = int(time.time())
    claims = {
        "sub": sub,
        "iss": TEST_ISSUER,
        "aud": TEST_AUDIENCE,
        "iat": now,
        "exp": now + 3600,
        "email": "patient@example.com",
    }
    claims.update(overrides)
    return jwt.encode(claims, TEST_AUTH_SECRET, algorithm="HS256")
