"""
Stored credential model.

The only record persisted in the platform secret store:

    {"mnemonic": "<12 words>", "created_at": 1700000000}

Unknown fields are ignored on read so newer versions can add data
without breaking older ones.
"""

import json
import time
from dataclasses import dataclass
from typing import Optional


class CredentialFormatError(ValueError):
    """Stored text does not match the credential schema."""


@dataclass(frozen=True)
class StoredCredential:
    """Recovery phrase plus creation time (Unix seconds)."""
    mnemonic: str
    created_at: int

    def __repr__(self) -> str:
        return f"StoredCredential(mnemonic=<hidden>, created_at={self.created_at})"

    @classmethod
    def create(cls, mnemonic: str, created_at: Optional[int] = None) -> "StoredCredential":
        """New credential stamped with the current time."""
        if created_at is None:
            created_at = int(time.time())
        return cls(mnemonic=mnemonic, created_at=created_at)

    def to_dict(self) -> dict:
        return {"mnemonic": self.mnemonic, "created_at": self.created_at}

    def serialize(self) -> str:
        """Compact single-line JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict) -> "StoredCredential":
        if not isinstance(data, dict):
            raise CredentialFormatError("Credential must be a JSON object")

        mnemonic = data.get("mnemonic")
        if not isinstance(mnemonic, str):
            raise CredentialFormatError("Missing or invalid 'mnemonic' field")

        created_at = data.get("created_at")
        # bool is an int subclass; reject it explicitly
        if isinstance(created_at, bool) or not isinstance(created_at, int) or created_at < 0:
            raise CredentialFormatError("Missing or invalid 'created_at' field")

        return cls(mnemonic=mnemonic, created_at=created_at)

    @classmethod
    def parse(cls, text: str) -> "StoredCredential":
        """Inverse of serialize(). Extra fields are ignored."""
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise CredentialFormatError(f"Credential is not valid JSON: {e}") from e
        return cls.from_dict(data)
