"""Stored OAuth credentials for the TSheets API."""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER = timedelta(minutes=5)


class StoredToken(BaseModel):
    """OAuth token as written by the TSheets authorization script."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_at: int = Field(alias="expiresAt")  # epoch milliseconds
    user_id: str = Field(alias="userId")
    company_id: str = Field(alias="companyId")
    client_url: str = Field(alias="clientUrl")

    @property
    def expires(self) -> datetime:
        """Expiry as an aware UTC datetime."""
        return datetime.fromtimestamp(self.expires_at / 1000, tz=timezone.utc)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if token is expired or about to expire."""
        now = now or datetime.now(timezone.utc)
        return self.expires - TOKEN_EXPIRY_BUFFER <= now


class TokenStore:
    """Reads (and can delete) the token JSON file."""

    def __init__(self, path: Path) -> None:
        """Initialize token store.

        Args:
            path: Location of the token JSON file.
        """
        self.path = path

    def load(self) -> StoredToken | None:
        """Load the stored token.

        Returns:
            The token, or None if it is missing, unreadable, or expired.
        """
        if not self.path.exists():
            logger.warning(f"Token file {self.path} does not exist. Run authentication first.")
            return None

        try:
            data = json.loads(self.path.read_text())
            token = StoredToken.model_validate(data)
        except json.JSONDecodeError:
            logger.error(f"Token file {self.path} contains invalid JSON")
            return None
        except ValidationError as e:
            logger.error(f"Token file {self.path} has invalid format: {e}")
            return None

        if token.is_expired():
            logger.warning(f"Stored token expired at {token.expires.isoformat()}")
            return None

        return token

    def clear(self) -> None:
        """Delete the token file if present."""
        self.path.unlink(missing_ok=True)

