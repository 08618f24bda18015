"""Generic token record model, independent of the storage backend."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
import pytz


def format_expiry(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and a 'Z' suffix.

    Example: 2023-11-14T22:13:20.000Z
    """
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    value = value.astimezone(pytz.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class AuthToken(BaseModel):
    """
    Represents the bearer token stored for one subscription.
    There is at most one record per subscription_id, a new write replaces the previous one.
    """
    model_config = ConfigDict(frozen=True)

    subscription_id: str
    login: str
    token: str
    expires_at: datetime

    def to_record(self) -> dict:
        """Returns the row layout persisted by the token store."""
        return {
            "subscription_id": self.subscription_id,
            "login": self.login,
            "token": self.token,
            "expires_at": format_expiry(self.expires_at),
        }
