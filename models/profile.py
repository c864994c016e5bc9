"""Profile data model for VarSwitch."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Profile:
    """A named credential pair (token and base URL) applied to every target."""

    id: str
    name: str
    token: str
    base_url: str
    created: datetime
    modified: datetime
    is_active: bool = False
    last_used: Optional[datetime] = None

    def matches(self, token: Optional[str], base_url: Optional[str]) -> bool:
        """Check whether the given values are this profile's credentials."""
        return self.token == token and self.base_url == base_url

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "token": self.token,
            "base_url": self.base_url,
            "is_active": self.is_active,
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
            "last_used": self.last_used.isoformat() if self.last_used else None
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        """Create from dictionary loaded from JSON."""
        created = datetime.fromisoformat(data["created"])
        modified = datetime.fromisoformat(data.get("modified") or data["created"])
        last_used = None
        if data.get("last_used"):
            try:
                last_used = datetime.fromisoformat(data["last_used"])
            except (ValueError, TypeError):
                pass

        return cls(
            id=data["id"],
            name=data["name"],
            token=data.get("token", ""),
            base_url=data.get("base_url", ""),
            created=created,
            modified=modified,
            is_active=bool(data.get("is_active", False)),
            last_used=last_used
        )
