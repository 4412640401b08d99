"""The authenticated caller as seen by the core.

Built by the gateway from a verified token; services trust it without
re-checking credentials.
"""

from dataclasses import dataclass

from src.rl_common.errors import AdminRequiredError


@dataclass(frozen=True)
class Actor:
    id: int
    name: str
    is_admin: bool

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AdminRequiredError()
