from __future__ import annotations

from dataclasses import dataclass, field

from circulation.users import User


@dataclass
class Account:
    """Login credentials bound to exactly one user.

    Attributes:
        username: login key, assumed unique.
        password: stored and compared in plaintext.
        role: "student", "faculty" or "librarian"; must match the user's class.
        user: the owned User.
    """

    username: str
    password: str = field(repr=False)
    role: str
    user: User

    def __post_init__(self) -> None:
        self.role = self.role.strip().lower()
        if self.role != self.user.role:
            raise ValueError(
                f"Account {self.username!r} has role {self.role!r} but owns a {type(self.user).__name__}"
            )

    def check_password(self, candidate: str) -> bool:
        return candidate == self.password

    def to_record(self) -> list[str]:
        return [
            self.username, self.password, self.role, self.user.user_id, str(self.user.fine),
            *self.user.history,
        ]
