"""
In-memory user provider with optional YAML seed file.
"""

import bcrypt
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from gatehouse.adapters.providers import UserProvider, UserId
from gatehouse.models.schemas import StoredUser


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    salt = bcrypt.gensalt()
    password_hash = bcrypt.hashpw(password.encode('utf-8'), salt)
    return password_hash.decode('utf-8')


def check_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


class InMemoryUserProvider(UserProvider):
    """User provider keeping ``StoredUser`` records in a dict."""

    def __init__(
        self,
        users_file: Optional[str] = None,
        uids: Sequence[str] = ("email", "username"),
        identifier_key: str = "id"
    ):
        """
        Initialize the in-memory provider.

        Args:
            users_file: Optional YAML file to seed users from
            uids: Fields checked, in order, by find_by_uid
            identifier_key: Primary key field of the user model
        """
        self.users: Dict[int, StoredUser] = {}
        self.uids = list(uids)
        self.identifier_key = identifier_key
        self._next_id = 1
        if users_file:
            self.load_file(users_file)

    def load_file(self, users_file: str) -> int:
        """
        Seed users from a YAML file.

        The file holds a ``users`` list; each entry carries either a
        ``password_hash`` or a plain ``password`` that gets hashed on load.

        Returns:
            Number of users loaded
        """
        path = Path(users_file)
        if not path.exists():
            return 0

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        loaded = 0
        for entry in data.get("users", []):
            entry = dict(entry)
            password = entry.pop("password", None)
            if password and "password_hash" not in entry:
                entry["password_hash"] = hash_password(password)
            self.add(StoredUser(**entry))
            loaded += 1
        return loaded

    def save_file(self, users_file: str) -> None:
        """Write all users, with hashed passwords only, to a YAML file."""
        path = Path(users_file)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "users": [
                user.model_dump(mode="json", exclude={"remember_token"})
                for user in self.users.values()
            ]
        }
        with open(path, 'w') as f:
            yaml.safe_dump(data, f, sort_keys=False)
        path.chmod(0o600)

    def add(self, user: StoredUser) -> StoredUser:
        """Store a user, assigning the next primary key when it has none."""
        if user.id is None:
            user.id = self._next_id
        self._next_id = max(self._next_id, user.id + 1)
        self.users[user.id] = user
        return user

    def create_user(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        meta: Optional[dict] = None
    ) -> StoredUser:
        """
        Create a new user.

        Raises:
            ValueError: If the username or email is already taken
        """
        for existing in self.users.values():
            if existing.username == username or (email and existing.email == email):
                raise ValueError(f"User '{username}' already exists")

        return self.add(StoredUser(
            username=username,
            email=email,
            password_hash=hash_password(password),
            meta=meta or {},
        ))

    def delete_user(self, user_id: int) -> bool:
        """Delete a user, returning False if it did not exist."""
        return self.users.pop(user_id, None) is not None

    def list_users(self) -> List[StoredUser]:
        return list(self.users.values())

    async def find_by_uid(self, uid: str) -> Optional[StoredUser]:
        for field in self.uids:
            for user in self.users.values():
                if getattr(user, field, None) == uid:
                    return user
        return None

    async def find_by_id(self, user_id: UserId) -> Optional[StoredUser]:
        try:
            return self.users.get(int(user_id))
        except (TypeError, ValueError):
            return None

    async def find_by_remember_token(self, token: str) -> Optional[StoredUser]:
        if not token:
            return None
        for user in self.users.values():
            if user.remember_token == token:
                return user
        return None

    async def verify_password(self, user: StoredUser, password: str) -> bool:
        return check_password(password, user.password_hash)

    async def save_remember_token(self, user: StoredUser, token: str) -> None:
        user.remember_token = token
        user.update_timestamp()
        stored = self.users.get(user.id)
        if stored is not None and stored is not user:
            stored.remember_token = token
            stored.update_timestamp()
