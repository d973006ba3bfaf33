import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID, uuid4

from .errors import ConflictError, NotFoundError
from .models import Role, User, as_user_id

logger = logging.getLogger(__name__)


class UserRegistry:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._users: dict[UUID, User] = {}

    def register(
        self,
        role: Role,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        profile: Optional[dict] = None,
        user_id: Optional[UUID] = None,
    ) -> User:
        user = User(
            id=as_user_id(user_id) if user_id is not None else uuid4(),
            role=role,
            name=name,
            phone=phone,
            profile=profile or {},
            created_at=self._clock(),
        )
        with self._lock:
            if user.id in self._users:
                raise ConflictError(f"User {user.id} already registered")
            self._users[user.id] = user

        logger.info("User registered: id=%s role=%s", user.id, role.value)
        return user

    def get(self, user_id: UUID) -> Optional[User]:
        return self._users.get(as_user_id(user_id))

    def require(self, user_id: UUID) -> User:
        user = self._users.get(as_user_id(user_id))
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def all(self) -> list[User]:
        with self._lock:
            return list(self._users.values())
