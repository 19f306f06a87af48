import asyncpg
from typing import Optional
from uuid import UUID

from models import Profile
from database.converters import profile_from_row
from database.exceptions import DuplicateError, NotFoundError


class ProfileRepositoryDB:
    """Async reads and updates for public.profiles."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM public.profiles WHERE id = $1", UUID(user_id)
            )
            return profile_from_row(row) if row else None

    async def is_admin(self, user_id: str) -> bool:
        profile = await self.get_profile(user_id)
        return bool(profile and profile.is_admin)

    async def update_profile(self, user_id: str, **fields) -> Profile:
        """Update editable profile fields. is_admin is not editable here."""
        allowed = {"email", "first_name", "last_name", "username", "handicap"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            profile = await self.get_profile(user_id)
            if not profile:
                raise NotFoundError(f"Profile {user_id} not found")
            return profile

        set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"UPDATE public.profiles SET {set_clause} WHERE id = $1 RETURNING *",
                    UUID(user_id), *updates.values(),
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Username or email already taken: {e}") from e
        if not row:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile_from_row(row)
