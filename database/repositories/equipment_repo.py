"""CRUD for a user's clubs and bag setups."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import Bag, Club
from database.converters import bag_from_row, club_from_row
from database.exceptions import DuplicateError, IntegrityError, NotFoundError


class EquipmentRepositoryDB:
    """Async CRUD for public.clubs, public.bags and the bag_clubs junction."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Clubs
    # ================================================================

    async def list_clubs(self, user_id: str) -> List[Club]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM public.clubs WHERE user_id = $1 ORDER BY type, name",
                UUID(user_id),
            )
            return [club_from_row(r) for r in rows]

    async def create_club(self, club: Club) -> Club:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO public.clubs (user_id, name, brand, type, loft, notes)
                       VALUES ($1, $2, $3, $4, $5, $6) RETURNING *""",
                    UUID(club.user_id), club.name, club.brand,
                    club.type.value, club.loft, club.notes,
                )
                return club_from_row(row)
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"User {club.user_id} not found") from e

    async def update_club(self, club_id: str, club: Club) -> Club:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE public.clubs SET name = $2, brand = $3, type = $4, loft = $5, notes = $6
                   WHERE id = $1 RETURNING *""",
                UUID(club_id), club.name, club.brand, club.type.value, club.loft, club.notes,
            )
            if not row:
                raise NotFoundError(f"Club {club_id} not found")
            return club_from_row(row)

    async def delete_club(self, club_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.clubs WHERE id = $1", UUID(club_id)
            )
            return result == "DELETE 1"

    # ================================================================
    # Bags
    # ================================================================

    async def _club_ids_for(self, conn, bag_ids) -> dict:
        if not bag_ids:
            return {}
        rows = await conn.fetch(
            "SELECT bag_id, club_id FROM public.bag_clubs WHERE bag_id = ANY($1::uuid[])",
            list(bag_ids),
        )
        by_bag: dict = {}
        for r in rows:
            by_bag.setdefault(r["bag_id"], []).append(r["club_id"])
        return by_bag

    async def list_bags(self, user_id: str) -> List[Bag]:
        """User's bags, default first."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM public.bags WHERE user_id = $1
                   ORDER BY is_default DESC, name""",
                UUID(user_id),
            )
            clubs = await self._club_ids_for(conn, [r["id"] for r in rows])
            return [bag_from_row(r, clubs.get(r["id"], [])) for r in rows]

    async def get_bag(self, bag_id: str) -> Optional[Bag]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM public.bags WHERE id = $1", UUID(bag_id)
            )
            if not row:
                return None
            clubs = await self._club_ids_for(conn, [row["id"]])
            return bag_from_row(row, clubs.get(row["id"], []))

    async def _write_bag_clubs(self, conn, bag_id: UUID, user_id: UUID, club_ids: List[str]) -> None:
        """Replace a bag's clubs. Every club must belong to the bag's owner."""
        wanted = [UUID(c) for c in club_ids]
        if wanted:
            owned = await conn.fetch(
                "SELECT id FROM public.clubs WHERE user_id = $1 AND id = ANY($2::uuid[])",
                user_id, wanted,
            )
            if len(owned) != len(set(wanted)):
                raise IntegrityError("Bag references clubs the user does not own")
        await conn.execute("DELETE FROM public.bag_clubs WHERE bag_id = $1", bag_id)
        if wanted:
            await conn.executemany(
                "INSERT INTO public.bag_clubs (bag_id, club_id) VALUES ($1, $2)",
                [(bag_id, c) for c in dict.fromkeys(wanted)],
            )

    async def save_bag(self, bag: Bag, bag_id: Optional[str] = None) -> Bag:
        """Insert or update a bag setup together with its club list.

        Marking a bag as default clears the flag on the user's other bags.
        """
        uid = UUID(bag.user_id)
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    if bag.is_default:
                        await conn.execute(
                            "UPDATE public.bags SET is_default = FALSE WHERE user_id = $1 AND is_default",
                            uid,
                        )
                    if bag_id:
                        row = await conn.fetchrow(
                            """UPDATE public.bags
                               SET name = $2, description = $3, is_default = $4, handicap = $5
                               WHERE id = $1 RETURNING *""",
                            UUID(bag_id), bag.name, bag.description, bag.is_default, bag.handicap,
                        )
                        if not row:
                            raise NotFoundError(f"Bag {bag_id} not found")
                    else:
                        row = await conn.fetchrow(
                            """INSERT INTO public.bags (user_id, name, description, is_default, handicap)
                               VALUES ($1, $2, $3, $4, $5) RETURNING *""",
                            uid, bag.name, bag.description, bag.is_default, bag.handicap,
                        )
                    await self._write_bag_clubs(conn, row["id"], uid, bag.club_ids)
                    return bag_from_row(row, bag.club_ids)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Bag '{bag.name}' already exists") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"User {bag.user_id} not found") from e

    async def delete_bag(self, bag_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM public.bags WHERE id = $1", UUID(bag_id)
            )
            return result == "DELETE 1"
