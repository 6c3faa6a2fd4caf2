from psycopg.rows import dict_row

from shelfscan.database.connection import get_connection


def ownership_key(title: str | None, author: str | None, series: str | None) -> str:
    """Lowercased ``title|author|series`` key used to match owned books."""
    return "|".join(
        (value or "").strip().lower() for value in (title, author, series)
    )


class CatalogRepository:
    """Read-only access to the family book catalog."""

    def find_family_id(self, owner_id: str) -> str | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT family_id FROM users WHERE id = %s", (owner_id,))
                row = cur.fetchone()

        if row is None or row[0] is None:
            return None
        return str(row[0])

    def owned_book_keys(self, owner_id: str) -> set[str]:
        """Ownership keys of every book in the owner's family library.

        Returns an empty set when the owner belongs to no family.
        """
        family_id = self.find_family_id(owner_id)
        if family_id is None:
            return set()

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT bc.title, bc.author, bc.series
                    FROM family_books fb
                    JOIN book_catalog bc ON bc.id = fb.book_catalog_id
                    WHERE fb.family_id = %s
                    """,
                    (family_id,),
                )
                rows = cur.fetchall()

        return {ownership_key(row["title"], row["author"], row["series"]) for row in rows}
