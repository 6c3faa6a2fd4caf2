from shelfscan.database.connection import get_connection


class AuditLogRepository:
    """Append-only storage_audit_log writes."""

    def record(
        self,
        *,
        bucket_id: str,
        object_path: str,
        operation: str,
        user_id: str | None,
        actor: str,
        reason: str,
    ) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO storage_audit_log
                (bucket_id, object_path, operation, user_id, actor, reason)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (bucket_id, object_path, operation, user_id, actor, reason),
            )
            conn.commit()
