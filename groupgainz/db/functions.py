"""Funciones SQL del lado del servidor (solo PostgreSQL)."""

ARCHIVE_WEEKLY_POINTS = "archive_weekly_points"

# Archivado atómico: un solo UPDATE marca los point transactions de los
# miembros del grupo en la ventana. Las filas no se borran.
CREATE_ARCHIVE_WEEKLY_POINTS = """
CREATE OR REPLACE FUNCTION archive_weekly_points(
    p_group_id uuid,
    p_week_start timestamp,
    p_week_end timestamp
)
RETURNS integer
LANGUAGE plpgsql
AS $$
DECLARE
    archived integer;
BEGIN
    UPDATE point_transactions pt
    SET archived_at = LOCALTIMESTAMP
    WHERE pt.archived_at IS NULL
      AND pt.created_at BETWEEN p_week_start AND p_week_end
      AND pt.user_id IN (
          SELECT gm.user_id FROM group_members gm WHERE gm.group_id = p_group_id
      );

    GET DIAGNOSTICS archived = ROW_COUNT;
    RETURN archived;
END;
$$;
"""

DROP_ARCHIVE_WEEKLY_POINTS = (
    "DROP FUNCTION IF EXISTS archive_weekly_points(uuid, timestamp, timestamp)"
)
