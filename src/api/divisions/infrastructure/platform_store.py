"""Stores backed by the shared platform database.

Access grants and company settings live outside the division databases, in
the platform database shared by every division. Grants reference divisions
by code.
"""

from __future__ import annotations

import json
from typing import Any

from psycopg2.extras import RealDictCursor

from divisions.domain.value_objects import DivisionCode
from divisions.ports.repositories import IConnectionPool, Row

_USER_DIVISIONS = """
    SELECT ud.*, u.username, u.email, u.full_name
    FROM user_divisions ud
    LEFT JOIN users u ON ud.user_id = u.id
    WHERE ud.division = %s
"""

_SALES_REP_ACCESS = """
    SELECT usra.*, u.username, u.email
    FROM user_sales_rep_access usra
    LEFT JOIN users u ON usra.user_id = u.id
    WHERE usra.division = %s
"""

_USER_PREFERENCES = """
    SELECT up.*, u.username, u.email
    FROM user_preferences up
    LEFT JOIN users u ON up.user_id = u.id
    WHERE up.default_division = %s
"""

_GRANT_USER_DIVISION = """
    INSERT INTO user_divisions (user_id, division)
    VALUES (%s, %s)
    ON CONFLICT (user_id, division) DO NOTHING
"""

_GRANT_SALES_REP_ACCESS = """
    INSERT INTO user_sales_rep_access (user_id, division, sales_rep_name, created_by)
    VALUES (%s, %s, %s, %s)
    ON CONFLICT DO NOTHING
"""

_DIVISIONS_SETTING = """
    SELECT setting_value FROM company_settings WHERE setting_key = 'divisions'
"""


class PostgresAccessControlStore:
    """User-to-division and sales-rep grants that reference a division."""

    def __init__(self, pool: IConnectionPool):
        self._pool = pool

    def _fetch(self, query: str, code: DivisionCode) -> list[Row]:
        with self._pool.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query, (code.value,))
            return [dict(row) for row in cursor.fetchall()]

    def fetch_user_divisions(self, code: DivisionCode) -> list[Row]:
        return self._fetch(_USER_DIVISIONS, code)

    def fetch_sales_rep_access(self, code: DivisionCode) -> list[Row]:
        return self._fetch(_SALES_REP_ACCESS, code)

    def fetch_user_preferences(self, code: DivisionCode) -> list[Row]:
        """Preferences of users whose default division is this one."""
        return self._fetch(_USER_PREFERENCES, code)

    def grant_user_division(self, user_id: Any, code: DivisionCode) -> None:
        with self._pool.cursor() as cursor:
            cursor.execute(_GRANT_USER_DIVISION, (user_id, code.value))

    def grant_sales_rep_access(
        self,
        user_id: Any,
        code: DivisionCode,
        sales_rep_name: str | None,
        created_by: Any,
    ) -> None:
        with self._pool.cursor() as cursor:
            cursor.execute(
                _GRANT_SALES_REP_ACCESS,
                (user_id, code.value, sales_rep_name, created_by),
            )


class PostgresCompanySettingsStore:
    """Company-wide settings rows keyed by setting_key."""

    def __init__(self, pool: IConnectionPool):
        self._pool = pool

    def fetch_divisions(self) -> Any | None:
        """The "divisions" setting, or None if it has never been saved.

        JSONB values arrive decoded; a value stored as text is parsed here.
        """
        with self._pool.cursor() as cursor:
            cursor.execute(_DIVISIONS_SETTING)
            row = cursor.fetchone()
        if row is None:
            return None
        value = row[0]
        if isinstance(value, str):
            return json.loads(value)
        return value
