"""PostgreSQL adapter implementation of ContactFormRepository."""

from asyncpg import Pool

from medichat.domain.models import WebsiteContactForm
from medichat.domain.ports import ContactFormRepository


SCHEMA = """
CREATE TABLE IF NOT EXISTS website_contact_forms (
    id              TEXT PRIMARY KEY,
    first_name      TEXT NOT NULL,
    last_name       TEXT NOT NULL,
    email           TEXT NOT NULL,
    phone           TEXT NOT NULL DEFAULT '',
    hospital_name   TEXT NOT NULL DEFAULT '',
    subject         TEXT NOT NULL DEFAULT 'General Inquiry',
    message         TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'unread',
    is_starred      BOOLEAN NOT NULL DEFAULT FALSE,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


class PostgresContactFormRepository(ContactFormRepository):
    """PostgreSQL implementation of the ContactFormRepository port."""

    def __init__(self, pool: Pool):
        self.pool = pool

    async def ensure_schema(self) -> None:
        """Create the contact form table if it does not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA)

    async def save(self, form: WebsiteContactForm) -> WebsiteContactForm:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO website_contact_forms (
                    id, first_name, last_name, email, phone, hospital_name,
                    subject, message, status, is_starred, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                """,
                form.form_id, form.first_name, form.last_name, form.email,
                form.phone, form.hospital_name, form.subject, form.message,
                form.status, form.is_starred, form.created_at
            )
        return form
