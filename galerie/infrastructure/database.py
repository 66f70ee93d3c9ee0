from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.dialects.postgresql import insert, JSONB
from sqlalchemy import Table, Column, String, DateTime, MetaData, select, text

from galerie.domain.exceptions import DatabaseException
from galerie.domain.models import InstalledPackage, UpdateTransient

UPDATE_TRANSIENT = 'update_plugins'

# SQLAlchemy core Table definitions
metadata = MetaData()
installed_packages_table = Table(
    'installed_packages', metadata,
    Column('plugin_key', String, primary_key=True),
    Column('version', String, nullable=False, server_default=text("''")),
    Column('upstream_uri', String, nullable=True),
)
site_transients_table = Table(
    'site_transients', metadata,
    Column('name', String, primary_key=True),
    Column('value', JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column('updated_at', DateTime(timezone=True), server_default=text('NOW()')),
)


class PostgresHostStore:
    """
    Host package manager backed by PostgreSQL.
    Lists installed packages and persists the shared update transient.
    """

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)

    async def installed_packages(self) -> List[InstalledPackage]:
        """
        Returns every installed package, tracked or not.

        Raises:
            DatabaseException: If the query fails.
        """
        stmt = select(
            installed_packages_table.c.plugin_key,
            installed_packages_table.c.version,
            installed_packages_table.c.upstream_uri,
        ).order_by(installed_packages_table.c.plugin_key)

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Could not list installed packages: {e}") from e

        return [
            InstalledPackage(
                plugin_key=row['plugin_key'],
                version=row['version'] or '',
                upstream_uri=row['upstream_uri'] or None,
            ) for row in rows
        ]

    async def load_update_transient(self) -> UpdateTransient:
        """Returns the stored update transient, or an empty one if none was saved yet."""
        stmt = select(site_transients_table.c.value).where(site_transients_table.c.name == UPDATE_TRANSIENT)

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                value: Optional[dict] = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Could not load the {UPDATE_TRANSIENT} transient: {e}") from e

        if not value:
            return UpdateTransient()
        return UpdateTransient.model_validate(value)

    async def save_update_transient(self, transient: UpdateTransient) -> None:
        """
        Upserts the update transient in a single statement.

        Args:
            transient (UpdateTransient): The merged update list to persist.
        """
        stmt = insert(site_transients_table).values(
            name=UPDATE_TRANSIENT,
            value=transient.model_dump(mode='json'),
        )
        upsert_stmt = stmt.on_conflict_do_update(
            index_elements=['name'],
            set_={
                'value': stmt.excluded.value,
                'updated_at': text('NOW()'),
            },
        )

        try:
            async with self.engine.begin() as conn:
                await conn.execute(upsert_stmt)
        except SQLAlchemyError as e:
            raise DatabaseException(f"Could not save the {UPDATE_TRANSIENT} transient: {e}") from e
