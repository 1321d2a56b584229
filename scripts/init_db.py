"""Create the submissions table in the configured database."""

import asyncio

from contact_api.config import settings
from contact_api.database import create_engine, create_tables
from contact_api.models.base import Base


async def init_db():
    """Create all tables that do not exist yet."""
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    await engine.dispose()

    for table in Base.metadata.sorted_tables:
        print(f"  + Table: {table.name}")
    print("\nDatabase ready!")


if __name__ == "__main__":
    asyncio.run(init_db())
