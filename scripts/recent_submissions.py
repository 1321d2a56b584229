"""Print the most recent contact submissions.

Usage: python scripts/recent_submissions.py [limit]
"""

import asyncio
import sys

from contact_api.config import settings
from contact_api.database import create_engine, create_session_factory
from contact_api.repositories.submission import DEFAULT_RECENT_LIMIT, SubmissionRepository


async def show_recent(limit: int):
    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)

    async with session_factory() as session:
        summaries = await SubmissionRepository(session).list_recent(limit)

    await engine.dispose()

    if not summaries:
        print("No submissions yet.")
        return

    for s in summaries:
        status = "sent" if s.notified else "NOT SENT"
        org = f" ({s.organization})" if s.organization else ""
        print(f"{s.created_at:%Y-%m-%d %H:%M}  [{status}]  {s.name}{org} <{s.email}>")
        print(f"    {s.message_preview}")


if __name__ == "__main__":
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_RECENT_LIMIT
    if limit < 0:
        sys.exit("limit must be a non-negative integer")
    asyncio.run(show_recent(limit))
