from __future__ import annotations

import argparse
import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from coursemart.core.errors import ConflictError
from coursemart.core.settings import get_settings
from coursemart.db import registry  # noqa: F401
from coursemart.services import accounts


async def main() -> None:
    parser = argparse.ArgumentParser(description="Create a dev user in the database.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    args = parser.parse_args()

    engine = create_async_engine(get_settings().database_url, pool_pre_ping=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with SessionLocal() as session:
            try:
                user = await accounts.register(
                    session,
                    email=args.email,
                    password=args.password,
                    first_name=args.first_name.strip(),
                    last_name=args.last_name.strip(),
                )
            except ConflictError:
                print(f"User already exists: {accounts.normalize_email(args.email)}")
                return
            print(f"Created user: id={user.id} email={user.email}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
