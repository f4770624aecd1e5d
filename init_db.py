# init_db.py
import asyncio
import logging

from app.db.sql import init_db

logging.basicConfig(level=logging.INFO)


async def init_models():
    # drop + create: dev databases only
    await init_db(drop=True)
    print("Database schema recreated successfully!")


if __name__ == "__main__":
    asyncio.run(init_models())
