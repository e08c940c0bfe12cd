import asyncio
import os

import pymysql
from dotenv import load_dotenv

# Settings are read at import time, so the .env file must be loaded first
load_dotenv()

from sqlalchemy import select  # noqa: E402

from init_db import init_db  # noqa: E402
from itdesk.database.session import AsyncSessionLocal  # noqa: E402
from itdesk.models.user import User  # noqa: E402

DEFAULT_ADMIN_EMAIL = "admin@example.com"


def create_database():
    """Create the database if it doesn't exist"""
    try:
        connection = pymysql.connect(
            host=os.getenv("MYSQL_HOST"),
            port=int(os.getenv("MYSQL_PORT") or 3306),
            user=os.getenv("MYSQL_USER"),
            password=os.getenv("MYSQL_PASSWORD"),
            charset='utf8mb4',
            cursorclass=pymysql.cursors.DictCursor
        )

        with connection.cursor() as cursor:
            cursor.execute(
                f"CREATE DATABASE IF NOT EXISTS `{os.getenv('MYSQL_DATABASE')}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            print(f"Database '{os.getenv('MYSQL_DATABASE')}' created or already present.")

        connection.commit()
        connection.close()
        return True
    except pymysql.MySQLError as e:
        print(f"Error creating database: {e}")
        return False


async def create_admin_user():
    """Seed an ADMIN account so tickets can be triaged locally"""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).filter(User.email == DEFAULT_ADMIN_EMAIL))
        if result.scalars().first():
            print("Admin user already exists.")
            return

        db.add(User(name="IT Admin", email=DEFAULT_ADMIN_EMAIL, role="ADMIN", department="IT"))
        await db.commit()
        print("Admin user created successfully.")


async def main():
    await init_db()
    await create_admin_user()


if __name__ == "__main__":
    print("Setting up local environment...")

    if create_database():
        asyncio.run(main())

    print("Setup completed.")
