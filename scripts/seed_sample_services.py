"""
Standalone script to seed the demo catalog.

Creates the three sample tutors and their sample services so that a fresh
database has something to browse. Existing rows (matched by id) are left
untouched, so the script can be run more than once.

Usage:
    python scripts/seed_sample_services.py [--create-tables] [--password PASSWORD] [--test-db]
"""

import argparse
import asyncio
import os
import sys
import uuid
from decimal import Decimal

# --- Path Setup ---
# This allows the script to import modules from the 'src' directory
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


SAMPLE_TUTORS = [
    {
        "id": uuid.UUID('aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa'),
        "email": "emily.carter@academiapro.io",
        "full_name": "Dr. Emily Carter",
        "bio": "PhD in English Literature, ten years of academic writing coaching.",
    },
    {
        "id": uuid.UUID('bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb'),
        "email": "mark.johnson@academiapro.io",
        "full_name": "Prof. Mark Johnson",
        "bio": "Social sciences professor and research methods supervisor.",
    },
    {
        "id": uuid.UUID('cccccccc-cccc-4ccc-8ccc-cccccccccccc'),
        "email": "sophia.lee@academiapro.io",
        "full_name": "Sophia Lee",
        "bio": "Mathematics tutor specialising in calculus exam preparation.",
    },
]

SAMPLE_SERVICES = [
    {
        "id": uuid.UUID('11111111-1111-4111-8111-111111111111'),
        "tutor_id": uuid.UUID('aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa'),
        "title": "Professional Essay Writing - Literature",
        "description": "A 1500-2000 word essay tailored to your prompt, with citations and proofreading included.",
        "price": Decimal('75.00'),
        "delivery_days": 3,
        "category": "essay_writing",
        "rating": Decimal('4.8'),
        "total_reviews": 58,
        "image_url": "/examples/essay.jpg",
    },
    {
        "id": uuid.UUID('22222222-2222-4222-8222-222222222222'),
        "tutor_id": uuid.UUID('bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb'),
        "title": "Research Paper Assistance - Social Sciences",
        "description": "Guidance through the entire research paper process including lit review and formatting.",
        "price": Decimal('150.00'),
        "delivery_days": 10,
        "category": "research_paper",
        "rating": Decimal('4.6'),
        "total_reviews": 24,
        "image_url": "/examples/research.jpg",
    },
    {
        "id": uuid.UUID('33333333-3333-4333-8333-333333333333'),
        "tutor_id": uuid.UUID('cccccccc-cccc-4ccc-8ccc-cccccccccccc'),
        "title": "One-on-One Exam Prep (Calculus)",
        "description": "Personalized tutoring sessions focused on calculus concepts and past exam practice.",
        "price": Decimal('40.00'),
        "delivery_days": 1,
        "category": "tutoring",
        "rating": Decimal('4.9'),
        "total_reviews": 112,
        "image_url": "/examples/tutoring.jpg",
    },
]


async def seed(password: str, create_tables: bool) -> tuple[int, int]:
    from src.academia_pro_backend.common.logger import log
    from src.academia_pro_backend.common.security_utils import HashedPassword
    from src.academia_pro_backend.database import engine as db_engine
    from src.academia_pro_backend.database import models as db_models
    from src.academia_pro_backend.database.db_enums import UserRole

    db_engine.create_db_engine_and_session_factory()
    try:
        if create_tables:
            await db_engine.create_all_tables()

        created_tutors = created_services = 0
        async with db_engine.AsyncSessionLocal() as session:
            hashed = HashedPassword.get_hash(password)
            for tutor in SAMPLE_TUTORS:
                if await session.get(db_models.Users, tutor["id"]) is None:
                    session.add(db_models.Users(password=hashed, role=UserRole.TUTOR.value, **tutor))
                    created_tutors += 1
            await session.flush()

            for service in SAMPLE_SERVICES:
                if await session.get(db_models.Services, service["id"]) is None:
                    session.add(db_models.Services(is_active=True, **service))
                    created_services += 1
            await session.commit()

        log.info(f"Seeded {created_tutors} tutors and {created_services} services.")
        return created_tutors, created_services
    finally:
        await db_engine.dispose_db_engine()


def main():
    parser = argparse.ArgumentParser(description="Seed the AcademiaPro demo catalog.")
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    parser.add_argument("--password", default="ChangeMe123!", help="password for the sample tutor accounts")
    parser.add_argument("--test-db", action="store_true", help="seed the test database instead of production")
    args = parser.parse_args()

    if args.test_db:
        os.environ["TEST_MODE"] = "True"

    tutors, services = asyncio.run(seed(args.password, args.create_tables))
    print(f"Done: {tutors} tutors and {services} services created.")


if __name__ == "__main__":
    main()
