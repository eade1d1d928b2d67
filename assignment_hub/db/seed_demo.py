"""
Seed script for a demo school: classes, subjects and teachers.

Run with: python -m assignment_hub.db.seed_demo

Existing rows (matched by class name, subject code, teacher login id) are
updated in place, so the script can be re-run safely.
"""
import asyncio
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.models import SchoolClass, Subject, Teacher
from assignment_hub.db.session import AsyncSessionLocal, init_models


# (name, grade_level, display_order)
DEMO_CLASSES: List[Tuple[str, int, int]] = [
    ("X RPL 1", 10, 1),
    ("X TKJ 1", 10, 2),
    ("XI RPL 1", 11, 3),
    ("XII RPL 1", 12, 4),
]

# (code, name, display_order)
DEMO_SUBJECTS: List[Tuple[str, str, int]] = [
    ("MTK", "Matematika", 1),
    ("BIN", "Bahasa Indonesia", 2),
    ("BIG", "Bahasa Inggris", 3),
    ("PWEB", "Pemrograman Web", 4),
]

# (login_id, full_name)
DEMO_TEACHERS: List[Tuple[str, str]] = [
    ("guru.andi", "Andi Pratama"),
    ("guru.sari", "Sari Wulandari"),
    ("guru.budi", "Budi Santoso"),
]

DEMO_ACADEMIC_YEAR = "2025/2026"


async def seed_demo(db: AsyncSession) -> Dict[str, int]:
    """Insert or update demo rows. Returns how many rows were created per kind."""
    created = {"classes": 0, "subjects": 0, "teachers": 0}

    for name, grade_level, order in DEMO_CLASSES:
        result = await db.execute(select(SchoolClass).where(SchoolClass.name == name))
        existing = result.scalar_one_or_none()
        if existing:
            existing.grade_level = grade_level
            existing.display_order = order
            existing.is_active = True
        else:
            db.add(
                SchoolClass(
                    name=name,
                    grade_level=grade_level,
                    academic_year=DEMO_ACADEMIC_YEAR,
                    display_order=order,
                    is_active=True,
                )
            )
            created["classes"] += 1

    for code, name, order in DEMO_SUBJECTS:
        result = await db.execute(select(Subject).where(Subject.code == code))
        existing = result.scalar_one_or_none()
        if existing:
            existing.name = name
            existing.display_order = order
            existing.is_active = True
        else:
            db.add(Subject(code=code, name=name, display_order=order, is_active=True))
            created["subjects"] += 1

    for login_id, full_name in DEMO_TEACHERS:
        result = await db.execute(select(Teacher).where(Teacher.login_id == login_id))
        existing = result.scalar_one_or_none()
        if existing:
            existing.full_name = full_name
            existing.is_active = True
        else:
            db.add(Teacher(login_id=login_id, full_name=full_name, is_active=True))
            created["teachers"] += 1

    await db.commit()
    return created


async def main() -> None:
    """Main entry point for the seed script."""
    await init_models()
    async with AsyncSessionLocal() as db:
        try:
            created = await seed_demo(db)
        except Exception as e:
            print(f"Error seeding demo data: {e}")
            await db.rollback()
            raise

    print("=" * 60)
    print("Demo Seeding Summary")
    print("=" * 60)
    for kind, count in created.items():
        print(f"{kind.capitalize()} created: {count}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
