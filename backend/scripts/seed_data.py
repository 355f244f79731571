#!/usr/bin/env python3
"""
Database seeding script for development and testing.
Creates a sample organization, users with site roles, job sites, workers, and tasks.
"""

import asyncio
import sys
from pathlib import Path
from datetime import date, timedelta

# Add parent directory to path to import our modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from crewcommand.database import async_engine, Base, AsyncSessionLocal
from crewcommand.models import (
    Organization,
    UserProfile,
    BaseRole,
    JobSite,
    JobSiteAssignment,
    SiteRole,
    Worker,
    WorkerRole,
    Task,
    TaskStatus,
    Assignment,
)
from crewcommand.services.auth_service import AuthService

DEV_PASSWORD = "crewcommand-dev"


async def create_tables():
    """Create all database tables"""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✓ Database tables created")


async def seed_data():
    """Seed the database with sample data"""
    today = date.today()
    password_hash = AuthService.hash_password(DEV_PASSWORD)

    async with AsyncSessionLocal() as session:
        try:
            # Create organization
            org = Organization(
                name="Summit Builders",
                slug="summit-builders",
                address="1200 Industrial Way, Denver, CO",
            )
            session.add(org)
            await session.flush()
            print("✓ Created organization")

            # Create users
            admin = UserProfile(
                organization_id=org.id,
                email="admin@summitbuilders.com",
                name="Dana Reyes",
                base_role=BaseRole.ADMIN.value,
                password_hash=password_hash,
            )
            superintendent = UserProfile(
                organization_id=org.id,
                email="mike.chen@summitbuilders.com",
                name="Mike Chen",
                base_role=BaseRole.SUPERINTENDENT.value,
                password_hash=password_hash,
            )
            foreman = UserProfile(
                organization_id=org.id,
                email="sam.okafor@summitbuilders.com",
                name="Sam Okafor",
                base_role=BaseRole.FOREMAN.value,
                password_hash=password_hash,
            )
            engineer = UserProfile(
                organization_id=org.id,
                email="priya.patel@summitbuilders.com",
                name="Priya Patel",
                base_role=BaseRole.ENGINEER.value,
                password_hash=password_hash,
            )
            session.add_all([admin, superintendent, foreman, engineer])
            await session.flush()
            print("✓ Created users")

            # Create job sites
            riverside = JobSite(
                organization_id=org.id,
                name="Riverside Medical Center",
                address="400 River Rd",
                start_date=today - timedelta(days=60),
                created_by=admin.id,
            )
            eastgate = JobSite(
                organization_id=org.id,
                name="Eastgate Parking Structure",
                address="88 Eastgate Blvd",
                start_date=today - timedelta(days=14),
                created_by=admin.id,
            )
            session.add_all([riverside, eastgate])
            await session.flush()
            print("✓ Created job sites")

            # Site-scoped roles
            session.add_all([
                JobSiteAssignment(
                    organization_id=org.id,
                    user_id=superintendent.id,
                    job_site_id=riverside.id,
                    role=SiteRole.SUPERINTENDENT.value,
                    start_date=today - timedelta(days=60),
                    assigned_by=admin.id,
                ),
                JobSiteAssignment(
                    organization_id=org.id,
                    user_id=foreman.id,
                    job_site_id=riverside.id,
                    role=SiteRole.FOREMAN.value,
                    start_date=today - timedelta(days=30),
                    assigned_by=admin.id,
                ),
                JobSiteAssignment(
                    organization_id=org.id,
                    user_id=engineer.id,
                    job_site_id=eastgate.id,
                    role=SiteRole.ENGINEER_AS_SUPERINTENDENT.value,
                    start_date=today - timedelta(days=14),
                    assigned_by=admin.id,
                ),
            ])
            await session.flush()
            print("✓ Created job site assignments")

            # Create workers
            workers = [
                Worker(organization_id=org.id, job_site_id=riverside.id, name="Jose Martinez",
                       role=WorkerRole.LABORER.value, skills=["concrete", "rebar"]),
                Worker(organization_id=org.id, job_site_id=riverside.id, name="Jose Silva",
                       role=WorkerRole.CARPENTER.value, skills=["framing"]),
                Worker(organization_id=org.id, job_site_id=riverside.id, name="Mary Johnson",
                       role=WorkerRole.OPERATOR.value, skills=["excavator", "crane"]),
                Worker(organization_id=org.id, job_site_id=eastgate.id, name="Luis Ortega",
                       role=WorkerRole.MASON.value, skills=["block", "brick"]),
                Worker(organization_id=org.id, job_site_id=eastgate.id, name="Tom Becker",
                       role=WorkerRole.LABORER.value, skills=[]),
            ]
            session.add_all(workers)
            await session.flush()
            print("✓ Created workers")

            # Create tasks
            framing = Task(
                organization_id=org.id,
                job_site_id=riverside.id,
                name="Framing",
                location="Building A",
                start_date=today - timedelta(days=7),
                end_date=today + timedelta(days=21),
                required_carpenters=4,
                required_laborers=2,
                status=TaskStatus.ACTIVE.value,
                created_by=superintendent.id,
            )
            concrete = Task(
                organization_id=org.id,
                job_site_id=riverside.id,
                name="Concrete Pour",
                location="Level 2 deck",
                start_date=today + timedelta(days=1),
                end_date=today + timedelta(days=3),
                required_laborers=4,
                required_operators=1,
                status=TaskStatus.PLANNED.value,
                created_by=superintendent.id,
            )
            masonry = Task(
                organization_id=org.id,
                job_site_id=eastgate.id,
                name="Stair Core Masonry",
                location="North stair",
                start_date=today,
                end_date=today + timedelta(days=10),
                required_masons=2,
                required_laborers=1,
                status=TaskStatus.ACTIVE.value,
                created_by=engineer.id,
            )
            session.add_all([framing, concrete, masonry])
            await session.flush()
            print("✓ Created tasks")

            # Today's assignments
            session.add_all([
                Assignment(organization_id=org.id, job_site_id=riverside.id, task_id=framing.id,
                           worker_id=workers[0].id, assigned_date=today, assigned_by=foreman.id),
                Assignment(organization_id=org.id, job_site_id=riverside.id, task_id=framing.id,
                           worker_id=workers[1].id, assigned_date=today, assigned_by=foreman.id),
                Assignment(organization_id=org.id, job_site_id=eastgate.id, task_id=masonry.id,
                           worker_id=workers[3].id, assigned_date=today, assigned_by=engineer.id),
            ])
            await session.flush()
            print("✓ Created assignments")

            await session.commit()
            print("\n✅ Database seeding completed successfully!")

            # Print summary
            print("\nSummary:")
            print("  - Organizations: 1")
            print("  - Users: 4")
            print("  - Job sites: 2")
            print(f"  - Workers: {len(workers)}")
            print("  - Tasks: 3")
            print(f"\nAll users log in with password '{DEV_PASSWORD}'")

        except Exception as e:
            await session.rollback()
            print(f"❌ Error seeding database: {e}")
            raise


async def main():
    """Main function"""
    print("Starting database seeding...\n")

    # Optionally create tables first (useful for fresh databases)
    # Uncomment the next line if you want to create tables before seeding
    # await create_tables()

    await seed_data()


if __name__ == "__main__":
    asyncio.run(main())
