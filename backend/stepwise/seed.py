from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from dotenv import load_dotenv
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stepwise.config import Settings
from stepwise.db import Database
from stepwise.models.category import Category
from stepwise.models.checklist import Checklist
from stepwise.models.enums import StepStatus
from stepwise.models.step import Step


DEFAULT_CATEGORIES = [
    ("Business Analysis", "#3b82f6"),
    ("Marketing", "#10b981"),
    ("Development", "#8b5cf6"),
    ("Quality Assurance", "#f59e0b"),
]

# (title, description, category name, [(step title, step description, minutes), ...])
DEFAULT_CHECKLISTS = [
    (
        "Project Launch Checklist",
        "A comprehensive checklist for launching a new project successfully",
        "Business Analysis",
        [
            ("Define Project Scope", "Document the project objectives, deliverables, and boundaries", 240),
            ("Identify Stakeholders", "List all project stakeholders and their roles/responsibilities", 120),
            ("Create Project Timeline", "Develop a detailed timeline with milestones and deadlines", 180),
            ("Allocate Resources", "Assign team members, budget, and tools needed", 120),
            ("Design System Architecture", "Create technical design and architecture documents", 480),
            ("Development Phase", "Implement core features according to specifications", 960),
            ("Internal Testing", "Perform unit tests, integration tests, and QA review", 480),
            ("User Acceptance Testing", "Conduct UAT with stakeholders and gather feedback", 240),
            ("Prepare Launch Documentation", "Create user guides, release notes, and support docs", 180),
            ("Deploy to Production", "Execute deployment plan and verify system health", 120),
        ],
    ),
    (
        "Marketing Campaign Checklist",
        "Step-by-step guide for planning and executing marketing campaigns",
        "Marketing",
        [
            ("Define Campaign Objectives", "Set clear, measurable goals for the campaign (awareness, leads, sales)", 120),
            ("Identify Target Audience", "Research and define buyer personas and audience segments", 180),
            ("Develop Key Messages", "Create compelling value propositions and messaging framework", 240),
            ("Create Content Assets", "Produce blog posts, graphics, videos, and other campaign materials", 480),
            ("Select Distribution Channels", "Choose appropriate channels (social, email, paid, organic)", 90),
            ("Set Up Tracking", "Configure analytics, UTM parameters, and conversion tracking", 120),
            ("Launch Campaign", "Execute the campaign across all selected channels", 60),
            ("Monitor & Optimize", "Track performance metrics and adjust strategy as needed", 240),
        ],
    ),
    (
        "Root-Cause Analysis",
        "Systematic approach to identify the underlying causes of problems",
        "Business Analysis",
        [
            ("Define the Problem", "Clearly state what happened, when, where, and impact", 60),
            ("Collect Data", "Gather all relevant information, logs, reports, and observations", 180),
            ("Identify Possible Causes", "Brainstorm potential causes using techniques like 5 Whys or Fishbone", 120),
            ("Analyze Root Cause", "Determine the fundamental cause by analyzing evidence", 180),
            ("Develop Solutions", "Create corrective and preventive action plans", 120),
            ("Implement & Verify", "Execute solutions and monitor to ensure problem is resolved", 240),
        ],
    ),
]


@dataclass(frozen=True)
class SeedReport:
    deleted_checklists: int
    created_categories: int
    created_checklists: int


async def reseed(db: AsyncSession, *, keep_custom: bool = False) -> SeedReport:
    """Bring the store back to the shipped templates.

    Unless ``keep_custom`` is set, every non-default checklist is deleted
    first (their steps cascade). Categories are matched by name and default
    checklists are only created when none exist, so running it twice changes
    nothing the second time.
    """
    deleted = 0
    if not keep_custom:
        result = await db.execute(delete(Checklist).where(Checklist.is_default.is_(False)))
        deleted = result.rowcount or 0

    # --- Categories ---
    existing = (await db.execute(select(Category))).scalars().all()
    by_name = {c.name: c for c in existing}
    created_categories = 0
    for name, color in DEFAULT_CATEGORIES:
        if name not in by_name:
            category = Category(name=name, color=color)
            db.add(category)
            by_name[name] = category
            created_categories += 1
    await db.flush()

    # --- Default checklists ---
    existing_defaults = (
        await db.execute(select(func.count(Checklist.id)).where(Checklist.is_default.is_(True)))
    ).scalar_one()
    created_checklists = 0
    if existing_defaults == 0:
        for title, description, category_name, steps in DEFAULT_CHECKLISTS:
            checklist = Checklist(
                title=title,
                description=description,
                category_id=by_name[category_name].id,
                is_default=True,
            )
            db.add(checklist)
            await db.flush()
            for order_index, (step_title, step_description, minutes) in enumerate(steps):
                db.add(
                    Step(
                        checklist_id=checklist.id,
                        title=step_title,
                        description=step_description,
                        duration_minutes=minutes,
                        status=StepStatus.draft,
                        order_index=order_index,
                    )
                )
            created_checklists += 1

    await db.commit()
    return SeedReport(
        deleted_checklists=deleted,
        created_categories=created_categories,
        created_checklists=created_checklists,
    )


async def seed(*, keep_custom: bool = False, create_tables: bool = False) -> None:
    print("Starting seed process...")
    settings = Settings()
    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    try:
        if create_tables:
            await database.create_all()
        async with database.session() as db:
            report = await reseed(db, keep_custom=keep_custom)
    finally:
        await database.dispose()

    if report.deleted_checklists:
        print(f"Deleted {report.deleted_checklists} non-default checklist(s)")
    print(f"Categories created: {report.created_categories}")
    if report.created_checklists:
        print(f"Created {report.created_checklists} default checklist(s)")
    else:
        print("Default checklists already exist, skipping...")
    print("Seeding completed!")


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Reset the store to the default checklist templates.")
    parser.add_argument(
        "--keep-custom",
        action="store_true",
        help="do not delete user-created checklists",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="create missing tables before seeding (development databases)",
    )
    args = parser.parse_args()
    asyncio.run(seed(keep_custom=args.keep_custom, create_tables=args.create_tables))


if __name__ == "__main__":
    main()
