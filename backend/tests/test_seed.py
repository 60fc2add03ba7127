import unittest

from sqlalchemy import func, select

from stepwise.db import Database
from stepwise.models.category import Category
from stepwise.schemas.checklist import ChecklistCreate
from stepwise.seed import DEFAULT_CATEGORIES, DEFAULT_CHECKLISTS, reseed
from stepwise.services.checklists import ChecklistService


class TestReseed(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.database = Database("sqlite+aiosqlite://")
        await self.database.create_all()
        self.db = self.database.session()
        self.checklists = ChecklistService(self.db)

    async def asyncTearDown(self) -> None:
        await self.db.close()
        await self.database.dispose()

    async def test_first_run_creates_templates(self) -> None:
        report = await reseed(self.db)
        self.assertEqual(report.created_categories, len(DEFAULT_CATEGORIES))
        self.assertEqual(report.created_checklists, len(DEFAULT_CHECKLISTS))

        checklists = await self.checklists.list_checklists()
        self.assertTrue(all(c.is_default for c in checklists))
        by_title = {c.title: c for c in checklists}
        launch = by_title["Project Launch Checklist"]
        self.assertEqual(launch.category.name, "Business Analysis")
        self.assertEqual(len(launch.steps), 10)
        self.assertEqual([s.order_index for s in launch.steps], list(range(10)))
        self.assertEqual(len(by_title["Marketing Campaign Checklist"].steps), 8)
        self.assertEqual(len(by_title["Root-Cause Analysis"].steps), 6)

    async def test_second_run_changes_nothing(self) -> None:
        await reseed(self.db)
        report = await reseed(self.db)
        self.assertEqual(report.created_categories, 0)
        self.assertEqual(report.created_checklists, 0)
        self.assertEqual(report.deleted_checklists, 0)
        count = (await self.db.execute(select(func.count(Category.id)))).scalar_one()
        self.assertEqual(count, len(DEFAULT_CATEGORIES))
        self.assertEqual(len(await self.checklists.list_checklists()), len(DEFAULT_CHECKLISTS))

    async def test_custom_checklists(self) -> None:
        await reseed(self.db)
        custom = await self.checklists.create_checklist(ChecklistCreate(title="Mine"))

        report = await reseed(self.db, keep_custom=True)
        self.assertEqual(report.deleted_checklists, 0)
        self.assertEqual((await self.checklists.get_checklist(custom.id)).title, "Mine")

        report = await reseed(self.db)
        self.assertEqual(report.deleted_checklists, 1)
        titles = {c.title for c in await self.checklists.list_checklists()}
        self.assertNotIn("Mine", titles)


if __name__ == "__main__":
    unittest.main()
