import unittest
import uuid
from datetime import datetime, timezone

from stepwise.db import Database
from stepwise.models.checklist import Checklist
from stepwise.models.enums import StepStatus
from stepwise.models.step import Step
from stepwise.schemas.checklist import ChecklistCreate, ChecklistUpdate
from stepwise.schemas.step import StepCreate, StepUpdate
from stepwise.services.checklists import ChecklistService
from stepwise.services.errors import BadRequestError, CsvImportError, ForbiddenError, NotFoundError


class ChecklistServiceTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.database = Database("sqlite+aiosqlite://")
        await self.database.create_all()
        self.db = self.database.session()
        self.service = ChecklistService(self.db)

    async def asyncTearDown(self) -> None:
        await self.db.close()
        await self.database.dispose()

    async def create(self, *titles: str, title: str = "Launch") -> Checklist:
        return await self.service.create_checklist(
            ChecklistCreate(title=title, steps=[StepCreate(title=t) for t in titles])
        )

    async def create_default(self) -> Checklist:
        checklist = Checklist(title="Template", is_default=True)
        self.db.add(checklist)
        await self.db.flush()
        self.db.add(Step(checklist_id=checklist.id, title="Only step", order_index=0))
        await self.db.commit()
        return await self.service.get_checklist(checklist.id)

    async def ordered_titles(self, checklist_id: uuid.UUID) -> list[str]:
        return [step.title for step in await self.service.list_steps(checklist_id)]

    async def indices(self, checklist_id: uuid.UUID) -> list[int]:
        return [step.order_index for step in await self.service.list_steps(checklist_id)]


class TestChecklists(ChecklistServiceTestCase):
    async def test_create_with_steps(self) -> None:
        checklist = await self.service.create_checklist(
            ChecklistCreate(
                title="  Launch  ",
                description="",
                steps=[StepCreate(title="Plan", duration_minutes=30), StepCreate(), StepCreate(title="Ship")],
            )
        )
        self.assertEqual(checklist.title, "Launch")
        self.assertIsNone(checklist.description)
        self.assertFalse(checklist.is_default)
        self.assertEqual([s.title for s in checklist.steps], ["Plan", "New Step", "Ship"])
        self.assertEqual([s.order_index for s in checklist.steps], [0, 1, 2])
        self.assertEqual(checklist.steps[0].duration_minutes, 30)
        self.assertEqual(checklist.steps[1].duration_minutes, 60)
        self.assertEqual(checklist.steps[1].status, StepStatus.draft)

    async def test_create_with_requested_indices(self) -> None:
        checklist = await self.service.create_checklist(
            ChecklistCreate(
                title="Launch",
                steps=[StepCreate(title="Last", order_index=9), StepCreate(title="First", order_index=0)],
            )
        )
        self.assertEqual(await self.ordered_titles(checklist.id), ["First", "Last"])
        self.assertEqual(await self.indices(checklist.id), [0, 1])

    async def test_title_is_required(self) -> None:
        with self.assertRaises(BadRequestError) as context:
            await self.service.create_checklist(ChecklistCreate(title="   "))
        self.assertEqual(context.exception.detail, "Checklist title is required")

    async def test_unknown_category(self) -> None:
        with self.assertRaises(NotFoundError) as context:
            await self.service.create_checklist(ChecklistCreate(title="X", category_id=uuid.uuid4()))
        self.assertEqual(context.exception.detail, "Category not found")

    async def test_get_missing(self) -> None:
        with self.assertRaises(NotFoundError) as context:
            await self.service.get_checklist(uuid.uuid4())
        self.assertEqual(context.exception.detail, "Checklist not found")

    async def test_update_is_a_patch(self) -> None:
        checklist = await self.service.create_checklist(ChecklistCreate(title="Launch", description="Keep me"))
        updated = await self.service.update_checklist(checklist.id, ChecklistUpdate(title="Renamed"))
        self.assertEqual(updated.title, "Renamed")
        self.assertEqual(updated.description, "Keep me")

        cleared = await self.service.update_checklist(checklist.id, ChecklistUpdate(description=None))
        self.assertEqual(cleared.title, "Renamed")
        self.assertIsNone(cleared.description)

        with self.assertRaises(BadRequestError):
            await self.service.update_checklist(checklist.id, ChecklistUpdate(title=""))

    async def test_delete_removes_steps(self) -> None:
        checklist = await self.create("A", "B")
        await self.service.delete_checklist(checklist.id)
        with self.assertRaises(NotFoundError):
            await self.service.get_checklist(checklist.id)
        with self.assertRaises(NotFoundError):
            await self.service.list_steps(checklist.id)

    async def test_list_is_most_recent_first(self) -> None:
        first = await self.create(title="First")
        second = await self.create(title="Second")
        await self.service.update_checklist(first.id, ChecklistUpdate(title="First again"))
        titles = [c.title for c in await self.service.list_checklists()]
        self.assertEqual(titles, ["First again", "Second"])
        self.assertIsNotNone(second.id)

    async def test_clone(self) -> None:
        checklist = await self.create("A", "B")
        step = checklist.steps[0]
        start = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        await self.service.update_step(
            step.id,
            StepUpdate(status=StepStatus.completed, comments="done", start_datetime=start),
        )

        clone = await self.service.clone_checklist(checklist.id)
        self.assertNotEqual(clone.id, checklist.id)
        self.assertEqual(clone.title, "Launch (Copy)")
        self.assertFalse(clone.is_default)
        self.assertEqual([s.title for s in clone.steps], ["A", "B"])
        self.assertEqual([s.order_index for s in clone.steps], [0, 1])
        copied = clone.steps[0]
        self.assertEqual(copied.status, StepStatus.draft)
        self.assertIsNone(copied.comments)
        self.assertEqual(copied.start_datetime, start)

        # The original is untouched.
        original = await self.service.get_checklist(checklist.id)
        self.assertEqual(original.steps[0].status, StepStatus.completed)


class TestDefaultChecklists(ChecklistServiceTestCase):
    async def test_defaults_are_read_only(self) -> None:
        checklist = await self.create_default()
        step_id = checklist.steps[0].id

        cases = [
            (self.service.update_checklist(checklist.id, ChecklistUpdate(title="X")), "Cannot edit default checklists"),
            (self.service.delete_checklist(checklist.id), "Cannot delete default checklists"),
            (self.service.add_step(checklist.id, StepCreate(title="X")), "Cannot add steps to default checklists"),
            (self.service.update_step(step_id, StepUpdate(title="X")), "Cannot edit steps in default checklists"),
            (self.service.delete_step(step_id), "Cannot delete steps from default checklists"),
            (self.service.clone_step(step_id), "Cannot clone steps in default checklists"),
            (self.service.reorder_steps(checklist.id, [step_id]), "Cannot reorder steps in default checklists"),
        ]
        for call, message in cases:
            with self.subTest(message=message):
                with self.assertRaises(ForbiddenError) as context:
                    await call
                self.assertEqual(context.exception.detail, message)

        unchanged = await self.service.get_checklist(checklist.id)
        self.assertEqual(unchanged.title, "Template")
        self.assertEqual([s.title for s in unchanged.steps], ["Only step"])

    async def test_defaults_can_be_cloned(self) -> None:
        checklist = await self.create_default()
        clone = await self.service.clone_checklist(checklist.id)
        self.assertFalse(clone.is_default)
        self.assertEqual(clone.title, "Template (Copy)")
        await self.service.add_step(clone.id, StepCreate(title="Extra"))
        self.assertEqual(await self.ordered_titles(clone.id), ["Only step", "Extra"])


class TestSteps(ChecklistServiceTestCase):
    async def test_append(self) -> None:
        checklist = await self.create("A", "B")
        step = await self.service.add_step(checklist.id, StepCreate(title="C"))
        self.assertEqual(step.order_index, 2)
        self.assertEqual(await self.ordered_titles(checklist.id), ["A", "B", "C"])

    async def test_insert_after_and_before(self) -> None:
        checklist = await self.create("A", "B", "C")
        a, b, c = checklist.steps

        await self.service.add_step(checklist.id, StepCreate(title="after A"), insert_after=a.id)
        await self.service.add_step(checklist.id, StepCreate(title="before C"), insert_before=c.id)

        self.assertEqual(await self.ordered_titles(checklist.id), ["A", "after A", "B", "before C", "C"])
        self.assertEqual(await self.indices(checklist.id), [0, 1, 2, 3, 4])

    async def test_insert_at_explicit_index(self) -> None:
        checklist = await self.create("A", "B")
        await self.service.add_step(checklist.id, StepCreate(title="first", order_index=0))
        await self.service.add_step(checklist.id, StepCreate(title="last", order_index=99))
        self.assertEqual(await self.ordered_titles(checklist.id), ["first", "A", "B", "last"])
        self.assertEqual(await self.indices(checklist.id), [0, 1, 2, 3])

    async def test_insert_position_errors(self) -> None:
        checklist = await self.create("A")
        a = checklist.steps[0]
        with self.assertRaises(BadRequestError):
            await self.service.add_step(checklist.id, StepCreate(), insert_after=a.id, insert_before=a.id)
        with self.assertRaises(NotFoundError) as context:
            await self.service.add_step(checklist.id, StepCreate(), insert_after=uuid.uuid4())
        self.assertEqual(context.exception.detail, "Target step not found")
        with self.assertRaises(NotFoundError):
            await self.service.add_step(uuid.uuid4(), StepCreate())
        self.assertEqual(await self.indices(checklist.id), [0])

    async def test_update_step(self) -> None:
        checklist = await self.create("A")
        step_id = checklist.steps[0].id
        await self.service.update_step(step_id, StepUpdate(comments="note", duration_minutes=15))

        updated = await self.service.update_step(step_id, StepUpdate(comments=None))
        self.assertIsNone(updated.comments)
        self.assertEqual(updated.duration_minutes, 15)
        self.assertEqual(updated.title, "A")

        for payload, message in [
            (StepUpdate(title=" "), "Step title is required"),
            (StepUpdate(status=None), "status cannot be null"),
            (StepUpdate(duration_minutes=None), "duration_minutes cannot be null"),
        ]:
            with self.subTest(message=message):
                with self.assertRaises(BadRequestError) as context:
                    await self.service.update_step(step_id, payload)
                self.assertEqual(context.exception.detail, message)

    async def test_update_missing_step(self) -> None:
        with self.assertRaises(NotFoundError) as context:
            await self.service.update_step(uuid.uuid4(), StepUpdate(title="X"))
        self.assertEqual(context.exception.detail, "Step not found")

    async def test_delete_compacts_indices(self) -> None:
        checklist = await self.create("A", "B", "C", "D")
        await self.service.delete_step(checklist.steps[1].id)
        self.assertEqual(await self.ordered_titles(checklist.id), ["A", "C", "D"])
        self.assertEqual(await self.indices(checklist.id), [0, 1, 2])

        await self.service.delete_step(checklist.steps[0].id)
        self.assertEqual(await self.ordered_titles(checklist.id), ["C", "D"])
        self.assertEqual(await self.indices(checklist.id), [0, 1])

    async def test_clone_step(self) -> None:
        checklist = await self.create("A", "B", "C")
        b = checklist.steps[1]
        await self.service.update_step(b.id, StepUpdate(status=StepStatus.paused, comments="waiting"))

        clone = await self.service.clone_step(b.id)
        self.assertEqual(clone.title, "B (Copy)")
        self.assertEqual(clone.status, StepStatus.draft)
        self.assertIsNone(clone.comments)
        self.assertEqual(clone.order_index, 2)
        self.assertEqual(await self.ordered_titles(checklist.id), ["A", "B", "B (Copy)", "C"])
        self.assertEqual(await self.indices(checklist.id), [0, 1, 2, 3])

    async def test_reorder(self) -> None:
        checklist = await self.create("A", "B", "C")
        a, b, c = checklist.steps
        steps = await self.service.reorder_steps(checklist.id, [c.id, a.id, b.id])
        self.assertEqual([s.title for s in steps], ["C", "A", "B"])
        self.assertEqual(await self.ordered_titles(checklist.id), ["C", "A", "B"])
        self.assertEqual(await self.indices(checklist.id), [0, 1, 2])

    async def test_reorder_rejects_partial_lists(self) -> None:
        checklist = await self.create("A", "B", "C")
        a, b, _ = checklist.steps
        with self.assertRaises(BadRequestError):
            await self.service.reorder_steps(checklist.id, [b.id, a.id])
        self.assertEqual(await self.ordered_titles(checklist.id), ["A", "B", "C"])


class TestCsv(ChecklistServiceTestCase):
    async def test_import(self) -> None:
        content = (
            "title,description,durationMinutes,status,orderIndex\n"
            "Second,,15,started,1\n"
            '"First, really","multi\nline",30,completed,0\n'
        )
        checklist = await self.service.import_checklist(title="Imported", content=content)
        self.assertEqual(checklist.title, "Imported")
        self.assertEqual([s.title for s in checklist.steps], ["First, really", "Second"])
        self.assertEqual([s.order_index for s in checklist.steps], [0, 1])
        self.assertEqual(checklist.steps[0].description, "multi\nline")
        self.assertEqual(checklist.steps[1].status, StepStatus.started)

    async def test_import_errors_write_nothing(self) -> None:
        with self.assertRaises(CsvImportError) as context:
            await self.service.import_checklist(title="Bad", content="title,status\nA,done\nB,draft\n")
        self.assertEqual(context.exception.detail, "CSV import failed")
        self.assertEqual(len(context.exception.errors), 1)
        self.assertTrue(context.exception.errors[0].startswith("Row 2: Invalid status: done"))
        self.assertEqual(await self.service.list_checklists(), [])

    async def test_export(self) -> None:
        checklist = await self.create("B", "A", title="Release: v2")
        a = checklist.steps[1]
        await self.service.reorder_steps(checklist.id, [a.id, checklist.steps[0].id])

        export = await self.service.export_checklist(checklist.id)
        self.assertEqual(export.filename, "Release__v2_steps.csv")
        lines = export.content.split("\n")
        self.assertEqual(lines[0], "title,description,durationMinutes,startDatetime,endDatetime,status,comments,orderIndex")
        self.assertEqual(lines[1], "A,,60,,,draft,,0")
        self.assertEqual(lines[2], "B,,60,,,draft,,1")

    async def test_export_then_import(self) -> None:
        checklist = await self.create("One", "Two, three")
        export = await self.service.export_checklist(checklist.id)
        copy = await self.service.import_checklist(title="Copy", content=export.content)
        self.assertEqual([s.title for s in copy.steps], ["One", "Two, three"])


if __name__ == "__main__":
    unittest.main()
