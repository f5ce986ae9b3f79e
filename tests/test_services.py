"""
Tests for the Service Layer (business logic).

Checks:
- Task and tag business rules
- Tag string reconciliation (case folding, idempotence, auto-creation)
- Replace semantics of tag membership
- Atomicity: failed writes leave no partial state
"""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from tasktags.repositories import TagRepository, TaskRepository, TaskTagRepository
from tasktags.services import (
    AssociationReplacer,
    HashColorAssigner,
    NotFoundError,
    StorageError,
    TagReconciler,
    TagService,
    TaskService,
    ValidationFailedError,
    parse_tag_string,
)


class FixedColorAssigner:
    """Gives every tag the same color."""

    palette = ("#123456",)

    def assign(self, name: str) -> str:
        return "#123456"


async def tag_names(service: TaskService, task_id: int) -> list[str]:
    task = await service.get_task(task_id)
    return [tag.name for tag in task.tags]


# ============================================================================
# TAG STRING PARSING
# ============================================================================


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("urgent home", ["urgent", "home"]),
        ("  urgent   home  ", ["urgent", "home"]),
        ("Urgent urgent URGENT", ["Urgent"]),
        ("", []),
        ("   ", []),
        (None, []),
    ],
)
def test_parse_tag_string(raw, expected):
    assert parse_tag_string(raw) == expected


# ============================================================================
# TASK SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_task(test_db):
    service = TaskService(test_db)

    task = await service.create_task(name="  Buy groceries  ", description="Milk")

    assert task.id is not None
    assert task.name == "Buy groceries"
    assert task.done is False
    assert task.tags == []


@pytest.mark.asyncio
async def test_create_task_validation_empty_name(test_db):
    service = TaskService(test_db)

    with pytest.raises(ValidationFailedError, match="cannot be empty"):
        await service.create_task(name="   ")


@pytest.mark.asyncio
async def test_get_task_not_found(test_db):
    with pytest.raises(NotFoundError, match="Task with id 999 not found"):
        await TaskService(test_db).get_task(999)


@pytest.mark.asyncio
async def test_update_task_partial_and_clear_description(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Old", description="Something")
    await test_db.commit()

    task = await service.update_task(task.id, name="New")
    assert task.name == "New"
    assert task.description == "Something"

    task = await service.update_task(task.id, description="")
    assert task.description is None


@pytest.mark.asyncio
async def test_toggle_done(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")

    assert (await service.toggle_done(task.id)).done is True
    assert (await service.toggle_done(task.id)).done is False

    with pytest.raises(NotFoundError):
        await service.toggle_done(999)


@pytest.mark.asyncio
async def test_delete_task_keeps_tags(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await service.set_task_tags_by_string(task.id, "urgent home")
    await test_db.commit()
    task_id = task.id

    assert await service.delete_task(task_id) is True

    assert await TagRepository(test_db).count() == 2
    assert await TaskTagRepository(test_db).count() == 0
    with pytest.raises(NotFoundError):
        await service.delete_task(task_id)


@pytest.mark.asyncio
async def test_list_tasks_filters_by_all_selected_tags(test_db):
    service = TaskService(test_db)
    t1 = await service.create_task(name="one")
    t2 = await service.create_task(name="two")
    t3 = await service.create_task(name="three")
    x, _ = await service.set_task_tags_by_string(t1.id, "x y")
    await service.set_task_tags_by_string(t1.id, "x")
    x, y = await service.set_task_tags_by_string(t2.id, "x y")
    await service.set_task_tags_by_string(t3.id, "y")
    await test_db.commit()

    assert [t.name for t in await service.list_tasks()] == ["one", "two", "three"]
    assert [t.name for t in await service.list_tasks([x.id])] == ["one", "two"]
    assert [t.name for t in await service.list_tasks([x.id, y.id])] == ["two"]


# ============================================================================
# TAG STRING RECONCILIATION
# ============================================================================


@pytest.mark.asyncio
async def test_tags_by_string_creates_missing_tags(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")

    tags = await service.set_task_tags_by_string(task.id, "urgent home")

    assert [t.name for t in tags] == ["urgent", "home"]
    assert [t.color for t in tags] == ["#DD6E42", "#5DD9C1"]
    assert sorted(await tag_names(service, task.id)) == ["home", "urgent"]


@pytest.mark.asyncio
async def test_tags_by_string_is_idempotent(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")

    await service.set_task_tags_by_string(task.id, "urgent home")
    await test_db.commit()
    await service.set_task_tags_by_string(task.id, "urgent home")
    await test_db.commit()

    assert await TagRepository(test_db).count() == 2
    assert await TaskTagRepository(test_db).count() == 2


@pytest.mark.asyncio
async def test_tags_by_string_folds_case(test_db):
    """Spellings of one name create a single tag with the first spelling."""
    service = TaskService(test_db)
    task = await service.create_task(name="Task")

    tags = await service.set_task_tags_by_string(task.id, "Urgent urgent URGENT")

    assert [t.name for t in tags] == ["Urgent"]
    assert await TagRepository(test_db).count() == 1
    assert await TaskTagRepository(test_db).count() == 1


@pytest.mark.asyncio
async def test_tags_by_string_reuses_existing_spelling(test_db):
    service = TaskService(test_db)
    await TagService(test_db).create_tag("urgent")
    task = await service.create_task(name="Task")

    tags = await service.set_task_tags_by_string(task.id, "home URGENT")

    # Existing tags come first, new ones after
    assert [t.name for t in tags] == ["urgent", "home"]
    assert await TagRepository(test_db).count() == 2


@pytest.mark.asyncio
async def test_tags_by_string_replaces_previous_set(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await service.set_task_tags_by_string(task.id, "a b")

    await service.set_task_tags_by_string(task.id, "b c")

    assert sorted(await tag_names(service, task.id)) == ["b", "c"]
    # "a" is detached, not deleted
    assert await TagRepository(test_db).get_by_name("a") is not None


@pytest.mark.asyncio
async def test_blank_tag_string_clears_tags(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await service.set_task_tags_by_string(task.id, "a b")

    assert await service.set_task_tags_by_string(task.id, "   ") == []

    assert await tag_names(service, task.id) == []
    assert await TagRepository(test_db).count() == 2


@pytest.mark.asyncio
async def test_tags_by_string_unknown_task_has_no_side_effects(test_db):
    service = TaskService(test_db)

    with pytest.raises(NotFoundError):
        await service.set_task_tags_by_string(999, "brand new")

    assert await TagRepository(test_db).count() == 0


@pytest.mark.asyncio
async def test_tags_by_string_rejects_too_long_name(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await test_db.commit()

    with pytest.raises(ValidationFailedError, match="longer than 50"):
        await service.set_task_tags_by_string(task.id, "ok " + "x" * 51)

    assert await TagRepository(test_db).count() == 0


@pytest.mark.asyncio
async def test_tags_by_string_rolls_back_on_storage_failure(test_db, monkeypatch):
    """New tags and the association rewrite are applied together or not at all."""
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await service.set_task_tags_by_string(task.id, "old")
    await test_db.commit()
    task_id = task.id

    async def failing_insert(self, task_id, tag_ids):
        raise OperationalError("INSERT INTO task_tags", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TaskTagRepository, "insert", failing_insert)

    with pytest.raises(StorageError) as exc_info:
        await service.set_task_tags_by_string(task_id, "fresh other")

    assert exc_info.value.retryable is True
    monkeypatch.undo()

    assert await TagRepository(test_db).get_by_name("fresh") is None
    assert await tag_names(service, task_id) == ["old"]


@pytest.mark.asyncio
async def test_rejected_tag_string_keeps_earlier_work_in_session(test_db):
    """A validation error does not discard a task created earlier in the same session."""
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    task_id = task.id

    with pytest.raises(ValidationFailedError):
        await service.set_task_tags_by_string(task_id, "x" * 51)

    assert (await service.get_task(task_id)).name == "Task"


@pytest.mark.asyncio
async def test_storage_failure_keeps_earlier_work_in_session(test_db, monkeypatch):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    await service.set_task_tags_by_string(task.id, "old")
    task_id = task.id

    async def failing_insert(self, task_id, tag_ids):
        raise OperationalError("INSERT INTO task_tags", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TaskTagRepository, "insert", failing_insert)

    with pytest.raises(StorageError):
        await service.set_task_tags_by_string(task_id, "fresh")

    monkeypatch.undo()
    assert await tag_names(service, task_id) == ["old"]
    assert await TagRepository(test_db).get_by_name("fresh") is None


@pytest.mark.asyncio
async def test_tag_name_too_long_once_lower_cased(test_db):
    """"İ" lower-cases to two code points, so 50 of them do not fit the key column."""
    name = "İ" * 50
    task = await TaskService(test_db).create_task(name="Task")

    with pytest.raises(ValidationFailedError, match="once lower-cased"):
        TagReconciler(test_db).parse(name)
    with pytest.raises(ValidationFailedError, match="once lower-cased"):
        await TaskService(test_db).set_task_tags_by_string(task.id, name)

    assert await TagRepository(test_db).count() == 0


def test_parse_rejects_before_touching_the_store():
    reconciler = TagReconciler(db=None)

    assert reconciler.parse("Urgent urgent home") == ["Urgent", "home"]
    with pytest.raises(ValidationFailedError) as exc_info:
        reconciler.parse("ok " + "y" * 51)

    assert exc_info.value.field == "tagString"


@pytest.mark.asyncio
async def test_reconciler_uses_injected_color_assigner(test_db):
    reconciler = TagReconciler(test_db, FixedColorAssigner())

    tags = await reconciler.reconcile("a b")

    assert {t.color for t in tags} == {"#123456"}


@pytest.mark.asyncio
async def test_reconciler_logs_created_tags(test_db, caplog):
    reconciler = TagReconciler(test_db, HashColorAssigner())

    with caplog.at_level(logging.INFO, logger="tasktags.services.tag_reconciler"):
        await reconciler.reconcile("urgent")

    assert "Tags created" in caplog.messages


# ============================================================================
# TAG MEMBERSHIP BY ID
# ============================================================================


@pytest.mark.asyncio
async def test_tags_by_id_replaces_and_drops_repeats(test_db):
    service = TaskService(test_db)
    tag_service = TagService(test_db)
    task = await service.create_task(name="Task")
    a = await tag_service.create_tag("a")
    b = await tag_service.create_tag("b")
    c = await tag_service.create_tag("c")
    await service.set_task_tags_by_id(task.id, [a.id, b.id])

    result = await service.set_task_tags_by_id(task.id, [b.id, c.id, c.id])

    assert result == [b.id, c.id]
    assert await tag_names(service, task.id) == ["b", "c"]


@pytest.mark.asyncio
async def test_tags_by_id_unknown_tag_leaves_task_untouched(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    a = await TagService(test_db).create_tag("a")
    await service.set_task_tags_by_id(task.id, [a.id])

    with pytest.raises(NotFoundError, match="Tag with id 999"):
        await service.set_task_tags_by_id(task.id, [999])

    assert await tag_names(service, task.id) == ["a"]


@pytest.mark.asyncio
async def test_tags_by_id_empty_list_clears(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    a = await TagService(test_db).create_tag("a")
    await service.set_task_tags_by_id(task.id, [a.id])

    assert await service.set_task_tags_by_id(task.id, []) == []
    assert await tag_names(service, task.id) == []


@pytest.mark.asyncio
async def test_replacer_unknown_task(test_db):
    with pytest.raises(NotFoundError):
        await AssociationReplacer(test_db).replace(999, [1])


@pytest.mark.asyncio
async def test_replacer_unknown_tag_id(test_db):
    """Ids the store rejects come back as a non-retryable NotFoundError."""
    task = await TaskService(test_db).create_task(name="Task")
    task_id = task.id

    with pytest.raises(NotFoundError, match="Tag with id 999 not found") as exc_info:
        await AssociationReplacer(test_db).replace(task_id, [999])

    assert exc_info.value.retryable is False
    assert await TaskRepository(test_db).exists(task_id) is True


@pytest.mark.asyncio
async def test_replacer_unknown_tag_keeps_previous_tags(test_db):
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    a = await TagService(test_db).create_tag("a")
    task_id, a_id = task.id, a.id
    await AssociationReplacer(test_db).replace(task_id, [a_id])

    with pytest.raises(NotFoundError, match=r"Tag with id \[998, 999\] not found"):
        await AssociationReplacer(test_db).replace(task_id, [a_id, 998, 999])

    assert await tag_names(service, task_id) == ["a"]


@pytest.mark.asyncio
async def test_tag_deleted_between_check_and_write(test_db, monkeypatch):
    """The tag exists when ids are checked but is gone by the time links are written."""
    service = TaskService(test_db)
    task = await service.create_task(name="Task")
    tag = await TagService(test_db).create_tag("short-lived")
    task_id, tag_id = task.id, tag.id

    original_replace = AssociationReplacer.replace

    async def replace_after_delete(self, task_id, tag_ids):
        await TagRepository(self.db).delete(tag_id)
        return await original_replace(self, task_id, tag_ids)

    monkeypatch.setattr(AssociationReplacer, "replace", replace_after_delete)

    with pytest.raises(NotFoundError, match=f"Tag with id {tag_id} not found"):
        await service.set_task_tags_by_id(task_id, [tag_id])


# ============================================================================
# TAG SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_tag_assigns_hash_color(test_db):
    tag = await TagService(test_db).create_tag("work")

    assert tag.name == "work"
    assert tag.color == "#DD6E42"


@pytest.mark.asyncio
async def test_create_tag_duplicate_ignoring_case(test_db):
    service = TagService(test_db)
    await service.create_tag("Work")
    await test_db.commit()

    with pytest.raises(ValidationFailedError, match="already exists"):
        await service.create_tag("work")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "two words"])
async def test_create_tag_invalid_name(test_db, name):
    with pytest.raises(ValidationFailedError):
        await TagService(test_db).create_tag(name)


@pytest.mark.asyncio
async def test_rename_tag_recomputes_color(test_db):
    service = TagService(test_db)
    tag = await service.create_tag("work")

    renamed = await service.rename_tag(tag.id, "home")

    assert renamed.name == "home"
    assert renamed.color == "#5DD9C1"


@pytest.mark.asyncio
async def test_rename_tag_case_only_is_allowed(test_db):
    service = TagService(test_db)
    tag = await service.create_tag("work")

    renamed = await service.rename_tag(tag.id, "Work")

    assert renamed.name == "Work"


@pytest.mark.asyncio
async def test_rename_tag_to_taken_name(test_db):
    service = TagService(test_db)
    await service.create_tag("home")
    tag = await service.create_tag("work")
    await test_db.commit()

    with pytest.raises(ValidationFailedError, match="already exists"):
        await service.rename_tag(tag.id, "HOME")


@pytest.mark.asyncio
async def test_delete_tag_detaches_from_tasks(test_db):
    task_service = TaskService(test_db)
    tag_service = TagService(test_db)
    task = await task_service.create_task(name="Task")
    a, _ = await task_service.set_task_tags_by_string(task.id, "a b")
    await test_db.commit()
    task_id, a_id = task.id, a.id

    assert await tag_service.delete_tag(a_id) is True

    assert await tag_names(task_service, task_id) == ["b"]
    with pytest.raises(NotFoundError):
        await tag_service.delete_tag(a_id)


@pytest.mark.asyncio
async def test_get_tasks_for_tag(test_db):
    task_service = TaskService(test_db)
    tag_service = TagService(test_db)
    t1 = await task_service.create_task(name="one")
    await task_service.create_task(name="two")
    (urgent,) = await task_service.set_task_tags_by_string(t1.id, "urgent")

    tasks = await tag_service.get_tasks_for_tag(urgent.id)

    assert [t.name for t in tasks] == ["one"]
    with pytest.raises(NotFoundError):
        await tag_service.get_tasks_for_tag(999)
