"""Conjunctive tag filtering over an already-loaded task list.

Pure and synchronous: no queries, no mutation of the input. Used by
``TaskService.list_tasks`` and usable by any presentation layer holding
the task list (ORM objects or ``TaskResponse`` DTOs alike).
"""

from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar


class HasId(Protocol):
    id: int


class Tagged(Protocol):
    @property
    def tags(self) -> Iterable[HasId]: ...


TaskT = TypeVar("TaskT", bound=Tagged)


def filter_tasks_by_tags(tasks: Sequence[TaskT], selected: Iterable[int]) -> Sequence[TaskT]:
    """
    Keep the tasks that carry every selected tag.

    Args:
        tasks: Tasks with their tags loaded
        selected: Tag ids; all of them must be present (AND, not OR)

    Returns:
        ``tasks`` itself when nothing is selected, otherwise a new list in
        the original order

    Example:
        # task1={X}, task2={X, Y}, task3={Y}
        filter_tasks_by_tags([task1, task2, task3], {X, Y})  # [task2]
    """
    required = frozenset(selected)
    if not required:
        return tasks

    return [task for task in tasks if required <= {tag.id for tag in task.tags}]


class TagSelection:
    """
    Interactive set of selected tag ids.

    Keyed by id, never by name: two tags that share a name are still
    filtered independently.

    Example:
        selection = TagSelection()
        selection.toggle(urgent.id)
        selection.toggle(home.id)
        visible = selection.apply(tasks)  # tasks tagged urgent AND home
        selection.toggle(urgent.id)        # deselect
    """

    def __init__(self, tag_ids: Iterable[int] = ()):
        self._ids: set[int] = set(tag_ids)

    def toggle(self, tag_id: int) -> bool:
        """
        Select the tag if it is not selected, deselect it otherwise.

        Returns:
            True if the tag is selected after the call
        """
        if tag_id in self._ids:
            self._ids.discard(tag_id)
            return False
        self._ids.add(tag_id)
        return True

    def add(self, tag_id: int) -> None:
        self._ids.add(tag_id)

    def discard(self, tag_id: int) -> None:
        self._ids.discard(tag_id)

    def clear(self) -> None:
        self._ids.clear()

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._ids)

    def apply(self, tasks: Sequence[TaskT]) -> Sequence[TaskT]:
        """Filter ``tasks`` by the current selection."""
        return filter_tasks_by_tags(tasks, self._ids)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"<TagSelection(ids={sorted(self._ids)})>"
