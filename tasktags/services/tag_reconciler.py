"""Turns a free-text tag string into persisted Tag records."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ValidationFailedError
from ..core.logging import get_logger
from ..models import TAG_NAME_MAX_LENGTH, Tag, tag_name_key
from ..repositories import TagRepository
from .colors import ColorAssigner, HashColorAssigner

logger = get_logger(__name__)


def parse_tag_string(raw: str | None) -> list[str]:
    """
    Split a space-separated tag string into distinct tag names.

    Rules:
    - Split on the space character, trim each token, drop empty tokens
    - Names that differ only in case count once; the first spelling wins

    Examples:
        "urgent  home"          → ["urgent", "home"]
        "Urgent urgent URGENT"  → ["Urgent"]
        "   "                   → []
    """
    if not raw:
        return []

    names: dict[str, str] = {}
    for token in raw.split(" "):
        name = token.strip()
        if name:
            names.setdefault(tag_name_key(name), name)

    return list(names.values())


def check_tag_name_length(name: str, field: str = "name") -> None:
    """
    Reject a name that does not fit the tags table.

    Both the name and its case-insensitive key must fit: lower-casing can
    lengthen a string ("İ".lower() is two code points).

    Raises:
        ValidationFailedError: Name or key longer than TAG_NAME_MAX_LENGTH
    """
    if len(name) > TAG_NAME_MAX_LENGTH:
        raise ValidationFailedError(
            f"Tag name '{name}' is longer than {TAG_NAME_MAX_LENGTH} characters",
            field=field,
        )
    if len(tag_name_key(name)) > TAG_NAME_MAX_LENGTH:
        raise ValidationFailedError(
            f"Tag name '{name}' is longer than {TAG_NAME_MAX_LENGTH} characters "
            "once lower-cased",
            field=field,
        )


class TagReconciler:
    """
    Resolves tag names to Tag records, creating the missing ones.

    The result holds exactly one Tag per distinct case-insensitive name.
    New tags get their color from the injected ColorAssigner and are inserted
    in a single batch.

    Two steps, so that bad input is rejected before any write scope opens:
        names = reconciler.parse(raw)          # pure, may raise ValidationFailedError
        async with atomic(db):
            tags = await reconciler.resolve(names)

    ``reconcile(raw)`` does both. The reconciler does not commit on its own.
    """

    def __init__(self, db: AsyncSession, color_assigner: ColorAssigner | None = None):
        self.db = db
        self.tag_repo = TagRepository(db)
        self.color_assigner = color_assigner or HashColorAssigner()

    def parse(self, raw: str | None) -> list[str]:
        """
        Split and validate a tag string without touching the store.

        Raises:
            ValidationFailedError: A name does not fit the tags table
        """
        candidates = parse_tag_string(raw)
        for name in candidates:
            check_tag_name_length(name, field="tagString")

        ignored = len([t for t in (raw or "").split(" ") if t.strip()]) - len(candidates)
        if ignored:
            logger.debug("Duplicate tag names ignored", extra={"duplicates": ignored})

        return candidates

    async def resolve(self, names: list[str]) -> list[Tag]:
        """
        Get or create the tags for already-parsed ``names``.

        Returns:
            Existing tags (in the order they were named) followed by new tags

        Raises:
            StorageError: Propagated from the enclosing ``atomic()`` scope
        """
        if not names:
            return []

        existing_by_key = {tag.name_key: tag for tag in await self.tag_repo.find_by_names(names)}

        existing: list[Tag] = []
        missing: list[Tag] = []
        for name in names:
            tag = existing_by_key.get(tag_name_key(name))
            if tag is not None:
                existing.append(tag)
            else:
                missing.append(Tag(name=name, color=self.color_assigner.assign(name)))

        created = await self.tag_repo.insert_tags(missing)
        if created:
            logger.info(
                "Tags created",
                extra={"tags": [tag.name for tag in created]},
            )

        return existing + created

    async def reconcile(self, raw: str | None) -> list[Tag]:
        """
        Get or create the tags named in ``raw``.

        Args:
            raw: Space-separated tag names; blank means "no tags"

        Returns:
            Existing tags (in the order they were named) followed by new tags

        Raises:
            ValidationFailedError: A name is longer than the column allows
            StorageError: Propagated from the enclosing ``atomic()`` scope

        Example:
            # "urgent" exists, "home" does not
            tags = await reconciler.reconcile("URGENT home")
            [t.name for t in tags]  # ["urgent", "home"]
        """
        return await self.resolve(self.parse(raw))
