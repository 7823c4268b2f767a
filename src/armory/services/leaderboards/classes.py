"""Static reference table of playable classes and specializations.

Ids follow the Battle.net Game Data API. The table is used to validate
filters and to back-fill class/spec data missing from upstream entries.
"""

from __future__ import annotations

from dataclasses import dataclass

from armory.services.leaderboards.fields import to_slug


@dataclass(frozen=True)
class ClassSpec:
    id: int
    name: str
    slug: str


@dataclass(frozen=True)
class PlayableClass:
    id: int
    name: str
    slug: str
    specs: tuple[ClassSpec, ...]


@dataclass(frozen=True)
class SpecMatch:
    """A specialization together with the class that owns it.

    ``multiple`` is set when a cross-class lookup found the slug in more
    than one class; ``spec`` and ``playable_class`` are then the first hit.
    """

    spec: ClassSpec
    playable_class: PlayableClass
    multiple: bool = False


def _class(class_id: int, name: str, specs: tuple[tuple[int, str], ...]) -> PlayableClass:
    return PlayableClass(
        id=class_id,
        name=name,
        slug=to_slug(name),
        specs=tuple(ClassSpec(id=spec_id, name=spec_name, slug=to_slug(spec_name)) for spec_id, spec_name in specs),
    )


PLAYABLE_CLASSES: tuple[PlayableClass, ...] = (
    _class(1, "Warrior", ((71, "Arms"), (72, "Fury"), (73, "Protection"))),
    _class(2, "Paladin", ((65, "Holy"), (66, "Protection"), (70, "Retribution"))),
    _class(3, "Hunter", ((253, "Beast Mastery"), (254, "Marksmanship"), (255, "Survival"))),
    _class(4, "Rogue", ((259, "Assassination"), (260, "Outlaw"), (261, "Subtlety"))),
    _class(5, "Priest", ((256, "Discipline"), (257, "Holy"), (258, "Shadow"))),
    _class(6, "Death Knight", ((250, "Blood"), (251, "Frost"), (252, "Unholy"))),
    _class(7, "Shaman", ((262, "Elemental"), (263, "Enhancement"), (264, "Restoration"))),
    _class(8, "Mage", ((62, "Arcane"), (63, "Fire"), (64, "Frost"))),
    _class(9, "Warlock", ((265, "Affliction"), (266, "Demonology"), (267, "Destruction"))),
    _class(10, "Monk", ((268, "Brewmaster"), (270, "Mistweaver"), (269, "Windwalker"))),
    _class(11, "Druid", ((102, "Balance"), (103, "Feral"), (104, "Guardian"), (105, "Restoration"))),
    _class(12, "Demon Hunter", ((577, "Havoc"), (581, "Vengeance"))),
    _class(13, "Evoker", ((1467, "Devastation"), (1468, "Preservation"), (1473, "Augmentation"))),
)

_CLASS_BY_ID = {playable.id: playable for playable in PLAYABLE_CLASSES}
_CLASS_BY_SLUG = {playable.slug: playable for playable in PLAYABLE_CLASSES}
_SPEC_BY_ID = {spec.id: SpecMatch(spec, playable) for playable in PLAYABLE_CLASSES for spec in playable.specs}
_SPEC_BY_SLUGS = {
    (playable.slug, spec.slug): SpecMatch(spec, playable) for playable in PLAYABLE_CLASSES for spec in playable.specs
}


def get_class_by_id(class_id: int | float | None) -> PlayableClass | None:
    if class_id is None:
        return None
    return _CLASS_BY_ID.get(int(class_id))


def get_class_by_slug(slug: str | None) -> PlayableClass | None:
    if not slug:
        return None
    return _CLASS_BY_SLUG.get(slug)


def get_spec_by_id(spec_id: int | float | None) -> SpecMatch | None:
    if spec_id is None:
        return None
    return _SPEC_BY_ID.get(int(spec_id))


def get_spec_by_slugs(class_slug: str | None, spec_slug: str | None) -> SpecMatch | None:
    if not class_slug or not spec_slug:
        return None
    return _SPEC_BY_SLUGS.get((class_slug, spec_slug))


def find_spec_across_classes(spec_slug: str) -> SpecMatch | None:
    """Find a spec slug in any class.

    Example:
        >>> find_spec_across_classes("subtlety").playable_class.slug
        'rogue'
        >>> find_spec_across_classes("frost").multiple
        True
    """
    match: SpecMatch | None = None
    for playable in PLAYABLE_CLASSES:
        spec = next((candidate for candidate in playable.specs if candidate.slug == spec_slug), None)
        if spec is None:
            continue
        if match is not None:
            return SpecMatch(match.spec, match.playable_class, multiple=True)
        match = SpecMatch(spec, playable)
    return match


def list_class_slugs() -> list[str]:
    return [playable.slug for playable in PLAYABLE_CLASSES]


def list_spec_slugs(class_slug: str | None = None) -> list[str]:
    """Spec slugs of one class, or every distinct spec slug."""
    if class_slug is None:
        return list(dict.fromkeys(spec.slug for playable in PLAYABLE_CLASSES for spec in playable.specs))
    playable = _CLASS_BY_SLUG.get(class_slug)
    return [spec.slug for spec in playable.specs] if playable else []


def available_classes() -> list[dict[str, object]]:
    """Class slugs with their spec slugs, as advertised in leaderboard views."""
    return [{"class": playable.slug, "specs": [spec.slug for spec in playable.specs]} for playable in PLAYABLE_CLASSES]


@dataclass
class ClassSpecFields:
    """Class/spec values read from an upstream record, completed in place by ``backfill``."""

    class_id: int | None = None
    class_name: str | None = None
    class_slug: str | None = None
    spec_id: int | None = None
    spec_name: str | None = None
    spec_slug: str | None = None

    def backfill(self) -> ClassSpecFields:
        """Complete missing values from the reference table.

        The class is resolved by id, then slug. The spec is resolved by id,
        then (class slug, spec slug), then an unambiguous cross-class slug
        match, and may supply the class when none was found. Values already
        present are never overwritten and nothing is invented when the table
        has no match.
        """
        playable = get_class_by_id(self.class_id) if self.class_id is not None else get_class_by_slug(self.class_slug)
        self._fill_class(playable)

        match = get_spec_by_id(self.spec_id)
        if match is None and self.spec_slug and self.class_slug:
            match = get_spec_by_slugs(self.class_slug, self.spec_slug)
        if match is None and self.spec_slug:
            cross = find_spec_across_classes(self.spec_slug)
            if cross is not None and not cross.multiple:
                match = cross

        if match is not None:
            if self.spec_id is None:
                self.spec_id = match.spec.id
            self.spec_slug = self.spec_slug or match.spec.slug
            self.spec_name = self.spec_name or match.spec.name
            if playable is None:
                playable = match.playable_class
        self._fill_class(playable)
        return self

    def _fill_class(self, playable: PlayableClass | None) -> None:
        if playable is None:
            return
        if self.class_id is None:
            self.class_id = playable.id
        self.class_slug = self.class_slug or playable.slug
        self.class_name = self.class_name or playable.name
