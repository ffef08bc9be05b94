"""
Translation row -> source entity correlation.

Row i of a translation sheet belongs to entity i of the source list. The
name lookup below only reports rows that look shifted; it never changes the
entity a row is applied to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from comapeo_builder.schemas import FieldDefinition, Preset
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.outcome import IssueCollector, IssueKind, Outcome
from comapeo_builder.services.sheet_layout import TranslationSheetKind

logger = logging.getLogger(__name__)

Entity = Union[Preset, FieldDefinition]


@dataclass
class RowMatch:
    row_index: int
    row: Sequence[Any]
    entity: Optional[Entity]
    mismatch: bool = False
    suggested: Optional[Entity] = None

    @property
    def sheet_row(self) -> int:
        return self.row_index + 2


def normalize_comparison_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _options_key(value: Any) -> str:
    return ",".join(normalize_comparison_key(part) for part in str(value or "").split(",") if part.strip())


def _comparison_keys(kind: TranslationSheetKind, entity: Entity) -> List[str]:
    if kind is TranslationSheetKind.CATEGORY_NAME:
        return [normalize_comparison_key(entity.name), normalize_comparison_key(entity.icon)]
    if kind is TranslationSheetKind.FIELD_LABEL:
        return [normalize_comparison_key(entity.label), normalize_comparison_key(entity.tag_key)]
    if kind is TranslationSheetKind.FIELD_HELPER_TEXT:
        return [normalize_comparison_key(entity.helper_text)]
    return [_options_key(",".join(option.label for option in entity.options))]


def _cell_key(kind: TranslationSheetKind) -> Callable[[Any], str]:
    return _options_key if kind is TranslationSheetKind.FIELD_OPTION else normalize_comparison_key


def correlate_rows(
    kind: TranslationSheetKind,
    rows: Sequence[Sequence[Any]],
    entities: Sequence[Entity],
) -> Outcome[List[RowMatch]]:
    issues = IssueCollector(logger, IssueKind.CORRELATION, kind.sheet_name)

    if len(rows) != len(entities):
        issues.warn(
            f"Row count mismatch: {len(rows)} translation row(s) for {len(entities)} "
            f"{kind.entity_group}; rows are still applied by position"
        )

    lookup: Dict[str, Entity] = {}
    for entity in entities:
        for key in _comparison_keys(kind, entity):
            if key:
                lookup.setdefault(key, entity)

    cell_key = _cell_key(kind)
    matches: List[RowMatch] = []
    for index, row in enumerate(rows):
        entity = entities[index] if index < len(entities) else None
        match = RowMatch(row_index=index, row=row, entity=entity)
        source_key = cell_key(layout.cell_text(row, layout.TRANSLATION_SOURCE_COLUMN))

        if entity is None:
            issues.warn(f"No source {kind.entity_group} entry for this row, skipping it", row=match.sheet_row)
        elif source_key and source_key not in _comparison_keys(kind, entity):
            match.mismatch = True
            match.suggested = lookup.get(source_key)
            hint = ""
            if match.suggested is not None:
                hint = f" (looks like {_describe(match.suggested)})"
            issues.warn(
                f"Source text {layout.cell_text(row, 0)!r} does not match {_describe(entity)} "
                f"at the same position{hint}; using the positional entry",
                row=match.sheet_row,
            )
        matches.append(match)

    return issues.wrap(matches)


def _describe(entity: Entity) -> str:
    if isinstance(entity, Preset):
        return f"category {entity.name!r}"
    return f"field {entity.label!r}"
