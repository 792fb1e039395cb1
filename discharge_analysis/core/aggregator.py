#!/usr/bin/env python3
"""
Category Aggregator - Counts raw records per category value
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

from .base_component import BaseComponent
from .constants import (
    CONFIG_KEY_AGGREGATION,
    CONFIG_KEY_SOURCE,
    DEFAULT_CATEGORY_FIELD,
    DEFAULT_UNKNOWN_LABEL,
    MissingCategoryPolicy,
)

RawRecord = Mapping[str, Any]
CategoryExtractor = Callable[[RawRecord], Optional[str]]


@dataclass(frozen=True)
class AggregateEntry:
    """One distinct category value and the number of records carrying it."""
    label: str
    value: int


def normalize_category(value: Any) -> Optional[str]:
    """Return the category as stripped text, or None when it is absent."""
    if value is None:
        return None
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def field_extractor(field_name: str = DEFAULT_CATEGORY_FIELD) -> CategoryExtractor:
    """Build an extractor reading one field of a record."""

    def extract(record: RawRecord) -> Optional[str]:
        if not isinstance(record, Mapping):
            return None
        return normalize_category(record.get(field_name))

    return extract


def aggregate(
    records: Iterable[RawRecord],
    record_to_category: Optional[CategoryExtractor] = None,
    policy: MissingCategoryPolicy = MissingCategoryPolicy.DROP,
    unknown_label: str = DEFAULT_UNKNOWN_LABEL,
) -> Tuple[AggregateEntry, ...]:
    """
    Count records per category, in order of first occurrence.

    Records whose category is absent are skipped under ``DROP`` and counted
    under ``unknown_label`` under ``BUCKET``.
    """
    extract = record_to_category or field_extractor()
    policy = MissingCategoryPolicy(policy)

    counts: Dict[str, int] = {}
    for record in records:
        category = extract(record)
        if category is None:
            if policy is MissingCategoryPolicy.DROP:
                continue
            category = unknown_label
        counts[category] = counts.get(category, 0) + 1

    return tuple(AggregateEntry(label, value) for label, value in counts.items())


def to_series(entries: Iterable[AggregateEntry]) -> pd.Series:
    """Aggregate as a pandas Series indexed by label."""
    entries = list(entries)
    return pd.Series(
        [entry.value for entry in entries],
        index=[entry.label for entry in entries],
        dtype='int64',
    )


class CategoryAggregator(BaseComponent):
    """Applies the configured category extraction and missing-value policy."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        output_directory: Optional[str] = None,
        context=None,
        config_override=None,
    ):
        super().__init__(config_file, output_directory, context=context, config_override=config_override)

    @property
    def category_field(self) -> str:
        return self.get_section(CONFIG_KEY_SOURCE).get('category_field', DEFAULT_CATEGORY_FIELD)

    @property
    def policy(self) -> MissingCategoryPolicy:
        raw = self.get_section(CONFIG_KEY_AGGREGATION).get('missing_category', MissingCategoryPolicy.DROP.value)
        try:
            return MissingCategoryPolicy(raw)
        except ValueError:
            allowed = ', '.join(p.value for p in MissingCategoryPolicy)
            raise ValueError(f"aggregation.missing_category must be one of: {allowed} (got {raw!r})")

    @property
    def unknown_label(self) -> str:
        return str(self.get_section(CONFIG_KEY_AGGREGATION).get('unknown_label', DEFAULT_UNKNOWN_LABEL))

    def aggregate_records(
        self,
        records: Iterable[RawRecord],
        record_to_category: Optional[CategoryExtractor] = None,
    ) -> Tuple[AggregateEntry, ...]:
        """Aggregate records using the configured field, policy and unknown label."""
        records = list(records)
        entries = aggregate(
            records,
            record_to_category or field_extractor(self.category_field),
            policy=self.policy,
            unknown_label=self.unknown_label,
        )

        counted = sum(entry.value for entry in entries)
        dropped = len(records) - counted
        self.logger.info(
            f"Aggregated {len(records):,} records into {len(entries)} categories"
            + (f" ({dropped:,} without category dropped)" if dropped else "")
        )
        if entries:
            counts = to_series(entries)
            top = counts.idxmax()
            self.logger.info(f"Most common category: {top} ({counts[top]:,})")
        return entries
