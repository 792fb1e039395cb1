#!/usr/bin/env python3
"""
Record Loader - Fetches the bounded record sample and normalizes null indicators
"""

import io
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from urllib.request import urlopen

import pandas as pd

from .base_component import BaseComponent
from .constants import (
    CONFIG_KEY_SOURCE,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_NULL_INDICATORS,
    DEFAULT_RECORD_LIMIT,
    DEFAULT_SOURCE_URL,
)


def with_record_limit(url: str, limit: int) -> str:
    """Set the SODA ``$limit`` query parameter on a resource URL."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != '$limit']
    query.append(('$limit', str(limit)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query, safe='$'), parts.fragment))


def _is_url(location: str) -> bool:
    return urlsplit(location).scheme in ('http', 'https')


class RecordLoader(BaseComponent):
    """Loads raw discharge records from the configured data source."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        output_directory: Optional[str] = None,
        context=None,
        config_override=None,
    ):
        super().__init__(config_file, output_directory, context=context, config_override=config_override)

    @property
    def record_limit(self) -> int:
        limit = self.get_section(CONFIG_KEY_SOURCE).get('limit', DEFAULT_RECORD_LIMIT)
        if int(limit) < 1:
            raise ValueError(f"source.limit must be positive, got {limit}")
        return int(limit)

    def resolve_location(self) -> str:
        """Local path (relative to the config file) or URL the records come from."""
        source = self.get_section(CONFIG_KEY_SOURCE)
        path = source.get('path')
        if path:
            candidate = Path(path).expanduser()
            if not candidate.is_absolute() and self.config_file is not None:
                candidate = self.config_file.parent / candidate
            return str(candidate)
        return with_record_limit(source.get('url', DEFAULT_SOURCE_URL), self.record_limit)

    def load_records(self) -> List[Dict[str, Any]]:
        """Load the record sample as a list of plain dicts."""
        location = self.resolve_location()
        self.logger.info(f"Loading records from {location}")

        df = self._read_frame(location)
        limit = self.record_limit
        if len(df) > limit:
            df = df.head(limit)

        cleaned = self._clean_frame(df)
        records = cleaned.to_dict(orient='records')
        self.logger.info(f"Loaded {len(records):,} records, {len(cleaned.columns)} columns")
        return records

    def _read_frame(self, location: str) -> pd.DataFrame:
        source = self.get_section(CONFIG_KEY_SOURCE)
        fmt = source.get('format')

        if not _is_url(location) and not Path(location).exists():
            raise FileNotFoundError(f"Record source not found: {location}")

        if fmt is None:
            suffix = Path(urlsplit(location).path).suffix.lower()
            fmt = 'csv' if suffix == '.csv' else 'json'

        handle = self._open(location)
        if fmt == 'csv':
            return pd.read_csv(handle, dtype=str, encoding=source.get('encoding', 'utf-8'))
        if fmt == 'json':
            # Keep category codes as text; SODA serves every field as a string
            return pd.read_json(handle, orient='records', dtype=False)
        raise ValueError(f"Unsupported source format: {fmt}")

    def _open(self, location: str):
        """Local paths go to pandas as-is; URLs are downloaded under the socket timeout."""
        if not _is_url(location):
            return location

        timeout = self.get_section(CONFIG_KEY_SOURCE).get('timeout_seconds', DEFAULT_FETCH_TIMEOUT)
        with urlopen(location, timeout=timeout) as response:
            return io.BytesIO(response.read())

    def _clean_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """Replace null indicators with pd.NA."""
        cleaned_df = df.copy()

        null_indicators = self.global_defaults.get('data_quality_checks', {}).get(
            'null_indicators', DEFAULT_NULL_INDICATORS
        )

        for col in cleaned_df.columns:
            cleaned_df[col] = cleaned_df[col].replace(null_indicators, pd.NA)

        # Log cleaning results only if significant cleaning occurred
        original_nulls = df.isnull().sum().sum()
        cleaned_nulls = cleaned_df.isnull().sum().sum()
        if cleaned_nulls > original_nulls:
            self.logger.info(f"Data cleaning: {cleaned_nulls - original_nulls:,} additional nulls identified")

        return cleaned_df
