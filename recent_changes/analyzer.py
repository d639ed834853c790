"""
Core analyzer for detecting recently changed metadata components.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from tqdm import tqdm

from .filters import ChangeFilter
from .interfaces import MetadataConnection
from .manifest import write_manifest
from .models import ChangeMode, ChangeRecord
from .reporting import render_changes
from .time_utils import utc_now


logger = logging.getLogger(__name__)

T = TypeVar("T")

# listMetadata accepts at most three queries per call
LIST_METADATA_BATCH_SIZE = 3

DEFAULT_METADATA_TYPES = [
    "ApexClass",
    "ApexTrigger",
    "AuraDefinitionBundle",
    "CustomField",
    "CustomObject",
    "CustomTab",
    "FlexiPage",
    "Flow",
    "GlobalValueSet",
    "Layout",
    "LightningComponentBundle",
    "ListView",
    "QuickAction",
    "RecordType",
    "ValidationRule",
]


class MetadataTypesError(RuntimeError):
    """Raised when the org's metadata types cannot be described."""


def chunk(items: Sequence[T], size: int = LIST_METADATA_BATCH_SIZE) -> List[List[T]]:
    """Split items into consecutive groups of at most size elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def resolve_metadata_types(
    types: Optional[str], connection: MetadataConnection
) -> List[str]:
    """Resolve the --types argument to concrete metadata type names.

    Args:
        types: Empty for the default list, "all" for every type the org
            knows, otherwise a comma-separated list
        connection: Connection used when every type is requested

    Returns:
        List of metadata type names
    """
    if not types:
        return list(DEFAULT_METADATA_TYPES)

    if types.lower() == "all":
        logger.info("Fetching all metadata types from org")
        try:
            metadata_types = connection.describe_metadata_types()
        except Exception as e:
            raise MetadataTypesError(f"Failed to fetch metadata types: {e}") from e
        logger.info("Found %s types", len(metadata_types))
        return metadata_types

    return [t.strip() for t in types.split(",")]


def resolve_current_user(connection: MetadataConnection) -> Optional[str]:
    """Look up the display name of the connected user, None on failure."""
    try:
        user_id = connection.identity()
        display_name = connection.user_display_name(user_id)
    except Exception as e:
        logger.warning("Could not determine current user: %s", e)
        return None
    logger.info("Filtering for user: %s", display_name)
    return display_name


@dataclass
class ChangeAggregator:
    """Accumulate accepted changes and the manifest built from them."""

    records: List[ChangeRecord] = field(default_factory=list)
    manifest: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, record: ChangeRecord) -> None:
        self.records.append(record)
        self.manifest.setdefault(record.type, []).append(record.name)

    def extend(self, records: Sequence[ChangeRecord]) -> None:
        for record in records:
            self.add(record)


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one change-detection run."""

    records: List[ChangeRecord]
    manifest: Dict[str, List[str]]
    mode: ChangeMode
    api_version: str
    metadata_types: List[str]
    author: Optional[str] = None


class RecentChangesAnalyzer:
    """Find metadata components created or modified in the last days."""

    def __init__(
        self,
        connection: MetadataConnection,
        days: int = 15,
        created: bool = False,
        types: str = "",
        mine: bool = False,
        output_dir: Path = Path("./output"),
        clock: Optional[Callable[[], datetime]] = None,
        show_progress: bool = True,
    ):
        """Initialize the analyzer.

        Args:
            connection: Connection to the org being inspected
            days: Number of days to look back
            created: Filter by created date instead of last modified date
            types: Comma-separated metadata types, "all", or empty for defaults
            mine: Only keep changes made by the connected user
            output_dir: Directory receiving the generated manifest
            clock: Returns the reference "now"; defaults to the UTC wall clock
            show_progress: Display a progress bar while listing batches
        """
        self.connection = connection
        self.days = days
        self.mode = ChangeMode.from_flag(created)
        self.types = types
        self.mine = mine
        self.output_dir = Path(output_dir)
        self.clock = clock or utc_now
        self.show_progress = show_progress

        # Fail fast on an invalid window before any remote call is made.
        ChangeFilter(days, self.mode)

    def collect(
        self, metadata_types: Sequence[str], change_filter: ChangeFilter
    ) -> ChangeAggregator:
        """List every batch of types and keep the accepted components."""
        aggregator = ChangeAggregator()
        batches = chunk(metadata_types, LIST_METADATA_BATCH_SIZE)

        progress = tqdm(
            batches,
            desc=f"Checking for metadata changes in the last {self.days} days",
            unit="batch",
            disable=not self.show_progress or not sys.stderr.isatty(),
        )
        for batch in progress:
            try:
                descriptors = self.connection.list_metadata(batch)
            except Exception as e:
                logger.debug("Error listing metadata for %s: %s", ",".join(batch), e)
                continue

            accepted = []
            for descriptor in descriptors:
                record = change_filter.evaluate(descriptor, self.clock())
                if record is not None:
                    accepted.append(record)
            aggregator.extend(accepted)

        return aggregator

    def analyze(self) -> AnalysisResult:
        """Run change detection without printing or writing anything.

        Returns:
            AnalysisResult with the records in discovery order

        Raises:
            MetadataTypesError: If "all" types were requested and the org
                could not describe them
        """
        metadata_types = resolve_metadata_types(self.types, self.connection)

        author = resolve_current_user(self.connection) if self.mine else None
        change_filter = ChangeFilter(self.days, self.mode, author)

        aggregator = self.collect(metadata_types, change_filter)
        logger.debug(
            "Found %s changed components across %s types",
            len(aggregator.records),
            len(aggregator.manifest),
        )

        return AnalysisResult(
            records=aggregator.records,
            manifest=aggregator.manifest,
            mode=self.mode,
            api_version=self.connection.api_version,
            metadata_types=list(metadata_types),
            author=author,
        )

    def run(self) -> List[ChangeRecord]:
        """Analyze, print the grouped report and write the manifest."""
        result = self.analyze()

        print(render_changes(result.records, result.mode))

        manifest_file = write_manifest(result.manifest, result.api_version, self.output_dir)
        if manifest_file is not None:
            print(f"\nGenerated {manifest_file}")

        return result.records
