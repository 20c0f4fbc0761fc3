#!/usr/bin/env python3
"""
Data records passed between the pipeline stages.

None of these outlive a run: the coordinator builds them while walking the
source tree and drops them once the report is written.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class EntryKind(Enum):
    """Kind of a top-level source entry."""
    FILE = "file"
    DIRECTORY = "directory"


class Stage(Enum):
    """Pipeline stage a task outcome belongs to."""
    DISCOVER = "discover"
    ARCHIVE = "archive"
    UPLOAD = "upload"


@dataclass
class SourceEntry:
    name: str
    path: Path
    kind: EntryKind

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass
class MonthGroup:
    """Files found directly inside one dated directory, in listing order."""
    directory_name: str
    files: List[Path] = field(default_factory=list)


@dataclass
class ArchiveTask:
    """One directory's worth of work: where to pack it and where it goes remotely."""
    directory_name: str
    output_path: Path
    remote_key: str
    input_files: List[Path] = field(default_factory=list)


@dataclass
class ArchiveResult:
    """A successfully written archive waiting for upload."""
    directory_name: str
    output_path: Path
    remote_key: str


@dataclass
class UploadResult:
    """Result of a single S3 upload"""
    success: bool
    s3_key: str
    bucket: str
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    upload_time: Optional[float] = None


@dataclass
class TaskOutcome:
    """Final state of one directory within a run."""
    directory_name: str
    stage: Stage
    success: bool
    remote_key: Optional[str] = None
    output_path: Optional[Path] = None
    error: Optional[str] = None
    error_category: Optional[str] = None
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory_name,
            "stage": self.stage.value,
            "success": self.success,
            "remote_key": self.remote_key,
            "output_path": str(self.output_path) if self.output_path else None,
            "error": self.error,
            "error_category": self.error_category,
            "duration": self.duration,
        }


@dataclass
class RunReport:
    """
    Aggregate result of a run.

    Holds one outcome per directory: its upload outcome if it got that far,
    otherwise the outcome of the stage where it stopped.
    """
    source_dir: Path
    output_dir: Path
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    outcomes: List[TaskOutcome] = field(default_factory=list)
    skipped_entries: List[str] = field(default_factory=list)

    @property
    def failures(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def succeeded(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def record(self, outcome: TaskOutcome) -> None:
        """Add or replace the outcome for a directory."""
        self.outcomes = [o for o in self.outcomes
                         if o.directory_name != outcome.directory_name]
        self.outcomes.append(outcome)

    def outcome_for(self, directory_name: str) -> Optional[TaskOutcome]:
        for outcome in self.outcomes:
            if outcome.directory_name == directory_name:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_dir": str(self.source_dir),
            "output_dir": str(self.output_dir),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "total": len(self.outcomes),
            "succeeded": len(self.succeeded),
            "failed": len(self.failures),
            "skipped_entries": list(self.skipped_entries),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
