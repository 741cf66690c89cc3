"""
Server Activity Log

Audit records emitted after successful installs. The panel owns the real
activity table; these sinks cover standalone use and tests.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ActivityRecord:
    event: str
    server_uuid: str
    metadata: Dict = field(default_factory=dict)
    node_id: Optional[str] = None
    user_id: Optional[str] = None
    ip: Optional[str] = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )


class ActivitySink:
    """Receives activity records"""

    def record(self, activity: ActivityRecord) -> None:
        raise NotImplementedError


class LoggingActivitySink(ActivitySink):
    def record(self, activity: ActivityRecord) -> None:
        logger.info(f"Activity {activity.event} on {activity.server_uuid}: "
                    f"{json.dumps(activity.metadata, sort_keys=True)}")


class JsonLinesActivitySink(ActivitySink):
    """Appends each record as one JSON line"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def record(self, activity: ActivityRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a') as f:
            f.write(json.dumps(asdict(activity)) + "\n")


class MemoryActivitySink(ActivitySink):
    def __init__(self):
        self.records: List[ActivityRecord] = []

    def record(self, activity: ActivityRecord) -> None:
        self.records.append(activity)
