"""业务结果类型：主操作结果与“尽力而为”的附带操作结果分开返回。

例如删除文件时，数据库记录删除是主操作；清理存储对象是附带操作，
附带操作失败不会回滚主操作，但会原样告知调用方。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from app.packages.drive.models.file_entry import FileEntry


@dataclass
class BestEffortOutcome:
    attempted: bool = False
    ok: bool = True
    failures: List[str] = field(default_factory=list)
    message: Optional[str] = None

    def record_failure(self, item: str) -> None:
        self.ok = False
        self.failures.append(item)

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "ok": self.ok,
            "failures": list(self.failures),
            "message": self.message,
        }


@dataclass
class UploadResult:
    entry: FileEntry
    thumbnail: BestEffortOutcome


@dataclass
class DeleteResult:
    deleted_ids: List[str]
    storage_cleanup: BestEffortOutcome


@dataclass
class BulkFailure:
    id: str
    reason: str


@dataclass
class BulkResult:
    action: str
    succeeded: List[str] = field(default_factory=list)
    failed: List[BulkFailure] = field(default_factory=list)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "succeededCount": self.succeeded_count,
            "failedCount": self.failed_count,
            "succeeded": list(self.succeeded),
            "failed": [{"id": f.id, "reason": f.reason} for f in self.failed],
        }
