"""Progress reporting hooks for export runs.

Reporting is informational only; nothing in the export depends on it.
"""

from typing import Protocol


class ExportProgress(Protocol):
    def discovered(self, count: int) -> None: ...

    def exporting(self, done: int, total: int, group_resource: str) -> None: ...

    def exported(self, total_instances: int) -> None: ...

    def archived(self, path: str) -> None: ...

    def failed(self, stage: str, message: str) -> None: ...


class NullProgress:
    """Progress sink that ignores everything."""

    def discovered(self, count: int) -> None:
        pass

    def exporting(self, done: int, total: int, group_resource: str) -> None:
        pass

    def exported(self, total_instances: int) -> None:
        pass

    def archived(self, path: str) -> None:
        pass

    def failed(self, stage: str, message: str) -> None:
        pass
