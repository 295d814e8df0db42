from pathlib import Path
from typing import Union


class UsageLogRepository:
    """
    Append-only text log. One entry per line.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line.rstrip("\n") + "\n")

    def count_entries(self) -> int:
        """Number of non-empty lines; 0 when the file does not exist yet."""
        if not self.path.exists():
            return 0
        with self.path.open("r", encoding="utf-8") as fh:
            return sum(1 for line in fh if line.strip())
