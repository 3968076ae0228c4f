from dataclasses import dataclass, field
from pathlib import Path

from .constants import (
    BASE_URL,
    CATEGORIES,
    CHAPTER_DELAY,
    DEFAULT_CATEGORY,
    REQUEST_TIMEOUT,
    THREAD_NUM,
    WORKDIR_PREFIX,
)


@dataclass
class JobConfig:
    output_dir: Path = field(default_factory=Path.cwd)
    category: str = DEFAULT_CATEGORY
    base_url: str = BASE_URL
    delay: float = CHAPTER_DELAY
    threads: int = THREAD_NUM
    timeout: float = REQUEST_TIMEOUT

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown category: {self.category}")
        if self.threads < 1:
            raise ValueError("threads must be at least 1")
        if self.delay < 0:
            raise ValueError("delay cannot be negative")

    def novel_url(self, novel_id: int) -> str:
        return f"{self.base_url.rstrip('/')}/{self.category}/{novel_id}"

    def work_dir(self, novel_id: int) -> Path:
        return self.output_dir / f"{WORKDIR_PREFIX}{novel_id}"
