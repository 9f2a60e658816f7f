from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union
from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveInt,
    field_validator,
)
from .bases import DEFAULT_WORKERS, TreeHasher
from .hashing import DEFAULT_ALGORITHM, Hasher

Backend = Literal["threads", "interleave", "trio"]


class ScanConfig(BaseModel):
    """Settings for a scan, as read from a config file and the command line"""

    model_config = ConfigDict(extra="forbid")

    root: Path = Path(".")
    workers: PositiveInt = DEFAULT_WORKERS
    backend: Backend = "threads"
    algorithm: str = DEFAULT_ALGORITHM
    queue_size: Optional[PositiveInt] = None
    retries: NonNegativeInt = 0
    retry_delay: NonNegativeFloat = 0.1
    progress: bool = True
    summary: bool = False
    fail_on_error: bool = False

    @field_validator("algorithm")
    @classmethod
    def _check_algorithm(cls, v: str) -> str:
        v = v.lower()
        # Rejects unknown and variable-length algorithms
        Hasher(algorithm=v)
        return v

    @classmethod
    def from_file(
        cls, path: Union[str, Path], **overrides: Any
    ) -> ScanConfig:
        with open(path) as fp:
            data: Dict[str, Any] = json.load(fp)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: config file must contain a JSON object")
        data.update(overrides)
        return cls.model_validate(data)

    def build_hasher(self) -> Hasher:
        return Hasher(
            algorithm=self.algorithm,
            retries=self.retries,
            retry_delay=self.retry_delay,
        )

    def build_tree_hasher(self, **kwargs: Any) -> TreeHasher:
        from . import BACKENDS

        return BACKENDS[self.backend](
            workers=self.workers,
            hasher=self.build_hasher(),
            queue_size=self.queue_size,
            **kwargs,
        )
