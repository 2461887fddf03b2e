from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Response:
    status: int
    status_text: str
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None
    # Measured from the start of the first attempt
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status < 400

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "status_text": self.status_text,
            "headers": dict(self.headers),
            "data": self.data,
            "elapsed_ms": self.elapsed_ms,
        }
