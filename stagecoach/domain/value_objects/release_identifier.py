from dataclasses import dataclass
from datetime import datetime, UTC


@dataclass(frozen=True)
class ReleaseIdentifier:
    """
    Value Object naming one deployment attempt's artifact set.
    Tasks build remote paths such as ``releases/<identifier>`` from it.
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Release identifier cannot be empty")
        if "/" in self.value:
            raise ValueError(f"Release identifier must not contain '/': {self.value!r}")

    @classmethod
    def from_timestamp(cls, moment: datetime | None = None) -> "ReleaseIdentifier":
        moment = moment or datetime.now(UTC)
        return cls(moment.strftime("%Y%m%d%H%M%S"))

    def __str__(self):
        return self.value
