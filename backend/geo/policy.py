"""Region allow-list policy."""

from dataclasses import dataclass, field

from config import AppSettings


@dataclass(frozen=True)
class RegionPolicy:
    """Allow-list of region codes, compared by exact, case-sensitive match."""

    enabled: bool = True
    codes: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, app_settings: AppSettings) -> "RegionPolicy":
        return cls(
            enabled=app_settings.enable_region_block,
            codes=frozenset(app_settings.white_region_code_list),
        )

    def admits(self, region: str) -> bool:
        if not self.enabled:
            return True
        return region in self.codes
