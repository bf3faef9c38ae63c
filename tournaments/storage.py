"""
tournaments/storage.py - Compact at-rest forms of distributions and share lists.

Custom distributions are kept as CUSTOM_SHARE_CODEC words (15 shares per word);
additional fee recipients keep their share and claimed flag in
RECIPIENT_SHARE_CODEC words (16 per word). Everything else is stored as-is.
"""

from dataclasses import dataclass, field

from podium.distribution import Custom, Distribution
from podium.errors import PackedIndexError
from podium.packing import CUSTOM_SHARE_CODEC, RECIPIENT_SHARE_CODEC, RecipientShare


@dataclass(frozen=True)
class StoredDistribution:
    distribution: Distribution | None = None  # None when packed
    words: tuple[int, ...] = ()
    count: int = 0


def store_distribution(distribution: Distribution) -> StoredDistribution:
    if isinstance(distribution, Custom):
        words = CUSTOM_SHARE_CODEC.pack(list(distribution.shares))
        return StoredDistribution(words=tuple(words), count=len(distribution.shares))
    return StoredDistribution(distribution=distribution)


def load_distribution(stored: StoredDistribution) -> Distribution:
    if stored.distribution is not None:
        return stored.distribution
    return Custom(tuple(CUSTOM_SHARE_CODEC.unpack(list(stored.words), stored.count)))


@dataclass
class RecipientTable:
    """Additional fee recipients: addresses in a list, shares packed alongside."""

    recipients: list[str] = field(default_factory=list)
    words: list[int] = field(default_factory=list)

    @classmethod
    def build(cls, shares: list[tuple[str, int]]) -> "RecipientTable":
        return cls(
            recipients=[recipient for recipient, _ in shares],
            words=RECIPIENT_SHARE_CODEC.pack([RecipientShare(bps) for _, bps in shares]),
        )

    def __len__(self) -> int:
        return len(self.recipients)

    def get(self, index: int) -> tuple[str, RecipientShare]:
        """Raises PackedIndexError for an index past the stored recipients."""
        if not 0 <= index < len(self.recipients):
            raise PackedIndexError(f"no additional share {index}; {len(self)} configured")
        return self.recipients[index], RECIPIENT_SHARE_CODEC.get_at(self.words, index)

    def mark_claimed(self, index: int) -> None:
        _, share = self.get(index)
        RECIPIENT_SHARE_CODEC.set_at(self.words, index, share._replace(claimed=True))
