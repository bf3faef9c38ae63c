"""
podium/packing.py - Fixed-width records bit-packed into 252-bit storage words.

A word holds up to 250 bits of records (two bits of headroom below the 252-bit
limit). Record k of a word lives at bits [k*width, (k+1)*width):

    get: (word >> (k * width)) & mask
    set: (word & ~(mask << (k * width))) | (value << (k * width))

Two layouts are in use:

    RECIPIENT_SHARE_CODEC  14-bit bps + 1 claimed flag = 15 bits, 16 per word
    CUSTOM_SHARE_CODEC     16-bit bps, no flag,          15 per word

Lists longer than one word are spread across consecutive words; locate() maps
a global record index to (word_index, offset).
"""

from typing import Any, NamedTuple

from podium.errors import PackedIndexError, PackedValueError

WORD_BITS = 252
MAX_PACKED_BITS = 250
WORD_LIMIT = 1 << WORD_BITS


class RecipientShare(NamedTuple):
    """One fee recipient's share and whether it has been paid out."""

    share_bps: int
    claimed: bool = False


# ============================================================================
# Base codec
# ============================================================================


class PackedCodec:
    """Packs `capacity` records of `width` bits into one word.

    Subclasses override encode()/decode() to map their value type onto the
    raw integer field.
    """

    def __init__(self, name: str, width: int, capacity: int):
        if width * capacity > MAX_PACKED_BITS:
            raise ValueError(
                f"{name}: {capacity} x {width} bits exceeds {MAX_PACKED_BITS} bits per word"
            )
        self.name = name
        self.width = width
        self.capacity = capacity
        self.mask = (1 << width) - 1

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}, {self.width}b x {self.capacity})"

    # ------------------------------------------------------------------
    # Value mapping
    # ------------------------------------------------------------------

    def encode(self, value: Any) -> int:
        return value

    def decode(self, raw: int) -> Any:
        return raw

    # ------------------------------------------------------------------
    # Single-word access
    # ------------------------------------------------------------------

    def get(self, word: int, index: int) -> Any:
        self._check_word(word)
        self._check_index(index)
        return self.decode((word >> (index * self.width)) & self.mask)

    def set(self, word: int, index: int, value: Any) -> int:
        """Return a copy of word with record `index` replaced. Other records are untouched."""
        self._check_word(word)
        self._check_index(index)
        raw = self.encode(value)
        if not isinstance(raw, int) or raw < 0 or raw > self.mask:
            raise PackedValueError(f"{self.name}: value {value!r} doesn't fit {self.width} bits")
        shift = index * self.width
        return (word & ~(self.mask << shift)) | (raw << shift)

    # ------------------------------------------------------------------
    # Multi-word layout
    # ------------------------------------------------------------------

    def locate(self, global_index: int) -> tuple[int, int]:
        """Map a record index over the whole list to (word_index, offset_in_word)."""
        if global_index < 0:
            raise PackedIndexError(f"{self.name}: negative record index {global_index}")
        return divmod(global_index, self.capacity)

    def words_needed(self, count: int) -> int:
        return -(-count // self.capacity)

    def pack(self, values: list[Any]) -> list[int]:
        words = [0] * self.words_needed(len(values))
        for i, value in enumerate(values):
            word_index, offset = self.locate(i)
            words[word_index] = self.set(words[word_index], offset, value)
        return words

    def unpack(self, words: list[int], count: int) -> list[Any]:
        if self.words_needed(count) > len(words):
            raise PackedIndexError(
                f"{self.name}: {count} records need {self.words_needed(count)} words, have {len(words)}"
            )
        values = []
        for i in range(count):
            word_index, offset = self.locate(i)
            values.append(self.get(words[word_index], offset))
        return values

    def get_at(self, words: list[int], global_index: int) -> Any:
        word_index, offset = self.locate(global_index)
        if word_index >= len(words):
            raise PackedIndexError(f"{self.name}: record {global_index} beyond stored words")
        return self.get(words[word_index], offset)

    def set_at(self, words: list[int], global_index: int, value: Any) -> None:
        """In-place update of one record in a multi-word list."""
        word_index, offset = self.locate(global_index)
        if word_index >= len(words):
            raise PackedIndexError(f"{self.name}: record {global_index} beyond stored words")
        words[word_index] = self.set(words[word_index], offset, value)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.capacity:
            raise PackedIndexError(
                f"{self.name}: index {index} outside 0..{self.capacity - 1}"
            )

    def _check_word(self, word: int) -> None:
        if word < 0 or word >= WORD_LIMIT:
            raise PackedValueError(f"{self.name}: word outside {WORD_BITS}-bit range")


# ============================================================================
# Concrete layouts
# ============================================================================


class RecipientShareCodec(PackedCodec):
    """15-bit records: bits 0-13 share in bps, bit 14 claimed flag."""

    SHARE_BITS = 14

    def __init__(self):
        super().__init__("recipient-share", width=15, capacity=16)
        self.share_mask = (1 << self.SHARE_BITS) - 1

    def encode(self, value: RecipientShare) -> int:
        share_bps, claimed = value
        if not 0 <= share_bps <= self.share_mask:
            raise PackedValueError(f"{self.name}: share {share_bps} doesn't fit {self.SHARE_BITS} bits")
        return share_bps | (int(bool(claimed)) << self.SHARE_BITS)

    def decode(self, raw: int) -> RecipientShare:
        return RecipientShare(raw & self.share_mask, bool(raw >> self.SHARE_BITS))

    def mark_claimed(self, word: int, index: int) -> int:
        share = self.get(word, index)
        return self.set(word, index, share._replace(claimed=True))


class CustomShareCodec(PackedCodec):
    """16-bit records holding a bare basis-point share."""

    def __init__(self):
        super().__init__("custom-share", width=16, capacity=15)


RECIPIENT_SHARE_CODEC = RecipientShareCodec()
CUSTOM_SHARE_CODEC = CustomShareCodec()
