"""
Append-only transcript of interview turns.
"""
from dataclasses import dataclass
from typing import Iterator, Tuple

from .models import Speaker, Turn


@dataclass(frozen=True)
class Transcript:
    """
    Ordered log of turns.

    The store is a value: append() returns a new transcript and leaves the
    original untouched, so earlier session states keep their own history.
    Ordinals start at 1 and strictly increase. Speakers are not required to
    alternate. Growth is unbounded.
    """
    turns: Tuple[Turn, ...] = ()

    def append(self, speaker: Speaker, text: str) -> "Transcript":
        """Return a transcript with one more turn, numbered after the last."""
        next_id = self.turns[-1].id + 1 if self.turns else 1
        return Transcript(self.turns + (Turn(id=next_id, speaker=speaker, text=text),))

    def recent(self, count: int) -> Tuple[Turn, ...]:
        """Get the last ``count`` turns, oldest first."""
        if count <= 0:
            return ()
        return self.turns[-count:]

    def all(self) -> Tuple[Turn, ...]:
        return self.turns

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)
