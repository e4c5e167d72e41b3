"""
Multiplicity-merging object builder.

Each key moves through three states while children are inserted:

    Empty  --insert-->  Single(value)  --insert-->  Many([first, second])
                                                    Many --insert--> append

A key only becomes a list on its second insertion. Keys registered as
always-many (e.g., 'data' for untyped nested containers) start as Many.
"""

from typing import Any, Dict, Iterable, List


class _Single:
    __slots__ = ('value',)

    def __init__(self, value: Any):
        self.value = value


class _Many:
    __slots__ = ('values',)

    def __init__(self, values: List[Any]):
        self.values = values


class MultiValueDict:
    """
    Ordered key -> value builder that collapses repeated keys into lists.

    Keys keep the position of their first insertion.

    Args:
        always_many: Keys whose values always accumulate into a list,
            even on a single insertion

    Example:
        >>> builder = MultiValueDict()
        >>> builder.add('u', 1)
        >>> builder.add('u', 2)
        >>> builder.add('i', 3)
        >>> builder.to_dict()
        {'u': [1, 2], 'i': 3}
    """

    def __init__(self, always_many: Iterable[str] = ()):
        self._slots: Dict[str, Any] = {}
        self._always_many = frozenset(always_many)

    def add(self, key: str, value: Any) -> None:
        """Insert a value under key, applying the multiplicity rule."""
        slot = self._slots.get(key)
        if slot is None:
            if key in self._always_many:
                self._slots[key] = _Many([value])
            else:
                self._slots[key] = _Single(value)
        elif isinstance(slot, _Single):
            self._slots[key] = _Many([slot.value, value])
        else:
            slot.values.append(value)

    def __contains__(self, key: str) -> bool:
        return key in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def to_dict(self) -> Dict[str, Any]:
        """Finalize into a plain dict of scalars and lists."""
        return {
            key: slot.value if isinstance(slot, _Single) else list(slot.values)
            for key, slot in self._slots.items()
        }
