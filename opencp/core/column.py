"""
Column module - represents a cutting pattern in column generation.

In the cutting-stock master problem a "column" is one feasible way to cut
a large roll: a mapping from item index to the number of copies of that
item cut from the roll.

Column is frozen and hashable. Two columns are equal when their patterns
are, whatever their cost or solver values; zero counts are dropped before
comparing. ColumnPool hands out ids and rejects duplicate patterns.

A pattern comes from pricing or from a seeding heuristic (trivial or FFD),
becomes one variable of the master, and is part of the solution when that
variable is positive.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from opencp.config import config as global_config

PatternLike = Union[Mapping[int, int], Iterable[Tuple[int, int]]]


def _normalize_pattern(pattern: PatternLike) -> Tuple[Tuple[int, int], ...]:
    items = pattern.items() if isinstance(pattern, Mapping) else pattern
    counts: Dict[int, int] = {}
    for item, count in items:
        if count != int(count):
            raise ValueError(f"Pattern count for item {item} must be integral, got {count}")
        count = int(count)
        if count < 0:
            raise ValueError(f"Pattern count for item {item} must be non-negative, got {count}")
        if count > 0:
            counts[int(item)] = counts.get(int(item), 0) + count
    return tuple(sorted(counts.items()))


@dataclass(frozen=True)
class Column:
    """
    A cutting pattern (column of the master problem).

    Attributes:
        pattern: Sorted tuple of (item index, count) pairs, counts > 0
        cost: Objective coefficient (one roll by default)
        column_id: Optional unique identifier (assigned by ColumnPool)
        reduced_cost: column cost minus its dual value, filled in by pricing
        value: master variable value, filled in after a master solve
        attributes: Additional attributes (e.g., origin 'ffd', 'trivial')

    Example:
        >>> column = Column({0: 1, 3: 2})
        >>> column.count(3)
        2
        >>> column.width([45, 36, 31, 14])
        73
    """
    pattern: Tuple[Tuple[int, int], ...]
    cost: float = 1.0
    column_id: Optional[int] = None
    reduced_cost: Optional[float] = None
    value: Optional[float] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Normalise the pattern (accepts dicts or pair iterables)."""
        object.__setattr__(self, 'pattern', _normalize_pattern(self.pattern))
        if not isinstance(self.attributes, dict):
            object.__setattr__(self, 'attributes', dict(self.attributes))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def items(self) -> Tuple[int, ...]:
        """Item indices with a positive count."""
        return tuple(item for item, _ in self.pattern)

    @property
    def num_pieces(self) -> int:
        """Total number of pieces cut from the roll."""
        return sum(count for _, count in self.pattern)

    @property
    def is_empty(self) -> bool:
        return not self.pattern

    @property
    def is_in_solution(self) -> bool:
        """True when the master uses this pattern at a positive level."""
        return self.value is not None and self.value > global_config.get_tolerance("integrality")

    # =========================================================================
    # Methods
    # =========================================================================

    def count(self, item: int) -> int:
        """Number of copies of an item in this pattern."""
        for idx, count in self.pattern:
            if idx == item:
                return count
        return 0

    def as_dict(self) -> Dict[int, int]:
        return dict(self.pattern)

    def as_vector(self, num_items: int) -> List[int]:
        """Dense count vector of length num_items."""
        vector = [0] * num_items
        for item, count in self.pattern:
            vector[item] = count
        return vector

    def width(self, widths: Sequence[float]) -> float:
        """Total width used by this pattern."""
        return sum(widths[item] * count for item, count in self.pattern)

    def fits(self, widths: Sequence[float], roll_width: float, tol: Optional[float] = None) -> bool:
        """Check the pattern fits on one roll (tol defaults to the feasibility tolerance)."""
        if tol is None:
            tol = global_config.get_tolerance("feasibility")
        return self.width(widths) <= roll_width + tol

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def with_reduced_cost(self, reduced_cost: float) -> 'Column':
        """Create a copy with reduced_cost set."""
        return Column(
            pattern=self.pattern,
            cost=self.cost,
            column_id=self.column_id,
            reduced_cost=reduced_cost,
            value=self.value,
            attributes=self.attributes,
        )

    def with_value(self, value: float) -> 'Column':
        """Create a copy with value set."""
        return Column(
            pattern=self.pattern,
            cost=self.cost,
            column_id=self.column_id,
            reduced_cost=self.reduced_cost,
            value=value,
            attributes=self.attributes,
        )

    def with_id(self, column_id: int) -> 'Column':
        """Create a copy with column_id set."""
        return Column(
            pattern=self.pattern,
            cost=self.cost,
            column_id=column_id,
            reduced_cost=self.reduced_cost,
            value=self.value,
            attributes=self.attributes,
        )

    def __hash__(self) -> int:
        """Hash based on the pattern (patterns are unique by their counts)."""
        return hash(self.pattern)

    def __eq__(self, other: object) -> bool:
        """Equality based on the pattern."""
        if not isinstance(other, Column):
            return NotImplemented
        return self.pattern == other.pattern

    def __repr__(self) -> str:
        id_str = f"#{self.column_id} " if self.column_id is not None else ""
        value_str = f", value={self.value:.4f}" if self.value is not None else ""
        rc_str = f", rc={self.reduced_cost:.4f}" if self.reduced_cost is not None else ""
        return f"Column({id_str}{self.as_dict()}, cost={self.cost:.2f}{value_str}{rc_str})"


# =============================================================================
# Column Pool
# =============================================================================


class ColumnPool:
    """
    Every pattern the master has seen, keyed by id and by pattern.

    The pool assigns sequential ids and refuses to store the same pattern
    twice: adding a pattern already present returns the stored column.

    Example:
        >>> pool = ColumnPool()
        >>> a = pool.add(Column({0: 2}))
        >>> b = pool.add(Column({0: 2}))
        >>> a.column_id == b.column_id
        True
    """

    def __init__(self):
        """Create an empty column pool."""
        self._columns: List[Column] = []
        self._id_to_index: Dict[int, int] = {}
        self._pattern_to_id: Dict[Tuple[Tuple[int, int], ...], int] = {}
        self._next_id: int = 0

    @property
    def size(self) -> int:
        """Number of columns in the pool."""
        return len(self._columns)

    def add(self, column: Column) -> Column:
        """
        Store a column unless its pattern is already known.

        Columns without an id, or whose id is taken, get the next free one.

        Returns:
            The stored column (the existing one for a duplicate pattern)
        """
        existing = self.find(column)
        if existing is not None:
            return existing

        if column.column_id is None or column.column_id in self._id_to_index:
            column = column.with_id(self._next_id)
        self._next_id = max(self._next_id, column.column_id) + 1

        self._id_to_index[column.column_id] = len(self._columns)
        self._pattern_to_id[column.pattern] = column.column_id
        self._columns.append(column)

        return column

    def find(self, column: Column) -> Optional[Column]:
        """Get the stored column with the same pattern, if any."""
        column_id = self._pattern_to_id.get(column.pattern)
        if column_id is None:
            return None
        return self.get(column_id)

    def __contains__(self, column: Column) -> bool:
        return column.pattern in self._pattern_to_id

    def get(self, column_id: int) -> Optional[Column]:
        """Get a column by ID."""
        index = self._id_to_index.get(column_id)
        if index is None:
            return None
        return self._columns[index]

    def all_columns(self) -> List[Column]:
        """Get all columns in the pool."""
        return self._columns.copy()

    def columns_covering(self, item: int) -> List[Column]:
        """Get columns that cut at least one copy of an item."""
        return [col for col in self._columns if col.count(item) > 0]

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self._columns)

    def __repr__(self) -> str:
        return f"ColumnPool(size={self.size})"
