"""
Cutting Stock problem instance.

An instance is a plain configuration object: the roll width and the list
of pieces (width, demand). Master and pricing problems receive it
explicitly instead of capturing it in closures.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Piece:
    """
    A piece type to cut.

    Attributes:
        width: Width of one piece
        demand: Number of pieces required
    """
    width: float
    demand: int

    def __post_init__(self):
        if not self.width > 0:
            raise ValueError(f"Piece width must be positive, got {self.width}")
        if self.demand < 0 or self.demand != int(self.demand):
            raise ValueError(f"Piece demand must be a non-negative integer, got {self.demand}")
        object.__setattr__(self, 'demand', int(self.demand))


@dataclass
class CuttingStockInstance:
    """
    A Cutting Stock Problem instance.

    Attributes:
        roll_width: Width W of each large roll
        pieces: Piece types to cut
        name: Optional instance name
    """
    roll_width: float
    pieces: List[Piece] = field(default_factory=list)
    name: Optional[str] = None

    def __post_init__(self):
        if not self.roll_width > 0:
            raise ValueError(f"roll_width must be positive, got {self.roll_width}")
        self.pieces = [
            p if isinstance(p, Piece) else Piece(*p) for p in self.pieces
        ]
        for i, piece in enumerate(self.pieces):
            if piece.width > self.roll_width:
                raise ValueError(
                    f"Piece {i} of width {piece.width} does not fit a roll of width {self.roll_width}"
                )

    @classmethod
    def from_arrays(
        cls,
        roll_width: float,
        widths: Sequence[float],
        demands: Sequence[int],
        name: Optional[str] = None,
    ) -> 'CuttingStockInstance':
        """Build an instance from parallel width / demand sequences."""
        if len(widths) != len(demands):
            raise ValueError("widths and demands must have same length")
        return cls(
            roll_width=roll_width,
            pieces=[Piece(w, d) for w, d in zip(widths, demands)],
            name=name,
        )

    @property
    def num_items(self) -> int:
        """Number of piece types."""
        return len(self.pieces)

    @property
    def widths(self) -> List[float]:
        return [p.width for p in self.pieces]

    @property
    def demands(self) -> List[int]:
        return [p.demand for p in self.pieces]

    @property
    def total_demand(self) -> int:
        """Total number of pieces demanded."""
        return sum(self.demands)

    @property
    def has_integral_widths(self) -> bool:
        """True if W and every width are integers (dynamic programming applies)."""
        return float(self.roll_width).is_integer() and all(
            float(w).is_integer() for w in self.widths
        )

    def max_copies(self, item: int) -> int:
        """Maximum copies of a piece that fit in one roll."""
        return int(math.floor(self.roll_width / self.pieces[item].width + 1e-9))

    def l2_lower_bound(self) -> int:
        """Continuous lower bound ceil(sum w_i d_i / W) on the number of rolls."""
        total = sum(p.width * p.demand for p in self.pieces)
        return int(math.ceil(total / self.roll_width - 1e-9))

    def __repr__(self) -> str:
        name = f"{self.name!r}, " if self.name else ""
        return f"CuttingStockInstance({name}W={self.roll_width}, pieces={self.num_items})"


_EXAMPLE_PIECES = [
    (75.0, 38), (75.0, 44), (75.0, 30), (75.0, 41), (75.0, 36),
    (53.8, 33), (53.0, 36), (51.0, 41), (50.2, 35), (32.2, 37),
    (30.8, 44), (29.8, 49), (20.1, 37), (16.2, 36), (14.5, 42),
    (11.0, 33), (8.6, 47), (8.2, 35), (6.6, 49), (5.1, 42),
]


def example_instance() -> CuttingStockInstance:
    """The 20-piece instance on rolls of width 100 used in the tutorial."""
    return CuttingStockInstance(
        roll_width=100.0,
        pieces=[Piece(w, d) for w, d in _EXAMPLE_PIECES],
        name="tutorial",
    )
