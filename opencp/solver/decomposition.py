"""
Decomposition abstract base class.

A Decomposition pairs a master problem with its separation step. The
generic CuttingPlaneSolver only ever talks to this interface, so adding a
new problem means writing a master and a separate() method.

Customization Guide:
-------------------
1. Subclass Decomposition
2. Implement the master property and separate()
3. Optionally override add() and best_candidate()
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from opencp.core.column import Column
from opencp.core.cut import Cut
from opencp.master.base import MasterProblem
from opencp.master.solution import MasterSolution


@dataclass
class Separation:
    """
    Result of the separation step.

    Attributes:
        bound: Evaluation of the true objective or a Lagrangian bound
            (None if separation produces no bound)
        candidate: Point or solution the bound was computed for
        item: Column or Cut to append; None means no improving item exists
    """
    bound: Optional[float] = None
    candidate: Any = None
    item: Optional[Union[Column, Cut]] = None

    @property
    def found_item(self) -> bool:
        return self.item is not None


class Decomposition(ABC):
    """
    A master problem together with its separation oracle.
    """

    @property
    @abstractmethod
    def master(self) -> MasterProblem:
        """The master problem (owned by the decomposition)."""
        pass

    @abstractmethod
    def separate(self, master_solution: MasterSolution) -> Separation:
        """
        Separate the master's optimum.

        Args:
            master_solution: Optimal solution of the current master

        Returns:
            Separation with a bound and an improving item (or None)
        """
        pass

    def add(self, item: Union[Column, Cut]) -> Union[Column, Cut]:
        """Append an item to the master."""
        return self.master.add(item)

    def best_candidate(self) -> Any:
        """Best candidate seen so far (None if not tracked)."""
        return None
