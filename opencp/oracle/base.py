"""
LP/MIP oracle abstract base class and model description.

The oracle is the only external collaborator of the cutting-plane loop.
It consumes a solver-independent LinearProgram:

    optimize  sum_j c_j * x_j            (sense: min or max)
    s.t.      sum_j a_ij * x_j  (<=, >=, =)  b_i
              l_j <= x_j <= u_j,  x_j integer for integer variables

and returns an OracleResult with the termination status, primal values,
objective value and, for pure LPs, one dual value per constraint.

The LinearProgram is an explicit, owned object. Master problems append
variables (columns) or constraints (cuts) to it and hand it to the oracle
on every solve; no solver state is shared between solves.

Customization Guide:
-------------------
To plug in another solver:

1. Subclass Oracle
2. Implement solve(lp) -> OracleResult
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from opencp.oracle.solution import OracleResult

INF = math.inf

_RELATIONS = ('<=', '>=', '=')


class Sense(Enum):
    """Objective sense."""
    MINIMIZE = auto()
    MAXIMIZE = auto()


class VarType(Enum):
    """Variable integrality."""
    CONTINUOUS = auto()
    INTEGER = auto()


@dataclass
class Variable:
    """
    A decision variable.

    Attributes:
        name: Variable name (for diagnostics)
        lower: Lower bound (-inf allowed)
        upper: Upper bound (inf allowed)
        var_type: CONTINUOUS or INTEGER
        cost: Objective coefficient
    """
    name: str
    lower: float = 0.0
    upper: float = INF
    var_type: VarType = VarType.CONTINUOUS
    cost: float = 0.0

    def __post_init__(self):
        if self.lower > self.upper:
            raise ValueError(
                f"Variable {self.name!r} has lower bound {self.lower} "
                f"above upper bound {self.upper}"
            )

    @property
    def is_integer(self) -> bool:
        return self.var_type == VarType.INTEGER


@dataclass
class LinearConstraint:
    """
    A linear constraint: sum_j coefficients[j] * x_j (relation) rhs.

    Attributes:
        coefficients: Mapping from variable index to coefficient
        relation: '<=', '>=' or '='
        rhs: Right-hand side
        name: Constraint name (for diagnostics)
    """
    coefficients: dict[int, float] = field(default_factory=dict)
    relation: str = '<='
    rhs: float = 0.0
    name: str = ""

    def __post_init__(self):
        if self.relation not in _RELATIONS:
            raise ValueError(
                f"Relation must be one of {_RELATIONS}, got {self.relation!r}"
            )

    @property
    def bounds(self) -> tuple[float, float]:
        """Row bounds (lower, upper) equivalent to the relation."""
        if self.relation == '<=':
            return -INF, self.rhs
        if self.relation == '>=':
            return self.rhs, INF
        return self.rhs, self.rhs

    def activity(self, values) -> float:
        """Left-hand side value for a vector of variable values."""
        return sum(coef * values[j] for j, coef in self.coefficients.items())


class LinearProgram:
    """
    A solver-independent linear / mixed-integer program.

    The model only grows: variables and constraints are appended, never
    removed. Variable and constraint indices are therefore stable and
    can be used as handles by the master problems.

    Example:
        >>> lp = LinearProgram(Sense.MAXIMIZE, name="knapsack")
        >>> y = lp.add_variable("y", cost=3.0, var_type=VarType.INTEGER)
        >>> lp.add_constraint({y: 2.0}, '<=', 5.0, name="capacity")
        0
    """

    def __init__(self, sense: Sense = Sense.MINIMIZE, name: str = "model"):
        self.sense = sense
        self.name = name
        self._variables: list[Variable] = []
        self._constraints: list[LinearConstraint] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def variables(self) -> list[Variable]:
        return list(self._variables)

    @property
    def constraints(self) -> list[LinearConstraint]:
        return list(self._constraints)

    @property
    def num_variables(self) -> int:
        return len(self._variables)

    @property
    def num_constraints(self) -> int:
        return len(self._constraints)

    @property
    def is_mip(self) -> bool:
        """True if any variable is integer."""
        return any(var.is_integer for var in self._variables)

    # =========================================================================
    # Building
    # =========================================================================

    def add_variable(
        self,
        name: str,
        lower: float = 0.0,
        upper: float = INF,
        var_type: VarType = VarType.CONTINUOUS,
        cost: float = 0.0,
        column: Optional[dict[int, float]] = None,
    ) -> int:
        """
        Append a variable.

        Args:
            name: Variable name
            lower: Lower bound
            upper: Upper bound
            var_type: CONTINUOUS or INTEGER
            cost: Objective coefficient
            column: Coefficients in existing constraints (constraint index -> value)

        Returns:
            Index of the new variable
        """
        index = len(self._variables)
        self._variables.append(Variable(name, lower, upper, var_type, cost))

        for row, coef in (column or {}).items():
            if not 0 <= row < len(self._constraints):
                raise IndexError(f"Constraint index {row} out of range")
            if coef != 0.0:
                self._constraints[row].coefficients[index] = float(coef)

        return index

    def add_constraint(
        self,
        coefficients: dict[int, float],
        relation: str,
        rhs: float,
        name: str = "",
    ) -> int:
        """
        Append a constraint over existing variables.

        Returns:
            Index of the new constraint
        """
        for j in coefficients:
            if not 0 <= j < len(self._variables):
                raise IndexError(f"Variable index {j} out of range")

        coefs = {j: float(c) for j, c in coefficients.items() if c != 0.0}
        self._constraints.append(LinearConstraint(coefs, relation, float(rhs), name))
        return len(self._constraints) - 1

    def set_integrality(self, var_type: VarType) -> None:
        """Set the type of every variable (used to re-solve a master as an IP)."""
        for var in self._variables:
            var.var_type = var_type

    def copy(self) -> 'LinearProgram':
        """Deep copy (variables and constraints are duplicated)."""
        other = LinearProgram(self.sense, self.name)
        for var in self._variables:
            other._variables.append(
                Variable(var.name, var.lower, var.upper, var.var_type, var.cost)
            )
        for con in self._constraints:
            other._constraints.append(
                LinearConstraint(dict(con.coefficients), con.relation, con.rhs, con.name)
            )
        return other

    def __repr__(self) -> str:
        kind = "MIP" if self.is_mip else "LP"
        return (
            f"LinearProgram({self.name!r}, {kind}, {self.sense.name}, "
            f"vars={self.num_variables}, cons={self.num_constraints})"
        )


class Oracle(ABC):
    """
    Abstract LP/MIP solve oracle.

    Implementations must be stateless across calls: solve() takes the
    full model every time.
    """

    @abstractmethod
    def solve(self, lp: LinearProgram) -> OracleResult:
        """
        Solve a linear or mixed-integer program.

        Args:
            lp: The model to solve

        Returns:
            OracleResult; duals are filled only for pure LPs
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
