"""Kuhn's Hungarian method for solving optimal assignment problems."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence

EPS = 1e-15

# Marks held in the Q matrix.
_ZERO = 0
_ONE = 1
_STAR = 2


class Mode(enum.IntEnum):
    """Whether the assignment minimises or maximises the total rating."""

    MIN = 0
    MAX = 1


class HungarianError(ArithmeticError):
    """Raised when the cover loses feasibility during the solve."""


class _Step(enum.Enum):
    ROUTINE_ONE = enum.auto()
    ROUTINE_TWO = enum.auto()
    DONE = enum.auto()


class HungarianProblem:
    """An m x n assignment problem with m <= n."""

    def __init__(self, ratings: Iterable[Sequence[float]], mode: Mode = Mode.MAX) -> None:
        rows = [[float(value) for value in row] for row in ratings]
        self.m = len(rows)
        self.n = len(rows[0]) if rows else 0
        if any(len(row) != self.n for row in rows):
            raise ValueError("rating matrix rows must all have the same length")
        if self.m > self.n:
            raise ValueError("rating matrix must not have more rows than columns")
        self.mode = Mode(mode)
        self.max_utility = max([0.0, *(value for row in rows for value in row)])
        if self.mode is Mode.MIN:
            # Minimising is done by maximising the complement; benefit() undoes it.
            rows = [[self.max_utility - value for value in row] for row in rows]
        self._r = rows
        self._q = [[_ZERO] * self.n for _ in rows]
        self._u = [0.0] * self.m
        self._v = [0.0] * self.n
        self._ess_rows = [False] * self.m
        self._ess_cols = [False] * self.n
        self._rows_first = True
        self._assignment = [0] * self.m
        self._solved = False

    @property
    def assignment(self) -> list[int]:
        """Column assigned to each row."""
        self._require_solved()
        return list(self._assignment)

    def solve(self) -> list[int]:
        """Run the method and return the column assigned to each row."""
        self._u = [0.0] * self.m
        self._v = [0.0] * self.n
        self._ess_rows = [False] * self.m
        self._ess_cols = [False] * self.n
        self._q = [[_ZERO] * self.n for _ in range(self.m)]

        self._make_cover()
        self._build_q()
        self._add_stars()

        step = _Step.ROUTINE_ONE
        while step is not _Step.DONE:
            if step is _Step.ROUTINE_ONE:
                step = self._routine_one()
            else:
                step = self._routine_two()

        for i, row in enumerate(self._q):
            starred = next((j for j, mark in enumerate(row) if mark == _STAR), None)
            if starred is not None:
                self._assignment[i] = starred
        self._solved = True
        return list(self._assignment)

    def is_feasible(self) -> bool:
        """True when every row and column is assigned at most once, and fully on the smaller side."""
        self._require_solved()
        for row in self._q:
            stars = sum(1 for mark in row if mark == _STAR)
            if stars > 1 or (self.m <= self.n and stars == 0):
                return False
        for column in zip(*self._q) if self._q else ():
            stars = sum(1 for mark in column if mark == _STAR)
            if stars > 1 or (self.n <= self.m and stars == 0):
                return False
        if not self._q and self.n <= self.m and self.n > 0:
            return False
        return True

    def benefit(self) -> float:
        """Total rating of the assignment, in the units of the original matrix."""
        self._require_solved()
        total = 0.0
        for row, column in zip(self._r, self._assignment):
            if self.mode is Mode.MIN:
                total += self.max_utility - row[column]
            else:
                total += row[column]
        return total

    def format_assignment(self) -> str:
        """The assignment as a 0-1 matrix."""
        self._require_solved()
        lines = ["", "A:"]
        for column in self._assignment:
            cells = "".join(f"{int(j == column):4d} " for j in range(self.n))
            lines.append(f"  [ {cells} ]")
        return "\n".join(lines) + "\n"

    def format_rating(self) -> str:
        """The working rating matrix."""
        lines = ["", "R: "]
        for row in self._r:
            cells = "".join(f"{value:.3f} " for value in row)
            lines.append(f"  [ {cells} ]")
        return "\n".join(lines) + "\n"

    def _require_solved(self) -> None:
        if not self._solved:
            raise RuntimeError("problem has not been solved yet")

    def _make_cover(self) -> None:
        row_max = [max([0.0, *row]) for row in self._r]
        if self._r:
            col_max = [max([0.0, *column]) for column in zip(*self._r)]
        else:
            col_max = [0.0] * self.n
        self._rows_first = sum(row_max) <= sum(col_max)
        if self._rows_first:
            self._u = row_max
        else:
            self._v = col_max

    def _build_q(self) -> None:
        for i, (row, q_row) in enumerate(zip(self._r, self._q)):
            for j, rating in enumerate(row):
                if abs(self._u[i] + self._v[j] - rating) < EPS:
                    if q_row[j] == _ZERO:
                        q_row[j] = _ONE
                else:
                    q_row[j] = _ZERO

    def _add_stars(self) -> None:
        q = self._q
        if self._rows_first:
            for i in range(self.m):
                for j in range(self.n):
                    if q[i][j] == _ONE and not any(
                        k != i and q[k][j] == _STAR for k in range(self.m)
                    ):
                        q[i][j] = _STAR
                        break
        else:
            for j in range(self.n):
                for i in range(self.m):
                    if q[i][j] == _ONE and not any(
                        k != j and q[i][k] == _STAR for k in range(self.n)
                    ):
                        q[i][j] = _STAR
                        break

    def _routine_one(self) -> _Step:
        q, m, n = self._q, self.m, self.n
        seq: list[tuple[int, int]] = []
        self._ess_rows = [False] * m

        j = 0
        while j < n:
            if any(q[i][j] == _STAR for i in range(m)):
                j += 1
                continue
            # Column j has no starred one: search it for a one.
            i = 0
            while i < m:
                if q[i][j] != _ONE:
                    i += 1
                    continue
                seq.append((i, j))
                jump_prelim = False
                while not jump_prelim:
                    # Case 1: look in row i for a starred one.
                    j = 0
                    jump_case1 = False
                    while j < n and not jump_case1:
                        if q[i][j] != _STAR:
                            j += 1
                            continue
                        # Case 2: search column j for a one in a new row.
                        i = 0
                        while not jump_case1:
                            while i < m:
                                if q[i][j] == _ONE:
                                    if any(row == i for row, _ in seq):
                                        i += 1
                                        continue
                                    seq.append((seq[-1][0], j))
                                    seq.append((i, j))
                                    jump_case1 = True
                                    break
                                i += 1
                            if i >= m:
                                last_i, last_j = seq[-1]
                                self._ess_rows[last_i] = True
                                j = last_j
                                i = last_i + 1
                                if len(seq) > 1:
                                    del seq[-2:]
                                    continue
                                seq.pop()
                                jump_case1 = jump_prelim = True
                                break
                    if j >= n:
                        # No starred one in the row: toggle the sequence.
                        for si, sj in reversed(seq):
                            q[si][sj] = _STAR if q[si][sj] == _ONE else _ONE
                        return _Step.ROUTINE_ONE
            j += 1

        self._ess_cols = [
            any(q[i][jj] == _STAR and not self._ess_rows[i] for i in range(m))
            for jj in range(n)
        ]
        return _Step.ROUTINE_TWO

    def _routine_two(self) -> _Step:
        u, v, r = self._u, self._v, self._r
        ess_rows, ess_cols = self._ess_rows, self._ess_cols

        d = 0.0
        for i in range(self.m):
            if ess_rows[i]:
                continue
            for j in range(self.n):
                if ess_cols[j]:
                    continue
                dtmp = u[i] + v[j] - r[i][j]
                if dtmp < -EPS:
                    raise HungarianError(
                        f"cover violated: {u[i]:f} + {v[j]:f} < {r[i][j]:f} diff {dtmp:f}"
                    )
                if abs(d) < EPS or (dtmp > -EPS and dtmp < d):
                    d = dtmp

        if d < -EPS:
            raise HungarianError(f"negative step: {d:f} < 0")
        if abs(d) < EPS:
            return _Step.DONE

        if any(not ess and value == 0 for ess, value in zip(ess_rows, u)):
            step = min([d, *(value for ess, value in zip(ess_cols, v) if not ess)])
            self._u = [value + step if ess else value for ess, value in zip(ess_rows, u)]
            self._v = [value if ess else value - step for ess, value in zip(ess_cols, v)]
        else:
            step = min([d, *(value for ess, value in zip(ess_rows, u) if not ess)])
            self._u = [value if ess else value - step for ess, value in zip(ess_rows, u)]
            self._v = [value + step if ess else value for ess, value in zip(ess_cols, v)]

        for i, row in enumerate(r):
            for j, rating in enumerate(row):
                diff = self._u[i] + self._v[j] - rating
                if diff < -EPS:
                    raise HungarianError(
                        f"cover violated at ({i},{j}): {self._u[i]:f} + {self._v[j]:f} "
                        f"< {rating:f}, diff {diff:e}"
                    )

        self._build_q()
        return _Step.ROUTINE_ONE


def solve_assignment(
    ratings: Iterable[Sequence[float]], mode: Mode = Mode.MAX
) -> list[int]:
    """Solve an assignment problem and return the column chosen for each row."""
    return HungarianProblem(ratings, mode).solve()