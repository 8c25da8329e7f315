"""Matching of annotated regions to detected regions by mask overlap."""

from __future__ import annotations

from dataclasses import dataclass

from .hungarian import HungarianProblem, Mode
from .regions import Region, RegionSet

_UNSCORED = -1.0


@dataclass
class MatchPair:
    """An annotated region paired with a detected region and their match score."""

    annotation: Region
    detection: Region
    score: float


def compute_score(first: Region, second: Region) -> float:
    """Intersection over union of the masks of two regions."""
    return first.intersect(second) / first.union(second)


class Matching:
    """Computes the best one-to-one matching between annotations and valid detections."""

    def __init__(self, annotations: RegionSet, detections: RegionSet) -> None:
        self.annotations = annotations
        self.detections = detections
        self._scores: list[list[float]] | None = None

    def match_pairs(self) -> list[MatchPair]:
        """Score every annotation against every valid detection and return the matched pairs."""
        self._compute_pairwise_scores()
        return self._run_hungarian()

    def _compute_pairwise_scores(self) -> None:
        shape = self.annotations.image.shape[:2]
        n_det = len(self.detections)
        if self._scores is None:
            self._scores = [[_UNSCORED] * n_det for _ in range(len(self.annotations))]

        for annotation, row in zip(self.annotations, self._scores):
            pending = [
                (index, detection)
                for index, detection in enumerate(self.detections)
                if detection.valid and row[index] == _UNSCORED
            ]
            if not pending:
                continue
            annotation.mask = annotation.render_mask(shape)
            try:
                for index, detection in pending:
                    detection.mask = detection.render_mask(shape)
                    try:
                        row[index] = compute_score(annotation, detection)
                    finally:
                        detection.mask = None
            finally:
                annotation.mask = None

    def _run_hungarian(self) -> list[MatchPair]:
        scores = self._scores or []
        valid = [detection.valid for detection in self.detections]

        # Drop annotations and detections that overlap nothing.
        rows = [
            i
            for i, row in enumerate(scores)
            if sum(score for score, ok in zip(row, valid) if ok) != 0
        ]
        cols = [
            j
            for j, ok in enumerate(valid)
            if ok and sum(row[j] for row in scores) != 0
        ]

        transpose = len(rows) > len(cols)
        if transpose:
            matrix = [[scores[i][j] for i in rows] for j in cols]
        else:
            matrix = [[scores[i][j] for j in cols] for i in rows]

        problem = HungarianProblem(matrix, Mode.MAX)
        assignment = problem.solve()
        if not problem.is_feasible():
            raise RuntimeError("the assignment found for the matching is not feasible")

        pairs = []
        for row_index, col_index in enumerate(assignment):
            if transpose:
                ai, di = rows[col_index], cols[row_index]
            else:
                ai, di = rows[row_index], cols[col_index]
            score = scores[ai][di]
            if score > 0:
                pairs.append(MatchPair(self.annotations[ai], self.detections[di], score))
        return pairs