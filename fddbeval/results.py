"""Cumulative detection statistics and ROC output."""

from __future__ import annotations

import dataclasses
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .matching import MatchPair
from .regions import RegionSet

MAX_THRESHOLD = sys.float_info.max


@dataclass
class Results:
    """True and false positive counts at one score threshold."""

    n: int = 0
    score_threshold: float = MAX_THRESHOLD
    tp_cont: float = 0.0
    tp_disc: float = 0.0
    fp: float = 0.0
    image_name: str = ""

    @classmethod
    def from_matches(
        cls,
        image_name: str,
        threshold: float,
        pairs: Iterable[MatchPair] | None,
        annotations: RegionSet,
        detections: RegionSet,
    ) -> Results:
        """Statistics for one image given its matched pairs."""
        fp = float(sum(1 for region in detections if region.valid))
        tp_cont = 0.0
        tp_disc = 0.0
        for pair in pairs or ():
            tp_cont += pair.score
            if pair.score > 0.5:
                tp_disc += 1
                fp -= 1
        return cls(len(annotations), threshold, tp_cont, tp_disc, fp, image_name)

    @classmethod
    def combine(cls, first: Results | None, second: Results | None) -> Results:
        """Sum two results, keeping the lower threshold."""
        combined = cls(0, MAX_THRESHOLD, 0.0, 0.0, 0.0)
        for part in (first, second):
            if part is None:
                continue
            combined.n += part.n
            combined.tp_cont += part.tp_cont
            combined.tp_disc += part.tp_disc
            combined.fp += part.fp
            combined.score_threshold = min(combined.score_threshold, part.score_threshold)
        return combined

    def with_extra(self, extra: int) -> Results:
        """A copy with ``extra`` added to the number of annotations."""
        return dataclasses.replace(self, n=self.n + extra, image_name="")

    def format(self) -> str:
        """One-line summary of these results."""
        return (
            f"{self.image_name} Threshold = {self.score_threshold:g} N = {self.n} "
            f"TP cont = {self.tp_cont:g} TP disc = {self.tp_disc:g} FP = {self.fp:g}"
        )


def merge(
    first: Sequence[Results] | None, second: Sequence[Results] | None
) -> list[Results]:
    """Merge two threshold-sorted result lists into combined statistics."""
    first = list(first or [])
    second = list(second or [])
    if not first:
        return [result.with_extra(0) for result in second]

    n_first = first[0].n
    n_second = second[0].n if second else 0
    merged: list[Results] = []
    i1 = i2 = 0
    while i1 < len(first):
        r1 = first[i1]
        if i2 < len(second):
            r2 = second[i2]
            merged.append(Results.combine(r1, r2))
            if r1.score_threshold < r2.score_threshold:
                i1 += 1
            elif r1.score_threshold == r2.score_threshold:
                i1 += 1
                i2 += 1
            else:
                i2 += 1
        else:
            merged.extend(result.with_extra(n_second) for result in first[i1:])
            i1 = len(first)
    merged.extend(result.with_extra(n_first) for result in second[i2:])
    return merged


def save_roc(prefix: str, results: Iterable[Results]) -> tuple[Path, Path]:
    """Write the continuous and discrete ROC curves; return both file paths."""
    cont_path = Path(f"{prefix}ContROC.txt")
    disc_path = Path(f"{prefix}DiscROC.txt")
    with cont_path.open("w", encoding="utf-8") as cont, disc_path.open(
        "w", encoding="utf-8"
    ) as disc:
        for result in results:
            if result.n:
                cont.write(f"{result.tp_cont / result.n:g} {result.fp:g}\n")
                disc.write(
                    f"{result.tp_disc / result.n:g} {result.fp:g} {result.score_threshold:g}\n"
                )
            else:
                cont.write("0 0\n")
                disc.write(f"0 0 {result.score_threshold:g}\n")
    return cont_path, disc_path