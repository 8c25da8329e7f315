import io

import numpy as np
import pytest

from fddbeval.matching import MatchPair, Matching, compute_score
from fddbeval.regions import EllipseSet, RectangleRegion, RectangleSet


def _image(size=60):
    return np.zeros((size, size, 3), dtype=np.uint8)


def _ellipses(text, count, size=60):
    regions = EllipseSet(_image(size))
    regions.read(io.StringIO(text), count)
    return regions


def _rectangles(text, count, size=60):
    regions = RectangleSet(_image(size))
    regions.read(io.StringIO(text), count)
    return regions


def _masked(region, shape=(30, 30)):
    region.mask = region.render_mask(shape)
    return region


def test_compute_score_identical_regions_is_one():
    first = _masked(RectangleRegion(5, 5, 10, 10))
    second = _masked(RectangleRegion(5, 5, 10, 10))
    assert compute_score(first, second) == 1.0


def test_compute_score_disjoint_regions_is_zero():
    first = _masked(RectangleRegion(0, 0, 5, 5))
    second = _masked(RectangleRegion(20, 20, 5, 5))
    assert compute_score(first, second) == 0.0


def test_compute_score_partial_overlap_between_zero_and_one():
    first = _masked(RectangleRegion(0, 0, 10, 10))
    second = _masked(RectangleRegion(5, 5, 10, 10))
    assert 0.0 < compute_score(first, second) < 1.0


def test_compute_score_empty_masks_raise():
    first = RectangleRegion(0, 0, 1, 1)
    second = RectangleRegion(0, 0, 1, 1)
    first.mask = np.zeros((4, 4), dtype=np.uint8)
    second.mask = np.zeros((4, 4), dtype=np.uint8)
    with pytest.raises(ZeroDivisionError):
        compute_score(first, second)


def test_match_pair_holds_fields():
    region_a = RectangleRegion(0, 0, 1, 1)
    region_b = RectangleRegion(1, 1, 1, 1)
    pair = MatchPair(region_a, region_b, 0.25)
    assert pair.annotation is region_a
    assert pair.detection is region_b
    assert pair.score == 0.25


def test_overlapping_detection_is_matched_and_disjoint_is_not():
    annotations = _ellipses("10 10 0 20 20 1\n", 1)
    detections = _rectangles("10 10 20 20 0.9\n45 45 10 10 0.8\n", 2)
    pairs = Matching(annotations, detections).match_pairs()
    assert len(pairs) == 1
    assert pairs[0].annotation is annotations[0]
    assert pairs[0].detection is detections[0]
    assert 0.5 < pairs[0].score <= 1.0


def test_no_overlap_gives_no_pairs():
    annotations = _ellipses("5 5 0 10 10 1\n", 1)
    detections = _rectangles("40 40 10 10 0.9\n", 1)
    assert Matching(annotations, detections).match_pairs() == []


def test_invalid_detections_are_ignored_and_cache_survives():
    annotations = _ellipses("10 10 0 20 20 1\n", 1)
    detections = _rectangles("10 10 20 20 0.9\n", 1)
    matching = Matching(annotations, detections)
    assert len(matching.match_pairs()) == 1
    detections[0].valid = False
    assert matching.match_pairs() == []
    detections[0].valid = True
    again = matching.match_pairs()
    assert len(again) == 1
    assert again[0].detection is detections[0]


def test_more_annotations_than_detections():
    annotations = _ellipses("8 8 0 15 15 1\n8 8 0 45 45 1\n", 2)
    detections = _rectangles("37 37 16 16 0.5\n", 1)
    pairs = Matching(annotations, detections).match_pairs()
    assert len(pairs) == 1
    assert pairs[0].annotation is annotations[1]
    assert pairs[0].detection is detections[0]


def test_each_annotation_gets_its_own_detection():
    annotations = _ellipses("8 8 0 15 15 1\n8 8 0 45 45 1\n", 2)
    detections = _rectangles("37 37 16 16 0.5\n7 7 16 16 0.6\n", 2)
    pairs = Matching(annotations, detections).match_pairs()
    matched = {id(pair.annotation): pair.detection for pair in pairs}
    assert matched[id(annotations[0])] is detections[1]
    assert matched[id(annotations[1])] is detections[0]
    assert all(0 < pair.score <= 1 for pair in pairs)


def test_masks_are_cleared_after_matching():
    annotations = _ellipses("10 10 0 20 20 1\n", 1)
    detections = _rectangles("10 10 20 20 0.9\n", 1)
    Matching(annotations, detections).match_pairs()
    assert annotations[0].mask is None
    assert detections[0].mask is None