"""Command-line evaluation of face detections against elliptical annotations."""

from __future__ import annotations

import enum
import getopt
import re
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

from PIL import Image

from .imageutils import IMAGE_FORMAT, read_image
from .matching import MatchPair, Matching
from .regions import EllipseSet, RectangleSet, RegionSet
from .results import MAX_THRESHOLD, Results, merge, save_roc

DEFAULT_IMAGE_DIR = "./"
DEFAULT_LIST_FILE = "temp.txt"
DEFAULT_DETECTION_FILE = "faceList.txt"
DEFAULT_ANNOTATION_FILE = "ellipseList.txt"
DEFAULT_ROC_PREFIX = "temp"


class DetectionFormat(enum.IntEnum):
    """How detected regions are written in the detection file."""

    RECTANGLE = 0
    ELLIPSE = 1
    PIXELS = 2


def get_image_list(path: str) -> list[str]:
    """Return the whitespace-separated image names listed in ``path``."""
    with open(path, encoding="utf-8") as handle:
        return handle.read().split()


def usage() -> str:
    """Text describing the command-line options."""
    return "\n".join(
        [
            "evaluate [OPTIONS]",
            "   -h              : print usage",
            f"   -a fileName     : file with face annotations (default: {DEFAULT_ANNOTATION_FILE})",
            f"   -d fileName     : file with detections (default: {DEFAULT_DETECTION_FILE})",
            "   -f format       : representation of faces in the detection file (default: 0)",
            "                   : [ 0 (rectangle), 1 (ellipse) or  2 (pixels) ]",
            "   -i dirName      : directory where the original images are stored "
            f"(default: {DEFAULT_IMAGE_DIR})",
            f"   -l fileName     : file with list of images to be evaluated (default: {DEFAULT_LIST_FILE})",
            f"   -r fileName     : prefix for files to store the ROC curves (default: {DEFAULT_ROC_PREFIX})",
            "   -s              : display the matched pairs",
            f"   -z extension    : extension appended to image names (default: {IMAGE_FORMAT})",
            "",
        ]
    )


def _read_line(stream: TextIO) -> str:
    return stream.readline().rstrip("\r\n")


def _read_count(stream: TextIO) -> int:
    line = _read_line(stream)
    tokens = line.split()
    if not tokens:
        raise ValueError("expected a region count, found an empty line")
    return int(tokens[0])


def _detection_set(detection_format: int, image) -> RegionSet:
    if detection_format == DetectionFormat.RECTANGLE:
        return RectangleSet(image)
    if detection_format == DetectionFormat.PIXELS:
        raise ValueError("detections given as pixels are not supported")
    return EllipseSet(image)


def _show_matches(image, pairs: Sequence[MatchPair]) -> None:
    canvas = image
    for index, pair in enumerate(pairs):
        label = str(index)
        canvas = pair.annotation.draw(canvas, (255, 0, 0), 3, label)
        canvas = pair.detection.draw(canvas, (0, 255, 0), 3, label)
    Image.fromarray(canvas).show(title=" matches ")


def _evaluate(
    image_names: Sequence[str],
    annotation_stream: TextIO,
    detection_stream: TextIO,
    image_dir: str,
    image_format: str,
    detection_format: int,
    show_matches: bool = False,
    progress: Callable[[int], None] | None = None,
) -> list[Results]:
    cumulative: list[Results] = []
    for index, name in enumerate(image_names):
        if progress is not None:
            progress(index)

        annotated_name = _read_line(annotation_stream)
        detected_name = _read_line(detection_stream)
        if name != annotated_name or name != detected_name:
            raise ValueError(
                f"{name} {annotated_name} {detected_name}\n"
                "Incompatible annotation and detection files. See output specifications"
            )
        n_annot = _read_count(annotation_stream)
        n_det = _read_count(detection_stream)

        image = read_image(image_dir + name + image_format, True)
        annotations = EllipseSet(image)
        annotations.read(annotation_stream, n_annot)
        detections = _detection_set(detection_format, image)
        detections.read(detection_stream, n_det)

        image_results: list[Results] = []
        if n_det == 0:
            image_results.append(
                Results.from_matches(name, MAX_THRESHOLD, None, annotations, detections)
            )
        else:
            matching = Matching(annotations, detections)
            for threshold in detections.unique_scores():
                for region in detections:
                    region.valid = region.det_score >= threshold
                pairs = matching.match_pairs()
                if show_matches:
                    _show_matches(annotations.image, pairs)
                image_results.append(
                    Results.from_matches(name, threshold, pairs, annotations, detections)
                )

        cumulative = merge(cumulative, image_results)
    return cumulative


def evaluate(
    image_names: Sequence[str],
    annotation_stream: TextIO,
    detection_stream: TextIO,
    image_dir: str,
    image_format: str,
    detection_format: int,
) -> list[Results]:
    """Match detections to annotations for every image and return cumulative results per threshold."""
    return _evaluate(
        image_names,
        annotation_stream,
        detection_stream,
        image_dir,
        image_format,
        detection_format,
    )


def _leading_int(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    return int(match.group()) if match else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the evaluation from command-line arguments; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(usage(), end="")
        return 0

    try:
        options, _ = getopt.gnu_getopt(args, "l:r:d:a:z:i:f:sh")
    except getopt.GetoptError:
        print(usage(), end="")
        return 0

    list_file = DEFAULT_LIST_FILE
    roc_prefix = DEFAULT_ROC_PREFIX
    detection_file = DEFAULT_DETECTION_FILE
    annotation_file = DEFAULT_ANNOTATION_FILE
    image_format = IMAGE_FORMAT
    image_dir = DEFAULT_IMAGE_DIR
    detection_format = int(DetectionFormat.RECTANGLE)
    show_matches = False

    for option, value in options:
        if option == "-l":
            list_file = value
        elif option == "-r":
            roc_prefix = value
        elif option == "-d":
            detection_file = value
        elif option == "-a":
            annotation_file = value
        elif option == "-z":
            image_format = value
        elif option == "-i":
            image_dir = value
        elif option == "-f":
            detection_format = _leading_int(value)
        elif option == "-s":
            show_matches = True
        else:
            print(usage(), end="")
            return 0

    try:
        image_names = get_image_list(list_file)
    except OSError:
        print(f"Invalid list file {list_file}", file=sys.stderr)
        print(f"No images found in the list {list_file}", file=sys.stderr)
        print("Set list file using -l option. See usage: evaluate -h.", file=sys.stderr)
        return 1

    try:
        annotation_stream = open(annotation_file, encoding="utf-8")
    except OSError:
        print(f"Can not open annotations from {annotation_file}", file=sys.stderr)
        print("Set annotation file using -a option. See usage: evaluate -h.", file=sys.stderr)
        return 1

    with annotation_stream:
        try:
            detection_stream = open(detection_file, encoding="utf-8")
        except OSError:
            print(f"Can not open detections from {detection_file}", file=sys.stderr)
            print("Set detection file using -d option. See usage: evaluate -h.", file=sys.stderr)
            return 1

        with detection_stream:
            print(f"Processing {len(image_names)} images")
            try:
                results = _evaluate(
                    image_names,
                    annotation_stream,
                    detection_stream,
                    image_dir,
                    image_format,
                    detection_format,
                    show_matches=show_matches,
                    progress=lambda done: print(f"{done} images done"),
                )
            except (ValueError, OSError) as exc:
                print(exc, file=sys.stderr)
                return 1

    save_roc(roc_prefix, results)
    return 0


if __name__ == "__main__":
    sys.exit(main())