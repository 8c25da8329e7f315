# fddbeval

`fddbeval` scores a face detector against a set of annotated images.

- Each annotated face is an ellipse.
- Each detected face is a rectangle or an ellipse with a confidence score.

The evaluation works one detection score at a time. For every distinct score,
the detections at or above that score are matched one-to-one to the
annotations with Kuhn's Hungarian method. Each annotation and detection is
rendered as a filled mask on a canvas of the image's size. The weight of a
match is the overlap ratio (intersection over union) of the two masks.

The totals over all images give two ROC curves:

- **continuous**: every matched pair adds its overlap ratio to the true
  positives;
- **discrete**: a matched pair with an overlap ratio above 0.5 counts as one
  true positive and is taken off the false positives.

A detection counts as a false positive when it is valid at the threshold and
not a discrete true positive.

## Installation

```
pip install .
```

To install the test dependencies too:

```
pip install .[test]
```

## Command line

```
fddb-evaluate -l imList.txt -a ellipseList.txt -d detections.txt \
              -i /path/to/images/ -f 0 -r results/run1
```

| Option        | Meaning                                                                  | Default            |
|---------------|--------------------------------------------------------------------------|--------------------|
| `-h`          | print usage                                                              |                    |
| `-a fileName` | file with face annotations                                               | `ellipseList.txt`  |
| `-d fileName` | file with detections                                                     | `faceList.txt`     |
| `-f format`   | how detections are given: `0` rectangle, `1` ellipse, `2` pixels         | `0`                |
| `-i dirName`  | directory holding the original images                                    | `./`               |
| `-l fileName` | file listing the images to evaluate                                      | `temp.txt`         |
| `-r prefix`   | prefix of the ROC output files                                           | `temp`             |
| `-z ext`      | extension appended to image names                                        | `.ppm` (`.jpg` on Windows) |
| `-s`          | show the matched pairs for each threshold in an image viewer             |                    |

- With no arguments, or with an unknown option, the command prints the usage
  text and exits with status 0.
- A `-f` value other than 0, 1 or 2 is read as ellipses.

The image path is built by plain string concatenation:
`<dirName><image name><ext>`. Give the directory with a trailing separator.
Images are loaded with Pillow, so any format Pillow reads will do.

The command exits with status 1, and a message on standard error, when:

- the list, annotation or detection file cannot be opened;
- an image cannot be read;
- the image names in the three files disagree;
- a count or region line is malformed;
- format `2` is chosen.

On success it prints progress lines to standard output and writes two files:

- `<prefix>ContROC.txt`: one line per threshold, holding the continuous
  true-positive rate and the false-positive count.
- `<prefix>DiscROC.txt`: the discrete true-positive rate, the false-positive
  count and the threshold.

If a threshold has no annotations, its lines are `0 0` and `0 0 <threshold>`.

### File formats

The list file holds whitespace-separated image names. The annotation file and
the detection file cover the same images in the same order. Each image has
this block:

```
<image name>
<number of faces>
<one face per line>
```

- An ellipse line is `major_radius minor_radius angle center_x center_y [score]`.
  The angle is in radians. A missing score is 0.
- A rectangle line is `left top width height [score]`. A missing score is 0.

## Library use

### `fddbeval.hungarian`

- `solve_assignment(ratings, mode)` solves an m × n assignment problem with
  m ≤ n and returns the column chosen for each row. `mode` is `Mode.MAX` or
  `Mode.MIN`.
- `HungarianProblem(ratings, mode)` does the same job step by step, through
  these methods:
  - `solve()`;
  - `is_feasible()`;
  - `benefit()`, the total rating of the assignment;
  - `format_assignment()` and `format_rating()`, which return the assignment
    and the rating matrix as text.
- A `HungarianError` is raised if the cover becomes infeasible while solving.

### `fddbeval.regions`

- `EllipseRegion` and `RectangleRegion` are regions with these members:
  - `det_score`, the detection score;
  - `valid`, a flag;
  - `mask`, an optional mask.
- Each region has these methods:
  - `draw(image, color, line_width, text)` returns a copy of the image with
    the region drawn on it. A negative width fills the region.
  - `render_mask(shape)` returns a filled uint8 mask.
  - `intersect(other)` and `union(other)` count the pixels of the two masks.
- `EllipseSet(image)` and `RectangleSet(image)` hold the regions of one image.
  They are built from an image array, or with `from_file(path)`. They have
  these methods:
  - `read(stream, count)` reads `count` region lines;
  - `read_file(path)` reads a file of whitespace-separated records;
  - `parse_line(line)`;
  - `unique_scores()`;
  - `render()`.
- A set supports `len`, indexing and iteration.

### `fddbeval.matching`

- `Matching(annotations, detections).match_pairs()` returns `MatchPair`
  objects (`annotation`, `detection`, `score`). Only the detections that are
  currently valid are matched.
- `compute_score(first, second)` returns the intersection over union of two
  masked regions.

### `fddbeval.results`

- `Results` holds the statistics for one threshold. Build it with one of:
  - `Results.from_matches(...)`;
  - `Results.combine(a, b)`;
  - `result.with_extra(n)`.
- `result.format()` returns a one-line summary.
- `merge(first, second)` combines two lists of results that are sorted by
  threshold.
- `save_roc(prefix, results)` writes the two ROC files and returns their
  paths.

### `fddbeval.cli`

- `evaluate(image_names, annotation_stream, detection_stream, image_dir, image_format, detection_format)`
  runs the whole evaluation on open text streams and returns the cumulative
  `Results` list.
- `main(argv=None)` is the command above.
- `get_image_list(path)` reads a list file.
- `usage()` returns the usage text.

### `fddbeval.imageutils`

- `read_image(path, color)` loads an image with Pillow.
- Matrix helpers on numpy arrays:
  - `mat_median`;
  - `mat_normalize`;
  - `mat_copy_stuffed`;
  - `mat_rotate`.

## Limitations

- Detections given as pixel masks (format `2`) are not supported. The command
  stops with an error when this format is chosen.
- The `-s` option only opens each annotated image, with the matched pairs
  drawn on it, in Pillow's default viewer. There is no interactive display.