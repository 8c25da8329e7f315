import numpy as np
import pytest
from PIL import Image

from fddbeval.imageutils import (
    mat_copy_stuffed,
    mat_median,
    mat_normalize,
    mat_rotate,
    read_image,
)


def test_median_takes_upper_middle_element():
    assert mat_median([[3, 1], [2, 5]]) == 3


def test_median_of_odd_count_is_true_median():
    values = np.array([[9, 4, 7], [1, 8, 2], [6, 5, 3]])
    assert mat_median(values) == float(np.median(values))


def test_median_uses_first_channel():
    image = np.zeros((2, 2, 3))
    image[..., 0] = [[1, 1], [1, 1]]
    image[..., 1] = 100
    assert mat_median(image) == 1


def test_median_empty_raises():
    with pytest.raises(ValueError):
        mat_median(np.zeros((0, 0)))


def test_normalize_spans_requested_range():
    values = np.array([[2.0, 4.0], [6.0, 10.0]])
    result = mat_normalize(values, 0, 255)
    assert result.min() == pytest.approx(0)
    assert result.max() == pytest.approx(255)
    assert np.argsort(result, axis=None).tolist() == np.argsort(values, axis=None).tolist()


def test_normalize_constant_raises():
    with pytest.raises(ValueError):
        mat_normalize(np.ones((3, 3)), 0, 1)


def test_copy_stuffed_pads_centred():
    src = np.arange(1, 5, dtype=float).reshape(2, 2)
    dst = mat_copy_stuffed(src, (4, 4))
    assert dst.shape == (4, 4)
    assert np.array_equal(dst[1:3, 1:3], src)
    assert dst.sum() == src.sum()


def test_copy_stuffed_crops_centred():
    src = np.arange(16, dtype=float).reshape(4, 4)
    dst = mat_copy_stuffed(src, (2, 2))
    assert np.array_equal(dst, src[1:3, 1:3])


def test_copy_stuffed_odd_difference_rounds_down():
    src = np.arange(9, dtype=float).reshape(3, 3)
    dst = mat_copy_stuffed(src, (2, 2))
    assert np.array_equal(dst, src[0:2, 0:2])


def test_rotate_zero_is_identity():
    src = np.arange(20, dtype=float).reshape(4, 5)
    assert np.allclose(mat_rotate(src, 0), src)


def test_rotate_quarter_turn_matches_rot90():
    src = np.arange(25, dtype=float).reshape(5, 5)
    assert np.allclose(mat_rotate(src, 90), np.rot90(src), atol=1e-9)


def test_rotate_half_turn_flips_both_axes():
    src = np.arange(24, dtype=float).reshape(4, 6)
    assert np.allclose(mat_rotate(src, 180), np.flip(src), atol=1e-9)


def test_rotate_rejects_three_dimensions():
    with pytest.raises(ValueError):
        mat_rotate(np.zeros((2, 2, 3)), 10)


def test_read_image_color_round_trip(tmp_path):
    path = tmp_path / "img.png"
    pixels = np.zeros((6, 8, 3), dtype=np.uint8)
    pixels[2, 3] = (10, 20, 30)
    Image.fromarray(pixels).save(path)
    loaded = read_image(path, True)
    assert loaded.shape == (6, 8, 3)
    assert tuple(loaded[2, 3]) == (10, 20, 30)


def test_read_image_ppm_round_trip(tmp_path):
    path = tmp_path / "img.ppm"
    pixels = np.full((3, 4, 3), 77, dtype=np.uint8)
    Image.fromarray(pixels).save(path)
    assert np.array_equal(read_image(path, True), pixels)


def test_read_image_gray_and_color_of_gray_source(tmp_path):
    path = tmp_path / "gray.png"
    pixels = np.full((5, 5), 42, dtype=np.uint8)
    Image.fromarray(pixels).save(path)
    assert np.array_equal(read_image(path, False), pixels)
    colored = read_image(path, True)
    assert colored.shape == (5, 5, 3)
    assert np.all(colored == 42)


def test_read_image_missing_raises(tmp_path):
    with pytest.raises(OSError):
        read_image(tmp_path / "missing.png", True)


def test_read_image_not_an_image_raises(tmp_path):
    path = tmp_path / "bad.png"
    path.write_text("not an image")
    with pytest.raises(OSError):
        read_image(path, True)