import pytest

from treehighlight.colors import blend_highlights, hex_to_rgb, hex_to_rgba, rgba_string
from treehighlight.segments import SegmentHighlight


def contribution(color, opacity):
    return SegmentHighlight(id=color, color=color, opacity=opacity, stroke_width=4, priority=0)


def test_hex_to_rgba():
    assert hex_to_rgba("#A13333", 0.5) == (161, 51, 51, 0.5)
    assert hex_to_rgb("00ff00") == (0, 255, 0)


@pytest.mark.parametrize("bad", ["#FFF", "red", "", "#GGGGGG", None])
def test_invalid_hex(bad):
    with pytest.raises(ValueError):
        hex_to_rgb(bad)


def test_rgba_string():
    assert rgba_string((1, 2, 3, 0.5)) == "rgba(1, 2, 3, 0.5)"


def test_additive_blend_of_red_and_blue():
    r, g, b, a = blend_highlights([contribution("#FF0000", 1.0), contribution("#0000FF", 1.0)])
    assert (r, g, b, a) == (255, 0, 255, 1.0)


def test_blend_scales_by_opacity_and_clips():
    assert blend_highlights([contribution("#FF0000", 0.5)]) == (128, 0, 0, 0.5)
    assert blend_highlights([contribution("#FF0000", 0.8), contribution("#FF0000", 0.8)])[0] == 255


def test_blend_empty():
    assert blend_highlights([]) == (0, 0, 0, 0.0)
