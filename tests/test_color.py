import pytest

from kubeaudit import color

HELPERS = [
    (color.red, color.RED_COLOR),
    (color.green, color.GREEN_COLOR),
    (color.yellow, color.YELLOW_COLOR),
    (color.blue, color.BLUE_COLOR),
    (color.purple, color.PURPLE_COLOR),
    (color.cyan, color.CYAN_COLOR),
    (color.gray, color.GRAY_COLOR),
    (color.white, color.WHITE_COLOR),
]


def test_colored_wraps_text():
    assert color.colored("<", "text") == "<text" + color.RESET


def test_colored_empty_string():
    assert color.colored(color.RED_COLOR, "") == color.RED_COLOR + color.RESET


@pytest.mark.parametrize("helper,code", HELPERS)
def test_helpers_use_their_colour(helper, code):
    assert helper("hello") == code + "hello" + color.RESET
    assert helper("hello") == color.colored(code, "hello")


@pytest.mark.parametrize("helper,code", HELPERS)
def test_helpers_keep_text(helper, code):
    result = helper("message")
    assert result == color.colored(code, "message")
    assert result.startswith(code)
    assert result.endswith(color.RESET)
    assert "message" in result
    assert len(result) == len(code) + len("message") + len(color.RESET)