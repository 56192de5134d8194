import sys

import pytest


@pytest.fixture
def small_digit_limit():
    """Lower the int/str conversion limit to its minimum for one test."""
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(640)
    try:
        yield 640
    finally:
        sys.set_int_max_str_digits(previous)
