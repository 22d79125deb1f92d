import random

import pytest

from toolkit.core.exceptions import InvalidFilenameError
from toolkit.services.naming import RANDOM_ALPHABET
from toolkit.services.naming import FileNamer
from toolkit.services.naming import base_name
from toolkit.services.naming import file_extension


def test_random_string():
    s = FileNamer().random_string(10)

    assert len(s) == 10
    assert set(s) <= set(RANDOM_ALPHABET)


def test_random_string_is_reproducible_with_seeded_source():
    assert FileNamer(random.Random(7)).random_string(25) == FileNamer(random.Random(7)).random_string(25)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("img.png", ".png"),
        ("photo.JPeG", ".JPeG"),
        ("archive.tar.gz", ".gz"),
        ("README", ""),
        ("..", ""),
        ("testdata/img.png", ".png"),
        ("dir.d/noext", ""),
    ],
)
def test_file_extension(filename, expected):
    assert file_extension(filename) == expected


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("img.png", "img.png"),
        ("testdata/img.png", "img.png"),
        ("C:\\Users\\me\\img.png", "img.png"),
        ("../../etc/passwd", "passwd"),
    ],
)
def test_base_name(filename, expected):
    assert base_name(filename) == expected


def test_name_with_rename_keeps_extension():
    namer = FileNamer()

    new_name = namer.name("testdata/Holiday.PNG", rename=True)

    assert new_name.endswith(".PNG")
    assert len(new_name) == 25 + len(".PNG")
    assert "Holiday" not in new_name


def test_name_with_rename_custom_length():
    assert len(FileNamer(length=8).name("a.txt", rename=True)) == len("12345678.txt")


def test_name_with_rename_is_unique():
    namer = FileNamer()
    names = {namer.name("img.png", rename=True) for _ in range(1000)}
    assert len(names) == 1000


def test_name_without_rename():
    assert FileNamer().name("../uploads/img.png", rename=False) == "img.png"


@pytest.mark.parametrize("filename", ["", ".", "..", "uploads/.."])
def test_name_without_rename_rejects_unusable(filename):
    with pytest.raises(InvalidFilenameError):
        FileNamer().name(filename, rename=False)
