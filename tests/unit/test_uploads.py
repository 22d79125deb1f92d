import io
import os
import random

import pytest

from toolkit.core.config import settings
from toolkit.core.exceptions import FileCountError
from toolkit.core.exceptions import FileTooLargeError
from toolkit.core.exceptions import InvalidFilenameError
from toolkit.core.exceptions import InvalidMultipartError
from toolkit.core.exceptions import UnsupportedTypeError
from toolkit.core.validation import COPY_BUFFER_SIZE
from toolkit.services.naming import FileNamer
from toolkit.services.uploads import create_dir_if_not_exist
from toolkit.services.uploads import upload_files
from toolkit.services.uploads import upload_one_file

upload_cases = [
    pytest.param({"image/jpeg", "image/png"}, False, False, id="allowed no rename"),
    pytest.param({"image/jpeg", "image/png"}, True, False, id="allowed rename"),
    pytest.param({"image/jpeg"}, False, True, id="not allowed"),
    pytest.param(set(), True, False, id="empty allow-list"),
]


@pytest.mark.parametrize("allowed_types, rename, error_expected", upload_cases)
def test_upload_files(make_multipart, make_config, upload_dir, png_bytes, allowed_types, rename, error_expected):
    body, content_type = make_multipart([("file", "testdata/img.png", png_bytes)])
    config = make_config(allowed_types=allowed_types, rename=rename)

    if error_expected:
        with pytest.raises(UnsupportedTypeError) as exc:
            upload_files(io.BytesIO(body), content_type, config)
        assert "image/png" in exc.value.message
        assert os.listdir(upload_dir) == []
        return

    uploaded = upload_files(io.BytesIO(body), content_type, config)

    assert len(uploaded) == 1
    result = uploaded[0]
    assert result.original_name == "img.png"
    assert result.size == len(png_bytes)
    assert (upload_dir / result.new_name).read_bytes() == png_bytes
    if rename:
        assert result.new_name.endswith(".png")
        assert len(result.new_name) == 25 + len(".png")
    else:
        assert result.new_name == "img.png"


def test_upload_files_streams_small_reads(make_multipart, make_config, upload_dir, png_bytes, chunked_reader):
    body, content_type = make_multipart([("file", "img.png", png_bytes)])

    uploaded = upload_files(chunked_reader(body, step=5), content_type, make_config(rename=False))

    assert (upload_dir / "img.png").read_bytes() == png_bytes
    assert uploaded[0].size == len(png_bytes)


def test_upload_files_multiple_and_fields(make_multipart, make_config, upload_dir, png_bytes):
    body, content_type = make_multipart(
        [
            ("title", None, b"holiday"),
            ("file", "a.png", png_bytes),
            ("file", "b.PNG", png_bytes),
        ]
    )

    uploaded = upload_files(io.BytesIO(body), content_type, make_config())

    assert [f.original_name for f in uploaded] == ["a.png", "b.PNG"]
    assert uploaded[1].new_name.endswith(".PNG")
    assert uploaded[0].new_name != uploaded[1].new_name
    assert sorted(os.listdir(upload_dir)) == sorted(f.new_name for f in uploaded)


def test_upload_files_rejection_keeps_earlier_files(make_multipart, make_config, upload_dir, png_bytes):
    body, content_type = make_multipart(
        [
            ("file", "ok.png", png_bytes),
            ("file", "notes.txt", b"just some text\n"),
        ]
    )
    config = make_config(allowed_types={"image/png"}, rename=False)

    with pytest.raises(UnsupportedTypeError):
        upload_files(io.BytesIO(body), content_type, config)

    assert os.listdir(upload_dir) == ["ok.png"]


def test_upload_files_too_large(make_multipart, make_config, upload_dir, png_bytes):
    body, content_type = make_multipart([("file", "img.png", png_bytes)])

    with pytest.raises(FileTooLargeError):
        upload_files(io.BytesIO(body), content_type, make_config(max_file_size=10, rename=False))

    # the aborted copy is left behind, but never past the limit
    assert (upload_dir / "img.png").stat().st_size <= 10


def test_upload_files_stops_reading_past_limit(make_multipart, make_config, upload_dir):
    class CountingReader:
        def __init__(self, data):
            self._stream = io.BytesIO(data)
            self.served = 0

        def read(self, size=-1):
            chunk = self._stream.read(size)
            self.served += len(chunk)
            return chunk

    body, content_type = make_multipart([("file", "big.bin", b"\x00" * (32 * COPY_BUFFER_SIZE))])
    reader = CountingReader(body)

    with pytest.raises(FileTooLargeError):
        upload_files(reader, content_type, make_config(max_file_size=10, rename=False))

    assert reader.served <= 3 * COPY_BUFFER_SIZE
    assert (upload_dir / "big.bin").stat().st_size == 0


def test_upload_files_name_length_from_settings(monkeypatch, make_multipart, make_config, png_bytes):
    monkeypatch.setattr(settings, "random_name_length", 8, raising=False)
    body, content_type = make_multipart([("file", "img.png", png_bytes)])

    uploaded = upload_files(io.BytesIO(body), content_type, make_config(rename=True))

    assert len(uploaded[0].new_name) == 8 + len(".png")


def test_upload_files_exact_limit(make_multipart, make_config, png_bytes):
    body, content_type = make_multipart([("file", "img.png", png_bytes)])

    uploaded = upload_files(io.BytesIO(body), content_type, make_config(max_file_size=len(png_bytes)))

    assert uploaded[0].size == len(png_bytes)


def test_upload_files_seeded_namer(make_multipart, make_config, png_bytes):
    body, content_type = make_multipart([("file", "img.png", png_bytes)])
    expected = FileNamer(random.Random(42)).name("img.png", rename=True)

    uploaded = upload_files(io.BytesIO(body), content_type, make_config(), namer=FileNamer(random.Random(42)))

    assert uploaded[0].new_name == expected


def test_upload_files_unusable_name_without_rename(make_multipart, make_config, png_bytes):
    body, content_type = make_multipart([("file", "..", png_bytes)])

    with pytest.raises(InvalidFilenameError):
        upload_files(io.BytesIO(body), content_type, make_config(rename=False))


def test_upload_files_not_multipart(make_config):
    with pytest.raises(InvalidMultipartError):
        upload_files(io.BytesIO(b"{}"), "application/json", make_config())


def test_upload_files_no_files(make_multipart, make_config):
    body, content_type = make_multipart([("title", None, b"holiday")])

    assert upload_files(io.BytesIO(body), content_type, make_config()) == []


def test_upload_one_file(make_multipart, make_config, upload_dir, png_bytes):
    body, content_type = make_multipart([("file", "img.png", png_bytes)])

    uploaded = upload_one_file(io.BytesIO(body), content_type, make_config())

    assert (upload_dir / uploaded.new_name).exists()
    assert uploaded.size == len(png_bytes)


def test_upload_one_file_requires_a_file(make_multipart, make_config):
    body, content_type = make_multipart([("title", None, b"holiday")])

    with pytest.raises(FileCountError):
        upload_one_file(io.BytesIO(body), content_type, make_config())


def test_upload_one_file_rejects_second_file_before_writing(make_multipart, make_config, upload_dir, png_bytes):
    body, content_type = make_multipart([("file", "a.png", png_bytes), ("file", "b.png", png_bytes)])

    with pytest.raises(FileCountError):
        upload_one_file(io.BytesIO(body), content_type, make_config(rename=False))

    assert os.listdir(upload_dir) == ["a.png"]


def test_create_dir_if_not_exist(tmp_path):
    target = tmp_path / "myDir" / "nested"

    create_dir_if_not_exist(target)
    create_dir_if_not_exist(target)

    assert target.is_dir()


def test_create_dir_if_not_exist_file_in_the_way(tmp_path):
    blocker = tmp_path / "taken"
    blocker.write_text("x")

    with pytest.raises(FileExistsError):
        create_dir_if_not_exist(blocker)
