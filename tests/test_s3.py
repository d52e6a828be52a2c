"""Tests for remote_files.s3 against moto."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from remote_files.models import EntryMode, S3Config, S3StorageClass, Secret
from remote_files.operator import ErrorKind, OperatorError
from remote_files.s3 import S3Operator
from remote_files.url_path import UrlDirPath, UrlPath

BUCKET = "test-bucket"


@pytest.fixture(autouse=True)
def aws_env(aws_credentials):
    pass


@pytest.fixture()
def s3():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        for key, body in {
            "docs/a.txt": b"alpha",
            "docs/b.txt": b"bravo",
            "docs/nested/c.txt": b"charlie",
            "readme.md": b"# hi",
        }.items():
            client.put_object(Bucket=BUCKET, Key=key, Body=body, ContentType="text/plain")
        yield client


def _operator(**kwargs) -> S3Operator:
    return S3Operator.from_config(S3Config(name=BUCKET, region="us-east-1", **kwargs))


class TestFromConfig:
    def test_explicit_credentials(self, s3):
        op = _operator(access_key_id=Secret("AKIDEXAMPLE"), secret_access_key=Secret("shh"))
        assert op.read("/readme.md") == b"# hi"

    def test_custom_endpoint(self):
        op = _operator(endpoint=UrlPath.parse("https://minio.example.com:9000"))
        assert op._client.meta.endpoint_url == "https://minio.example.com:9000"

    def test_invalid_endpoint(self):
        with pytest.raises(OperatorError) as exc_info:
            _operator(endpoint=UrlPath.parse("https:"))
        assert exc_info.value.kind is ErrorKind.CONFIG_INVALID


class TestStat:
    def test_file(self, s3):
        meta = _operator().stat("/docs/a.txt")
        assert meta.mode is EntryMode.FILE
        assert meta.content_type == "text/plain"
        assert meta.content_length == 5

    def test_directory(self, s3):
        assert _operator().stat("/docs/nested/").mode is EntryMode.DIR

    def test_root(self, s3):
        assert _operator().stat("/").mode is EntryMode.DIR

    def test_missing_file(self, s3):
        with pytest.raises(OperatorError) as exc_info:
            _operator().stat("/docs/zzz.txt")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_missing_directory(self, s3):
        with pytest.raises(OperatorError) as exc_info:
            _operator().stat("/nothing/")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND


class TestList:
    def test_root(self, s3):
        entries = _operator().list("/")
        assert [(e.path, e.name) for e in entries] == [
            ("/docs/", "docs/"),
            ("/readme.md", "readme.md"),
        ]

    def test_folder(self, s3):
        names = [e.name for e in _operator().list("/docs/")]
        assert names == ["a.txt", "b.txt", "nested/"]

    def test_not_a_directory(self, s3):
        with pytest.raises(OperatorError) as exc_info:
            _operator().list("/docs/a.txt")
        assert exc_info.value.kind is ErrorKind.NOT_A_DIRECTORY

    def test_prefix_is_hidden(self, s3):
        op = _operator(prefix=UrlDirPath.parse("docs"))
        assert [e.path for e in op.list("/")] == ["/a.txt", "/b.txt", "/nested/"]
        assert op.read("/nested/c.txt") == b"charlie"

    def test_folder_placeholder_is_skipped(self, s3):
        s3.put_object(Bucket=BUCKET, Key="empty/", Body=b"")
        assert _operator().list("/empty/") == []


class TestReadWrite:
    def test_write_then_read(self, s3):
        op = _operator()
        op.write("/new/file.json", b"{}", "application/json")
        assert op.read("/new/file.json") == b"{}"
        head = s3.head_object(Bucket=BUCKET, Key="new/file.json")
        assert head["ContentType"] == "application/json"

    def test_storage_class(self, s3):
        op = _operator(default_storage_class=S3StorageClass.STANDARD_IA)
        op.write("/cold.bin", b"x")
        head = s3.head_object(Bucket=BUCKET, Key="cold.bin")
        assert head["StorageClass"] == "STANDARD_IA"

    def test_read_missing(self, s3):
        with pytest.raises(OperatorError) as exc_info:
            _operator().read("/missing")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND


class TestRemoveAll:
    def test_folder_is_removed_recursively(self, s3):
        _operator().remove_all("/docs")
        keys = [o["Key"] for o in s3.list_objects_v2(Bucket=BUCKET).get("Contents", [])]
        assert keys == ["readme.md"]

    def test_single_file(self, s3):
        _operator().remove_all("/docs/a.txt")
        keys = [o["Key"] for o in s3.list_objects_v2(Bucket=BUCKET)["Contents"]]
        assert "docs/a.txt" not in keys
        assert "docs/b.txt" in keys

    def test_sibling_with_shared_prefix_survives(self, s3):
        s3.put_object(Bucket=BUCKET, Key="docs-old/x.txt", Body=b"x")
        _operator().remove_all("/docs")
        keys = [o["Key"] for o in s3.list_objects_v2(Bucket=BUCKET)["Contents"]]
        assert "docs-old/x.txt" in keys

    def test_missing_path_is_not_an_error(self, s3):
        _operator().remove_all("/nothing/here")
