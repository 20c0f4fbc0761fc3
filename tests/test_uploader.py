#!/usr/bin/env python3
"""
Unit tests for the S3 uploader - the boto3 client is replaced by a MagicMock.
"""
import io
import shutil
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, EndpointConnectionError

from month_archive.config import S3Config
from month_archive.errors import TransportError
from month_archive.uploader import S3Uploader, get_s3_client, sniff_content_type


def make_zip_bytes() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("a.csv", "id,value\n1,2\n")
    return buffer.getvalue()


class TestSniffContentType(unittest.TestCase):
    """Test payload-based content type detection"""

    def test_zip(self):
        self.assertEqual(sniff_content_type(make_zip_bytes()), "application/zip")

    def test_empty_zip(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w"):
            pass
        self.assertEqual(sniff_content_type(buffer.getvalue()), "application/zip")

    def test_gzip_and_pdf(self):
        self.assertEqual(sniff_content_type(b"\x1f\x8b\x08\x00rest"), "application/x-gzip")
        self.assertEqual(sniff_content_type(b"%PDF-1.7\n"), "application/pdf")

    def test_text(self):
        self.assertEqual(sniff_content_type(b"id,value\n1,2\n"), "text/plain; charset=utf-8")

    def test_binary(self):
        self.assertEqual(sniff_content_type(b"\x00\x01\x02\x03"), "application/octet-stream")

    def test_only_leading_bytes_are_inspected(self):
        payload = b"a" * 600 + b"\x00"
        self.assertEqual(sniff_content_type(payload), "text/plain; charset=utf-8")


class TestS3Uploader(unittest.TestCase):
    """Test put_object arguments and error wrapping"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.archive = self.temp_dir / "05.zip"
        self.payload = make_zip_bytes()
        self.archive.write_bytes(self.payload)

        self.client = MagicMock()
        self.config = S3Config(bucket="test-bucket", region="eu-west-2",
                               base_path="dfp/raw/crime")
        self.uploader = S3Uploader(self.config, client=self.client)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_put_object_arguments(self):
        result = self.uploader.upload(self.archive, "2020/05.zip")

        self.client.put_object.assert_called_once()
        kwargs = self.client.put_object.call_args[1]
        self.assertEqual(kwargs["Bucket"], "test-bucket")
        self.assertEqual(kwargs["Key"], "dfp/raw/crime/2020/05.zip")
        self.assertEqual(kwargs["Body"], self.payload)
        self.assertEqual(kwargs["ContentLength"], len(self.payload))
        self.assertEqual(kwargs["ContentType"], "application/zip")
        self.assertEqual(kwargs["ACL"], "private")
        self.assertEqual(kwargs["ContentDisposition"], "attachment")
        self.assertEqual(kwargs["ServerSideEncryption"], "AES256")

        self.assertTrue(result.success)
        self.assertEqual(result.s3_key, "dfp/raw/crime/2020/05.zip")
        self.assertEqual(result.file_size, len(self.payload))

    def test_empty_base_path(self):
        uploader = S3Uploader(S3Config(bucket="b", base_path=""), client=self.client)
        uploader.upload(self.archive, "2020/05.zip")
        self.assertEqual(self.client.put_object.call_args[1]["Key"], "2020/05.zip")

    def test_base_path_slashes_are_stripped(self):
        uploader = S3Uploader(S3Config(bucket="b", base_path="/prefix/"), client=self.client)
        uploader.upload(self.archive, "2020/05.zip")
        self.assertEqual(self.client.put_object.call_args[1]["Key"], "prefix/2020/05.zip")

    def test_encryption_can_be_disabled(self):
        uploader = S3Uploader(S3Config(bucket="b", server_side_encryption=None),
                              client=self.client)
        uploader.upload(self.archive, "2020/05.zip")
        self.assertNotIn("ServerSideEncryption", self.client.put_object.call_args[1])

    def test_client_error_becomes_transport_error(self):
        self.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject")

        with self.assertRaises(TransportError) as ctx:
            self.uploader.upload(self.archive, "2020/05.zip")
        self.assertEqual(ctx.exception.code, "AccessDenied")
        self.assertIsInstance(ctx.exception.__cause__, ClientError)

    def test_connection_error_becomes_transport_error(self):
        self.client.put_object.side_effect = EndpointConnectionError(
            endpoint_url="https://s3.eu-west-2.amazonaws.com")

        with self.assertRaises(TransportError) as ctx:
            self.uploader.upload(self.archive, "2020/05.zip")
        self.assertIsNone(ctx.exception.code)

    def test_missing_file_raises_os_error(self):
        with self.assertRaises(OSError):
            self.uploader.upload(self.temp_dir / "missing.zip", "2020/05.zip")
        self.client.put_object.assert_not_called()

    def test_large_archive_logs_memory_warning(self):
        fake_memory = MagicMock(available=10)
        with patch("month_archive.uploader.psutil.virtual_memory", return_value=fake_memory):
            with self.assertLogs("month_archive.uploader", level="WARNING"):
                self.uploader.upload(self.archive, "2020/05.zip")
        self.client.put_object.assert_called_once()


class TestGetS3Client(unittest.TestCase):

    @patch("month_archive.uploader.boto3")
    def test_default_session(self, mock_boto3):
        with patch.dict("os.environ", {}, clear=True):
            get_s3_client("eu-west-2")
        mock_boto3.client.assert_called_once_with("s3", region_name="eu-west-2")

    @patch("month_archive.uploader.boto3")
    def test_environment_profile_wins(self, mock_boto3):
        with patch.dict("os.environ", {"AWS_PROFILE": "env-profile"}, clear=True):
            get_s3_client("eu-west-2", profile_name="config-profile")
        mock_boto3.Session.assert_called_once_with(profile_name="env-profile")
        mock_boto3.Session.return_value.client.assert_called_once_with(
            "s3", region_name="eu-west-2")

    @patch("month_archive.uploader.get_s3_client")
    def test_client_created_lazily(self, mock_get_client):
        uploader = S3Uploader(S3Config(bucket="b", region="eu-west-2", profile="p"))
        mock_get_client.assert_not_called()
        uploader.client
        mock_get_client.assert_called_once_with("eu-west-2", "p")


if __name__ == '__main__':
    unittest.main()
