import json
from unittest.mock import MagicMock

from botocore.exceptions import ClientError, EndpointConnectionError

from booking_api.services.storage import BackupStorage


class TestBackupStorage:
    def test_save_json(self):
        client = MagicMock()
        storage = BackupStorage(client=client, bucket="backups", enabled=True)

        result = storage.save_json({"id": 42, "city": "São Paulo"}, "42", "reservations/acme")

        assert result == {"success": True, "path": "reservations/acme/42.json"}
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "backups"
        assert kwargs["Key"] == "reservations/acme/42.json"
        assert kwargs["ContentType"] == "application/json"
        assert json.loads(kwargs["Body"].decode("utf-8")) == {"id": 42, "city": "São Paulo"}

    def test_file_name_with_extension_and_no_folder(self):
        client = MagicMock()
        result = BackupStorage(client=client, bucket="backups", enabled=True).save_json({}, "x.json")
        assert result["path"] == "x.json"

    def test_client_error_is_reported(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchBucket", "Message": "The bucket does not exist"}}, "PutObject"
        )

        result = BackupStorage(client=client, bucket="backups", enabled=True).save_json({}, "1", "r")

        assert result["success"] is False
        assert "NoSuchBucket" in result["error"]

    def test_unreachable_endpoint_is_reported(self):
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")

        result = BackupStorage(client=client, bucket="backups", enabled=True).save_json({}, "1", "r")

        assert result["success"] is False

    def test_disabled_storage_makes_no_call(self):
        client = MagicMock()
        result = BackupStorage(client=client, bucket="backups", enabled=False).save_json({}, "1", "r")

        assert result == {"success": False, "error": "disabled"}
        client.put_object.assert_not_called()
