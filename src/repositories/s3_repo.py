"""S3 repository for risk-run snapshots."""

import boto3


class S3Repository:
    """Minimal helper around S3 for JSON snapshot uploads."""

    def __init__(self, bucket_name: str):
        self.bucket_name = bucket_name
        self.client = boto3.client("s3")

    def upload_text(self, key: str, content: str, content_type: str = "application/json") -> None:
        """Upload text content (Intelligent-Tiering, snapshots are rarely re-read)."""
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=content.encode(),
            ContentType=content_type,
            StorageClass="INTELLIGENT_TIERING",
        )
