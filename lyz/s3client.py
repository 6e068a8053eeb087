import logging

import boto3
from botocore.exceptions import ClientError
from flask import current_app

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Single-bucket S3 store; works against AWS or a MinIO endpoint"""

    def __init__(self, bucket, client=None, endpoint_url=None, region=None):
        self.bucket = bucket
        self.s3 = client or boto3.client("s3", endpoint_url=endpoint_url, region_name=region)

    def ensure_bucket(self):
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError:
            self.s3.create_bucket(Bucket=self.bucket)
            logger.info(f"Bucket '{self.bucket}' created")

    def upload_bytes(self, key, data, content_type="application/octet-stream"):
        """Sube bytes directamente a S3"""
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return f"s3://{self.bucket}/{key}"

    def presigned_url(self, key, expires=None):
        if expires is None:
            expires = current_app.config["PRESIGNED_URL_EXPIRATION"]
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires,
        )


def get_storage():
    return current_app.extensions["storage"]
