from typing import BinaryIO, Dict, List, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError

from filevault.config.config_settings.config_schema import S3Params
from filevault.core.logger import logger
from filevault.infra.storage.storage_interface import StorageClientInterface
from filevault.utils.url_builder import build_endpoint_url, build_public_storage_url


class S3CompatibleClient(StorageClientInterface):
    """boto3 driver for AWS S3, Cloudflare R2 and MinIO."""

    def __init__(self, config: S3Params):
        self.s3_conf = config
        self.bucket_name = config.bucket_name
        self.endpoint_url = build_endpoint_url(config.endpoint, config.secure)
        self.public_base_url = config.public_base_url

        client_config = BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path" if config.path_style else "auto"},
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self.s3 = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            config=client_config,
            region_name=config.region,
        )

    def build_final_url(self, object_name: str) -> Optional[str]:
        return build_public_storage_url(object_name, self.public_base_url)

    def put_object(
            self,
            object_name: str,
            data: BinaryIO,
            length: int,
            content_type: str,
            metadata: Optional[Dict[str, str]] = None,
    ) -> Dict:
        logger.info(f"[S3 Driver] Putting object: {object_name} ({length} bytes)")
        extra_args = {"ContentType": content_type}
        if metadata:
            extra_args["Metadata"] = metadata

        # upload_fileobj switches to multipart for large bodies
        self.s3.upload_fileobj(
            Fileobj=data,
            Bucket=self.bucket_name,
            Key=object_name,
            ExtraArgs=extra_args,
        )
        logger.info(f"[S3 Driver] Upload for {object_name} complete.")
        return {"key": object_name, "size": length}

    def remove_object(self, object_name: str):
        logger.info(f"[S3 Driver] Removing object: {object_name}")
        return self.s3.delete_object(Bucket=self.bucket_name, Key=object_name)

    def get_object(self, object_name: str) -> Dict:
        response = self.s3.get_object(Bucket=self.bucket_name, Key=object_name)
        body = response["Body"]
        try:
            content = body.read()
        finally:
            body.close()
        return {
            "body": content,
            "content_type": response.get("ContentType") or "application/octet-stream",
            "content_length": response.get("ContentLength", len(content)),
            "metadata": response.get("Metadata") or {},
        }

    def stat_object(self, object_name: str) -> Dict:
        response = self.s3.head_object(Bucket=self.bucket_name, Key=object_name)
        return {
            "content_type": response.get("ContentType") or "application/octet-stream",
            "content_length": response.get("ContentLength", 0),
            "metadata": response.get("Metadata") or {},
        }

    def get_presigned_url(self, client_method: str, object_name: str, expires_in: int) -> str:
        return self.s3.generate_presigned_url(
            ClientMethod=client_method,
            Params={"Bucket": self.bucket_name, "Key": object_name},
            ExpiresIn=expires_in,
        )

    def ensure_bucket(self) -> None:
        try:
            self.s3.head_bucket(Bucket=self.bucket_name)
            logger.debug(f"[S3 Driver] Bucket '{self.bucket_name}' is reachable.")
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchBucket") and self.s3_conf.create_bucket:
                logger.info(f"[S3 Driver] Bucket '{self.bucket_name}' not found. Creating...")
                self.s3.create_bucket(Bucket=self.bucket_name)
                logger.info(f"[S3 Driver] Successfully created bucket '{self.bucket_name}'.")
            else:
                logger.error(f"[S3 Driver] Error checking bucket '{self.bucket_name}': {e}")
                raise

    def list_objects(self, prefix: str = "") -> List[Dict]:
        paginator = self.s3.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=self.bucket_name, Prefix=prefix)

        object_list = []
        for page in pages:
            for obj in page.get("Contents", []):
                object_list.append({
                    "key": obj["Key"],
                    "size": obj["Size"],
                    "last_modified": obj["LastModified"],
                })
        logger.info(f"[S3 Driver] Listed {len(object_list)} objects with prefix '{prefix}'.")
        return object_list
