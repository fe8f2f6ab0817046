from abc import ABC, abstractmethod
from typing import BinaryIO, Dict, List, Optional


class StorageClientInterface(ABC):
    """
    Synchronous contract every object store driver implements.
    The async ObjectStore gateway runs these calls in the thread pool
    and translates driver errors; drivers simply raise.
    """

    @abstractmethod
    def put_object(
            self,
            object_name: str,
            data: BinaryIO,
            length: int,
            content_type: str,
            metadata: Optional[Dict[str, str]] = None,
    ) -> Dict:
        """Upload one object. Metadata is stored as object-level user metadata."""
        pass

    @abstractmethod
    def remove_object(self, object_name: str):
        """Delete one object. Deleting a missing key is not an error."""
        pass

    @abstractmethod
    def get_object(self, object_name: str) -> Dict:
        """
        Fetch the whole object.
        :return: {"body": bytes, "content_type": str, "content_length": int, "metadata": dict}
        """
        pass

    @abstractmethod
    def stat_object(self, object_name: str) -> Dict:
        """
        Object metadata without the body.
        :return: {"content_type": str, "content_length": int, "metadata": dict}
        """
        pass

    @abstractmethod
    def get_presigned_url(self, client_method: str, object_name: str, expires_in: int) -> str:
        """Presigned URL, client_method is 'get_object' or 'put_object'."""
        pass

    @abstractmethod
    def build_final_url(self, object_name: str) -> Optional[str]:
        """Deterministic public URL, or None when no public base URL is configured."""
        pass

    @abstractmethod
    def list_objects(self, prefix: str = "") -> List[Dict]:
        """List objects under a prefix."""
        pass

    @abstractmethod
    def ensure_bucket(self) -> None:
        """Check the bucket is reachable (creating it when configured to)."""
        pass
