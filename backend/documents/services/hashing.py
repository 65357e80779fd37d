"""
Unified hashing service for all hash computations.

Document blobs are content-addressed by their SHA256, and webhook payloads
are signed with HMAC-SHA256 over a stable JSON serialisation.
"""

import hashlib
import hmac
import json


class HashingService:
    """Service for all file and data hashing operations."""

    @staticmethod
    def compute_bytes_sha256(data: bytes) -> str:
        """
        Compute SHA256 hash of raw bytes.

        Args:
            data: bytes to hash

        Returns:
            str: Hexadecimal SHA256 hash
        """
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def compute_file_sha256(file_obj):
        """
        Compute SHA256 hash of a file object without moving its position.

        Args:
            file_obj: Django File or file-like object

        Returns:
            str: Hexadecimal SHA256 hash
        """
        sha256_hash = hashlib.sha256()

        current_pos = file_obj.tell() if hasattr(file_obj, 'tell') else 0
        file_obj.seek(0)

        for byte_block in iter(lambda: file_obj.read(4096), b""):
            sha256_hash.update(byte_block)

        file_obj.seek(current_pos)

        return sha256_hash.hexdigest()

    @staticmethod
    def stable_json(data_dict) -> str:
        """JSON with sorted keys, so the same data always serialises the same way."""
        return json.dumps(data_dict, sort_keys=True, default=str)

    @staticmethod
    def compute_hmac_sha256(secret: str, data_dict) -> str:
        """
        HMAC-SHA256 of a dictionary's stable JSON serialisation.

        Args:
            secret: shared secret
            data_dict: dict to sign

        Returns:
            str: Hexadecimal signature
        """
        return hmac.new(
            secret.encode(),
            HashingService.stable_json(data_dict).encode(),
            hashlib.sha256
        ).hexdigest()


_hashing_service = None


def get_hashing_service() -> HashingService:
    """Get singleton instance of hashing service."""
    global _hashing_service
    if _hashing_service is None:
        _hashing_service = HashingService()
    return _hashing_service
