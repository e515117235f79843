import hashlib

def compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash of in-memory file contents"""
    return hashlib.sha256(data).hexdigest()
