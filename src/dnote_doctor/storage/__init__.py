"""Reading and writing the dnote store."""
from dnote_doctor.storage.snapshot_codec import decode, encode, read_snapshot, write_snapshot

__all__ = ["decode", "encode", "read_snapshot", "write_snapshot"]
