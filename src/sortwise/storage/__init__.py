"""Image storage backends."""

from .images import LocalImageStore, decode_data_uri

__all__ = ["LocalImageStore", "decode_data_uri"]
