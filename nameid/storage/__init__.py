"""
Storage - per-user app files on a storage hub.

Modules:
    hub    - Hub connection (challenge signing), upload, read URLs
    files  - get_file / put_file / delete_file with optional ECIES
"""

from nameid.storage.hub import HubConfig, connect_to_hub, get_full_read_url, upload_to_hub
from nameid.storage.files import delete_file, get_file, get_user_app_file_url, put_file

__all__ = [
    "HubConfig",
    "connect_to_hub",
    "get_full_read_url",
    "upload_to_hub",
    "delete_file",
    "get_file",
    "get_user_app_file_url",
    "put_file",
]
