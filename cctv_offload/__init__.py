"""
cctv-offload - Offload surveillance camera video to cloud storage.

This package contains the complete application:
- core: Tool-agnostic offload logic (reaper, inventory, selector, expirer)
- infrastructure: rclone/S3 remote stores, the local video directory, the run lock
- config: Application configuration
"""

__version__ = "0.1.0"
