"""
Core offload logic.

This module is tool-agnostic - it doesn't import rclone wrappers, boto3,
or pydantic. The run steps talk to ports, so the logic can be tested
with in-memory fakes and the real tools swapped if needed.
"""
