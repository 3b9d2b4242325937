"""
Infrastructure layer - external tool integrations.

Each subdirectory wraps an external dependency:
- storage: Remote object store (rclone, S3-compatible via boto3)
- video: The local camera directory, du and lsof
- locking: The single-instance flock

These wrappers implement the ports the core offload logic depends on.
"""
