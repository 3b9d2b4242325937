#!/usr/bin/env python3
"""
Preview what the next offload run would do, without changing anything.

Reads the same configuration as the real run, then prints:
- whether the disk reaper would trigger, and which files it would remove
- every upload candidate and what would happen to it

Usage:
    python scripts/preview_offload.py
    python scripts/preview_offload.py --no-remote   # skip the remote listing

Requires:
    - .env file (or CCTV_* environment) with the offload settings
    - rclone / du / lsof on PATH, as for the real run
"""

import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from cctv_offload.config.settings import get_settings
from cctv_offload.core.offload.inventory import build_uploaded_set
from cctv_offload.core.offload.reaper import select_for_removal
from cctv_offload.infrastructure.storage import create_remote_store
from cctv_offload.infrastructure.video import (
    LocalVideoDirectory,
    create_disk_usage_probe,
    create_open_file_checker,
)


def preview_reaper(settings, local_store) -> None:
    probe = create_disk_usage_probe(settings.disk_usage_method, settings.du_path)
    used = probe.total_bytes(settings.video_dir)

    print(f"Directory size: {used} bytes (limit {settings.disk_limit_bytes})")
    if used <= settings.disk_limit_bytes:
        print("Disk reaper would not run.")
        return

    doomed = select_for_removal(local_store.list_reapable(), settings.disk_limit_bytes)
    print(f"Disk reaper would remove {len(doomed)} files:")
    for local_file in doomed:
        print(f"  {local_file.path} ({local_file.size_bytes} bytes)")


def preview_uploads(settings, local_store, check_remote: bool) -> None:
    policy = settings.to_policy()

    uploaded = set()
    if check_remote:
        remote = create_remote_store(settings, mock_mode=settings.remote_mock_mode)
        uploaded = build_uploaded_set(remote, policy.recent_window_minutes)
        print(f"Remote inventory: {len(uploaded)} recent files")

    checker = create_open_file_checker(settings.lsof_path)
    candidates = local_store.list_uploadable(
        min_age_seconds=policy.settle_minutes * 60,
        max_age_seconds=policy.recent_window_minutes * 60,
    )

    print(f"\nUpload candidates: {len(candidates)}")
    for candidate in candidates:
        if candidate.name in uploaded:
            action = "skip (already uploaded)"
        elif checker.is_open(candidate.path):
            action = "skip (open)"
        else:
            channel = policy.channel_for(candidate.name)
            action = f"copy -> {channel.sub_path}" if channel else "skip (unexpected prefix)"
        print(f"  {candidate.name}: {action}")


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Preview the next cctv-offload run')
    parser.add_argument('--no-remote', action='store_true', help='Don\'t list the remote store')
    args = parser.parse_args()

    settings = get_settings()
    if not settings.video_dir.is_dir():
        print(f"ERROR: Video directory not found: {settings.video_dir}")
        sys.exit(1)

    local_store = LocalVideoDirectory(
        settings.video_dir,
        reap_glob=settings.reap_glob,
        upload_glob=settings.upload_glob,
    )

    print(f"=== Preview for {settings.video_dir} ===")
    preview_reaper(settings, local_store)
    preview_uploads(settings, local_store, check_remote=not args.no_remote)


if __name__ == '__main__':
    main()
