"""Detection of S3-to-S3 copies that would need two sets of credentials."""

from __future__ import annotations


class CrossAccountS3Error(Exception):
    """Copying between S3 repositories that use different credentials."""

    def __init__(self, from_repo: str, to_repo: str) -> None:
        self.from_repo = from_repo
        self.to_repo = to_repo
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            "cross-account S3 copy detected\n\n"
            f"Source:      {self.from_repo}\n"
            f"Destination: {self.to_repo}\n\n"
            "Restic's copy command cannot handle S3 buckets with different credentials.\n\n"
            "💡 Solution: Use rclone as an intermediary:\n"
            "   1. Configure rclone with both S3 accounts\n"
            "   2. Use 'rclone:remote:bucket/path' as repository URL\n"
            "   3. Restic will use rclone for the copy operation\n\n"
            "See the restic documentation on using rclone as a repository backend.\n"
        )


def is_s3_repository(repo: str) -> bool:
    """Return True if ``repo`` names an S3 repository."""
    return repo.startswith("s3:")


def is_cross_account_s3(from_repo: str, to_repo: str, from_key: str, to_key: str) -> bool:
    """Return True if both repositories are S3 and use different access keys."""
    if not is_s3_repository(from_repo) or not is_s3_repository(to_repo):
        return False
    return bool(from_key) and bool(to_key) and from_key != to_key