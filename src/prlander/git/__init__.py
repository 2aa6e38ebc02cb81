"""Local git checkout, manifest and package manager access."""

from prlander.git.packages import PackageManager
from prlander.git.repo import GitRepo, is_up_to_date

__all__ = ["GitRepo", "PackageManager", "is_up_to_date"]
