"""
Repository Content Extraction Module for the repository catalogue.

This module turns a repository URL (or local path) into a single flattened text blob.
"""

import os
import shutil
import subprocess
import tempfile
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import git

from repocatalog.config import DEFAULT_OUTPUT_DIR, EXCLUDED_DIRS, MANIFEST_FILES, README_FILES
from repocatalog.errors import ExtractionError

SEPARATOR = "=" * 80
RULE = "-" * 80


class RepositoryContentExtractor:
    """
    Clones a repository, flattens it with repomix (or a basic dump when repomix is
    unavailable) and returns the flattened text.
    """

    def __init__(self, output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR, use_repomix: bool = True):
        """
        Initialize the content extractor.

        Args:
            output_dir (str | Path): Directory where flattened outputs are written.
            use_repomix (bool): Try the repomix CLI before falling back to the basic dump.
        """
        self.output_dir = Path(output_dir)
        self.use_repomix = use_repomix
        self.temp_dir = None
        self.repo_path = None
        self.is_temp = False
        self.logger = logging.getLogger(__name__)

    def fetch(self, url: str, name: str) -> str:
        """
        Produce the flattened text of a repository.

        Args:
            url (str): Repository URL or local directory path.
            name (str): Repository name, used for the output file name.

        Returns:
            str: The flattened repository content.

        Raises:
            ExtractionError: If the repository cannot be acquired or flattened.
        """
        try:
            repo_path = self.acquire_repository(url)
            output_file = self.flatten_repository(repo_path, name)
            return self.read_output(output_file)
        finally:
            self.cleanup()

    def acquire_repository(self, repo_specifier: str) -> str:
        """
        Determine if input is URL or local path and handle accordingly.

        Args:
            repo_specifier (str): Path to local repository or remote URL.

        Returns:
            str: Path to the repository.

        Raises:
            ExtractionError: If the repository cannot be acquired.
        """
        if repo_specifier.startswith(("http://", "https://", "git@", "ssh://", "git://")):
            self.logger.info(f"Cloning repository from {repo_specifier}...")
            return self.clone_repository(repo_specifier)
        else:
            self.logger.info(f"Using local repository at {repo_specifier}...")
            return self.validate_local_path(repo_specifier)

    def clone_repository(self, url: str) -> str:
        """
        Shallow-clone a repository to a temporary directory.

        Args:
            url (str): Repository URL.

        Returns:
            str: Path to the cloned repository.

        Raises:
            ExtractionError: If the repository cannot be cloned.
        """
        try:
            self.temp_dir = tempfile.mkdtemp(prefix="repocatalog_repo_")
            self.is_temp = True

            git.Repo.clone_from(url, self.temp_dir, depth=1)
            self.repo_path = self.temp_dir
            self.logger.info(f"Repository cloned to {self.repo_path}")

            return self.repo_path
        except git.exc.GitCommandError as e:
            self._remove_temp_dir()
            self.logger.error(f"Git error: {str(e)}")
            raise ExtractionError(f"Failed to clone repository {url}: {str(e)}") from e
        except OSError as e:
            self._remove_temp_dir()
            self.logger.error(f"Error: {str(e)}")
            raise ExtractionError(f"Failed to clone repository {url}: {str(e)}") from e

    def validate_local_path(self, path: str) -> str:
        """
        Ensure local path exists and is a usable repository directory.

        Raises:
            ExtractionError: If the path is not valid.
        """
        repo_path = Path(path)

        if not repo_path.exists():
            self.logger.error(f"Path does not exist: {path}")
            raise ExtractionError(f"Local path does not exist: {path}")

        if not repo_path.is_dir():
            self.logger.error(f"Path is not a directory: {path}")
            raise ExtractionError(f"Local path is not a directory: {path}")

        if not any(repo_path.iterdir()):
            self.logger.error(f"Directory is empty: {path}")
            raise ExtractionError(f"Local repository path is an empty directory: {path}")

        self.repo_path = str(repo_path)
        self.is_temp = False
        return self.repo_path

    def flatten_repository(self, repo_path: str, name: str) -> Path:
        """
        Write the flattened repository to <output_dir>/<name>.txt.

        Returns:
            Path: The written output file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_file = self.output_dir / f"{_safe_file_name(name)}.txt"

        if self.use_repomix and self._run_repomix(repo_path, output_file):
            self.logger.info(f"Repomix output saved to: {output_file}")
            return output_file

        self.logger.warning("Repomix not available, creating basic output")
        output_file.write_text(self.create_basic_output(repo_path), encoding="utf-8")
        self.logger.info(f"Basic output saved to: {output_file}")
        return output_file

    def _run_repomix(self, repo_path: str, output_file: Path) -> bool:
        npx = shutil.which("npx")
        if npx is None:
            self.logger.debug("npx not found on PATH")
            return False

        self.logger.info(f"Running repomix on: {repo_path}")
        try:
            completed = subprocess.run(
                [npx, "--yes", "repomix", repo_path, "-o", str(output_file)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            self.logger.warning(f"Could not run repomix: {str(e)}")
            return False

        if completed.returncode != 0 or not output_file.exists():
            self.logger.warning(
                f"repomix exited with status {completed.returncode}: {completed.stderr.strip()}"
            )
            return False
        return True

    def create_basic_output(self, repo_path: str) -> str:
        """
        Build a minimal dump: file listing, manifest files and README.

        Args:
            repo_path (str): Path to the repository.

        Returns:
            str: The dump text.
        """
        repo_dir = Path(repo_path)
        files = self.list_files(repo_dir)

        output = "Repository Analysis Output\n"
        output += f"Generated at: {datetime.now(timezone.utc).isoformat()}\n"
        output += f"\n{SEPARATOR}\n\n"
        output += f"Total files: {len(files)}\n\n"
        output += "".join(f"{file_path}\n" for file_path in files)

        for file_name in MANIFEST_FILES + [_find_readme(repo_dir)]:
            if not file_name:
                continue
            file_path = repo_dir / file_name
            if not file_path.is_file():
                continue
            try:
                content = file_path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                self.logger.warning(f"Error reading file {file_path}: {str(e)}")
                continue
            output += f"\n{file_name}:\n{RULE}\n{content}\n{SEPARATOR}\n\n"

        return output

    def list_files(self, repo_dir: Path) -> List[str]:
        """Relative paths of all files under repo_dir, skipping excluded directories."""
        files = []
        for root, dirs, file_names in os.walk(repo_dir):
            dirs[:] = sorted(d for d in dirs if d not in EXCLUDED_DIRS)
            for file_name in sorted(file_names):
                relative = (Path(root) / file_name).relative_to(repo_dir)
                files.append(relative.as_posix())
        return files

    def read_output(self, output_file: Path) -> str:
        if not output_file.exists():
            raise ExtractionError(f"Flattened output file not found: {output_file}")
        return output_file.read_text(encoding="utf-8", errors="replace")

    def _remove_temp_dir(self):
        if self.temp_dir and os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir, ignore_errors=True)
        self.temp_dir = None
        self.is_temp = False

    def cleanup(self):
        """
        Remove temporary directory if created.
        """
        if self.is_temp and self.temp_dir:
            self.logger.info(f"Cleaning up temporary directory: {self.temp_dir}")
            self._remove_temp_dir()
            self.repo_path = None


def _find_readme(repo_dir: Path) -> Optional[str]:
    for file_name in README_FILES:
        if (repo_dir / file_name).is_file():
            return file_name
    return None


def _safe_file_name(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in name) or "repository"
