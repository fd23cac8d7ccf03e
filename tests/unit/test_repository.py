import logging
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import git

from repocatalog.errors import ExtractionError
from repocatalog.repository import RepositoryContentExtractor


class TestRepositoryContentExtractor(unittest.TestCase):

    def setUp(self):
        logging.disable(logging.CRITICAL)
        self.output_dir = tempfile.mkdtemp()
        self.extractor = RepositoryContentExtractor(output_dir=self.output_dir, use_repomix=False)

    def tearDown(self):
        shutil.rmtree(self.output_dir, ignore_errors=True)
        logging.disable(logging.NOTSET)

    @patch('repocatalog.repository.git.Repo')
    @patch('repocatalog.repository.tempfile.mkdtemp')
    def test_acquire_repository_remote_url_success(self, mock_mkdtemp, mock_git_repo_cls):
        mock_temp_dir_path = '/fake/temp_dir'
        mock_mkdtemp.return_value = mock_temp_dir_path

        repo_url = "https://github.com/user/repo.git"
        returned_path = self.extractor.acquire_repository(repo_url)

        mock_mkdtemp.assert_called_once_with(prefix="repocatalog_repo_")
        mock_git_repo_cls.clone_from.assert_called_once_with(repo_url, mock_temp_dir_path, depth=1)
        self.assertEqual(returned_path, mock_temp_dir_path)
        self.assertTrue(self.extractor.is_temp)
        self.assertEqual(self.extractor.temp_dir, mock_temp_dir_path)

    @patch('repocatalog.repository.git.Repo')
    @patch('repocatalog.repository.tempfile.mkdtemp')
    @patch('repocatalog.repository.shutil.rmtree')
    @patch('repocatalog.repository.os.path.exists')
    def test_acquire_repository_remote_url_clone_fails(self, mock_os_path_exists, mock_rmtree, mock_mkdtemp, mock_git_repo_cls):
        mock_temp_dir_path = '/fake/temp_dir_fail'
        mock_mkdtemp.return_value = mock_temp_dir_path
        mock_os_path_exists.return_value = True
        mock_git_repo_cls.clone_from.side_effect = git.exc.GitCommandError("clone", "failed", stderr="Clone error")

        with self.assertRaises(ExtractionError) as context:
            self.extractor.acquire_repository("https://github.com/user/repo_fail.git")

        self.assertIn("Failed to clone repository", str(context.exception))
        mock_rmtree.assert_called_once_with(mock_temp_dir_path, ignore_errors=True)
        self.assertIsNone(self.extractor.temp_dir)
        self.assertFalse(self.extractor.is_temp)

    def test_acquire_repository_local_path_success(self):
        repo_dir = Path(self.output_dir) / "local_repo"
        repo_dir.mkdir()
        (repo_dir / "index.js").write_text("function main() {}\n")

        returned_path = self.extractor.acquire_repository(str(repo_dir))

        self.assertEqual(returned_path, str(repo_dir))
        self.assertFalse(self.extractor.is_temp)
        self.assertIsNone(self.extractor.temp_dir)

    @patch('repocatalog.repository.Path')
    def test_acquire_repository_local_path_not_exists(self, mock_path_cls):
        mock_path_instance = MagicMock(spec=Path)
        mock_path_instance.exists.return_value = False
        mock_path_cls.return_value = mock_path_instance

        with self.assertRaises(ExtractionError) as context:
            self.extractor.acquire_repository("/invalid/path_not_exists")
        self.assertIn("Local path does not exist", str(context.exception))

    @patch('repocatalog.repository.Path')
    def test_acquire_repository_local_path_is_file(self, mock_path_cls):
        mock_path_instance = MagicMock(spec=Path)
        mock_path_instance.exists.return_value = True
        mock_path_instance.is_dir.return_value = False
        mock_path_cls.return_value = mock_path_instance

        with self.assertRaises(ExtractionError) as context:
            self.extractor.acquire_repository("/path/to/a/file.txt")
        self.assertIn("Local path is not a directory", str(context.exception))

    def test_acquire_repository_local_path_is_empty_dir(self):
        empty_dir = Path(self.output_dir) / "empty"
        empty_dir.mkdir()

        with self.assertRaises(ExtractionError) as context:
            self.extractor.acquire_repository(str(empty_dir))
        self.assertIn("Local repository path is an empty directory", str(context.exception))

    @patch('repocatalog.repository.shutil.rmtree')
    @patch('repocatalog.repository.os.path.exists')
    def test_cleanup_is_temp_and_dir_exists(self, mock_os_path_exists, mock_rmtree):
        self.extractor.is_temp = True
        self.extractor.temp_dir = "/fake/temp_dir_to_clean"
        self.extractor.repo_path = "/fake/temp_dir_to_clean"
        mock_os_path_exists.return_value = True

        self.extractor.cleanup()

        mock_rmtree.assert_called_once_with("/fake/temp_dir_to_clean", ignore_errors=True)
        self.assertIsNone(self.extractor.temp_dir)
        self.assertIsNone(self.extractor.repo_path)
        self.assertFalse(self.extractor.is_temp)

    @patch('repocatalog.repository.shutil.rmtree')
    @patch('repocatalog.repository.os.path.exists')
    def test_cleanup_is_not_temp(self, mock_os_path_exists, mock_rmtree):
        self.extractor.is_temp = False
        self.extractor.repo_path = "/local/repo"

        self.extractor.cleanup()

        mock_os_path_exists.assert_not_called()
        mock_rmtree.assert_not_called()
        self.assertEqual(self.extractor.repo_path, "/local/repo")

    def test_fetch_local_repository_writes_basic_output(self):
        repo_dir = Path(self.output_dir) / "sample"
        (repo_dir / "src").mkdir(parents=True)
        (repo_dir / "node_modules" / "dep").mkdir(parents=True)
        (repo_dir / "package.json").write_text('{"name": "sample"}')
        (repo_dir / "README.md").write_text("# Sample scraper")
        (repo_dir / "src" / "index.js").write_text("export function scrapePage() {}\n")
        (repo_dir / "node_modules" / "dep" / "index.js").write_text("ignored")

        blob = self.extractor.fetch(str(repo_dir), "my/sample")

        self.assertIn("Total files: 3", blob)
        self.assertIn("src/index.js", blob)
        self.assertNotIn("node_modules", blob)
        self.assertIn("package.json:", blob)
        self.assertIn('{"name": "sample"}', blob)
        self.assertIn("README.md:", blob)
        self.assertIn("# Sample scraper", blob)
        self.assertTrue((Path(self.output_dir) / "my_sample.txt").is_file())

    def test_fetch_missing_path_raises_extraction_error(self):
        with self.assertRaises(ExtractionError):
            self.extractor.fetch("/definitely/not/here", "missing")

    @patch('repocatalog.repository.subprocess.run')
    @patch('repocatalog.repository.shutil.which')
    def test_flatten_falls_back_when_repomix_fails(self, mock_which, mock_run):
        mock_which.return_value = "/usr/bin/npx"
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="boom")
        repo_dir = Path(self.output_dir) / "fallback"
        repo_dir.mkdir()
        (repo_dir / "main.py").write_text("def run():\n    pass\n")

        extractor = RepositoryContentExtractor(output_dir=self.output_dir, use_repomix=True)
        output_file = extractor.flatten_repository(str(repo_dir), "fallback")

        mock_run.assert_called_once()
        command = mock_run.call_args[0][0]
        self.assertEqual(command[:3], ["/usr/bin/npx", "--yes", "repomix"])
        self.assertIn("Repository Analysis Output", output_file.read_text())

    @patch('repocatalog.repository.shutil.which')
    def test_flatten_without_npx_uses_basic_output(self, mock_which):
        mock_which.return_value = None
        repo_dir = Path(self.output_dir) / "nonpx"
        repo_dir.mkdir()
        (repo_dir / "main.py").write_text("print('hi')\n")

        extractor = RepositoryContentExtractor(output_dir=self.output_dir, use_repomix=True)
        output_file = extractor.flatten_repository(str(repo_dir), "nonpx")

        self.assertIn("Total files: 1", output_file.read_text())


if __name__ == '__main__':
    unittest.main()
