import io
import json
import os
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

from codefusion_reviewer import main
from codefusion_reviewer.errors import SourceNotFoundError
from codefusion_reviewer.git_diff import LocalGitDiffProvider
from codefusion_reviewer.models import ReviewComment, Severity
from codefusion_reviewer.reviewer_config import ReviewerConfig
from codefusion_reviewer.scm_client import GitHubSCMClient


class TestBuildSources(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_local_sources(self):
        config = ReviewerConfig(source_branch="feature", target_branch="main", repo_path=".")
        store, provider, pr_id = main.build_sources(config)

        self.assertEqual(pr_id, main.LOCAL_PR_ID)
        self.assertIsInstance(provider, LocalGitDiffProvider)
        pr = store.get_pull_request(pr_id)
        self.assertEqual(pr.title, "Merge feature into main")
        self.assertEqual(pr.repository, os.path.abspath("."))

    @patch.dict(os.environ, {}, clear=True)
    def test_github_sources(self):
        config = ReviewerConfig(scm_provider="github", repo_full_name="acme/web", pr_number="42")
        store, provider, pr_id = main.build_sources(config)

        self.assertIsInstance(store, GitHubSCMClient)
        self.assertIs(store, provider)
        self.assertEqual(pr_id, "42")

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_config(self):
        self.assertFalse(main.validate_config(ReviewerConfig()))
        self.assertTrue(main.validate_config(
            ReviewerConfig(source_branch="feature", target_branch="main", repo_path=".")
        ))


class TestAsyncMain(unittest.IsolatedAsyncioTestCase):
    ENV = {
        "REVIEWER_SOURCE_BRANCH": "feature",
        "REVIEWER_TARGET_BRANCH": "main",
        "REVIEWER_REPO_PATH": ".",
    }

    @patch.dict(os.environ, ENV, clear=True)
    async def test_comments_are_printed_as_json_lines(self):
        async def fake_analyze(self, pr_id):
            yield ReviewComment("First", severity=Severity.HIGH, file_path="src/a.ts", line_number=3)
            yield ReviewComment("Overall")

        out = io.StringIO()
        with patch.object(main.CodeReviewService, "analyze_pr", fake_analyze), redirect_stdout(out):
            exit_code = await main.async_main()

        self.assertEqual(exit_code, 0)
        lines = [json.loads(line) for line in out.getvalue().splitlines()]
        self.assertEqual(lines[0], {
            "content": "First", "type": "GENERAL", "severity": "HIGH", "filePath": "src/a.ts", "lineNumber": 3,
        })
        self.assertEqual(lines[1], {"content": "Overall", "type": "GENERAL", "severity": "LOW"})

    @patch.dict(os.environ, ENV, clear=True)
    async def test_source_error_exit_code(self):
        async def fake_analyze(self, pr_id):
            raise SourceNotFoundError("Branch 'feature' does not exist")
            yield

        with patch.object(main.CodeReviewService, "analyze_pr", fake_analyze):
            self.assertEqual(await main.async_main(), 1)

    @patch.dict(os.environ, {}, clear=True)
    async def test_invalid_config_exit_code(self):
        self.assertEqual(await main.async_main(), 1)


if __name__ == '__main__':
    unittest.main()
