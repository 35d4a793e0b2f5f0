import unittest
from unittest.mock import MagicMock, patch

import requests

from codefusion_reviewer.errors import SourceNotFoundError, SourceUnavailableError
from codefusion_reviewer.models import FileStatus
from codefusion_reviewer.reviewer_config import ReviewerConfig
from codefusion_reviewer.scm_client import GitHubSCMClient


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "" if payload is None else str(payload)
    response.json.return_value = payload
    return response


class TestGitHubSCMClient(unittest.TestCase):
    def setUp(self):
        self.config = ReviewerConfig(
            scm_provider="github",
            scm_token="ghp_test",
            scm_api_url="https://api.github.com",
            repo_full_name="acme/web",
            pr_number="42",
        )
        self.client = GitHubSCMClient(self.config)

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_get_pull_request(self, mock_request):
        mock_request.return_value = make_response(payload={
            "title": "Add login",
            "body": None,
            "head": {"ref": "feature/login"},
            "base": {"ref": "main"},
        })
        pr = self.client.get_pull_request("42")

        self.assertEqual(pr.title, "Add login")
        self.assertIsNone(pr.description)
        self.assertEqual((pr.source_branch, pr.target_branch), ("feature/login", "main"))
        self.assertEqual(pr.repository, "acme/web")

        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("GET", "https://api.github.com/repos/acme/web/pulls/42"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer ghp_test")

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_get_branch_diff_maps_statuses(self, mock_request):
        mock_request.return_value = make_response(payload={"files": [
            {"filename": "src/a.ts", "status": "modified", "additions": 2, "deletions": 1, "patch": "@@ -1 +1,2 @@\n-a\n+b\n+c"},
            {"filename": "src/b.ts", "status": "copied", "additions": 5, "deletions": 0},
            {"filename": "src/c.ts", "status": "removed", "additions": 0, "deletions": 9},
            {"filename": "src/d.ts", "status": "changed"},
        ]})
        diff = self.client.get_branch_diff("acme/web", "feature/login", "main")

        self.assertEqual(
            [f.status for f in diff.files],
            [FileStatus.MODIFIED, FileStatus.ADDED, FileStatus.REMOVED, FileStatus.MODIFIED],
        )
        self.assertEqual(diff.files[1].patch, "")
        self.assertEqual(diff.stats.total_additions, 7)
        self.assertEqual(diff.stats.total_deletions, 10)
        self.assertTrue(mock_request.call_args[0][1].endswith("/repos/acme/web/compare/main...feature/login"))

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_not_found(self, mock_request):
        mock_request.return_value = make_response(404, {"message": "Not Found"})
        with self.assertRaises(SourceNotFoundError):
            self.client.get_pull_request("404")

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_server_error(self, mock_request):
        mock_request.return_value = make_response(500, {"message": "boom"})
        with self.assertRaises(SourceUnavailableError):
            self.client.get_branch_diff("acme/web", "a", "b")

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("connection refused")
        with self.assertRaises(SourceUnavailableError):
            self.client.get_pull_request("42")

    @patch("codefusion_reviewer.scm_client.requests.request")
    def test_invalid_json(self, mock_request):
        response = make_response(200)
        response.json.side_effect = ValueError("not json")
        mock_request.return_value = response
        with self.assertRaises(SourceUnavailableError):
            self.client.get_pull_request("42")

    def test_missing_repository(self):
        with self.assertRaises(SourceNotFoundError):
            self.client.get_branch_diff(None, "a", "b")
        client = GitHubSCMClient(ReviewerConfig(scm_provider="github", repo_full_name=None))
        with self.assertRaises(SourceNotFoundError):
            client.get_pull_request("1")


if __name__ == '__main__':
    unittest.main()
