"""GitHub check-runs status provider."""

import logging
import os
import re
from typing import Optional, Tuple

import httpx

from workdesk.exceptions import StatusProviderError
from workdesk.workstreams.models import WorkstreamMetadata

from .provider import CheckSummary

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

_PR_URL = re.compile(r"github\.com/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)/pull/(?P<number>\d+)")

# Check-run conclusions that count as a pass once the run has completed
_PASSING_CONCLUSIONS = frozenset({"success", "neutral", "skipped"})


def parse_pr_reference(metadata: WorkstreamMetadata) -> Tuple[str, str, int]:
    """Resolve (owner, repo, number) from explicit metadata fields or the PR URL.

    Raises:
        StatusProviderError: If the reference can't be resolved
    """
    owner, repo, number = metadata.pr_owner, metadata.pr_repo, metadata.pr_number

    if metadata.pr_url and not (owner and repo and number):
        match = _PR_URL.search(metadata.pr_url)
        if match:
            owner = owner or match.group("owner")
            repo = repo or match.group("repo")
            number = number or int(match.group("number"))

    if not (owner and repo and number):
        raise StatusProviderError("Cannot resolve PR owner/repo/number", reference=metadata.pr_url)
    return owner, repo, number


class GitHubChecksProvider:
    """Summarize the check runs on a pull request's head commit.

    Args:
        token: GitHub token; defaults to the GITHUB_TOKEN environment variable
        base_url: API root, for GitHub Enterprise
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = token if token is not None else os.environ.get("GITHUB_TOKEN")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self._token)

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        return httpx.AsyncClient(
            base_url=self._base_url, headers=headers, timeout=self._timeout, transport=self._transport
        )

    async def get_check_summary(self, metadata: WorkstreamMetadata) -> CheckSummary:
        owner, repo, number = parse_pr_reference(metadata)
        reference = f"{owner}/{repo}#{number}"

        async with self._client() as client:
            try:
                pr_resp = await client.get(f"/repos/{owner}/{repo}/pulls/{number}")
                pr_resp.raise_for_status()
                head_sha = pr_resp.json()["head"]["sha"]

                checks_resp = await client.get(
                    f"/repos/{owner}/{repo}/commits/{head_sha}/check-runs", params={"per_page": 100}
                )
                checks_resp.raise_for_status()
                runs = checks_resp.json().get("check_runs", [])
            except httpx.HTTPStatusError as e:
                raise StatusProviderError(
                    f"GitHub returned {e.response.status_code} for {reference}",
                    reference=reference,
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise StatusProviderError(f"Request for {reference} failed: {e}", reference=reference) from e
            except (KeyError, ValueError) as e:
                raise StatusProviderError(f"Unexpected GitHub response for {reference}", reference=reference) from e

        summary = CheckSummary(total=len(runs))
        for run in runs:
            if run.get("status") != "completed":
                summary.pending += 1
            elif run.get("conclusion") in _PASSING_CONCLUSIONS:
                summary.passing += 1
            else:
                summary.failing += 1
                summary.failing_names.append(run.get("name", "unnamed check"))

        logger.debug("Checks for %s: %s", reference, summary.model_dump())
        return summary
