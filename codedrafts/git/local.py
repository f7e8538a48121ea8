"""GitProvider backed by the `git` command line."""

from __future__ import annotations

import asyncio
import logging
import subprocess

from codedrafts.git.base import GitProvider
from codedrafts.git.diff import DIFF_ENCODING, DIFF_ERRORS, parse_diff_files
from codedrafts.git.models import (
    DiffFiles,
    DiffResult,
    GitBranch,
    GitCommit,
    GitRemote,
    GitUser,
)
from codedrafts.git.refs import is_uncommitted, is_uncommitted_staged
from codedrafts.git.remotes import (
    RemoteProviderMatcher,
    match_remote_provider,
    parse_remote_url,
)

logger = logging.getLogger(__name__)

_PREFERRED_REMOTES = ("origin", "upstream")


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {' '.join(args)} exited with {returncode}: {stderr.strip()}")


def pick_best_remote(remotes: list[GitRemote]) -> GitRemote | None:
    """Prefer `origin`, then `upstream`, then whichever remote comes first."""
    if not remotes:
        return None
    by_name = {r.name: r for r in remotes}
    for name in _PREFERRED_REMOTES:
        if name in by_name:
            return by_name[name]
    return remotes[0]


def _branch_lines(out: str | None) -> list[str]:
    if out is None:
        return []
    return [line.strip() for line in out.splitlines() if line.strip()]


class LocalGitProvider(GitProvider):
    """Runs `git` in a subprocess.

    subprocess is blocking, so every call is wrapped with asyncio.to_thread()
    to keep the event loop free while several changes resolve in parallel.
    """

    def __init__(
        self,
        git_path: str = "git",
        matcher: RemoteProviderMatcher = match_remote_provider,
    ) -> None:
        self._git = git_path
        self._matcher = matcher

    def _run(self, repo_path: str, args: list[str], input_text: str | None = None) -> str:
        proc = subprocess.run(
            [self._git, "-C", repo_path, *args],
            input=input_text,
            capture_output=True,
            encoding=DIFF_ENCODING,
            errors=DIFF_ERRORS,
            check=False,
        )
        if proc.returncode != 0:
            raise GitCommandError(args, proc.returncode, proc.stderr)
        return proc.stdout

    async def _git_output(self, repo_path: str, *args: str) -> str:
        return await asyncio.to_thread(self._run, repo_path, list(args))

    async def _git_optional(self, repo_path: str, *args: str) -> str | None:
        """Like _git_output, but a failing command yields None."""
        try:
            return await self._git_output(repo_path, *args)
        except GitCommandError as e:
            logger.debug("%s", e)
            return None

    async def get_diff(self, repo_path: str, to_ref: str, from_ref: str) -> DiffResult | None:
        if is_uncommitted(to_ref):
            args = ["diff", "--binary"]
            if is_uncommitted_staged(to_ref):
                args.append("--cached")
            args.append(from_ref)
        else:
            args = ["diff", "--binary", from_ref, to_ref]
        contents = await self._git_output(repo_path, *args)
        return DiffResult(contents=contents, from_ref=from_ref, to_ref=to_ref)

    async def get_diff_files(self, repo_path: str, contents: str) -> DiffFiles | None:
        return parse_diff_files(contents)

    async def get_branch(self, repo_path: str) -> GitBranch | None:
        out = await self._git_optional(repo_path, "rev-parse", "--abbrev-ref", "HEAD")
        name = (out or "").strip()
        if not name or name == "HEAD":
            return None
        return GitBranch(name=name)

    async def get_commit_branches(self, repo_path: str, refs: list[str]) -> list[str]:
        # Repeated --contains flags are OR-ed by git, so each ref is asked separately
        committed = [ref for ref in refs if not is_uncommitted(ref)]
        if not committed:
            out = await self._git_optional(repo_path, "branch", "--format=%(refname:short)")
            return _branch_lines(out)

        outputs = await asyncio.gather(
            *(
                self._git_optional(repo_path, "branch", "--format=%(refname:short)", "--contains", ref)
                for ref in committed
            )
        )
        first, *rest = [_branch_lines(out) for out in outputs]
        common = set(first).intersection(*rest)
        return [name for name in first if name in common]

    async def get_current_user(self, repo_path: str) -> GitUser | None:
        name, email = await asyncio.gather(
            self._git_optional(repo_path, "config", "user.name"),
            self._git_optional(repo_path, "config", "user.email"),
        )
        if name is None and email is None:
            return None
        return GitUser(
            name=name.strip() if name else None,
            email=email.strip() if email else None,
        )

    async def get_first_commit_sha(self, repo_path: str) -> str | None:
        out = await self._git_optional(repo_path, "rev-list", "--max-parents=0", "HEAD")
        if not out:
            return None
        # Repos with merged histories can have several roots; the oldest is last.
        return out.strip().splitlines()[-1]

    async def get_remotes(self, repo_path: str) -> list[GitRemote]:
        out = await self._git_optional(repo_path, "remote", "-v")
        if not out:
            return []
        remotes: list[GitRemote] = []
        seen: set[str] = set()
        for line in out.splitlines():
            parts = line.split()
            if len(parts) < 3 or parts[2] != "(fetch)" or parts[0] in seen:
                continue
            seen.add(parts[0])
            url = parts[1]
            domain, path = parse_remote_url(url)
            remotes.append(
                GitRemote(
                    name=parts[0],
                    url=url,
                    domain=domain,
                    path=path,
                    provider=self._matcher(url, domain, path),
                )
            )
        return remotes

    async def get_best_remote_with_provider(self, repo_path: str) -> GitRemote | None:
        remotes = await self.get_remotes(repo_path)
        return pick_best_remote([r for r in remotes if r.provider is not None])

    async def get_best_remote_with_integration(self, repo_path: str) -> GitRemote | None:
        remotes = await self.get_remotes(repo_path)
        return pick_best_remote(
            [r for r in remotes if r.provider is not None and r.provider.integration is not None]
        )

    async def get_commit(self, repo_path: str, ref: str) -> GitCommit | None:
        out = await self._git_optional(repo_path, "rev-parse", "--verify", f"{ref}^{{commit}}")
        if not out:
            return None
        return GitCommit(sha=out.strip())
