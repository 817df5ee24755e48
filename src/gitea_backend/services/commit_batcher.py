"""Commit batcher — turn logical file writes into one commit on a branch.

For every file the batcher probes the branch for the file's current SHA
(concurrently across files), classifies the write as create / update / delete /
move, and submits the whole batch.  Two submission strategies exist:

* **atomic** (default) — a single call to the multi-file contents endpoint.
  Either every item lands in one commit or nothing does, though a network
  failure or 5xx may hide which of the two happened.
* **per-file** — one commit per item, for servers without the multi-file
  endpoint.  A failure after the first success leaves the branch partially
  updated and is reported as :class:`PartialBatchError`.
"""

from __future__ import annotations

import asyncio
import logging

from gitea_backend.domain.entities import (
    CommitAction,
    CommitBatch,
    CommitItem,
    CommitResult,
    FileChange,
    PersistOptions,
)
from gitea_backend.domain.exceptions import (
    ApiError,
    BatchAbortedError,
    ConflictError,
    NotFoundError,
    PartialBatchError,
    ResponseParseError,
    WriteOutcomeUnknownError,
)
from gitea_backend.domain.ports.repo_gateway import RepoGateway
from gitea_backend.services.wire_encoding import encode_base64

logger = logging.getLogger(__name__)


class CommitBatcher:
    """Persists batches of file changes against a Gitea branch."""

    def __init__(self, gateway: RepoGateway, branch: str, atomic: bool = True) -> None:
        self._gateway = gateway
        self._branch = branch
        self._atomic = atomic

    # ── Public entry point ──────────────────────────────────────────────

    async def persist(
        self, files: list[FileChange], options: PersistOptions
    ) -> CommitResult:
        """Commit *files* and return the resulting commit SHA(s).

        Raises BatchAbortedError if nothing was written, ConflictError if a
        file changed remotely since it was probed, PartialBatchError if the
        per-file strategy stopped half way, and WriteOutcomeUnknownError when
        a write failed without telling whether it was committed.
        """
        if not files:
            raise ValueError("Nothing to persist.")
        for change in files:
            if change.content is None and change.from_path:
                raise ValueError(f"Moving {change.from_path} to {change.path} needs content.")

        base = options.branch or self._branch
        new_branch = None
        if options.use_new_branch:
            if not options.new_branch:
                raise ValueError("use_new_branch requires a new_branch name.")
            new_branch = options.new_branch

        items = await self._prepare_all(files, base)
        batch = CommitBatch(
            items=items,
            message=options.commit_message,
            branch=base,
            new_branch=new_branch,
        )
        if self._atomic:
            return await self._commit_atomic(batch)
        return await self._commit_per_file(batch)

    # ── Probing ─────────────────────────────────────────────────────────

    async def _prepare_all(self, files: list[FileChange], ref: str) -> list[CommitItem]:
        results = await asyncio.gather(
            *(self._prepare(change, ref) for change in files),
            return_exceptions=True,
        )
        items: list[CommitItem] = []
        failures: dict[str, Exception] = {}
        for change, result in zip(files, results):
            if isinstance(result, CommitItem):
                items.append(result)
            elif isinstance(result, Exception):
                failures[change.path] = result
            else:
                raise result
        if failures:
            logger.warning("Aborting persist: %d probe(s) failed", len(failures))
            raise BatchAbortedError(failures)
        return items

    async def _prepare(self, change: FileChange, ref: str) -> CommitItem:
        payload = encode_base64(change.content) if change.content is not None else ""
        prior = await self._probe(change.from_path or change.path, ref)

        if change.content is None:
            if prior is None:
                raise NotFoundError(f"Cannot delete {change.path}: it does not exist on {ref}.")
            return CommitItem(path=change.path, action=CommitAction.DELETE, prior_content_id=prior)

        if change.from_path:
            if prior is None:
                raise NotFoundError(
                    f"Cannot move {change.from_path}: it does not exist on {ref}."
                )
            return CommitItem(
                path=change.path,
                action=CommitAction.MOVE,
                payload=payload,
                prior_content_id=prior,
                from_path=change.from_path,
            )

        return CommitItem(
            path=change.path,
            action=CommitAction.UPDATE if prior else CommitAction.CREATE,
            payload=payload,
            prior_content_id=prior,
        )

    async def _probe(self, path: str, ref: str) -> str | None:
        """Current SHA of *path* on *ref*, or None when it does not exist."""
        try:
            remote = await self._gateway.get_file(path, ref)
        except NotFoundError:
            return None
        return remote.content_id

    # ── Submission ──────────────────────────────────────────────────────

    async def _commit_atomic(self, batch: CommitBatch) -> CommitResult:
        try:
            sha = await self._gateway.change_files(batch)
        except ApiError as exc:
            conflicts = _conflicting_paths(exc, batch.items)
            if conflicts:
                raise ConflictError(conflicts, exc.detail) from exc
            if _outcome_unknown(exc):
                logger.error("Commit status unknown for %d file(s): %s", len(batch.items), exc)
                raise WriteOutcomeUnknownError([], batch.paths, [], exc) from exc
            raise BatchAbortedError({path: exc for path in batch.paths}) from exc
        return CommitResult(
            branch=batch.new_branch or batch.branch,
            commit_shas=[sha],
            items=batch.items,
        )

    async def _commit_per_file(self, batch: CommitBatch) -> CommitResult:
        target = batch.new_branch or batch.branch
        applied: list[str] = []
        shas: list[str] = []

        for index, item in enumerate(batch.items):
            # Only the first write forks the new branch; the rest build on it.
            if applied or not batch.new_branch:
                branch, new_branch = target, None
            else:
                branch, new_branch = batch.branch, batch.new_branch
            try:
                sha = await self._gateway.write_file(
                    item, message=batch.message, branch=branch, new_branch=new_branch
                )
            except ApiError as exc:
                skipped = [i.path for i in batch.items[index + 1 :]]
                logger.error(
                    "Persist stopped after %d of %d file(s) on %s",
                    len(applied),
                    len(batch.items),
                    target,
                )
                if _outcome_unknown(exc):
                    raise WriteOutcomeUnknownError(applied, [item.path], skipped, exc) from exc
                error: Exception = exc
                if _conflicting_paths(exc, [item]):
                    error = ConflictError([item.path], exc.detail)
                if not applied:
                    if isinstance(error, ConflictError):
                        raise error from exc
                    raise BatchAbortedError({item.path: exc}) from exc
                raise PartialBatchError(applied, {item.path: error}, skipped) from exc
            applied.append(item.path)
            shas.append(sha)

        return CommitResult(branch=target, commit_shas=shas, items=batch.items)


def _conflicting_paths(exc: ApiError, items: list[CommitItem]) -> list[str]:
    """Paths whose write was rejected because the remote changed since the probe.

    A stale prior SHA shows up as 409 or as 422 naming the SHA; a file that
    appeared after the probe shows up as 422 "already exists" on a create.
    """
    detail = exc.detail.lower()
    if exc.status == 409 or (exc.status == 422 and "sha" in detail):
        return [i.path for i in items if i.prior_content_id] or [i.path for i in items]
    if exc.status == 422 and "already exists" in detail:
        created = [i.path for i in items if i.action is CommitAction.CREATE]
        named = [p for p in created if p.lower() in detail]
        return named or created
    return []


def _outcome_unknown(exc: ApiError) -> bool:
    """Whether a failed write may nevertheless have been committed."""
    if isinstance(exc, ResponseParseError):
        return True
    return exc.status is None or exc.status >= 500
