"""
Publish pipeline orchestration for repo-digest.

This module coordinates one publish run for one repository:
1. Validate credentials and the repository reference (no network yet)
2. Resolve the since-instant and collect GitHub activity
3. Synthesize the article body, title and tags
4. Preview (return the draft untouched) or publish to WordPress
5. Record the publish time in the PublicationTracker

A run either reaches the tracking step or records nothing. Errors are
re-raised unchanged after being tagged with the repository key and stage.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import AppConfig, Credentials
from .core.errors import ConfigError, DigestError, ValidationError
from .core.repo_ref import resolve_repository
from .core.retry import RetryPolicy
from .core.tracker import PublicationTracker
from .core.types import POST_STATUSES, ArticleDraft, PublishedPost, RepositoryChangeSet, RepositoryRef
from .fetch.github import ChangeCollector, build_github_client
from .logging_utils import log_event
from .output.synthesizer import ContentSynthesizer
from .output.wordpress import WordPressPublisher


class PipelineStage(str, Enum):
    VALIDATING = "validating"
    COLLECTING = "collecting"
    SYNTHESIZING = "synthesizing"
    PREVIEWING = "previewing"
    PUBLISHING = "publishing"
    TRACKING = "tracking"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PublishContext:
    """State shared across pipeline runs: credentials and publication history."""
    credentials: Credentials
    tracker: PublicationTracker = field(default_factory=PublicationTracker)

    @classmethod
    def from_config(cls, cfg: AppConfig, credentials: Credentials) -> "PublishContext":
        state_path = Path(cfg.state.path) if cfg.state.path else None
        return cls(credentials=credentials, tracker=PublicationTracker(state_path))


@dataclass
class PipelineResult:
    """Outcome of a completed run.

    Attributes:
        stage: Final stage reached (always DONE for a returned result)
        repo: The repository that was processed
        since: The effective lower bound used for collection
        draft: The synthesized article
        post: The published post, or None for previews
    """
    stage: PipelineStage
    repo: RepositoryRef
    since: datetime
    draft: ArticleDraft
    post: PublishedPost | None = None

    @property
    def preview(self) -> bool:
        return self.post is None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublishPipeline:
    """Turn recent repository activity into a published article."""

    def __init__(
        self,
        context: PublishContext,
        cfg: AppConfig | None = None,
        collector: ChangeCollector | None = None,
        publisher: WordPressPublisher | None = None,
        synthesizer: ContentSynthesizer | None = None,
        retry: RetryPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self.context = context
        self.cfg = cfg or AppConfig()
        self.collector = collector
        self.publisher = publisher
        self.synthesizer = synthesizer or ContentSynthesizer()
        self.retry = retry or RetryPolicy(retries=self.cfg.github.retries)
        self.clock = clock
        self.logger = logger

    def run(
        self,
        repo: RepositoryRef | str,
        since: datetime | None = None,
        title: str | None = None,
        tags: Iterable[str] = (),
        categories: Iterable[str] | None = None,
        status: str | None = None,
        preview: bool = False,
    ) -> PipelineResult:
        """Run the pipeline for one repository.

        Args:
            repo: A RepositoryRef or a github.com repository URL
            since: Explicit lower bound; defaults to the last publish time or
                the configured lookback window
            title: Post title; defaults to "Updates from <name> - <Month Year>"
            tags: Extra tags merged with the configured default tags
            categories: Category names; defaults to the configured categories
            status: Post status; defaults to the configured status
            preview: Build the draft only, without publishing or tracking

        Raises:
            ValidationError: Bad repository reference or post status
            ConfigError: Missing GitHub token or publish target
            AuthError, TransportError, PublishError: From the remote APIs
        """
        repo_key = repo.key if isinstance(repo, RepositoryRef) else None

        with self._stage(PipelineStage.VALIDATING, repo_key):
            ref = self.validate(repo, preview)
            status = status or self.cfg.wordpress.status
            if status not in POST_STATUSES:
                raise ValidationError(f"Unsupported post status {status!r}; use one of {', '.join(POST_STATUSES)}")
        repo_key = ref.key
        log_event(self.logger, "Pipeline start", event="pipeline_start", repo=repo_key, preview=preview)

        with self._stage(PipelineStage.COLLECTING, repo_key):
            effective_since = self.resolve_since(ref, since)
            changes = self.retry.call(lambda: self._collect(ref, effective_since), logger=self.logger)
            if changes.is_empty:
                log_event(
                    self.logger,
                    "No new activity",
                    event="no_activity",
                    repo=repo_key,
                    since=effective_since.isoformat(),
                )

        with self._stage(PipelineStage.SYNTHESIZING, repo_key):
            draft = self.build_draft(changes, title, tags, categories, status)

        if preview:
            with self._stage(PipelineStage.PREVIEWING, repo_key):
                log_event(self.logger, "Preview ready", event="preview_ready", repo=repo_key, title=draft.title)
            return PipelineResult(stage=PipelineStage.DONE, repo=ref, since=effective_since, draft=draft)

        with self._stage(PipelineStage.PUBLISHING, repo_key):
            post = self.retry.call(lambda: self._publish(draft), logger=self.logger)

        with self._stage(PipelineStage.TRACKING, repo_key):
            self.context.tracker.record(repo_key, self.clock())

        log_event(
            self.logger,
            "Pipeline complete",
            event="pipeline_complete",
            repo=repo_key,
            post_id=post.id,
            link=post.link,
        )
        return PipelineResult(stage=PipelineStage.DONE, repo=ref, since=effective_since, draft=draft, post=post)

    def validate(self, repo: RepositoryRef | str, preview: bool) -> RepositoryRef:
        """Check configuration and parse the repository before any I/O."""
        credentials = self.context.credentials
        if not credentials.github_token:
            raise ConfigError("GitHub token is not configured")
        if not preview and self.publisher is None and not credentials.has_publish_target:
            raise ConfigError("WordPress URL, username and password are required to publish")
        if isinstance(repo, RepositoryRef):
            return resolve_repository(owner=repo.owner, name=repo.name)
        return resolve_repository(url=repo)

    def resolve_since(self, repo: RepositoryRef, since: datetime | None = None) -> datetime:
        """Pick the collection lower bound for ``repo``.

        An explicit value wins, then the last publish time, then the
        configured lookback window before now.
        """
        if since is not None:
            return since
        last = self.context.tracker.last_instant(repo.key)
        if last is not None:
            return last
        return self.clock() - timedelta(days=self.cfg.digest.lookback_days)

    def build_draft(
        self,
        changes: RepositoryChangeSet,
        title: str | None,
        tags: Iterable[str],
        categories: Iterable[str] | None,
        status: str,
    ) -> ArticleDraft:
        body = self.synthesizer.synthesize(changes)
        if not title:
            title = f"Updates from {changes.repo.name} - {self.clock():%B %Y}"
        merged_tags = frozenset(tag.strip() for tag in [*self.cfg.digest.default_tags, *tags] if tag and tag.strip())
        if categories is None:
            categories = self.cfg.wordpress.categories
        return ArticleDraft(
            title=title,
            status=status,
            tags=merged_tags,
            categories=frozenset(c.strip() for c in categories if c and c.strip()),
            body_html=body,
        )

    def _collect(self, repo: RepositoryRef, since: datetime) -> RepositoryChangeSet:
        if self.collector is not None:
            return self.collector.collect(repo, since)
        github = self.cfg.github
        with build_github_client(self.context.credentials.github_token, github) as client:
            collector = ChangeCollector(client, per_page=github.per_page, logger=self.logger)
            return collector.collect(repo, since)

    def _publish(self, draft: ArticleDraft) -> PublishedPost:
        if self.publisher is not None:
            return self.publisher.publish(draft)
        credentials = self.context.credentials
        publisher = WordPressPublisher(
            credentials.publish_url,
            credentials.publish_username,
            credentials.publish_password,
            timeout_seconds=self.cfg.github.timeout_seconds,
            logger=self.logger,
        )
        with publisher.client:
            return publisher.publish(draft)

    @contextmanager
    def _stage(self, stage: PipelineStage, repo_key: str | None) -> Iterator[None]:
        log_event(self.logger, f"Stage {stage.value}", event="stage", stage=stage.value, repo=repo_key)
        try:
            yield
        except DigestError as exc:
            exc.repo_key = exc.repo_key or repo_key
            exc.stage = exc.stage or stage.value
            log_event(
                self.logger,
                "Pipeline failed",
                event="pipeline_failed",
                stage=PipelineStage.FAILED.value,
                failed_stage=stage.value,
                repo=exc.repo_key,
                error=str(exc),
            )
            raise
