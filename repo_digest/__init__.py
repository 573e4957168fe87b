"""
repo-digest - GitHub activity digests published to WordPress.

This package collects recent commits, pull requests and releases for a
GitHub repository, synthesizes them into an HTML article, and publishes
the article through the WordPress REST API.

Main entry point is the CLI via `repo-digest publish` command.

Example:
    $ repo-digest publish --repo https://github.com/psf/requests --preview
"""

__all__ = [
    "__version__",
    "PublicationTracker",
    "PublishContext",
    "PublishPipeline",
    "RepositoryRef",
    "synthesize",
]
__version__ = "0.1.0"

from .core.tracker import PublicationTracker
from .core.types import RepositoryRef
from .output.synthesizer import synthesize
from .runner import PublishContext, PublishPipeline
