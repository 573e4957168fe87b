"""Tests for article synthesis."""

from datetime import datetime, timezone

from repo_digest.core.types import Commit, PullRequest, Release, RepositoryChangeSet, RepositoryRef
from repo_digest.output.synthesizer import first_line, human_date, release_preview, synthesize


REPO = RepositoryRef(owner="octo", name="widgets")
SINCE = datetime(2024, 3, 5, tzinfo=timezone.utc)


def _at(day, hour=0):
    return datetime(2024, 4, day, hour, tzinfo=timezone.utc)


def _release(i, body="", prerelease=False):
    return Release(
        tag=f"v{i}",
        name=f"Version {i}",
        published_at=_at(i),
        url=f"https://github.com/octo/widgets/releases/tag/v{i}",
        body=body,
        prerelease=prerelease,
    )


def _pull(number, state, updated_day, merged_day=None):
    return PullRequest(
        number=number,
        title=f"Change {number}",
        state=state,
        created_at=_at(1),
        updated_at=_at(updated_day),
        merged_at=_at(merged_day) if merged_day else None,
        author_login="grace",
        url=f"https://github.com/octo/widgets/pull/{number}",
    )


def _commit(i, message=None):
    return Commit(
        sha=f"{i:040d}",
        message=message or f"Commit number {i}\n\nDetails {i}",
        author_name="Ada",
        author_date=_at(i),
        url=f"https://github.com/octo/widgets/commit/{i}",
    )


def _changes(**kwargs):
    return RepositoryChangeSet(repo=REPO, since=SINCE, **kwargs)


def test_empty_change_set_renders_header_and_footer_only():
    html = synthesize(_changes())
    assert "widgets" in html
    assert "March 5, 2024" in html
    assert "https://github.com/octo/widgets" in html
    assert "<h3>" not in html


def test_synthesize_is_deterministic():
    changes = _changes(
        commits=[_commit(i) for i in range(1, 4)],
        pull_requests=[_pull(1, "open", 2), _pull(2, "closed", 3, merged_day=3)],
        releases=[_release(1, body="Notes")],
    )
    assert synthesize(changes) == synthesize(changes)


def test_releases_limited_to_five_newest_first():
    releases = [_release(i) for i in (3, 8, 1, 5, 7, 2, 6, 4)]
    html = synthesize(_changes(releases=releases))

    shown = [f"Version {i}</a>" for i in range(1, 9) if f"Version {i}</a>" in html]
    assert len(shown) == 5
    positions = [html.index(f"Version {i}</a>") for i in (8, 7, 6, 5, 4)]
    assert positions == sorted(positions)
    assert "Version 3</a>" not in html


def test_prerelease_marker():
    html = synthesize(_changes(releases=[_release(1, prerelease=True), _release(2)]))
    assert html.count("(Pre-release)") == 1


def test_release_preview_uses_first_three_lines():
    assert release_preview("one\ntwo\nthree\nfour") == "one two three"
    assert release_preview("") == ""


def test_release_preview_truncates_to_200_characters():
    body = "\n".join(["a" * 90, "b" * 90, "c" * 90, "d" * 90])
    preview = release_preview(body)
    assert preview == ("a" * 90 + " " + "b" * 90 + " " + "c" * 18) + "..."
    assert len(preview) == 203
    assert "d" not in preview


def test_release_preview_exactly_200_characters_is_not_marked():
    body = "x" * 200
    assert release_preview(body) == body


def test_release_preview_rendered_in_article():
    html = synthesize(_changes(releases=[_release(1, body="Headline\nSecond line\nThird\nFourth")]))
    assert "Headline Second line Third" in html
    assert "Fourth" not in html


def test_closed_unmerged_pull_in_neither_section():
    pulls = [
        _pull(1, "closed", 5, merged_day=5),
        _pull(2, "closed", 6),
        _pull(3, "open", 7),
    ]
    html = synthesize(_changes(pull_requests=pulls))
    assert "Merged Pull Requests" in html
    assert "Open Pull Requests" in html
    assert "Change 1" in html
    assert "Change 3" in html
    assert "Change 2" not in html


def test_merged_pulls_limited_to_ten_by_merge_time():
    pulls = [_pull(n, "closed", 20, merged_day=n) for n in range(1, 13)]
    html = synthesize(_changes(pull_requests=pulls))
    assert "Open Pull Requests" not in html
    assert "#12</a>" in html
    assert "#3</a>" in html
    assert "#2</a>" not in html
    assert "#1</a>" not in html
    assert html.index("#12</a>") < html.index("#3</a>")


def test_open_pulls_limited_to_five_by_update_time():
    pulls = [_pull(n, "open", n) for n in range(1, 8)]
    html = synthesize(_changes(pull_requests=pulls))
    assert "Merged Pull Requests" not in html
    for number in (7, 6, 5, 4, 3):
        assert f"#{number}</a>" in html
    assert "#2</a>" not in html
    assert html.index("#7</a>") < html.index("#3</a>")


def test_commit_summary_counts_all_and_lists_five_first_lines():
    commits = [_commit(i) for i in range(1, 9)]
    html = synthesize(_changes(commits=commits))
    assert "8 commits" in html
    for i in (8, 7, 6, 5, 4):
        assert f"Commit number {i}" in html
    assert "Commit number 3" not in html
    assert "Details" not in html
    assert html.index("Commit number 8") < html.index("Commit number 4")


def test_single_commit_wording():
    html = synthesize(_changes(commits=[_commit(1, message="Only change")]))
    assert "1 commit landed" in html
    assert "Only change" in html


def test_titles_are_html_escaped():
    pull = _pull(1, "open", 2)
    pull.title = "<script>alert(1)</script>"
    html = synthesize(_changes(pull_requests=[pull]))
    assert "&lt;script&gt;" in html
    assert "<script>" not in html


def test_helpers():
    assert human_date(datetime(2024, 3, 5)) == "March 5, 2024"
    assert first_line("subject\nbody") == "subject"
    assert first_line("") == ""
