"""Tests for the book download pipeline."""

import asyncio

import pytest
from book_spreads.core.detector import BookDocument
from book_spreads.core.errors import AccessDeniedError, InputError
from book_spreads.core.orchestrator import (
    download_book,
    download_books,
    needs_login,
    has_export_button,
)
from book_spreads.utils.types import WaitPolicy
from fakes import FakePrompter, FakeSession

URL = 'https://www.nt2schoolcollectie.nl/boek/9789046905609'
OTHER_URL = 'https://www.nt2schoolcollectie.nl/boek/9789046906002'
BOOK_ID = '9789046905609'
POLICY = WaitPolicy.immediate()


def run_book(workspace, session, logger, prompter=None, page_limit=None):
    sessions = []

    def factory(profile_dir):
        sessions.append(profile_dir)
        return session

    result = asyncio.run(download_book(
        URL, workspace, factory, workspace.profile_dir(), prompter or FakePrompter(),
        logger, page_limit=page_limit, policy=POLICY))
    return result, sessions


class TestAccessChecks:
    def test_book_page_has_button(self, book_doc):
        assert has_export_button(book_doc)
        assert not needs_login(book_doc)

    def test_login_page_needs_login(self, login_doc):
        assert needs_login(login_doc)

    def test_login_text_alone_needs_login(self):
        doc = BookDocument(html='<html><body><p>Inloggen</p></body></html>', text='Inloggen')
        assert needs_login(doc)

    def test_no_button_without_login_markers(self, no_access_doc):
        assert not has_export_button(no_access_doc)
        assert not needs_login(no_access_doc)


class TestDownloadBook:
    def test_full_run(self, workspace, book_doc, logger):
        session = FakeSession([book_doc])
        result, sessions = run_book(workspace, session, logger)

        assert sessions == [workspace.root / '.browser-data']
        assert session.started and session.closed
        assert result.job.title == 'Het Grote Verhaal'
        assert result.job.total_pages == 12
        assert (result.saved, result.skipped, result.failed) == (6, 0, 0)
        assert session.export_calls == 6
        assert result.merge.output_path == workspace.output_dir / 'hetgroteverhaal.pdf'
        assert result.merge.page_count == 12
        spreads = sorted(p.name for p in workspace.spreads_dir(BOOK_ID).iterdir())
        assert spreads == [f'spread-{i:03d}.pdf' for i in range(6)]

    def test_page_limit(self, workspace, book_doc, logger):
        session = FakeSession([book_doc])
        result, _ = run_book(workspace, session, logger, page_limit=3)

        assert result.job.spread_count == 2
        assert session.export_calls == 2
        assert result.merge.page_count == 4

    def test_all_spreads_present_skips_fetching(self, workspace, book_doc, logger,
                                                write_spreads, capsys):
        write_spreads(workspace.spreads_dir(BOOK_ID), [2] * 6)
        session = FakeSession([book_doc])

        result, _ = run_book(workspace, session, logger)

        assert session.export_calls == 0
        assert session.opened == [URL]
        assert result.skipped == 6
        assert result.merge.page_count == 12
        assert 'All spreads already downloaded' in capsys.readouterr().out

    def test_resume_fetches_only_missing(self, workspace, book_doc, logger, write_spreads):
        write_spreads(workspace.spreads_dir(BOOK_ID), [2] * 6, skip=(1, 4))
        session = FakeSession([book_doc])

        result, _ = run_book(workspace, session, logger)

        assert session.opened == [URL, URL + '#2', URL + '#8']
        assert (result.saved, result.skipped) == (2, 4)

    def test_login_then_access(self, workspace, login_doc, book_doc, logger):
        session = FakeSession([login_doc, book_doc])
        prompter = FakePrompter()

        result, _ = run_book(workspace, session, logger, prompter=prompter)

        assert prompter.login_requests == [BOOK_ID]
        assert session.opened[:2] == [URL, URL]
        assert result.saved == 6

    def test_access_denied_after_login(self, workspace, login_doc, logger):
        session = FakeSession([login_doc])
        prompter = FakePrompter()

        with pytest.raises(AccessDeniedError, match='Print button not found'):
            run_book(workspace, session, logger, prompter=prompter)

        assert prompter.login_requests == [BOOK_ID]
        assert session.closed
        assert session.export_calls == 0
        assert not workspace.spreads_dir(BOOK_ID).exists()
        assert not workspace.output_dir.exists()

    def test_access_denied_without_login_markers(self, workspace, no_access_doc, logger):
        session = FakeSession([no_access_doc])
        prompter = FakePrompter()

        with pytest.raises(AccessDeniedError):
            run_book(workspace, session, logger, prompter=prompter)

        assert prompter.login_requests == []

    def test_manual_page_count(self, workspace, logger):
        doc = BookDocument(html='<html><body><button id="print-pdf"></button></body></html>',
                           text='Print')
        session = FakeSession([doc])
        prompter = FakePrompter(page_count='4')

        result, _ = run_book(workspace, session, logger, prompter=prompter)

        assert prompter.page_count_requests == [BOOK_ID]
        assert result.job.total_pages == 4
        assert result.job.title is None
        assert result.merge.output_path.name == f'{BOOK_ID}.pdf'

    def test_invalid_manual_page_count(self, workspace, logger):
        doc = BookDocument(html='<html><body><button id="print-pdf"></button></body></html>',
                           text='Print')
        session = FakeSession([doc])

        with pytest.raises(InputError):
            run_book(workspace, session, logger, prompter=FakePrompter(page_count='nul'))

        assert session.export_calls == 0
        assert session.closed


class TestDownloadBooks:
    def run_books(self, workspace, logger, urls, sessions, **kwargs):
        profiles = []

        def factory(profile_dir):
            profiles.append(profile_dir)
            return sessions[profile_dir.name.rsplit('-', 1)[-1]]

        outcomes = asyncio.run(download_books(
            urls, workspace, factory, lambda _logger: FakePrompter(), logger,
            policy=POLICY, **kwargs))
        return outcomes, profiles

    @pytest.mark.parametrize('parallel', [False, True])
    def test_books_get_isolated_profiles(self, workspace, logger, book_doc, parallel):
        sessions = {
            '9789046905609': FakeSession([book_doc]),
            '9789046906002': FakeSession([book_doc]),
        }
        outcomes, profiles = self.run_books(workspace, logger, [URL, OTHER_URL], sessions,
                                            parallel=parallel)

        assert all(o.ok for o in outcomes)
        assert [o.book_id for o in outcomes] == ['9789046905609', '9789046906002']
        assert sorted(p.name for p in profiles) == [
            '.browser-data-9789046905609', '.browser-data-9789046906002']
        assert workspace.spreads_dir('9789046906002').is_dir()

    def test_failing_book_does_not_stop_others(self, workspace, logger, book_doc,
                                               no_access_doc):
        sessions = {
            '9789046905609': FakeSession([no_access_doc]),
            '9789046906002': FakeSession([book_doc]),
        }
        outcomes, _ = self.run_books(workspace, logger, [URL, OTHER_URL], sessions)

        assert not outcomes[0].ok
        assert isinstance(outcomes[0].error, AccessDeniedError)
        assert outcomes[1].ok
        assert outcomes[1].result.saved == 6

    def test_single_book_shares_profile(self, workspace, logger, book_doc):
        profiles = []

        def factory(profile_dir):
            profiles.append(profile_dir)
            return FakeSession([book_doc])

        asyncio.run(download_books([URL], workspace, factory, lambda _logger: FakePrompter(),
                                   logger, policy=POLICY))
        assert profiles == [workspace.root / '.browser-data']

    def test_isolated_single_book(self, workspace, logger, book_doc):
        sessions = {BOOK_ID: FakeSession([book_doc])}
        _, profiles = self.run_books(workspace, logger, [URL], sessions, isolated=True)
        assert profiles == [workspace.root / f'.browser-data-{BOOK_ID}']

    def test_clear_cache_removes_profile(self, workspace, logger, book_doc):
        profile = workspace.root / f'.browser-data-{BOOK_ID}'
        (profile / 'Default').mkdir(parents=True)
        (profile / 'Default' / 'Cookies').write_text('session')
        seen = []

        def factory(profile_dir):
            seen.append(profile_dir.exists())
            return FakeSession([book_doc])

        asyncio.run(download_books([URL], workspace, factory, lambda _logger: FakePrompter(),
                                   logger, policy=POLICY, isolated=True, clear_cache=True))
        assert seen == [False]

    def test_output_is_tagged_per_book(self, workspace, logger, book_doc, capsys):
        sessions = {
            '9789046905609': FakeSession([book_doc]),
            '9789046906002': FakeSession([book_doc]),
        }
        self.run_books(workspace, logger, [URL, OTHER_URL], sessions)
        out = capsys.readouterr().out
        assert '[9789046905609] Navigating to book' in out
        assert '[9789046906002] Navigating to book' in out
