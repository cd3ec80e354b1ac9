from __future__ import annotations

from datetime import timedelta

import pytest

from school_ledger.core.exceptions import NotFoundError
from school_ledger.terms.service import next_term_name


class _PlainRenderer:
    def __init__(self):
        self.rendered = []

    def render(self, snapshot, *, now):
        self.rendered.append(snapshot)
        return f"<p>{snapshot.term_name}</p>"


class _BrokenRenderer:
    def render(self, snapshot, *, now):
        raise RuntimeError("printer on fire")


def test_next_term_name(fixed_now):
    assert next_term_name(None, fixed_now) == "New Term (10/02/2026, 09:30:00)"
    assert next_term_name("First", fixed_now) == "First → New (10/02/2026, 09:30:00)"


def test_active_term_is_missing_until_ensured(container, repos, fixed_now):
    with pytest.raises(NotFoundError):
        container.term_service.active_term()

    first = container.term_service.ensure_active_term(now=fixed_now)
    again = container.term_service.ensure_active_term(now=fixed_now + timedelta(days=1))

    assert first == again
    assert len(repos.terms.terms) == 1
    assert container.term_service.active_context() == first


def test_dangling_pointer_creates_a_fresh_term(container, repos, fixed_now):
    repos.terms.set_active_term_id(42)
    ctx = container.term_service.ensure_active_term(now=fixed_now)
    assert ctx.term_id != 42
    assert repos.terms.get_active_term_id() == ctx.term_id


def test_rollover_closes_and_repoints(container, repos, term, add_student, fixed_now):
    s = add_student("Ada", "JS1 A")
    container.fee_service.add_payment(term, s.person_id, 20000, now=fixed_now)
    renderer = _PlainRenderer()
    later = fixed_now + timedelta(days=90)

    result = container.term_service.close_and_start_new(renderer, now=later)

    old = repos.terms.get_by_id(term.term_id)
    assert old.closed and old.end_at == later
    assert result.closed_term_id == term.term_id
    assert result.snapshot.fees_income == 20000
    assert result.report_html == f"<p>{term.term_name}</p>"
    assert repos.terms.get_active_term_id() == result.new_term.term_id
    assert result.new_term.term_name.startswith(term.term_name + " → New")

    # the new term starts with an empty fee ledger
    assert container.fee_service.fee_overview(result.new_term).collected == 0


def test_failed_render_leaves_term_open(container, repos, term, fixed_now):
    with pytest.raises(RuntimeError):
        container.term_service.close_and_start_new(_BrokenRenderer(), now=fixed_now)

    assert not repos.terms.get_by_id(term.term_id).closed
    assert repos.terms.get_active_term_id() == term.term_id


def test_rollover_resumes_after_close(container, repos, term, fixed_now):
    repos.terms.close(term_id=term.term_id, end_at=fixed_now)

    result = container.term_service.close_and_start_new(_PlainRenderer(), now=fixed_now + timedelta(minutes=1))

    assert repos.terms.get_by_id(term.term_id).end_at == fixed_now
    assert repos.terms.get_active_term_id() == result.new_term.term_id
    assert len(repos.terms.terms) == 2
