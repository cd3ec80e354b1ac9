from __future__ import annotations

from datetime import datetime

from school_ledger.reports.renderer import HtmlTermReportRenderer, money, number, short_date
from school_ledger.terms.model import TermSnapshot


def _snapshot(**overrides):
    values = dict(
        term_id=3,
        term_name="Second <Term>",
        start_at=datetime(2026, 1, 5, 8, 0),
        fees_income=250000,
        inv_income=12000,
        inv_refunds=2000,
        total_income=260000,
        total_expenses=300000.0,
        net=-40000.0,
        student_present_days=1234,
        teacher_present_days=56,
        students_count=80,
    )
    values.update(overrides)
    return TermSnapshot(**values)


def test_filters():
    assert money(1234567.4) == "₦1,234,567"
    assert money(-5) == "₦0"
    assert number(None) == "0"
    assert short_date(None) == "—"
    assert short_date(datetime(2026, 3, 1)) == "01/03/2026"


def test_render_deficit_report():
    html = HtmlTermReportRenderer(school_name="Test Academy", prepared_by="Bursar", approved_by="Head").render(
        _snapshot(), now=datetime(2026, 4, 1, 15, 0)
    )

    assert "Test Academy" in html
    assert "Second &lt;Term&gt;" in html
    assert "NET DEFICIT" in html
    assert "₦40,000" in html
    assert "₦250,000" in html
    assert "1,234" in html
    assert "05/01/2026" in html
    assert "01/04/2026, 15:00:00" in html
    assert "Prepared by: Bursar" in html
    assert "Approved by: Head" in html


def test_render_surplus_report():
    html = HtmlTermReportRenderer().render(_snapshot(total_expenses=10000.0, net=250000.0), now=datetime(2026, 4, 1))
    assert "NET SURPLUS" in html
    assert "kpi-value text-success" in html
