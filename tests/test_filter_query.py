"""Compiled predicates against the database, always scoped to one company."""

from crm.app.models import Lead
from crm.app.schemas.analytics import FilterRow
from crm.app.services.filters.compiler import compile_filters
from crm.app.services.filters.query import lead_where


def _names(db, company_id, *rows):
    predicate = compile_filters([FilterRow(id=str(i), **row) for i, row in enumerate(rows)])
    leads = db.query(Lead).filter(*lead_where(predicate, company_id)).all()
    return sorted(lead.first_name for lead in leads)


class TestLeadFields:
    def test_no_filters_returns_tenant_leads_only(self, db, tenant, pipeline):
        assert _names(db, tenant["company"].id) == ["Ana", "Bo", "Cy"]

    def test_status_in(self, db, tenant, pipeline):
        row = {"field": "status", "operator": "in", "value": "NEW,CONVERTED"}
        assert _names(db, tenant["company"].id, row) == ["Ana", "Bo"]

    def test_illegal_operator_does_not_narrow(self, db, tenant, pipeline):
        row = {"field": "status", "operator": "gt", "value": "NEW"}
        assert _names(db, tenant["company"].id, row) == ["Ana", "Bo", "Cy"]

    def test_score_between_is_inclusive(self, db, tenant, pipeline):
        row = {"field": "score", "operator": "between", "value": "40", "value2": "80"}
        assert _names(db, tenant["company"].id, row) == ["Ana", "Bo"]

    def test_tags_contains_escapes_wildcards(self, db, tenant, pipeline):
        company_id = tenant["company"].id
        assert _names(db, company_id, {"field": "tags", "operator": "contains", "value": "vip"}) == ["Ana"]
        assert _names(db, company_id, {"field": "tags", "operator": "contains", "value": "%"}) == ["Bo"]
        assert _names(db, company_id, {"field": "tags", "operator": "startsWith", "value": "hot"}) == []

    def test_assigned_to(self, db, tenant, pipeline):
        row = {"field": "assignedToId", "operator": "equals", "value": str(tenant["employee"].id)}
        assert _names(db, tenant["company"].id, row) == ["Cy"]

    def test_created_last_30_days(self, db, tenant, pipeline):
        row = {"field": "createdAt", "operator": "last30days"}
        assert _names(db, tenant["company"].id, row) == ["Ana", "Bo"]

    def test_rows_are_anded(self, db, tenant, pipeline):
        rows = (
            {"field": "createdAt", "operator": "last30days"},
            {"field": "score", "operator": "lt", "value": "50"},
        )
        assert _names(db, tenant["company"].id, *rows) == ["Bo"]


class TestDealFields:
    def test_deal_stage(self, db, tenant, pipeline):
        row = {"field": "deal.stage", "operator": "equals", "value": "CLOSED_WON"}
        assert _names(db, tenant["company"].id, row) == ["Bo"]

    def test_leads_without_deals_never_match(self, db, tenant, pipeline):
        row = {"field": "deal.value", "operator": "gte", "value": "0"}
        assert _names(db, tenant["company"].id, row) == ["Ana", "Bo"]

    def test_deal_value_range(self, db, tenant, pipeline):
        row = {"field": "deal.value", "operator": "between", "value": "100", "value2": "300"}
        assert _names(db, tenant["company"].id, row) == ["Bo"]

    def test_deal_closed_recently(self, db, tenant, pipeline):
        row = {"field": "deal.closedAt", "operator": "last7days"}
        assert _names(db, tenant["company"].id, row) == ["Bo"]

    def test_other_tenant_deals_do_not_leak(self, db, tenant, other_tenant, pipeline):
        row = {"field": "deal.value", "operator": "gt", "value": "7000"}
        assert _names(db, tenant["company"].id, row) == []
        assert _names(db, other_tenant["company"].id, row) == ["Xi"]
