"""Tests for campaign tools with the API calls replaced by fakes."""
import pytest

import tools.campaigns as campaigns
from oauth.errors import GoogleAdsError, NotFoundError
from tools.safety import BidLimitError, BudgetChangeError
from tools.session import NO_ACCOUNT_MESSAGE, AccountSession, MccAccountError

CUSTOMER = "1111111111"
MCC = "9999999999"


class MutateRecorder:
    """Stands in for both the per-resource and the atomic googleAds:mutate calls."""

    def __init__(self):
        self.calls = []
        self.batches = []
        self.error = None

    def __call__(self, customer_id, resource_path, operations, manager_id=""):
        self.calls.append((resource_path, operations))
        return {"results": [{"resourceName": f"customers/{customer_id}/{resource_path}/{len(self.calls)}00"}]}

    def atomic(self, customer_id, operations, manager_id=""):
        self.batches.append(operations)
        if self.error:
            raise self.error
        responses = []
        for index, operation in enumerate(operations, start=1):
            (op_type,) = operation
            result_key = op_type.replace("Operation", "Result")
            responses.append({result_key: {"resourceName": f"customers/{customer_id}/{op_type}/{index}"}})
        return {"mutateOperationResponses": responses}


@pytest.fixture
def mutate(monkeypatch):
    recorder = MutateRecorder()
    monkeypatch.setattr(campaigns, "mutate", recorder)
    monkeypatch.setattr(campaigns, "mutate_operations", recorder.atomic)
    return recorder


@pytest.fixture
def current_campaign(monkeypatch):
    row = {
        "campaign": {"id": "123", "name": "Spring Sale", "status": "ENABLED"},
        "campaignBudget": {"resourceName": f"customers/{CUSTOMER}/campaignBudgets/9", "amountMicros": "50000000"},
    }
    monkeypatch.setattr(campaigns, "execute_query", lambda customer_id, query: [row])
    monkeypatch.setattr(campaigns, "session", AccountSession(default_customer_id=CUSTOMER, mcc_id=MCC))
    return row


@pytest.fixture
def no_account(monkeypatch):
    monkeypatch.setattr(campaigns, "session", AccountSession())


class TestUpdateCampaign:
    def test_no_changes(self, current_campaign, mutate):
        result = campaigns.apply_campaign_update("123", status="ENABLED", name="Spring Sale")
        assert result.startswith("ℹ️  No changes to apply")
        assert mutate.batches == []

    def test_dry_run_budget_preview(self, current_campaign, mutate):
        result = campaigns.apply_campaign_update("123", budget_amount=60, dry_run=True)

        assert result.startswith("🔍 DRY RUN MODE")
        assert "Budget: $50.00 → $60.00" in result
        assert mutate.batches == []

    def test_budget_over_cap(self, current_campaign, mutate):
        with pytest.raises(BudgetChangeError):
            campaigns.apply_campaign_update("123", budget_amount=2000)
        assert mutate.batches == []

    def test_only_changed_fields_are_sent(self, current_campaign, mutate):
        result = campaigns.apply_campaign_update("123", name="Summer Sale", status="paused", budget_amount=50)

        assert result.startswith("✅ Campaign updated successfully!")
        assert mutate.batches == [[{"campaignOperation": {
            "update": {
                "resourceName": f"customers/{CUSTOMER}/campaigns/123",
                "status": "PAUSED",
                "name": "Summer Sale",
            },
            "updateMask": "status,name",
        }}]]

    def test_budget_update_goes_to_budget_resource(self, current_campaign, mutate):
        campaigns.apply_campaign_update("123", budget_amount=70)

        (operation,) = mutate.batches[0]
        assert operation["campaignBudgetOperation"]["update"] == {
            "resourceName": f"customers/{CUSTOMER}/campaignBudgets/9",
            "amountMicros": "70000000",
        }

    def test_budget_and_campaign_changes_share_one_request(self, current_campaign, mutate):
        mutate.error = GoogleAdsError("Campaign name already exists", 400)

        with pytest.raises(GoogleAdsError):
            campaigns.apply_campaign_update("123", name="Taken", budget_amount=70)

        assert len(mutate.batches) == 1
        assert [next(iter(op)) for op in mutate.batches[0]] == ["campaignBudgetOperation", "campaignOperation"]
        assert mutate.calls == []

    def test_missing_campaign(self, current_campaign, mutate, monkeypatch):
        monkeypatch.setattr(campaigns, "execute_query", lambda customer_id, query: [])
        with pytest.raises(NotFoundError):
            campaigns.apply_campaign_update("404", status="PAUSED")

    @pytest.mark.parametrize("kwargs", [
        {"campaign_id": "abc", "status": "PAUSED"},
        {"campaign_id": "123", "status": "ARCHIVED"},
        {"campaign_id": "123", "budget_amount": -5},
    ])
    def test_invalid_arguments(self, current_campaign, kwargs):
        with pytest.raises(ValueError):
            campaigns.apply_campaign_update(**kwargs)

    def test_pause_delegates_to_update(self, current_campaign, mutate, call_tool):
        call_tool(campaigns.pause_campaign, "123")
        assert mutate.batches[0][0]["campaignOperation"]["update"]["status"] == "PAUSED"

    def test_enable_already_enabled(self, current_campaign, mutate, call_tool):
        assert call_tool(campaigns.enable_campaign, "123").startswith("ℹ️  No changes")

    def test_pause_without_account_returns_guidance(self, no_account, mutate, call_tool):
        assert call_tool(campaigns.pause_campaign, "123") == NO_ACCOUNT_MESSAGE
        assert mutate.batches == []

    def test_refuses_explicit_mcc(self, current_campaign, mutate, call_tool):
        with pytest.raises(MccAccountError, match="Cannot use MCC account"):
            call_tool(campaigns.update_campaign, "123", status="PAUSED", customer_id="999-999-9999")
        assert mutate.batches == []


class TestCreateCampaign:
    def test_dry_run_defaults_to_paused(self, current_campaign, mutate, call_tool):
        result = call_tool(campaigns.create_campaign, name="Launch", budget_amount=50, dry_run=True)

        assert "Status: N/A → PAUSED" in result
        assert "Budget: $0.00 → $50.00" in result
        assert mutate.batches == []

    def test_creates_budget_and_campaign_atomically(self, current_campaign, mutate, call_tool):
        result = call_tool(campaigns.create_campaign, name="Launch", budget_amount=25.5, final_url_suffix="src=mcp")

        assert mutate.calls == []
        (budget_op, campaign_op) = mutate.batches[0]
        budget = budget_op["campaignBudgetOperation"]["create"]
        created = campaign_op["campaignOperation"]["create"]
        assert budget["amountMicros"] == "25500000"
        assert budget["resourceName"] == f"customers/{CUSTOMER}/campaignBudgets/-1"
        assert created["campaignBudget"] == budget["resourceName"]
        assert created["status"] == "PAUSED"
        assert created["finalUrlSuffix"] == "src=mcp"
        assert "networkSettings" in created
        assert f"Resource: customers/{CUSTOMER}/campaignOperation/2" in result
        assert "PAUSED status for safety" in result

    def test_rejected_campaign_leaves_no_budget_behind(self, current_campaign, mutate, call_tool):
        mutate.error = GoogleAdsError("Invalid campaign", 400)

        with pytest.raises(GoogleAdsError):
            call_tool(campaigns.create_campaign, name="Launch", budget_amount=10)

        assert len(mutate.batches) == 1
        assert mutate.calls == []

    def test_budget_over_cap(self, current_campaign, mutate, call_tool):
        with pytest.raises(BudgetChangeError):
            call_tool(campaigns.create_campaign, name="Big", budget_amount=5000)

    def test_invalid_type(self, current_campaign, call_tool):
        with pytest.raises(ValueError):
            call_tool(campaigns.create_campaign, name="X", budget_amount=10, campaign_type="RADIO")

    def test_requires_account(self, no_account, mutate, call_tool):
        assert call_tool(campaigns.create_campaign, name="X", budget_amount=10) == NO_ACCOUNT_MESSAGE
        assert mutate.batches == []

    def test_refuses_explicit_mcc(self, current_campaign, mutate, call_tool):
        with pytest.raises(MccAccountError):
            call_tool(campaigns.create_campaign, name="X", budget_amount=10, customer_id=MCC)
        assert mutate.batches == []


class TestCreateAdGroup:
    def test_defaults_to_paused(self, current_campaign, mutate, call_tool):
        result = call_tool(campaigns.create_ad_group, "123", "Shoes", cpc_bid=1.5)

        created = mutate.calls[0][1][0]["create"]
        assert created["status"] == "PAUSED"
        assert created["cpcBidMicros"] == "1500000"
        assert created["campaign"] == f"customers/{CUSTOMER}/campaigns/123"
        assert "Campaign: Spring Sale" in result
        assert "ID: 100" in result

    def test_dry_run(self, current_campaign, mutate, call_tool):
        result = call_tool(campaigns.create_ad_group, "123", "Shoes", dry_run=True)
        assert result.startswith("🔍 DRY RUN MODE\nAd Group: Spring Sale")
        assert mutate.calls == []

    def test_bid_over_max_is_refused(self, current_campaign, mutate, call_tool):
        with pytest.raises(BidLimitError):
            call_tool(campaigns.create_ad_group, "123", "Shoes", cpc_bid=150)
        assert mutate.calls == []

    def test_requires_account(self, no_account, mutate, call_tool):
        assert call_tool(campaigns.create_ad_group, "123", "Shoes") == NO_ACCOUNT_MESSAGE


@pytest.fixture
def current_ad_group(monkeypatch):
    row = {
        "adGroup": {"id": "77", "name": "Shoes", "status": "ENABLED", "cpcBidMicros": "1000000"},
        "campaign": {"name": "Spring Sale"},
    }
    monkeypatch.setattr(campaigns, "execute_query", lambda customer_id, query: [row])
    monkeypatch.setattr(campaigns, "session", AccountSession(default_customer_id=CUSTOMER))
    return row


class TestUpdateAdGroup:
    def test_only_changed_fields_are_sent(self, current_ad_group, mutate, call_tool):
        result = call_tool(campaigns.update_ad_group, "77", name="Shoes", status="paused", cpc_bid=1.25)

        resource_path, operations = mutate.calls[0]
        assert resource_path == "adGroups"
        assert operations == [{
            "update": {
                "resourceName": f"customers/{CUSTOMER}/adGroups/77",
                "status": "PAUSED",
                "cpcBidMicros": "1250000",
            },
            "updateMask": "status,cpcBidMicros",
        }]
        assert "✅ Ad group updated successfully!" in result
        assert "Bid: $1.00 → $1.25" in result

    def test_no_changes(self, current_ad_group, mutate, call_tool):
        result = call_tool(campaigns.update_ad_group, "77", status="ENABLED", cpc_bid=1.0)
        assert result.startswith("ℹ️  No changes to apply")
        assert mutate.calls == []

    def test_dry_run_warns_on_large_bid_move(self, current_ad_group, mutate, call_tool):
        result = call_tool(campaigns.update_ad_group, "77", cpc_bid=3, dry_run=True)

        assert result.startswith("🔍 DRY RUN MODE\nAd Group: Shoes")
        assert "Large bid change detected: 200.0% change" in result
        assert mutate.calls == []

    def test_bid_over_max_is_refused(self, current_ad_group, mutate, call_tool):
        with pytest.raises(BidLimitError):
            call_tool(campaigns.update_ad_group, "77", cpc_bid=20, max_bid=10)
        assert mutate.calls == []

    def test_missing_ad_group(self, current_ad_group, monkeypatch, call_tool):
        monkeypatch.setattr(campaigns, "execute_query", lambda customer_id, query: [])
        with pytest.raises(NotFoundError):
            call_tool(campaigns.update_ad_group, "78", status="PAUSED")


class TestReads:
    def test_get_campaign_performance(self, monkeypatch, call_tool):
        monkeypatch.setattr(campaigns, "session", AccountSession(default_customer_id=CUSTOMER))
        monkeypatch.setattr(campaigns, "execute_gaql", lambda cid, query: {"results": [{
            "campaign": {"id": "1", "name": "Brand"},
            "metrics": {"impressions": "200", "clicks": "10", "costMicros": "5000000", "conversions": 2.0},
        }]})

        result = call_tool(campaigns.get_campaign_performance, date_range="2024-01-01:2024-01-31")

        row = result["campaigns"][0]
        assert row["ctr"] == 5.0
        assert row["avg_cpc"] == 0.5
        assert row["cost_per_conversion"] == 2.5
        assert result["totals"]["cost"] == 5.0
        assert result["date_range"] == "2024-01-01:2024-01-31"

    def test_get_campaigns_without_account(self, monkeypatch, call_tool):
        monkeypatch.setattr(campaigns, "session", AccountSession())
        result = call_tool(campaigns.get_campaigns)
        assert result["campaigns"] == []
        assert "No active account" in result["message"]

    def test_reads_refuse_explicit_mcc(self, monkeypatch, call_tool):
        monkeypatch.setattr(campaigns, "session", AccountSession(default_customer_id=CUSTOMER, mcc_id=MCC))
        monkeypatch.setattr(campaigns, "execute_gaql", lambda cid, query: pytest.fail("queried the MCC"))

        result = call_tool(campaigns.get_campaigns, customer_id=MCC)

        assert result["campaigns"] == []
        assert result["message"].startswith(f"Cannot use MCC account ({MCC})")
