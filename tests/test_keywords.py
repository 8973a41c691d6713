"""Tests for keyword reads and writes with the API calls replaced by fakes."""
import pytest

import tools.keywords as keywords
from oauth.errors import GoogleAdsError, NotFoundError
from tools.safety import BidLimitError
from tools.session import NO_ACCOUNT_MESSAGE, AccountSession, MccAccountError

CUSTOMER = "1111111111"
MCC = "9999999999"


class MutateRecorder:
    def __init__(self):
        self.calls = []
        self.error = None

    def __call__(self, customer_id, resource_path, operations, manager_id=""):
        self.calls.append((resource_path, operations))
        if self.error:
            raise self.error
        return {"results": [{"resourceName": f"customers/{customer_id}/{resource_path}/{i}"} for i in range(len(operations))]}


def criterion(criterion_id, text, status="ENABLED", bid_micros="1000000", negative=False):
    return {"adGroupCriterion": {
        "criterionId": criterion_id,
        "resourceName": f"customers/{CUSTOMER}/adGroupCriteria/77~{criterion_id}",
        "keyword": {"text": text, "matchType": "EXACT"},
        "cpcBidMicros": bid_micros,
        "status": status,
        "negative": negative,
    }}


@pytest.fixture
def mutate(monkeypatch):
    recorder = MutateRecorder()
    monkeypatch.setattr(keywords, "mutate", recorder)
    return recorder


@pytest.fixture
def account(monkeypatch):
    monkeypatch.setattr(keywords, "session", AccountSession(default_customer_id=CUSTOMER, mcc_id=MCC))


@pytest.fixture
def ad_group(account, monkeypatch):
    row = {"adGroup": {"id": "77", "name": "Shoes"}, "campaign": {"id": "123", "name": "Spring Sale"}}
    monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: [row])


@pytest.fixture
def criteria(account, monkeypatch):
    rows = [criterion("1", "running shoes"), criterion("2", "cheap shoes", negative=True), criterion("3", "trail shoes", status="PAUSED")]
    monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: rows)
    return rows


class TestGetKeywords:
    def test_converts_micros_and_estimates(self, account, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_gaql", lambda cid, query: {"results": [{
            "campaign": {"id": "123", "name": "Spring Sale"},
            "adGroup": {"id": "77", "name": "Shoes"},
            "adGroupCriterion": {
                "criterionId": "1",
                "keyword": {"text": "running shoes", "matchType": "PHRASE"},
                "status": "ENABLED",
                "qualityInfo": {"qualityScore": 7},
                "cpcBidMicros": "1500000",
                "positionEstimates": {"firstPageCpcMicros": "800000"},
            },
        }]})

        result = call_tool(keywords.get_keywords, campaign_id="123")

        (kw,) = result["keywords"]
        assert kw["keyword"] == "running shoes"
        assert kw["match_type"] == "PHRASE"
        assert kw["quality_score"] == 7
        assert kw["cpc_bid_dollars"] == 1.5
        assert kw["first_page_cpc_dollars"] == 0.8
        assert kw["top_of_page_cpc_dollars"] is None
        assert result["total"] == 1

    def test_empty(self, account, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_gaql", lambda cid, query: {"results": []})
        assert call_tool(keywords.get_keywords)["message"] == "No keywords found."

    def test_without_account(self, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "session", AccountSession())
        assert call_tool(keywords.get_keywords)["message"] == NO_ACCOUNT_MESSAGE

    def test_explicit_mcc_returns_guidance(self, account, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_gaql", lambda cid, query: pytest.fail("queried the MCC"))
        result = call_tool(keywords.get_keywords, customer_id=MCC)
        assert result["message"].startswith(f"Cannot use MCC account ({MCC})")


class TestGetSearchTerms:
    def test_derives_ctr_and_cpc(self, account, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_gaql", lambda cid, query: {"results": [{
            "campaign": {"name": "Spring Sale"},
            "adGroup": {"name": "Shoes"},
            "searchTermView": {"searchTerm": "red running shoes", "status": "NONE"},
            "metrics": {"impressions": "400", "clicks": "20", "costMicros": "10000000", "conversions": 1.0},
        }]})

        result = call_tool(keywords.get_search_terms, date_range="LAST_7_DAYS")

        (term,) = result["search_terms"]
        assert term["search_term"] == "red running shoes"
        assert term["ctr"] == 5.0
        assert term["avg_cpc"] == 0.5
        assert term["cost"] == 10.0
        assert result["date_range"] == "LAST_7_DAYS"

    def test_rejects_bad_date_range(self, account, call_tool):
        with pytest.raises(ValueError):
            call_tool(keywords.get_search_terms, date_range="FOREVER")


class TestAddKeywords:
    def test_creates_criteria(self, ad_group, mutate, call_tool):
        result = call_tool(keywords.add_keywords, "77", ["running shoes", {"text": "buy sneakers", "match_type": "exact", "cpc_bid": 1.2}])

        resource_path, operations = mutate.calls[0]
        assert resource_path == "adGroupCriteria"
        assert operations[0] == {"create": {
            "adGroup": f"customers/{CUSTOMER}/adGroups/77",
            "status": "ENABLED",
            "keyword": {"text": "running shoes", "matchType": "BROAD"},
        }}
        assert operations[1]["create"]["cpcBidMicros"] == "1200000"
        assert operations[1]["create"]["keyword"]["matchType"] == "EXACT"
        assert "Keywords added: 2" in result
        assert '"buy sneakers" (EXACT)' in result

    def test_dry_run_lists_keywords(self, ad_group, mutate, call_tool):
        result = call_tool(keywords.add_keywords, "77", [{"text": "buy sneakers", "cpc_bid": 2}], dry_run=True)

        assert result.startswith("🔍 DRY RUN MODE\nKeywords: Shoes (Campaign: Spring Sale)")
        assert '"buy sneakers" bid: $0.00 → $2.00' in result
        assert "Keywords to add:" in result
        assert mutate.calls == []

    def test_bid_over_max_is_refused(self, ad_group, mutate, call_tool):
        with pytest.raises(BidLimitError):
            call_tool(keywords.add_keywords, "77", [{"text": "luxury shoes", "cpc_bid": 12}], max_bid=10)
        assert mutate.calls == []

    @pytest.mark.parametrize("specs", [[], [{"text": " "}], [{"text": "x", "match_type": "FUZZY"}], [{"text": "x", "cpc_bid": 0}]])
    def test_invalid_keywords(self, ad_group, mutate, specs, call_tool):
        with pytest.raises(ValueError):
            call_tool(keywords.add_keywords, "77", specs)

    def test_missing_ad_group(self, account, mutate, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: [])
        with pytest.raises(NotFoundError):
            call_tool(keywords.add_keywords, "78", ["shoes"])

    def test_requires_account(self, monkeypatch, mutate, call_tool):
        monkeypatch.setattr(keywords, "session", AccountSession())
        assert call_tool(keywords.add_keywords, "77", ["shoes"]) == NO_ACCOUNT_MESSAGE
        assert mutate.calls == []

    def test_refuses_explicit_mcc(self, ad_group, mutate, call_tool):
        with pytest.raises(MccAccountError):
            call_tool(keywords.add_keywords, "77", ["shoes"], customer_id=MCC)

    def test_api_error_propagates(self, ad_group, mutate, call_tool):
        mutate.error = GoogleAdsError("Duplicate keyword", 400)
        with pytest.raises(GoogleAdsError):
            call_tool(keywords.add_keywords, "77", ["shoes"])


class TestUpdateKeywordBids:
    def test_skips_negative_keywords(self, criteria, mutate, call_tool):
        result = call_tool(keywords.update_keyword_bids, ["1", "2", "3"], cpc_bid=1.25)

        resource_path, operations = mutate.calls[0]
        assert resource_path == "adGroupCriteria"
        assert [op["update"]["resourceName"].split("~")[1] for op in operations] == ["1", "3"]
        assert all(op["updateMask"] == "cpcBidMicros" for op in operations)
        assert operations[0]["update"]["cpcBidMicros"] == "1250000"
        assert "Updated 2 keywords to $1.25 CPC" in result

    def test_dry_run_warns_per_keyword(self, criteria, mutate, call_tool):
        result = call_tool(keywords.update_keyword_bids, ["1"], cpc_bid=3, dry_run=True)

        assert '"running shoes" bid: $1.00 → $3.00' in result
        assert '"running shoes" bid: Large bid change detected: 200.0% change' in result
        assert mutate.calls == []

    def test_bid_over_max_is_refused(self, criteria, mutate, call_tool):
        with pytest.raises(BidLimitError):
            call_tool(keywords.update_keyword_bids, ["1"], cpc_bid=150)
        assert mutate.calls == []

    def test_only_negatives(self, account, mutate, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: [criterion("2", "cheap", negative=True)])
        result = call_tool(keywords.update_keyword_bids, ["2"], cpc_bid=1)
        assert result.startswith("ℹ️  No keywords eligible")
        assert mutate.calls == []

    @pytest.mark.parametrize("ids, bid", [([], 1.0), (["abc"], 1.0), (["1"], 0), (["1"], -2)])
    def test_invalid_arguments(self, criteria, ids, bid, call_tool):
        with pytest.raises(ValueError):
            call_tool(keywords.update_keyword_bids, ids, cpc_bid=bid)

    def test_unknown_ids(self, account, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: [])
        with pytest.raises(NotFoundError):
            call_tool(keywords.update_keyword_bids, ["404"], cpc_bid=1)


class TestPauseKeywords:
    def test_pauses_only_enabled(self, criteria, mutate, call_tool):
        result = call_tool(keywords.pause_keywords, ["1", "2", "3"])

        (_, operations) = mutate.calls[0]
        assert [op["update"]["status"] for op in operations] == ["PAUSED", "PAUSED"]
        assert all(op["updateMask"] == "status" for op in operations)
        assert result == "✅ Keywords paused successfully!\n\nPaused 2 keywords."

    def test_all_already_paused(self, account, mutate, monkeypatch, call_tool):
        monkeypatch.setattr(keywords, "execute_query", lambda customer_id, query: [criterion("3", "trail", status="PAUSED")])
        assert call_tool(keywords.pause_keywords, ["3"]) == "ℹ️  All selected keywords are already paused."
        assert mutate.calls == []

    def test_dry_run(self, criteria, mutate, call_tool):
        result = call_tool(keywords.pause_keywords, ["1"], dry_run=True)
        assert '"running shoes": ENABLED → PAUSED' in result
        assert mutate.calls == []
