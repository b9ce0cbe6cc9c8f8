"""
API route tests through the FastAPI TestClient.
DB dependency is overridden with the per-test SQLite session (see conftest).
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from billing_core.services.errors import RetriesExhausted


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] in ("ok", "degraded")


class TestRenewalQuote:
    def test_minimal_quote(self, client):
        response = client.post("/quotes/renewal", json={})
        assert response.status_code == 200
        body = response.json()
        assert [i["unit_amount"] for i in body["line_items"]] == [20000, 22500]
        assert body["total_cents"] == 42500
        assert body["formatted_total"] == "$425.00"
        assert body["currency"] == "USD"

    def test_full_quote(self, client):
        registered = datetime.now(timezone.utc) - timedelta(days=int(5.8 * 365))
        response = client.post(
            "/quotes/renewal",
            json={
                "processing_speed": "rush",
                "section15": True,
                "section15_continuous": "yes",
                "section15_challenged": "no",
                "section9": True,
                "trademark_registration_date": registered.isoformat(),
            },
        )
        body = response.json()
        assert len(body["line_items"]) == 6
        assert body["total_cents"] == 145000
        assert body["formatted_total"] == "$1,450.00"
        assert body["in_grace_period"] is True

    def test_bad_speed(self, client):
        response = client.post("/quotes/renewal", json={"processing_speed": "warp"})
        assert response.status_code == 422

    def test_bad_date(self, client):
        response = client.post(
            "/quotes/renewal", json={"trademark_registration_date": "someday"}
        )
        assert response.status_code == 422


class TestLeadScore:
    def test_camel_case_payload(self, client):
        response = client.post(
            "/leads/score", json={"matterUrgency": 100, "budgetRange": 100}
        )
        assert response.status_code == 200
        assert response.json() == {
            "score": 45,
            "temperature": "cold",
            "max_achievable_score": 45,
        }

    def test_hot_lead(self, client):
        payload = {
            "matter_urgency": 90,
            "budget_range": 95,
            "referral_quality": 100,
            "response_time": 95,
            "practice_area_match": 90,
            "geographic_match": 85,
        }
        body = client.post("/leads/score", json=payload).json()
        assert body["score"] == 93
        assert body["temperature"] == "hot"


class TestLEDESConfigurations:
    def test_crud_cycle(self, client, valid_configuration_data):
        created = client.post("/ledes/configurations", json=valid_configuration_data)
        assert created.status_code == 201
        config = created.json()
        assert config["id"].startswith("ledes-")
        assert config["billing_rates"]["Partner"] == "450.00"

        config_id = config["id"]
        assert client.get(f"/ledes/configurations/{config_id}").status_code == 200
        assert len(client.get("/ledes/configurations").json()) == 1

        patched = client.patch(
            f"/ledes/configurations/{config_id}", json={"client_name": "Acme Group"}
        )
        assert patched.status_code == 200
        assert patched.json()["client_name"] == "Acme Group"
        assert patched.json()["format"] == "LEDES1998B"

        assert client.delete(f"/ledes/configurations/{config_id}").status_code == 204
        assert client.get(f"/ledes/configurations/{config_id}").status_code == 404

    def test_validation_errors_listed(self, client, valid_configuration_data):
        valid_configuration_data["client_name"] = ""
        valid_configuration_data["format"] = "LEDES1999"
        response = client.post("/ledes/configurations", json=valid_configuration_data)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "VALIDATION_ERROR"
        codes = {d["code"] for d in detail["details"]}
        assert codes == {"MISSING_CLIENT_NAME", "INVALID_FORMAT"}

    def test_invalid_patch_rejected(self, client, valid_configuration_data):
        config_id = client.post("/ledes/configurations", json=valid_configuration_data).json()["id"]
        response = client.patch(
            f"/ledes/configurations/{config_id}",
            json={"utbms_mapping": {"default_activity_code": "L110", "default_expense_code": "Z1"}},
        )
        assert response.status_code == 422
        assert client.get(f"/ledes/configurations/{config_id}").json()["utbms_mapping"][
            "default_expense_code"
        ] == "E100"

    def test_null_is_active_keeps_configuration_active(self, client, valid_configuration_data):
        config_id = client.post("/ledes/configurations", json=valid_configuration_data).json()["id"]
        response = client.patch(f"/ledes/configurations/{config_id}", json={"is_active": None})
        assert response.status_code == 200
        assert response.json()["is_active"] is True
        assert client.get(f"/ledes/configurations/{config_id}").json()["is_active"] is True

    def test_unknown_id(self, client):
        assert client.patch("/ledes/configurations/nope", json={}).status_code == 404
        assert client.delete("/ledes/configurations/nope").status_code == 404


class TestLEDESExport:
    @pytest.fixture
    def export_payload(self) -> dict:
        return {
            "invoice_number": "INV-1001",
            "invoice_date": "2026-01-31",
            "billing_start_date": "2026-01-01",
            "billing_end_date": "2026-01-31",
            "law_firm_id": "12-3456789",
            "entries": [
                {
                    "matter_id": "M-42",
                    "timekeeper_id": "TK1",
                    "timekeeper_name": "Jane Roe",
                    "timekeeper_classification": "Partner",
                    "entry_date": "2026-01-12",
                    "description": "Draft motion to dismiss",
                    "hours": "1.5",
                    "activity_type": "document_drafting",
                }
            ],
        }

    def test_export_written(self, client, valid_configuration_data, export_payload, export_dir):
        config_id = client.post("/ledes/configurations", json=valid_configuration_data).json()["id"]
        response = client.post(f"/ledes/configurations/{config_id}/exports", json=export_payload)
        assert response.status_code == 201
        body = response.json()
        assert body["record_count"] == 1
        assert body["total_cents"] == 67500
        assert body["formatted_total"] == "$675.00"
        assert body["storage_key"].endswith("LEDES1998B_ACME-001_INV-1001.txt")

    def test_non_1998b_configuration(self, client, valid_configuration_data, export_payload):
        valid_configuration_data["format"] = "LEDES2.0"
        config_id = client.post("/ledes/configurations", json=valid_configuration_data).json()["id"]
        response = client.post(f"/ledes/configurations/{config_id}/exports", json=export_payload)
        assert response.status_code == 400

    def test_missing_configuration(self, client, export_payload):
        response = client.post("/ledes/configurations/nope/exports", json=export_payload)
        assert response.status_code == 404


class TestTrustAccounts:
    def _open(self, client, balance="500.00") -> str:
        response = client.post(
            "/trust-accounts",
            json={"name": "Smith Retainer", "client_id": "SMITH-01", "opening_balance": balance},
        )
        assert response.status_code == 201
        return response.json()["id"]

    def test_open_and_read(self, client):
        account_id = self._open(client, "$1,250.50")
        body = client.get(f"/trust-accounts/{account_id}").json()
        assert body["balance_cents"] == 125050
        assert body["formatted_balance"] == "$1,250.50"

    def test_deposit_and_withdraw(self, client):
        account_id = self._open(client)
        deposit = client.post(
            f"/trust-accounts/{account_id}/balance", json={"amount": "100", "operation": "add"}
        )
        assert deposit.status_code == 200
        assert deposit.json()["balance_cents"] == 60000
        withdraw = client.post(
            f"/trust-accounts/{account_id}/balance",
            json={"amount": 250.25, "operation": "subtract"},
        )
        assert withdraw.json()["balance_cents"] == 34975
        assert client.get(f"/trust-accounts/{account_id}").json()["version"] == 2

    def test_overdraw_is_conflict(self, client):
        account_id = self._open(client)
        response = client.post(
            f"/trust-accounts/{account_id}/balance",
            json={"amount": "500.01", "operation": "subtract"},
        )
        assert response.status_code == 409
        assert client.get(f"/trust-accounts/{account_id}").json()["balance_cents"] == 50000

    def test_limit_and_bad_amounts_unprocessable(self, client):
        account_id = self._open(client)
        for amount in ("9999999.99", "-5", "abc", "1e30"):
            response = client.post(
                f"/trust-accounts/{account_id}/balance",
                json={"amount": amount, "operation": "add"},
            )
            assert response.status_code == 422, amount

    def test_unknown_account(self, client):
        response = client.post(
            f"/trust-accounts/{uuid.uuid4()}/balance", json={"amount": "1", "operation": "add"}
        )
        assert response.status_code == 404
        assert client.get(f"/trust-accounts/{uuid.uuid4()}").status_code == 404

    def test_retries_exhausted_is_503(self, client, monkeypatch):
        account_id = self._open(client)

        def always_conflicting(*args, **kwargs):
            raise RetriesExhausted("conflict", attempts=3)

        monkeypatch.setattr(
            "billing_core.routers.trust.atomic_balance_update", always_conflicting
        )
        response = client.post(
            f"/trust-accounts/{account_id}/balance", json={"amount": "1", "operation": "add"}
        )
        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
