"""Tests for hdinsight_cli.workflow.create_cluster — the provisioning state machine.

Covers:
1. Request assembly (options > config > prompts)
2. CheckExisting / ValidateLocation / RegisterLocation / SubmitCreate / WaitReady
3. Outcome mapping in run_create_workflow
4. Module exports
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from hdinsight_cli.cluster.monitor import PollingEngine
from hdinsight_cli.config.models import ClusterCreationRequest
from hdinsight_cli.errors import (
    EXIT_CONFLICT,
    EXIT_REMOTE_FAILURE,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILURE,
    ConflictError,
    IncompatibleSchema,
    ProvisioningFailed,
    RemoteRejection,
    TransportError,
    ValidationError,
)
from hdinsight_cli.service.client import ListClustersResult, StatusResult
from hdinsight_cli.workflow.create_cluster import (
    ProvisioningContext,
    WorkflowStatus,
    build_creation_request,
    create_cluster,
    run_create_workflow,
)

FULL = {
    "name": "c1",
    "node_count": 3,
    "location": "westus",
    "storage_account_name": "acct",
    "storage_account_key": "key",
    "storage_container": "data",
    "user": "admin",
    "password": "pw",
}


# ── helpers ──────────────────────────────────────────────────────────────


def _request(**overrides) -> ClusterCreationRequest:
    values = {**FULL, **overrides}
    return ClusterCreationRequest.model_validate(values)


def _ctx(client, sleep=None) -> ProvisioningContext:
    return ProvisioningContext(
        client=client,
        poller=PollingEngine(sleep_fn=sleep or (lambda _: None)),
    )


def _listed(*clusters) -> ListClustersResult:
    return ListClustersResult(status_code=200, clusters=list(clusters))


# ── build_creation_request ───────────────────────────────────────────────


class TestBuildCreationRequest:
    def test_overrides_only(self):
        req = build_creation_request(overrides=FULL)
        assert req.missing_fields() == []
        assert req.node_count == 3

    def test_missing_without_prompt(self):
        with pytest.raises(ValidationError) as excinfo:
            build_creation_request(overrides={"name": "c1"})
        msg = str(excinfo.value)
        assert "Location" in msg
        assert "Admin password" in msg
        assert "Cluster name" not in msg

    def test_config_then_override(self, tmp_path):
        p = tmp_path / "c.json"
        p.write_text(json.dumps({
            "version": 1.0,
            "name": "from-config",
            "nodes": 2,
            "location": "eastus",
            "storageAccountName": "acct",
            "storageAccountKey": "key",
            "storageContainer": "data",
            "user": "admin",
            "password": "pw",
            "additionalStorageAccounts": [{"name": "extra", "key": "k"}],
        }))
        req = build_creation_request(
            config_path=str(p), overrides={"name": "from-option", "location": None},
        )
        assert req.name == "from-option"
        assert req.location == "eastus"
        assert req.node_count == 2
        assert req.additional_storage_accounts[0].name == "extra"

    def test_incompatible_config(self, tmp_path):
        p = tmp_path / "c.json"
        p.write_text(json.dumps({"version": 2.0, "name": "c1"}))
        with pytest.raises(IncompatibleSchema):
            build_creation_request(config_path=str(p), overrides=FULL)

    def test_prompts_only_for_missing(self):
        prompt = MagicMock(side_effect=["westus", "s3cret"])
        partial = {k: v for k, v in FULL.items() if k not in ("location", "password")}
        req = build_creation_request(overrides=partial, prompt=prompt)
        assert req.location == "westus"
        assert req.password == "s3cret"
        labels = [c.args for c in prompt.call_args_list]
        assert labels == [("Location", False), ("Admin password", True)]

    def test_prompted_nodes_coerced(self):
        partial = {k: v for k, v in FULL.items() if k != "node_count"}
        req = build_creation_request(overrides=partial, prompt=lambda label, secret: "5")
        assert req.node_count == 5

    @pytest.mark.parametrize("answer", ["0", "-2", "many"])
    def test_bad_prompted_nodes(self, answer):
        partial = {k: v for k, v in FULL.items() if k != "node_count"}
        with pytest.raises(ValidationError, match="Number of data nodes"):
            build_creation_request(overrides=partial, prompt=lambda label, secret: answer)

    def test_empty_prompt_answer(self):
        partial = {k: v for k, v in FULL.items() if k != "user"}
        with pytest.raises(ValidationError, match="Admin user name"):
            build_creation_request(overrides=partial, prompt=lambda label, secret: "")

    def test_invalid_value_named(self):
        with pytest.raises(ValidationError, match="Number of data nodes: 0"):
            build_creation_request(overrides={**FULL, "node_count": 0})

    def test_invalid_secret_masked(self):
        with pytest.raises(ValidationError) as excinfo:
            build_creation_request(overrides={**FULL, "password": 12345})
        assert "Admin password: ****" in str(excinfo.value)
        assert "12345" not in str(excinfo.value)


# ── create_cluster scenarios ─────────────────────────────────────────────


class TestCheckExisting:
    def test_case_insensitive_conflict(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(make_cluster("C1", state="Running"))]
        with pytest.raises(ConflictError) as excinfo:
            create_cluster(_ctx(fake_client), _request())
        assert excinfo.value.cluster.name == "C1"
        assert "create_cluster" not in fake_client.names()
        assert "validate_location" not in fake_client.names()

    def test_list_failure_is_remote_rejection(self, fake_client):
        fake_client.list_responses = [ListClustersResult(status_code=500)]
        with pytest.raises(RemoteRejection):
            create_cluster(_ctx(fake_client), _request())
        assert "create_cluster" not in fake_client.names()


class TestValidateLocation:
    def test_registered_location_skips_register(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        create_cluster(_ctx(fake_client), _request())
        assert "register_location" not in fake_client.names()

    def test_404_registers_then_polls_until_200(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        fake_client.validate_responses = [
            StatusResult(404),
            StatusResult(404),
            StatusResult(404),
            StatusResult(200),
        ]
        sleep = MagicMock()
        create_cluster(_ctx(fake_client, sleep), _request())

        names = fake_client.names()
        assert names.count("register_location") == 1
        assert names.count("validate_location") == 4
        reg = names.index("register_location")
        create = names.index("create_cluster")
        assert reg < create
        assert names[reg + 1:create] == ["validate_location"] * 3
        assert sleep.call_count >= 2

    def test_register_exhaustion_still_submits(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        fake_client.validate_responses = [StatusResult(404)]
        create_cluster(_ctx(fake_client), _request())
        names = fake_client.names()
        # 1 initial validate + 26 polled
        assert names.count("validate_location") == 27
        assert "create_cluster" in names

    def test_unexpected_status_fails(self, fake_client):
        fake_client.validate_responses = [StatusResult(403, body="denied")]
        with pytest.raises(RemoteRejection) as excinfo:
            create_cluster(_ctx(fake_client), _request())
        assert excinfo.value.status_code == 403
        assert "register_location" not in fake_client.names()
        assert "create_cluster" not in fake_client.names()


class TestSubmitCreate:
    @pytest.mark.parametrize("code", [200, 202])
    def test_accepted(self, fake_client, make_cluster, code):
        fake_client.create_status = code
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        assert create_cluster(_ctx(fake_client), _request()).name == "c1"

    def test_500_rejected_never_waits(self, fake_client):
        fake_client.create_status = 500
        with pytest.raises(RemoteRejection) as excinfo:
            create_cluster(_ctx(fake_client), _request())
        assert excinfo.value.status_code == 500
        names = fake_client.names()
        assert names[-1] == "create_cluster"
        assert names.count("list_clusters") == 1

    def test_request_passed_through(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        req = _request()
        create_cluster(_ctx(fake_client), req)
        submitted = [args for name, args in fake_client.calls if name == "create_cluster"]
        assert submitted == [(req,)]


class TestWaitReady:
    def test_succeeds_after_progress(self, fake_client, make_cluster):
        fake_client.list_responses = [
            _listed(),
            _listed(),
            _listed(make_cluster("c1", state="Requested")),
            _listed(make_cluster("c1", state="Registering")),
            _listed(make_cluster("c1", state="Operational")),
        ]
        cluster = create_cluster(_ctx(fake_client), _request())
        assert cluster.state.value == "Operational"

    def test_error_state_fails_with_entity(self, fake_client, make_cluster):
        broken = make_cluster("c1", state="Error", error="ProvisioningFailed")
        fake_client.list_responses = [
            _listed(),
            _listed(make_cluster("c1", state="Requested")),
            _listed(broken),
        ]
        with pytest.raises(ProvisioningFailed) as excinfo:
            create_cluster(_ctx(fake_client), _request())
        assert excinfo.value.cluster == broken
        assert "ProvisioningFailed" in str(excinfo.value)

    def test_cluster_never_appears(self, fake_client):
        fake_client.list_responses = [_listed()]
        with pytest.raises(ProvisioningFailed) as excinfo:
            create_cluster(_ctx(fake_client), _request())
        assert excinfo.value.cluster is None
        # 1 existence check + 26 polls + 1 final re-fetch
        assert fake_client.names().count("list_clusters") == 28

    def test_transient_list_errors_tolerated(self, fake_client, make_cluster):
        fake_client.list_responses = [
            _listed(),
            TransportError("reset"),
            ListClustersResult(status_code=503),
            _listed(make_cluster("c1", state="Running")),
        ]
        assert create_cluster(_ctx(fake_client), _request()).name == "c1"

    def test_final_refetch_failure_propagates(self, fake_client, make_cluster):
        fake_client.list_responses = [
            _listed(),
            _listed(make_cluster("c1", state="Running")),
            TransportError("gone"),
        ]
        with pytest.raises(TransportError):
            create_cluster(_ctx(fake_client), _request())

    def test_incomplete_request_rejected_before_remote_calls(self, fake_client):
        with pytest.raises(ValidationError):
            create_cluster(_ctx(fake_client), _request(password=None))
        assert fake_client.calls == []


# ── run_create_workflow ──────────────────────────────────────────────────


class TestRunCreateWorkflow:
    def test_succeeded(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(), _listed(make_cluster("c1"))]
        outcome = run_create_workflow(_ctx(fake_client), overrides=FULL)
        assert outcome.status == WorkflowStatus.SUCCEEDED
        assert outcome.succeeded
        assert outcome.cluster.name == "c1"
        assert outcome.exit_code == EXIT_SUCCESS

    def test_aborted_on_conflict(self, fake_client, make_cluster):
        fake_client.list_responses = [_listed(make_cluster("C1"))]
        outcome = run_create_workflow(_ctx(fake_client), overrides=FULL)
        assert outcome.status == WorkflowStatus.ABORTED
        assert outcome.cluster.name == "C1"
        assert outcome.exit_code == EXIT_CONFLICT

    def test_failed_with_cluster(self, fake_client, make_cluster):
        fake_client.list_responses = [
            _listed(),
            _listed(make_cluster("c1", state="Error", error="ProvisioningFailed")),
        ]
        outcome = run_create_workflow(_ctx(fake_client), overrides=FULL)
        assert outcome.status == WorkflowStatus.FAILED
        assert outcome.cluster.error == "ProvisioningFailed"
        assert outcome.exit_code == EXIT_REMOTE_FAILURE

    def test_failed_on_rejection(self, fake_client):
        fake_client.create_status = 500
        outcome = run_create_workflow(_ctx(fake_client), overrides=FULL)
        assert outcome.status == WorkflowStatus.FAILED
        assert isinstance(outcome.error, RemoteRejection)
        assert outcome.cluster is None

    def test_validation_failure_makes_no_remote_calls(self, fake_client):
        outcome = run_create_workflow(_ctx(fake_client), overrides={"name": "c1"})
        assert outcome.status == WorkflowStatus.FAILED
        assert isinstance(outcome.error, ValidationError)
        assert outcome.exit_code == EXIT_VALIDATION_FAILURE
        assert fake_client.calls == []


# ── Module exports ──────────────────────────────────────────────────────


class TestWorkflowExports:
    def test_exports(self):
        import hdinsight_cli.workflow as wf

        assert hasattr(wf, "run_create_workflow")
        assert hasattr(wf, "create_cluster")
        assert hasattr(wf, "build_creation_request")
        assert hasattr(wf, "show_cluster")
        assert hasattr(wf, "list_clusters")
        assert hasattr(wf, "delete_cluster")
