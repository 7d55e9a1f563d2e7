"""
Unit tests for the pod security admission controller
"""

import base64
import json

import pytest

from conftest import create_request, invalid_pod_spec, make_pod, make_workload, valid_pod_spec
from podsec.admission.admission_controller import AdmissionController
from podsec.config import ValidationConfig
from podsec.responses import AdmissionDecision
from podsec.validators.base import Rule, ValidationResult
from podsec.validators.catalog import RuleCatalog


def test_validate_allowed_pod(admission_controller, valid_pod):
    """Test validation of an allowed pod."""
    request = create_request(valid_pod)

    allowed, message = admission_controller.validate_request(request)

    assert allowed is True
    assert message["response"]["status"] == {"code": 200}
    assert "patch" not in message["response"]


def test_validate_invalid_pod_fails_on_first_rule(admission_controller, invalid_pod):
    request = create_request(invalid_pod)

    allowed, message = admission_controller.validate_request(request)
    status = message["response"]["status"]

    assert allowed is False
    assert status["code"] == 403
    assert status["reason"] == "Forbidden"
    assert status["message"] == (
        "failed validation - failed validation run-as-non-root for pod/test-pod in namespace default"
        " - unable to permit pod attempting to run as root for containers invalid"
    )
    for later_rule in ["privileged-container", "host-pid", "host-network", "default-service-account"]:
        assert later_rule not in status["message"]


def test_validate_pod_scoped_failure_has_no_container_list(invalid_pod):
    config = ValidationConfig(
        rule_overrides={
            "VALIDATE_RUN_AS_NON_ROOT": "false",
            "VALIDATE_PRIVILEGED_CONTAINER": "false",
            "VALIDATE_PRIVILEGE_ESCALATION_CONTAINER": "false",
        }
    )

    allowed, message = AdmissionController(config).validate_request(create_request(invalid_pod))

    assert allowed is False
    assert message["response"]["status"]["message"].endswith(
        "failed validation host-pid for pod/test-pod in namespace default - unable to permit pod with hostPID"
    )


def test_validate_default_service_account(admission_controller):
    spec = valid_pod_spec()
    spec["serviceAccountName"] = "default"

    allowed, message = admission_controller.validate_request(create_request(make_pod(spec)))

    assert allowed is False
    assert "default-service-account" in message["response"]["status"]["message"]
    assert "use the default service account" in message["response"]["status"]["message"]


@pytest.mark.parametrize("kind", ["Deployment", "StatefulSet", "DaemonSet", "Job", "CronJob"])
def test_validate_workloads(admission_controller, kind):
    allowed, _ = admission_controller.validate_request(create_request(make_workload(kind, valid_pod_spec())))
    denied, message = admission_controller.validate_request(
        create_request(make_workload(kind, invalid_pod_spec(), name="bad"))
    )

    assert allowed is True
    assert denied is False
    assert f"{kind.lower()}/bad in namespace default" in message["response"]["status"]["message"]


def test_uid_and_api_version_are_echoed(admission_controller, valid_pod):
    request = create_request(valid_pod, uid="abc-123")
    request["apiVersion"] = "admission.k8s.io/v1beta1"

    _, message = admission_controller.validate_request(request)

    assert message["apiVersion"] == "admission.k8s.io/v1beta1"
    assert message["kind"] == "AdmissionReview"
    assert message["response"]["uid"] == "abc-123"


def test_unsupported_kind_is_internal_error(admission_controller, service_resource):
    allowed, message = admission_controller.validate_request(create_request(service_resource))

    assert allowed is False
    assert message["response"]["status"]["code"] == 500
    assert "[Service]" in message["response"]["status"]["message"]


@pytest.mark.parametrize("review", [None, [], "review"])
def test_undecodable_review_is_bad_request(admission_controller, review):
    allowed, message = admission_controller.validate_request(review)

    assert allowed is False
    assert message["response"]["uid"] is None
    assert message["response"]["status"]["code"] == 400


@pytest.mark.parametrize(
    "review",
    [
        {},
        {"request": None},
        {"request": {"uid": "x", "object": {"kind": "Pod"}}},
    ],
)
def test_malformed_review_is_bad_request(admission_controller, review):
    allowed, message = admission_controller.validate_request(review)

    assert allowed is False
    assert message["response"]["status"]["code"] == 400
    assert "request object is nil" in message["response"]["status"]["message"]


@pytest.mark.parametrize("obj", [None, {}, "", b""])
def test_empty_object_is_bad_request(admission_controller, obj):
    request = create_request({"kind": "Pod"})
    request["request"]["object"] = obj

    allowed, message = admission_controller.validate_request(request)

    assert allowed is False
    assert message["response"]["status"]["code"] == 400
    assert "empty object in request" in message["response"]["status"]["message"]


def test_serialized_object_is_decoded(admission_controller, valid_pod):
    request = create_request(valid_pod)
    request["request"]["object"] = json.dumps(valid_pod)

    allowed, _ = admission_controller.validate_request(request)

    assert allowed is True


def test_undecodable_object_is_bad_request(admission_controller):
    request = create_request({"kind": "Pod"})
    request["request"]["object"] = "{not json"

    allowed, message = admission_controller.validate_request(request)

    assert allowed is False
    assert message["response"]["status"]["code"] == 400


def test_owned_pod_is_allowed(admission_controller):
    pod = make_pod(invalid_pod_spec(), owner_references=[{"kind": "ReplicaSet", "name": "web-abc"}])

    allowed, _ = admission_controller.validate_request(create_request(pod))

    assert allowed is True


def test_trusted_registry_configured(valid_pod):
    config = ValidationConfig(trusted_image_registry="registry.example.com/", rule_overrides={})
    controller = AdmissionController(config)

    allowed, _ = controller.validate_request(create_request(valid_pod))

    spec = valid_pod_spec()
    spec["containers"][1]["image"] = "other.example.com/app:v1"
    denied, message = controller.validate_request(create_request(make_pod(spec)))

    assert allowed is True
    assert denied is False
    assert "trusted-image-registry" in message["response"]["status"]["message"]
    assert message["response"]["status"]["message"].endswith("for containers valid-2")


def test_disabled_rule_is_never_invoked(valid_pod):
    calls = []

    def record(context):
        calls.append(context)
        return ValidationResult.deny("should not run")

    catalog = RuleCatalog()
    catalog.register(Rule("recorder", record))
    catalog.register(Rule("passes", lambda context: ValidationResult.allow()))
    config = ValidationConfig(rule_overrides={"VALIDATE_RECORDER": "false"})

    allowed, _ = AdmissionController(config, catalog).validate_request(create_request(valid_pod))

    assert allowed is True
    assert calls == []


def test_fail_fast_never_runs_later_rules(valid_pod, validation_config):
    def explode(context):
        raise AssertionError("must not be invoked")

    catalog = RuleCatalog()
    catalog.register(Rule("first-failure", lambda context: ValidationResult.deny("first")))
    catalog.register(Rule("second-failure", explode))

    allowed, message = AdmissionController(validation_config, catalog).validate_request(
        create_request(valid_pod)
    )

    assert allowed is False
    assert "first-failure" in message["response"]["status"]["message"]
    assert "second-failure" not in message["response"]["status"]["message"]


def test_repeated_decisions_are_identical(admission_controller, invalid_pod):
    request = create_request(invalid_pod)

    assert admission_controller.decide(request) == admission_controller.decide(request)


def test_decision_with_patches_renders_json_patch():
    decision = AdmissionDecision(
        permitted=True,
        status_code=200,
        patches=[{"op": "add", "path": "/metadata/labels/a", "value": "b"}],
    )

    response = decision.to_review("uid-1")["response"]

    assert response["patchType"] == "JSONPatch"
    assert json.loads(base64.b64decode(response["patch"])) == decision.patches
    assert "reason" not in response["status"]


def test_null_host_network_is_decided(admission_controller):
    spec = valid_pod_spec()
    spec["hostNetwork"] = None

    allowed, message = admission_controller.validate_request(create_request(make_pod(spec)))

    assert allowed is True
    assert message["response"]["status"]["code"] == 200


def test_null_service_account_is_denied(admission_controller):
    spec = valid_pod_spec()
    spec["serviceAccountName"] = None

    allowed, message = admission_controller.validate_request(create_request(make_pod(spec)))

    assert allowed is False
    assert message["response"]["status"]["code"] == 403
    assert "default-service-account" in message["response"]["status"]["message"]
    assert "empty service account" in message["response"]["status"]["message"]


def test_null_container_name_is_decided(admission_controller):
    spec = valid_pod_spec()
    spec["containers"][1]["name"] = None
    spec["containers"][1]["securityContext"]["privileged"] = True

    allowed, message = admission_controller.validate_request(create_request(make_pod(spec)))

    assert allowed is False
    assert message["response"]["status"]["code"] == 403
    assert "privileged-container" in message["response"]["status"]["message"]


@pytest.mark.parametrize(
    "metadata_update",
    [
        {"ownerReferences": ["bogus"]},
        {"ownerReferences": "ReplicaSet"},
        {"annotations": ["ignore-check.kube-linter.io/host-pid"]},
        {"annotations": "host-pid"},
    ],
)
def test_wrong_shaped_metadata_still_returns_a_decision(admission_controller, metadata_update):
    pod = make_pod(invalid_pod_spec())
    pod["metadata"].update(metadata_update)

    allowed, message = admission_controller.validate_request(create_request(pod))

    assert allowed is False
    assert message["response"]["status"]["code"] == 403
    assert "run-as-non-root" in message["response"]["status"]["message"]


def test_non_mapping_metadata_still_returns_a_decision(admission_controller):
    pod = make_pod(valid_pod_spec())
    pod["metadata"] = "not-a-mapping"

    allowed, message = admission_controller.validate_request(create_request(pod))

    assert allowed is True
    assert message["response"]["status"]["code"] == 200
