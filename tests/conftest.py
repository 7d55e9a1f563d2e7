# conftest.py
"""
Shared test fixtures for the pod security admission webhook tests
"""

import copy
import os

import pytest

from podsec.admission.admission_controller import AdmissionController
from podsec.config import ValidationConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host overrides out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("VALIDATE_") or key.upper().startswith("TRUSTED_IMAGE_REGISTR"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def validation_config() -> ValidationConfig:
    return ValidationConfig(rule_overrides={})


@pytest.fixture
def admission_controller(validation_config) -> AdmissionController:
    """Create admission controller instance for testing."""
    return AdmissionController(validation_config)


def valid_pod_spec():
    return {
        "hostPID": False,
        "hostIPC": False,
        "hostNetwork": False,
        "securityContext": {
            "runAsNonRoot": True,
            "runAsUser": 1234,
        },
        "serviceAccountName": "valid",
        "containers": [
            {
                "name": "valid",
                "image": "registry.example.com/app:v1",
                "securityContext": {
                    "privileged": False,
                    "allowPrivilegeEscalation": False,
                    "runAsUser": 1234,
                    "runAsNonRoot": True,
                    "capabilities": {"drop": ["ALL", "NET_RAW"]},
                },
            },
            {
                "name": "valid-2",
                "image": "registry.example.com/app:v1",
                "securityContext": {
                    "privileged": False,
                    "allowPrivilegeEscalation": False,
                    "runAsUser": 1234,
                    "runAsNonRoot": True,
                    "capabilities": {"drop": ["ALL", "NET_RAW"]},
                },
            },
        ],
    }


def invalid_pod_spec():
    return {
        "hostPID": True,
        "hostIPC": True,
        "hostNetwork": True,
        "containers": [
            {
                "name": "invalid",
                "image": "other.example.com/app:v1",
                "securityContext": {
                    "privileged": True,
                    "allowPrivilegeEscalation": True,
                    "capabilities": {"add": ["NET_RAW"]},
                },
            }
        ],
    }


def empty_security_context_pod_spec():
    return {
        "serviceAccountName": "default",
        "containers": [{"name": "default", "image": "nginx:latest"}],
    }


def make_pod(spec, name="test-pod", namespace="default", annotations=None, owner_references=None):
    metadata = {"name": name, "namespace": namespace}
    if annotations:
        metadata["annotations"] = annotations
    if owner_references:
        metadata["ownerReferences"] = owner_references
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": metadata,
        "spec": copy.deepcopy(spec),
    }


def make_workload(kind, pod_spec, name="test-workload", namespace="default", annotations=None):
    template = {"metadata": {"labels": {"app": name}}, "spec": copy.deepcopy(pod_spec)}
    metadata = {"name": name, "namespace": namespace}
    if annotations:
        metadata["annotations"] = annotations

    if kind == "CronJob":
        spec = {"schedule": "*/5 * * * *", "jobTemplate": {"spec": {"template": template}}}
        api_version = "batch/v1"
    elif kind == "Job":
        spec = {"template": template}
        api_version = "batch/v1"
    else:
        spec = {"selector": {"matchLabels": {"app": name}}, "template": template}
        api_version = "apps/v1"

    return {"apiVersion": api_version, "kind": kind, "metadata": metadata, "spec": spec}


def create_request(resource_object, uid="test-uid-123", operation="CREATE"):
    """Helper function to create an admission review."""
    kind = resource_object.get("kind", "") if isinstance(resource_object, dict) else ""
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "", "version": "v1", "kind": kind},
            "requestKind": {"group": "", "version": "v1", "kind": kind},
            "operation": operation,
            "object": resource_object,
        },
    }


@pytest.fixture
def valid_pod():
    return make_pod(valid_pod_spec())


@pytest.fixture
def invalid_pod():
    return make_pod(invalid_pod_spec())


@pytest.fixture
def empty_security_context_pod():
    return make_pod(empty_security_context_pod_spec())


@pytest.fixture
def service_resource():
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "test-service", "namespace": "default"},
        "spec": {"selector": {"app": "test"}},
    }
