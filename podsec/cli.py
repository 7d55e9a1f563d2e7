import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List

import typer
import yaml
from loguru import logger

from podsec.admission.admission_controller import AdmissionController
from podsec.config import ValidationConfig
from podsec.resources import WorkloadKind, WorkloadResource
from podsec.services.webhook import configure_logging, run as run_webhook

app = typer.Typer(no_args_is_help=True)

SUPPORTED_KINDS = {kind.kind for kind in WorkloadKind}


def build_review(obj: Dict[str, Any], namespace: str = "", operation: str = "CREATE") -> Dict[str, Any]:
    """Wrap a manifest object in an ``AdmissionReview`` request."""
    if namespace and isinstance(obj.get("metadata"), dict) and not obj["metadata"].get("namespace"):
        obj = {**obj, "metadata": {**obj["metadata"], "namespace": namespace}}

    kind = obj.get("kind") or ""
    api_version = obj.get("apiVersion") or ""
    group, _, version = api_version.rpartition("/")

    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": str(uuid.uuid4()),
            "kind": {"group": group, "version": version, "kind": kind},
            "requestKind": {"group": group, "version": version, "kind": kind},
            "operation": operation,
            "namespace": namespace,
            "object": obj,
        },
    }


def load_manifest(path: Path) -> List[Dict[str, Any]]:
    """Every non-empty document in a YAML or JSON manifest, with ``List`` kinds flattened."""
    with open(path, "r") as f:
        documents = [doc for doc in yaml.safe_load_all(f) if isinstance(doc, dict)]

    objects = []
    for doc in documents:
        if doc.get("kind") == "List":
            objects.extend(item for item in doc.get("items") or [] if isinstance(item, dict))
        else:
            objects.append(doc)
    return objects


def check_manifest(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON manifest to check"),
    namespace: str = typer.Option("", help="Namespace for objects that do not set one"),
    debug: bool = typer.Option(False, help="Enable debug logging"),
):
    configure_logging(debug, level="WARNING")

    try:
        objects = load_manifest(path)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load manifest {path}:\n{e}")
        sys.exit(2)

    controller = AdmissionController(ValidationConfig())

    denied = 0
    for obj in objects:
        resource = WorkloadResource(obj)
        identity = f"{resource.kind}/{resource.name}"
        if resource.kind not in SUPPORTED_KINDS:
            typer.echo(f"SKIPPED {identity}: no pod specification")
            continue

        decision = controller.decide(build_review(obj, namespace))
        if decision.permitted:
            typer.echo(f"ALLOWED {identity}")
        else:
            denied += 1
            typer.echo(f"DENIED  {identity} ({decision.status_code}): {decision.message}")

    sys.exit(1 if denied else 0)


def serve():
    run_webhook()


app.command(name="check", help="Check workload manifests against the pod security rules.")(check_manifest)
app.command(name="serve", help="Run the admission webhook server.")(serve)

if __name__ == "__main__":
    app()
