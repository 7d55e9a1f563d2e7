import base64
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from podsec.exceptions import ResponseSerializationException


ADMISSION_API_VERSION = "admission.k8s.io/v1"
REASON_FORBIDDEN = "Forbidden"
PATCH_TYPE_JSON_PATCH = "JSONPatch"


class HealthResponse(BaseModel):
    msg: str = "server is healthy"


class AdmissionDecision(BaseModel):
    """Verdict for a single admission request."""

    permitted: bool = False
    status_code: int = 202
    message: Optional[str] = None
    patches: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def reason(self) -> Optional[str]:
        return None if self.permitted else REASON_FORBIDDEN

    @classmethod
    def allow(cls) -> "AdmissionDecision":
        return cls(permitted=True, status_code=200)

    @classmethod
    def deny(cls, message: str, status_code: int = 403) -> "AdmissionDecision":
        return cls(permitted=False, status_code=status_code, message=message)

    def to_review(self, uid: Optional[str], api_version: str = ADMISSION_API_VERSION) -> Dict[str, Any]:
        """Render the decision as an ``AdmissionReview`` response body."""
        status: Dict[str, Any] = {"code": self.status_code}
        if self.message:
            status["message"] = self.message
        if self.reason:
            status["reason"] = self.reason

        response: Dict[str, Any] = {
            "uid": uid,
            "allowed": self.permitted,
            "status": status,
        }

        if self.patches:
            try:
                patch = json.dumps(self.patches).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise ResponseSerializationException(f"unable to marshal patches: {e}") from e
            response["patchType"] = PATCH_TYPE_JSON_PATCH
            response["patch"] = base64.b64encode(patch).decode("utf-8")

        return {
            "apiVersion": api_version,
            "kind": "AdmissionReview",
            "response": response,
        }
