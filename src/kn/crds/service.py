import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import KnObject, ObjectMeta
from .const import SERVICE_GVR
from ..errors import ValidationError

USER_IMAGE_ANNOTATION = "client.knative.dev/user-image"
MIN_SCALE_ANNOTATION = "autoscaling.knative.dev/min-scale"
MAX_SCALE_ANNOTATION = "autoscaling.knative.dev/max-scale"
CONFIGURATION_GENERATION_LABEL = "serving.knative.dev/configurationGeneration"

PORT_FORMAT_ERROR = (
    "the port specification '%s' is not valid. Please provide in the format 'NAME:PORT', "
    "where 'NAME' is optional. Examples: '--port h2c:8080' , '--port 8080'."
)


def parse_port(spec: str) -> Dict[str, Any]:
    """Parses ``[NAME:]PORT`` into a container port entry."""
    name, _, port = spec.rpartition(":")
    try:
        number = int(port)
    except ValueError:
        raise ValidationError(PORT_FORMAT_ERROR % spec) from None
    if not 0 < number < 65536:
        raise ValidationError(PORT_FORMAT_ERROR % spec)
    entry: Dict[str, Any] = {"containerPort": number}
    if name:
        entry["name"] = name
    return entry


def update_env(container: Dict[str, Any], env: Dict[str, str], remove: List[str]) -> None:
    """Sets or replaces env vars by name, then drops the removed ones, keeping order."""
    current = list(container.get("env") or [])
    names = [e.get("name") for e in current]
    for key, value in env.items():
        if key in names:
            current[names.index(key)] = {"name": key, "value": value}
        else:
            current.append({"name": key, "value": value})
            names.append(key)
    current = [e for e in current if e.get("name") not in remove]
    if current:
        container["env"] = current
    else:
        container.pop("env", None)


def update_map(target: Dict[str, str], add: Dict[str, str], remove: List[str]) -> Dict[str, str]:
    target.update(add)
    for key in remove:
        target.pop(key, None)
    return target


@dataclass
class ServiceConfig:
    """Changes applied to a Knative service by ``service create`` and ``service update``."""

    image: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)
    env_remove: List[str] = field(default_factory=list)
    port: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    labels_remove: List[str] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    annotations_remove: List[str] = field(default_factory=list)
    scale_min: Optional[int] = None
    scale_max: Optional[int] = None
    concurrency_limit: Optional[int] = None
    service_account: Optional[str] = None
    containers: Optional[List[Dict[str, Any]]] = None

    def validate(self) -> None:
        if self.scale_min is not None and self.scale_min < 0:
            raise ValidationError(f"invalid scale-min {self.scale_min} (must not be less than 0)")
        if self.scale_max is not None and self.scale_max < 0:
            raise ValidationError(f"invalid scale-max {self.scale_max} (must not be less than 0)")
        if (
            self.scale_min is not None
            and self.scale_max is not None
            and self.scale_max > 0
            and self.scale_min > self.scale_max
        ):
            raise ValidationError("scale-min must not be greater than scale-max")
        if self.concurrency_limit is not None and self.concurrency_limit < 0:
            raise ValidationError(
                f"invalid concurrency-limit {self.concurrency_limit} (must not be less than 0)"
            )

    def apply(self, service: KnObject) -> KnObject:
        """Applies the changes to ``service`` in place and returns it."""
        self.validate()
        template = service.spec.setdefault("template", {})
        template_meta = template.setdefault("metadata", {})
        pod_spec = template.setdefault("spec", {})
        containers = pod_spec.setdefault("containers", [{}])
        if not containers:
            containers.append({})
        container = containers[0]

        if self.image:
            container["image"] = self.image
            template_meta.setdefault("annotations", {})[USER_IMAGE_ANNOTATION] = self.image
        update_env(container, self.env, self.env_remove)
        if self.port:
            container["ports"] = [parse_port(self.port)]

        update_map(service.metadata.labels, self.labels, self.labels_remove)
        if self.labels or self.labels_remove:
            template_meta["labels"] = update_map(
                template_meta.get("labels") or {}, self.labels, self.labels_remove
            )

        update_map(service.metadata.annotations, self.annotations, self.annotations_remove)
        annotations = update_map(
            template_meta.get("annotations") or {}, self.annotations, self.annotations_remove
        )
        if self.scale_min is not None:
            annotations[MIN_SCALE_ANNOTATION] = str(self.scale_min)
        if self.scale_max is not None:
            annotations[MAX_SCALE_ANNOTATION] = str(self.scale_max)
        if annotations:
            template_meta["annotations"] = annotations
        else:
            template_meta.pop("annotations", None)

        if self.concurrency_limit is not None:
            pod_spec["containerConcurrency"] = self.concurrency_limit
        if self.service_account is not None:
            if self.service_account:
                pod_spec["serviceAccountName"] = self.service_account
            else:
                pod_spec.pop("serviceAccountName", None)
        if self.containers is not None:
            pod_spec["containers"] = [container] + copy.deepcopy(self.containers)

        if not template_meta:
            template.pop("metadata")
        return service


def new_service(name: str, namespace: str, config: ServiceConfig) -> KnObject:
    if not config.image:
        raise ValidationError("'service create' requires the image name to run provided with the --image option")
    service = KnObject(
        api_version=SERVICE_GVR.api_version,
        kind="Service",
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec={"template": {"spec": {"containers": [{}]}}},
    )
    return config.apply(service)


def service_image(service: KnObject) -> str:
    containers = service.spec.get("template", {}).get("spec", {}).get("containers") or [{}]
    return containers[0].get("image", "")


def service_url(obj: KnObject) -> str:
    return obj.status.get("url", "")


def traffic_targets(obj: KnObject) -> List[Dict[str, Any]]:
    return obj.status.get("traffic") or []
